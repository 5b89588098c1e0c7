"""
Database utilities and connection management.

WHAT: SQLite setup for the persisted model configuration store
WHY: Model configs must survive restarts and be shared by every provider instance
HOW: SQLAlchemy sync engine v2 with WAL mode, session factory per engine
"""

from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from ..utils.logger import get_logger

logger = get_logger(__name__)

# Base for models
Base = declarative_base()


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create an engine for the given URL.

    File-backed SQLite databases get their parent directory created and
    WAL mode enabled on every new connection.
    """
    if database_url.startswith("sqlite:///") and ":memory:" not in database_url:
        data_dir = Path(database_url.replace("sqlite:///", "")).parent
        data_dir.mkdir(parents=True, exist_ok=True)

    engine = create_engine(
        database_url,
        connect_args={"check_same_thread": False},
        echo=echo,
        future=True
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        """Enable WAL mode for better concurrency."""
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        bind=engine,
        expire_on_commit=False,
        autoflush=False,
        autocommit=False
    )


@contextmanager
def session_scope(session_factory: sessionmaker):
    """
    Context manager for a database session.

    Usage:
        with session_scope(factory) as db:
            # use db session
            pass

    Yields:
        Session: SQLAlchemy session, committed on success and rolled back on error
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(engine: Engine) -> None:
    """Create all tables."""
    # Import so the model is registered on Base.metadata
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info(f"Database initialized ({engine.url})")
