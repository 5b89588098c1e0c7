"""
Persisted configuration store for completion models.

WHAT: get/set of model configuration records keyed by nickname
WHY: Providers load their config by nickname; configure flows persist new ones
HOW: Protocol + SQLAlchemy-backed implementation + in-memory implementation
"""

import asyncio
import copy
from typing import Any, Protocol

from sqlalchemy import select
from sqlalchemy.engine import Engine

from .config import settings
from .database import create_db_engine, create_session_factory, init_db, session_scope
from .models import ModelConfigRecord
from ..utils.logger import get_logger

logger = get_logger(__name__)

ConfigRecord = dict[str, Any]


class ModelConfigStore(Protocol):
    """Interface every configuration store implements."""

    def get(self, nickname: str) -> ConfigRecord | None:
        """Return the stored record for nickname, or None."""
        ...

    async def set(self, nickname: str, config: ConfigRecord) -> None:
        """Create or overwrite the record for nickname."""
        ...

    async def delete(self, nickname: str) -> bool:
        """Remove the record; return True if one existed."""
        ...

    def list_nicknames(self) -> list[str]:
        ...


def _require_fields(nickname: str, config: ConfigRecord) -> None:
    missing = [key for key in ("providerId", "contextWindow") if key not in config]
    if missing:
        raise ValueError(f"Config for {nickname} is missing {', '.join(missing)}")


class InMemoryModelConfigStore:
    """Dict-backed store, for tests and hosts that persist elsewhere."""

    def __init__(self, initial: dict[str, ConfigRecord] | None = None):
        self._records: dict[str, ConfigRecord] = copy.deepcopy(initial or {})

    def get(self, nickname: str) -> ConfigRecord | None:
        record = self._records.get(nickname)
        return copy.deepcopy(record) if record is not None else None

    async def set(self, nickname: str, config: ConfigRecord) -> None:
        _require_fields(nickname, config)
        self._records[nickname] = copy.deepcopy(config)

    async def delete(self, nickname: str) -> bool:
        return self._records.pop(nickname, None) is not None

    def list_nicknames(self) -> list[str]:
        return sorted(self._records)


class SqlModelConfigStore:
    """SQLite store for model configurations."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = create_session_factory(engine)
        init_db(engine)

    @classmethod
    def from_url(cls, database_url: str) -> "SqlModelConfigStore":
        return cls(create_db_engine(database_url, echo=settings.DEBUG))

    def get(self, nickname: str) -> ConfigRecord | None:
        with session_scope(self._session_factory) as db:
            record = db.get(ModelConfigRecord, nickname)
            if record is None:
                return None
            return dict(record.payload)

    async def set(self, nickname: str, config: ConfigRecord) -> None:
        _require_fields(nickname, config)
        await asyncio.to_thread(self._write, nickname, dict(config))
        logger.debug(f"Stored model configuration for {nickname} ({config['providerId']})")

    async def delete(self, nickname: str) -> bool:
        deleted = await asyncio.to_thread(self._delete, nickname)
        if deleted:
            logger.debug(f"Deleted model configuration for {nickname}")
        return deleted

    def _write(self, nickname: str, payload: ConfigRecord) -> None:
        with session_scope(self._session_factory) as db:
            record = db.get(ModelConfigRecord, nickname)
            if record is None:
                record = ModelConfigRecord(nickname=nickname)
                db.add(record)
            record.provider_id = payload["providerId"]
            record.model = payload.get("model", "")
            record.context_window = payload["contextWindow"]
            record.payload = payload

    def _delete(self, nickname: str) -> bool:
        with session_scope(self._session_factory) as db:
            record = db.get(ModelConfigRecord, nickname)
            if record is None:
                return False
            db.delete(record)
        return True

    def list_nicknames(self) -> list[str]:
        with session_scope(self._session_factory) as db:
            return list(db.scalars(select(ModelConfigRecord.nickname).order_by(ModelConfigRecord.nickname)))

    def close(self) -> None:
        """Close database connections."""
        self.engine.dispose()


# Singleton instance
_store_instance: ModelConfigStore | None = None


def get_model_store() -> ModelConfigStore:
    """Get the process-wide store, backed by settings.DATABASE_URL."""
    global _store_instance
    if _store_instance is None:
        _store_instance = SqlModelConfigStore.from_url(settings.DATABASE_URL)
        logger.info(f"Model configuration store opened: {settings.DATABASE_URL}")
    return _store_instance


def set_model_store(store: ModelConfigStore | None) -> None:
    """Install a store as the process default (None resets it)."""
    global _store_instance
    _store_instance = store


def reset_model_store() -> None:
    """Reset the store singleton (useful for testing)."""
    set_model_store(None)
