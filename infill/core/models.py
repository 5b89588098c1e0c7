"""
ORM model for persisted completion model configurations.

WHAT: One row per user-chosen nickname
WHY: Providers read their config by nickname at construction time
HOW: Declarative model; provider-specific fields live in a JSON payload
"""

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Integer, String

from .database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ModelConfigRecord(Base):
    """
    Stored model configuration.

    The indexed columns duplicate the base ModelConfig fields so the table can
    be inspected without decoding the payload. The payload is the full
    camelCase record as handed to the store.
    """
    __tablename__ = "model_configs"

    nickname = Column(String(200), primary_key=True)
    provider_id = Column(String(100), nullable=False, index=True)
    model = Column(String(200), nullable=False, default="")
    context_window = Column(Integer, nullable=False)
    payload = Column(JSON, nullable=False)
    created_at = Column(DateTime, nullable=False, default=_utcnow)
    updated_at = Column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    def __repr__(self):
        return f"<ModelConfigRecord(nickname={self.nickname}, provider_id={self.provider_id}, model={self.model})>"
