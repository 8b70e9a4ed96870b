"""
SQLAlchemy ORM models for the local persistence store.

The tracker keeps two kinds of durable state:
- string-serialized JSON values under fixed keys (identity, history, progress)
- a write-once cache of raw match participant lists keyed by match ID
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class KeyValueDB(Base):
    """
    A single key/value entry.

    Values are whole JSON documents; every write replaces the full value.
    """

    __tablename__ = "kv_entries"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<KeyValueDB(key={self.key})>"


class MatchCacheDB(Base):
    """
    Cached match detail.

    Match data is immutable once played, so rows are never updated.
    Stores the raw participant list; per-player results are derived on read.
    """

    __tablename__ = "match_cache"

    match_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    schema_version: Mapped[int] = mapped_column(Integer, default=1)
    participants: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return f"<MatchCacheDB(match_id={self.match_id}, v={self.schema_version})>"
