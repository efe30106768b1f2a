# =============================================================================
# Database Models — SQLAlchemy ORM
# =============================================================================
#
# SCHEMA:
#
# ┌──────────────────────────────────────────┐
# │  notes                                   │
# ├──────────────────────────────────────────┤
# │ id (PK, text)                            │
# │ user_id (text, indexed)                  │
# │ title (varchar 200)                      │
# │ content (text)                           │
# │ organized_content (text, nullable)       │
# │ tags (text: JSON array of strings)       │
# │ created_at / updated_at (timestamps)     │
# └──────────────────────────────────────────┘
#
# Tags are a JSON array stored in a single text column (no join table).
# A note has at most 10 short tags, and "has tag X" is answered with a
# substring match on the encoded array ('%"X"%').
#
# Every note is owned by exactly one user (`user_id`), the id reported by
# the authentication service.
# =============================================================================

from __future__ import annotations

import json
from datetime import UTC, datetime

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


def utc_now() -> datetime:
    return datetime.now(UTC)


class UTCDateTime(TypeDecorator):
    """
    Timestamp that is always UTC-aware in Python.

    SQLite has no timezone storage and hands back naive values; those are
    read as UTC. Aware values are converted to UTC before they are stored.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(UTC)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


def encode_tags(tags: list[str]) -> str:
    return json.dumps(tags, ensure_ascii=False)


def decode_tags(raw: str | None) -> list[str]:
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except ValueError:
        return []
    return [str(tag) for tag in value] if isinstance(value, list) else []


class Base(DeclarativeBase):
    pass


class Note(Base):
    __tablename__ = "notes"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    # Owner, as reported by the session service
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    # AI-reorganized variant of a transcription (null when not produced)
    organized_content: Mapped[str | None] = mapped_column(Text, nullable=True)

    # JSON-encoded list of strings, e.g. '["trabajo", "ideas"]'
    tags: Mapped[str] = mapped_column(Text, nullable=False, default="[]")

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        default=utc_now,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        default=utc_now,
        onupdate=utc_now,
        nullable=False,
    )

    __table_args__ = (
        Index("ix_notes_user_id_created_at", "user_id", "created_at"),
    )

    @property
    def tag_list(self) -> list[str]:
        return decode_tags(self.tags)

    def __repr__(self) -> str:
        return f"<Note(id='{self.id}', user_id='{self.user_id}', title='{self.title[:30]}')>"
