# =============================================================================
# Notes Repository — Parameterized CRUD on the `notes` table
# =============================================================================
#
# All statements are built with SQLAlchemy expressions, so every value is
# sent as a bound parameter. LIKE patterns are escaped (`autoescape=True`),
# so `%` and `_` in user input match literally.
#
# OWNERSHIP:
#   - list / count filter by `user_id` inside the SQL WHERE clause;
#     rows of other users are never loaded.
#   - update / delete load the row by id first and compare its owner:
#       missing row      → NotFoundError (404)
#       other user's row → OwnershipError (403), row untouched
# =============================================================================

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, date, datetime, time

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from voicenotes.db.models import Note, encode_tags
from voicenotes.errors import NotFoundError, OwnershipError

logger = logging.getLogger(__name__)


def generate_note_id() -> str:
    """URL-safe random id; always matches [A-Za-z0-9_-]+."""
    return secrets.token_urlsafe(16)


@dataclass(frozen=True)
class NoteFilters:
    search: str | None = None
    tag: str | None = None
    start_date: date | None = None
    end_date: date | None = None  # inclusive: the whole day


@dataclass(frozen=True)
class NotePage:
    notes: list[Note]
    total: int
    limit: int
    offset: int

    @property
    def has_more(self) -> bool:
        return self.offset + self.limit < self.total


class NotesRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # -------------------------------------------------------------------
    # Create
    # -------------------------------------------------------------------

    async def create(
        self,
        user_id: str,
        title: str,
        content: str,
        tags: list[str],
        organized_content: str | None = None,
    ) -> Note:
        note = Note(
            id=generate_note_id(),
            user_id=user_id,
            title=title,
            content=content,
            organized_content=organized_content,
            tags=encode_tags(tags),
        )
        self._session.add(note)
        await self._session.commit()

        logger.info(
            "Note created: id=%s, user=%s, tags=%d", note.id, user_id, len(tags),
        )
        return note

    # -------------------------------------------------------------------
    # Read
    # -------------------------------------------------------------------

    @staticmethod
    def _conditions(user_id: str, filters: NoteFilters) -> list:
        conditions = [Note.user_id == user_id]

        if filters.search:
            conditions.append(or_(
                Note.title.contains(filters.search, autoescape=True),
                Note.content.contains(filters.search, autoescape=True),
            ))

        if filters.tag:
            # Match the quoted JSON string so "work" does not match "homework"
            conditions.append(
                Note.tags.contains(encode_tags([filters.tag])[1:-1], autoescape=True),
            )

        if filters.start_date:
            conditions.append(
                Note.created_at >= datetime.combine(filters.start_date, time.min, UTC),
            )

        if filters.end_date:
            conditions.append(
                Note.created_at <= datetime.combine(filters.end_date, time.max, UTC),
            )

        return conditions

    async def list_notes(
        self,
        user_id: str,
        filters: NoteFilters | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> NotePage:
        conditions = self._conditions(user_id, filters or NoteFilters())

        stmt = (
            select(Note)
            .where(*conditions)
            .order_by(Note.created_at.desc(), Note.id)
            .limit(limit)
            .offset(offset)
        )
        notes = list((await self._session.execute(stmt)).scalars().all())

        count_stmt = select(func.count()).select_from(Note).where(*conditions)
        total = (await self._session.execute(count_stmt)).scalar_one()

        return NotePage(notes=notes, total=total, limit=limit, offset=offset)

    async def count(self, user_id: str) -> int:
        stmt = select(func.count()).select_from(Note).where(Note.user_id == user_id)
        return (await self._session.execute(stmt)).scalar_one()

    async def get_owned(self, note_id: str, user_id: str) -> Note:
        """Load a note and verify `user_id` owns it."""
        note = await self._session.get(Note, note_id)
        if note is None:
            raise NotFoundError()
        if note.user_id != user_id:
            logger.warning(
                "Ownership check failed: note=%s owner=%s caller=%s",
                note_id, note.user_id, user_id,
            )
            raise OwnershipError()
        return note

    # -------------------------------------------------------------------
    # Update / Delete
    # -------------------------------------------------------------------

    async def update(
        self,
        note_id: str,
        user_id: str,
        *,
        title: str,
        content: str,
        tags: list[str],
        organized_content: str | None = None,
    ) -> Note:
        note = await self.get_owned(note_id, user_id)

        note.title = title
        note.content = content
        note.organized_content = organized_content
        note.tags = encode_tags(tags)
        await self._session.commit()
        await self._session.refresh(note)

        logger.info("Note updated: id=%s, user=%s", note_id, user_id)
        return note

    async def delete(self, note_id: str, user_id: str) -> None:
        await self.get_owned(note_id, user_id)

        await self._session.execute(
            delete(Note).where(Note.id == note_id, Note.user_id == user_id),
        )
        await self._session.commit()

        logger.info("Note deleted: id=%s, user=%s", note_id, user_id)
