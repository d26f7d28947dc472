from datetime import datetime, timezone
from typing import List, Optional, Union

import structlog
from sqlalchemy import and_, delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import DatabaseError, ValidationError
from app.models.note import Note
from app.schemas.note import NoteSave

logger = structlog.get_logger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_date(value: Union[str, datetime]) -> str:
    """Format a timestamp the way note lists display it, e.g. "Jan 5, 2024, 02:30 PM"."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return f"{value:%b} {value.day}, {value:%Y, %I:%M %p}"


class NoteService:
    """Service layer for note operations."""

    async def load_notes(self, db: AsyncSession, user_id: str) -> List[Note]:
        """Get all notes owned by a user, newest first."""
        try:
            result = await db.execute(
                select(Note)
                .where(Note.user_id == user_id)
                .order_by(Note.created_at.desc())
            )
            notes = list(result.scalars().all())

            logger.info("Retrieved notes", user_id=user_id, count=len(notes))
            return notes

        except SQLAlchemyError as e:
            logger.error("Failed to load notes", user_id=user_id, error=str(e))
            raise DatabaseError("Failed to load notes", e)

    async def get_note(self, db: AsyncSession, note_id: str) -> Optional[Note]:
        try:
            result = await db.execute(select(Note).where(Note.id == note_id))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Failed to get note", note_id=note_id, error=str(e))
            raise DatabaseError(f"Failed to load note with ID: {note_id}", e)

    async def save_note(
        self, db: AsyncSession, note: NoteSave, owner_id: Optional[str] = None
    ) -> Note:
        """
        Insert or update a note.

        With an id the note is updated and ``updated_at`` is stamped; an id
        that does not exist yet is inserted under that id. Without an id a new
        note is inserted with ``created_at`` stamped. Titles are stored as
        given.

        Args:
            db: Database session
            note: Note payload
            owner_id: When set, only notes owned by this user may be updated

        Returns:
            Note: The persisted note
        """
        try:
            existing = await self.get_note(db, note.id) if note.id else None

            if existing is not None:
                if owner_id is not None and existing.user_id != owner_id:
                    logger.warning(
                        "Note update outside owner scope rejected",
                        note_id=existing.id,
                        owner_id=owner_id,
                    )
                    raise DatabaseError(f"Failed to save note: {note.title}")

                # user_id and created_at never change after creation
                existing.title = note.title
                existing.content = note.content
                existing.updated_at = utcnow()
                saved = existing
            else:
                if not note.user_id:
                    raise ValidationError("Note owner is required")

                now = utcnow()
                saved = Note(
                    title=note.title,
                    content=note.content,
                    user_id=note.user_id,
                    created_at=now,
                )
                if note.id:
                    saved.id = note.id
                    saved.updated_at = now
                db.add(saved)

            await db.commit()
            await db.refresh(saved)

            if not saved.id:
                raise DatabaseError("No data returned from save operation")

            logger.info(
                "Note saved successfully",
                note_id=saved.id,
                user_id=saved.user_id,
                updated=existing is not None,
            )
            return saved

        except (DatabaseError, ValidationError):
            raise
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error while saving note", error=str(e))
            raise DatabaseError(f"Failed to save note: {note.title}", e)

    async def delete_note(
        self, db: AsyncSession, note_id: str, owner_id: Optional[str] = None
    ) -> None:
        """Delete a note. Deleting a missing note is not an error."""
        try:
            condition = Note.id == note_id
            if owner_id is not None:
                condition = and_(condition, Note.user_id == owner_id)

            result = await db.execute(delete(Note).where(condition))
            await db.commit()

            logger.info("Note delete issued", note_id=note_id, deleted=result.rowcount)

        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Failed to delete note", note_id=note_id, error=str(e))
            raise DatabaseError(f"Failed to delete note with ID: {note_id}", e)


note_service = NoteService()
