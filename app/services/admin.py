import time
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy import select, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.config import settings
from app.core.errors import DatabaseError, ValidationError
from app.core.storage import ObjectStorage
from app.models.note import Note
from app.models.profile import Profile
from app.schemas.note import AdminNoteResponse, NoteOwner
from app.schemas.profile import ProfileResponse
from app.services.note import utcnow

logger = structlog.get_logger(__name__)

# Fields an admin or the profile owner may write through update_user_profile
PROFILE_UPDATE_FIELDS = {"name", "avatar_url", "role"}


class AdminService:
    """
    Service layer for admin dashboard data.

    Listing operations first try the database-side aggregation procedures
    (``admin_get_all_profiles`` / ``admin_get_all_notes``) and fall back to
    plain ORM reads when the procedures are unavailable. Authorization is the
    caller's job.
    """

    async def load_all_users(self, db: AsyncSession) -> List[ProfileResponse]:
        """Get all profiles, newest first."""
        try:
            result = await db.execute(text("SELECT * FROM admin_get_all_profiles()"))
            rows = result.mappings().all()
            logger.info("Retrieved users via procedure", count=len(rows))
            return [ProfileResponse.model_validate(dict(row)) for row in rows]
        except SQLAlchemyError as e:
            await db.rollback()
            logger.info("Profile procedure unavailable, reading table", error=str(e))

        try:
            result = await db.execute(
                select(Profile).order_by(Profile.created_at.desc())
            )
            profiles = result.scalars().all()
            logger.info("Retrieved users", count=len(profiles))
            return [ProfileResponse.model_validate(p) for p in profiles]
        except SQLAlchemyError as e:
            logger.error("Failed to load all users", error=str(e))
            raise DatabaseError("Failed to load all users", e)

    async def load_all_notes(self, db: AsyncSession) -> List[AdminNoteResponse]:
        """Get every note with its owner's name and email, newest first."""
        try:
            result = await db.execute(text("SELECT * FROM admin_get_all_notes()"))
            rows = result.mappings().all()
            logger.info("Retrieved notes via procedure", count=len(rows))
            return [self._note_from_row(dict(row)) for row in rows]
        except SQLAlchemyError as e:
            await db.rollback()
            logger.info("Notes procedure unavailable, reading table", error=str(e))

        try:
            result = await db.execute(
                select(Note)
                .options(selectinload(Note.owner))
                .order_by(Note.created_at.desc())
            )
            notes = result.scalars().all()
            logger.info("Retrieved notes", count=len(notes))
            return [self._note_from_model(note) for note in notes]
        except SQLAlchemyError as e:
            logger.error("Failed to load all notes", error=str(e))
            raise DatabaseError("Failed to load all notes", e)

    @staticmethod
    def _note_from_row(row: Dict[str, Any]) -> AdminNoteResponse:
        # The procedure flattens owner fields into user_name / user_email
        return AdminNoteResponse(
            id=str(row["id"]),
            title=row.get("title") or "",
            content=row.get("content") or "",
            user_id=str(row["user_id"]),
            created_at=row["created_at"],
            updated_at=row.get("updated_at"),
            users=NoteOwner(name=row.get("user_name"), email=row.get("user_email")),
        )

    @staticmethod
    def _note_from_model(note: Note) -> AdminNoteResponse:
        owner = note.owner
        return AdminNoteResponse(
            id=note.id,
            title=note.title,
            content=note.content,
            user_id=note.user_id,
            created_at=note.created_at,
            updated_at=note.updated_at,
            users=NoteOwner(name=owner.name, email=owner.email) if owner else None,
        )

    async def update_user_profile(
        self, db: AsyncSession, user_id: str, updates: Dict[str, Any]
    ) -> bool:
        """
        Partially update a profile.

        None values are dropped first; when nothing is left the call returns
        False without touching the database.
        """
        filtered = {k: v for k, v in updates.items() if v is not None}
        if not filtered:
            return False

        unknown = set(filtered) - PROFILE_UPDATE_FIELDS
        if unknown:
            raise ValidationError(
                f"Unsupported profile fields: {', '.join(sorted(unknown))}"
            )

        try:
            await db.execute(
                update(Profile)
                .where(Profile.id == user_id)
                .values(**filtered, updated_at=utcnow())
            )
            await db.commit()

            logger.info(
                "Profile updated successfully",
                user_id=user_id,
                updated_fields=list(filtered.keys()),
            )
            return True

        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Failed to update profile", user_id=user_id, error=str(e))
            raise DatabaseError("Failed to update user profile", e)

    async def upload_avatar(
        self,
        storage: ObjectStorage,
        user_id: str,
        filename: Optional[str],
        data: Optional[bytes],
    ) -> str:
        """Store an avatar under the user's prefix and return its public URL."""
        if not filename or data is None:
            raise DatabaseError("No file provided for avatar upload")

        if len(data) > settings.MAX_UPLOAD_SIZE:
            raise ValidationError(
                "Avatar exceeds maximum upload size",
                {"max_bytes": settings.MAX_UPLOAD_SIZE, "size": len(data)},
            )

        file_ext = filename.split(".")[-1]
        file_name = f"{user_id}-{int(time.time() * 1000)}.{file_ext}"
        file_path = f"avatars/{user_id}/{file_name}"

        try:
            await storage.upload(file_path, data)
        except (OSError, ValueError) as e:
            logger.error("Failed to upload avatar", user_id=user_id, error=str(e))
            raise DatabaseError("Failed to upload avatar", e)

        public_url = storage.get_public_url(file_path)
        if not public_url:
            raise DatabaseError("Failed to get avatar URL")

        return public_url


admin_service = AdminService()
