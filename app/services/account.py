import asyncio
from dataclasses import dataclass, field
from typing import List

import structlog
from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import AppError, DatabaseError, ValidationError
from app.core.storage import ObjectStorage
from app.models.note import Note
from app.models.profile import Profile
from app.schemas.admin import CreateUserRequest, UpdateUserRequest
from app.services.admin import admin_service
from app.services.identity import IdentityAdmin
from app.services.profile import profile_service

logger = structlog.get_logger(__name__)


@dataclass
class CascadeResult:
    user_id: str
    failed_steps: List[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failed_steps


class AccountService:
    """
    Privileged account operations performed with the service credential.

    Account deletion removes notes, then the profile, then avatar objects,
    then the identity record. The first three steps are best-effort and not
    transactional; the identity deletion is final and its failure fails the
    whole operation.
    """

    async def run_data_cascade(
        self, db: AsyncSession, storage: ObjectStorage, user_id: str
    ) -> List[str]:
        """Delete a user's notes, profile and avatars. Returns failed step names."""
        failed: List[str] = []

        try:
            result = await db.execute(delete(Note).where(Note.user_id == user_id))
            await db.commit()
            logger.info("Cascade deleted notes", user_id=user_id, count=result.rowcount)
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Cascade failed deleting notes", user_id=user_id, error=str(e))
            failed.append("notes")

        try:
            await db.execute(delete(Profile).where(Profile.id == user_id))
            await db.commit()
            logger.info("Cascade deleted profile", user_id=user_id)
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(
                "Cascade failed deleting profile", user_id=user_id, error=str(e)
            )
            failed.append("profile")

        try:
            prefix = f"avatars/{user_id}"
            names = await storage.list(prefix)
            if names:
                await storage.remove([f"{prefix}/{name}" for name in names])
        except (OSError, ValueError) as e:
            logger.error(
                "Cascade failed deleting avatars", user_id=user_id, error=str(e)
            )
            failed.append("storage")

        return failed

    async def delete_account(
        self,
        db: AsyncSession,
        identity: IdentityAdmin,
        storage: ObjectStorage,
        user_id: str,
    ) -> CascadeResult:
        """Cascade-delete an account, finishing with the identity record."""
        result = CascadeResult(user_id=user_id)
        result.failed_steps = await self.run_data_cascade(db, storage, user_id)

        try:
            await identity.delete_user(user_id)
        except AppError as e:
            logger.error(
                "Identity deletion failed",
                user_id=user_id,
                failed_steps=result.failed_steps,
                error=str(e),
            )
            raise DatabaseError("Failed to delete user", e)

        if result.failed_steps:
            logger.warning(
                "Account deleted with incomplete cascade",
                user_id=user_id,
                failed_steps=result.failed_steps,
            )
            await self.schedule_cascade_retry(user_id)
        else:
            logger.info("Account deleted", user_id=user_id)

        return result

    async def schedule_cascade_retry(self, user_id: str) -> bool:
        """Queue a background re-run of the data cascade for a deleted account."""
        if not settings.CASCADE_RETRY_ENABLED:
            logger.warning("Cascade retry disabled, leaving partial state", user_id=user_id)
            return False

        from app.services.tasks import retry_account_cascade

        try:
            # Publishing blocks while the broker connection retries
            await asyncio.to_thread(
                retry_account_cascade.apply_async,
                args=[user_id],
                countdown=settings.CASCADE_RETRY_DELAY_SECONDS,
            )
            logger.info("Cascade retry scheduled", user_id=user_id)
            return True
        except Exception as e:
            logger.error("Failed to schedule cascade retry", user_id=user_id, error=str(e))
            return False

    async def create_user(
        self, db: AsyncSession, identity: IdentityAdmin, user_data: CreateUserRequest
    ) -> Profile:
        """Create an identity record and its profile with the requested role."""
        try:
            user = await identity.create_user(
                email=user_data.email, password=user_data.password, name=user_data.name
            )
        except AppError as e:
            logger.error("Failed to create identity record", email=user_data.email)
            raise DatabaseError("Failed to create user", e)

        try:
            profile = await profile_service.create_profile(
                db,
                user_id=user.id,
                email=user_data.email,
                name=user_data.name,
                role=user_data.role,
            )
        except DatabaseError:
            # Leave no identity record without a profile behind
            try:
                await identity.delete_user(user.id)
            except AppError as e:
                logger.error(
                    "Failed to remove orphaned identity record",
                    user_id=user.id,
                    error=str(e),
                )
            raise DatabaseError("Failed to create user")

        logger.info(
            "User created by admin", user_id=profile.id, role=profile.role
        )
        return profile

    async def update_user(
        self, db: AsyncSession, identity: IdentityAdmin, user_data: UpdateUserRequest
    ) -> Profile:
        """Update another user's name and/or role."""
        profile = await profile_service.get_profile(db, user_data.user_id)
        if not profile:
            raise ValidationError("User not found")

        await admin_service.update_user_profile(
            db,
            user_data.user_id,
            {
                "name": user_data.name,
                "role": user_data.role.value if user_data.role else None,
            },
        )

        if user_data.name:
            try:
                await identity.update_display_name(profile.email, user_data.name)
            except AppError as e:
                logger.warning(
                    "Identity display name not updated",
                    user_id=user_data.user_id,
                    error=str(e),
                )

        await db.refresh(profile)
        return profile


account_service = AccountService()
