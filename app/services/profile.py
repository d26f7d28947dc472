from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import DatabaseError
from app.models.profile import Profile, UserRole
from app.services.identity import IdentityUser

logger = structlog.get_logger(__name__)


class ProfileService:
    """Service layer for profile records."""

    async def get_profile(self, db: AsyncSession, user_id: str) -> Optional[Profile]:
        """Get profile by identity subject id."""
        try:
            result = await db.execute(select(Profile).where(Profile.id == user_id))
            profile = result.scalar_one_or_none()

            if not profile:
                logger.warning("Profile not found", user_id=user_id)

            return profile

        except SQLAlchemyError as e:
            logger.error("Failed to get profile", user_id=user_id, error=str(e))
            raise DatabaseError("Failed to load profile", e)

    async def create_profile(
        self,
        db: AsyncSession,
        user_id: str,
        email: str,
        name: Optional[str] = None,
        role: UserRole = UserRole.USER,
    ) -> Profile:
        """Create the profile row that accompanies an identity record."""
        try:
            profile = Profile(id=user_id, email=email, name=name, role=role.value)
            db.add(profile)
            await db.commit()
            await db.refresh(profile)

            logger.info(
                "Profile created successfully", user_id=user_id, role=profile.role
            )
            return profile

        except IntegrityError as e:
            await db.rollback()
            logger.error(
                "Failed to create profile due to integrity constraint",
                user_id=user_id,
                error=str(e),
            )
            raise DatabaseError("Profile already exists", e)
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Failed to create profile", user_id=user_id, error=str(e))
            raise DatabaseError("Failed to create profile", e)

    async def get_or_create_profile(
        self, db: AsyncSession, user: IdentityUser
    ) -> Profile:
        """
        Get the caller's profile, creating a plain user profile on first sight.

        Identity tokens never decide the role: a profile created here is
        always a "user" profile.
        """
        profile = await self.get_profile(db, user.id)
        if profile:
            return profile

        logger.info("Creating profile for identity without one", user_id=user.id)
        return await self.create_profile(
            db,
            user_id=user.id,
            email=user.email or "",
            name=user.name,
            role=UserRole.USER,
        )


profile_service = ProfileService()
