from typing import Optional

import structlog
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps.database import get_db
from app.core.errors import AuthError, DatabaseError, ForbiddenError
from app.models.profile import Profile
from app.services.identity import IdentityProvider, IdentityUser, get_identity_provider
from app.services.profile import profile_service

logger = structlog.get_logger(__name__)

# Missing or non-Bearer headers reach the dependency as None so they map to 401
security = HTTPBearer(auto_error=False)


async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> IdentityUser:
    """Resolve the caller from the bearer session token."""
    if credentials is None or not credentials.credentials:
        logger.info("Request without bearer token rejected")
        raise AuthError("Unauthorized")

    token = credentials.credentials
    logger.info("Received bearer token", token_preview=(token[:10] + "***"))

    return await identity.get_user(token)


async def get_current_profile(
    user: IdentityUser = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> Profile:
    """
    Get the authenticated user's profile.

    A valid identity without a profile gets a plain "user" profile.
    """
    return await profile_service.get_or_create_profile(db, user)


async def require_admin(
    user: IdentityUser = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> Profile:
    """
    Require the caller to be an admin.

    The role is read from the stored profile on every call; token claims
    are never trusted for it.
    """
    try:
        profile = await profile_service.get_profile(db, user.id)
    except DatabaseError:
        profile = None

    if profile is None or not profile.is_admin:
        logger.warning("Non-admin caller rejected", user_id=user.id)
        raise ForbiddenError("Forbidden")

    return profile
