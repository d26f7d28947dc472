import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps.auth import get_current_identity, require_admin
from app.api.deps.database import get_db
from app.core.errors import AppError, DatabaseError, ForbiddenError
from app.core.storage import ObjectStorage, get_storage
from app.models.profile import Profile
from app.schemas.admin import (
    CreateUserRequest,
    DeleteUserRequest,
    PrivilegedResponse,
    UpdateUserRequest,
)
from app.services.account import account_service
from app.services.identity import IdentityProvider, IdentityUser, get_identity_provider
from app.services.profile import profile_service

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post("/admin/delete-user", response_model=PrivilegedResponse)
async def delete_user(
    body: DeleteUserRequest,
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    identity: IdentityProvider = Depends(get_identity_provider),
    current_admin: Profile = Depends(require_admin),
):
    """Delete a user's notes, profile, avatars and identity record."""
    logger.info(
        "Admin account deletion requested",
        admin_id=current_admin.id,
        target_id=body.user_id,
    )
    try:
        await account_service.delete_account(
            db, identity.admin(), storage, body.user_id
        )
    except Exception as e:
        logger.error("Error deleting user", target_id=body.user_id, error=str(e))
        raise DatabaseError("Failed to delete user", e)

    return PrivilegedResponse()


@router.post("/admin/create-user", response_model=PrivilegedResponse)
async def create_user(
    body: CreateUserRequest,
    db: AsyncSession = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity_provider),
    current_admin: Profile = Depends(require_admin),
):
    """Create an account with the requested role."""
    try:
        await account_service.create_user(db, identity.admin(), body)
    except Exception as e:
        logger.error("Error creating user", email=body.email, error=str(e))
        raise DatabaseError("Failed to create user", e)

    return PrivilegedResponse()


@router.post("/admin/update-user", response_model=PrivilegedResponse)
async def update_user(
    body: UpdateUserRequest,
    db: AsyncSession = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity_provider),
    current_admin: Profile = Depends(require_admin),
):
    """Update another account's name and/or role."""
    try:
        await account_service.update_user(db, identity.admin(), body)
    except AppError:
        raise
    except Exception as e:
        logger.error("Error updating user", target_id=body.user_id, error=str(e))
        raise DatabaseError("Failed to update user", e)

    return PrivilegedResponse()


@router.post("/user/delete", response_model=PrivilegedResponse)
async def delete_own_account(
    body: DeleteUserRequest,
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    identity: IdentityProvider = Depends(get_identity_provider),
    caller: IdentityUser = Depends(get_current_identity),
):
    """Delete the caller's own account; admins may target any account."""
    if caller.id != body.user_id:
        try:
            profile = await profile_service.get_profile(db, caller.id)
        except DatabaseError:
            profile = None
        if profile is None or not profile.is_admin:
            logger.warning(
                "Account deletion for another user rejected",
                user_id=caller.id,
                target_id=body.user_id,
            )
            raise ForbiddenError("Forbidden")

    try:
        await account_service.delete_account(
            db, identity.admin(), storage, body.user_id
        )
    except Exception as e:
        logger.error("Error deleting user", target_id=body.user_id, error=str(e))
        raise DatabaseError("Failed to delete user", e)

    return PrivilegedResponse()
