from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps.auth import get_current_profile
from app.api.deps.database import get_db
from app.core.errors import AuthError, ValidationError
from app.core.storage import ObjectStorage, get_storage
from app.models.profile import Profile
from app.schemas.admin import PrivilegedResponse
from app.schemas.profile import (
    AvatarUploadResponse,
    PasswordChange,
    ProfileResponse,
    ProfileUpdate,
)
from app.services.admin import admin_service
from app.services.identity import IdentityProvider, get_identity_provider

router = APIRouter()


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(current_profile: Profile = Depends(get_current_profile)):
    """Get the caller's profile, including the stored role."""
    return current_profile


@router.patch("/me", response_model=ProfileResponse)
async def update_my_profile(
    updates: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    current_profile: Profile = Depends(get_current_profile),
):
    """Update the caller's display name or avatar URL."""
    changed = await admin_service.update_user_profile(
        db, current_profile.id, updates.model_dump()
    )
    if changed:
        await db.refresh(current_profile)
    return current_profile


@router.post("/me/avatar", response_model=AvatarUploadResponse)
async def upload_my_avatar(
    file: UploadFile = File(...),
    storage: ObjectStorage = Depends(get_storage),
    current_profile: Profile = Depends(get_current_profile),
):
    """Upload an avatar image and return its public URL."""
    data = await file.read()
    url = await admin_service.upload_avatar(
        storage, current_profile.id, file.filename, data
    )
    return AvatarUploadResponse(avatar_url=url)


@router.post("/me/password", response_model=PrivilegedResponse)
async def change_my_password(
    passwords: PasswordChange,
    current_profile: Profile = Depends(get_current_profile),
    identity: IdentityProvider = Depends(get_identity_provider),
):
    """Change password after re-verifying the current one."""
    if passwords.new_password != passwords.confirm_password:
        raise ValidationError("New password and confirmation must match")

    try:
        session = await identity.sign_in(
            current_profile.email, passwords.current_password
        )
    except AuthError:
        raise AuthError("Your current password is incorrect")

    await identity.update_password(
        current_profile.email, passwords.new_password, session.refresh_token
    )
    return PrivilegedResponse()
