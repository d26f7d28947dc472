from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps.auth import require_admin
from app.api.deps.database import get_db
from app.core.errors import ValidationError
from app.core.storage import ObjectStorage, get_storage
from app.models.profile import Profile
from app.schemas.note import AdminNoteResponse, NoteResponse, NoteSave
from app.schemas.profile import AvatarUploadResponse, ProfileResponse, ProfileUpdate
from app.services.admin import admin_service
from app.services.note import note_service
from app.services.profile import profile_service

router = APIRouter()


@router.get("/users", response_model=list[ProfileResponse])
async def load_all_users(
    db: AsyncSession = Depends(get_db),
    current_admin: Profile = Depends(require_admin),
):
    """Get every user profile, newest first."""
    return await admin_service.load_all_users(db)


@router.patch("/users/{user_id}", response_model=ProfileResponse)
async def update_user_profile(
    user_id: str,
    updates: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    current_admin: Profile = Depends(require_admin),
):
    """Update another user's display name or avatar."""
    await admin_service.update_user_profile(db, user_id, updates.model_dump())

    profile = await profile_service.get_profile(db, user_id)
    if not profile:
        raise ValidationError("User not found")

    await db.refresh(profile)
    return profile


@router.post("/users/{user_id}/avatar", response_model=AvatarUploadResponse)
async def upload_user_avatar(
    user_id: str,
    file: UploadFile = File(...),
    storage: ObjectStorage = Depends(get_storage),
    current_admin: Profile = Depends(require_admin),
):
    """Upload an avatar on behalf of a user and return its public URL."""
    data = await file.read()
    url = await admin_service.upload_avatar(storage, user_id, file.filename, data)
    return AvatarUploadResponse(avatar_url=url)


@router.get("/notes", response_model=list[AdminNoteResponse])
async def load_all_notes(
    db: AsyncSession = Depends(get_db),
    current_admin: Profile = Depends(require_admin),
):
    """Get every note with its owner's name and email."""
    return await admin_service.load_all_notes(db)


@router.post("/notes", response_model=NoteResponse)
async def save_any_note(
    note: NoteSave,
    db: AsyncSession = Depends(get_db),
    current_admin: Profile = Depends(require_admin),
):
    """Insert or update a note for any user."""
    return await note_service.save_note(db, note)


@router.delete("/notes/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_any_note(
    note_id: str,
    db: AsyncSession = Depends(get_db),
    current_admin: Profile = Depends(require_admin),
):
    """Delete any note."""
    await note_service.delete_note(db, note_id)
