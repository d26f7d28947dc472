from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps.auth import get_current_profile
from app.api.deps.database import get_db
from app.models.profile import Profile
from app.schemas.note import NoteResponse, NoteSave
from app.services.note import note_service

router = APIRouter()


@router.get("/", response_model=list[NoteResponse])
async def load_notes(
    db: AsyncSession = Depends(get_db),
    current_profile: Profile = Depends(get_current_profile),
):
    """Get the caller's notes, newest first."""
    return await note_service.load_notes(db, current_profile.id)


@router.post("/", response_model=NoteResponse)
async def save_note(
    note: NoteSave,
    db: AsyncSession = Depends(get_db),
    current_profile: Profile = Depends(get_current_profile),
):
    """Insert a new note or update one of the caller's notes."""
    # Owners are always the caller here; admins use /admin/notes for others
    payload = note.model_copy(update={"user_id": current_profile.id})
    return await note_service.save_note(db, payload, owner_id=current_profile.id)


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(
    note_id: str,
    db: AsyncSession = Depends(get_db),
    current_profile: Profile = Depends(get_current_profile),
):
    """Delete one of the caller's notes."""
    await note_service.delete_note(db, note_id, owner_id=current_profile.id)
