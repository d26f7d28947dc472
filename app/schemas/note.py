from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class NoteBase(BaseModel):
    """Base note schema with common fields."""

    title: str = Field("", max_length=500, description="Note title")
    content: str = Field("", description="Note body, markdown allowed")


class NoteSave(NoteBase):
    """Schema for saving a note: update when id is set, insert otherwise."""

    id: Optional[str] = Field(None, max_length=36, description="Existing note id")
    user_id: Optional[str] = Field(
        None, description="Owner id (set by dependency injection for non-admins)"
    )


class NoteResponse(NoteBase):
    """Schema for note responses."""

    id: str
    user_id: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class NoteOwner(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None


class AdminNoteResponse(NoteResponse):
    """Note joined to its owner's display fields."""

    users: Optional[NoteOwner] = None
