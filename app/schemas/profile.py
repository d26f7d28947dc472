from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from app.models.profile import UserRole


class ProfileBase(BaseModel):
    email: str
    name: Optional[str] = Field(None, max_length=255)
    avatar_url: Optional[str] = None
    role: UserRole = UserRole.USER


class ProfileResponse(ProfileBase):
    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ProfileUpdate(BaseModel):
    """Partial profile update; fields left as None are not written."""

    name: Optional[str] = Field(None, max_length=255)
    avatar_url: Optional[str] = Field(None, max_length=500)


class PasswordChange(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)
    confirm_password: str = Field(..., min_length=6)


class RegisterRequest(BaseModel):
    """Self-registration. A role is deliberately not part of this schema."""

    email: EmailStr
    password: str = Field(..., min_length=6)
    name: Optional[str] = Field(None, max_length=255)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class LogoutRequest(BaseModel):
    refresh_token: str


class AuthSessionResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    user: ProfileResponse


class AvatarUploadResponse(BaseModel):
    avatar_url: str
