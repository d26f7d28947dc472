from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from app.models.profile import UserRole


class DeleteUserRequest(BaseModel):
    user_id: str = Field(..., alias="userId", min_length=1)

    model_config = {"populate_by_name": True}


class CreateUserRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: Optional[str] = Field(None, max_length=255)
    role: UserRole = UserRole.USER


class UpdateUserRequest(BaseModel):
    user_id: str = Field(..., alias="userId", min_length=1)
    name: Optional[str] = Field(None, max_length=255)
    role: Optional[UserRole] = None

    model_config = {"populate_by_name": True}


class PrivilegedResponse(BaseModel):
    success: bool = True
