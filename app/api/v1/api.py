from fastapi import APIRouter

from app.api.v1.endpoints import admin, auth, notes, profile

api_router = APIRouter()

# Authentication endpoints
api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])

# Profile endpoints for the signed-in user
api_router.include_router(profile.router, prefix="/profile", tags=["profile"])

# Note endpoints scoped to the signed-in user
api_router.include_router(notes.router, prefix="/notes", tags=["notes"])

# Admin dashboard endpoints
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
