import structlog
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps.database import get_db
from app.schemas.admin import PrivilegedResponse
from app.schemas.profile import (
    AuthSessionResponse,
    LoginRequest,
    LogoutRequest,
    ProfileResponse,
    RegisterRequest,
)
from app.services.identity import IdentityProvider, get_identity_provider
from app.services.profile import profile_service

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post(
    "/register",
    response_model=AuthSessionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    credentials: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity_provider),
):
    """
    Register with email and password.

    The new profile always gets the "user" role; only an admin can grant
    "admin" through the privileged routes.
    """
    session = await identity.sign_up(
        credentials.email, credentials.password, credentials.name
    )
    if not session.user.email:
        session.user.email = credentials.email
    if not session.user.name:
        session.user.name = credentials.name

    profile = await profile_service.get_or_create_profile(db, session.user)

    logger.info("User registered", user_id=profile.id)
    return AuthSessionResponse(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        user=ProfileResponse.model_validate(profile),
    )


@router.post("/login", response_model=AuthSessionResponse)
async def login(
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
    identity: IdentityProvider = Depends(get_identity_provider),
):
    """Sign in with email and password."""
    session = await identity.sign_in(credentials.email, credentials.password)
    if not session.user.email:
        session.user.email = credentials.email

    profile = await profile_service.get_or_create_profile(db, session.user)

    return AuthSessionResponse(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        user=ProfileResponse.model_validate(profile),
    )


@router.post("/logout", response_model=PrivilegedResponse)
async def logout(
    body: LogoutRequest,
    identity: IdentityProvider = Depends(get_identity_provider),
):
    """Invalidate a refresh token."""
    await identity.sign_out(body.refresh_token)
    return PrivilegedResponse()
