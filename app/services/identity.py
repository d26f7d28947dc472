from dataclasses import dataclass
from typing import Optional

import structlog
from descope import AuthException, DescopeClient

from app.core.config import settings
from app.core.errors import AppError, AuthError

logger = structlog.get_logger(__name__)

SESSION_TOKEN_KEY = "sessionToken"
REFRESH_TOKEN_KEY = "refreshSessionToken"


@dataclass
class IdentityUser:
    id: str
    email: Optional[str] = None
    name: Optional[str] = None


@dataclass
class AuthSession:
    access_token: str
    refresh_token: Optional[str]
    user: IdentityUser


def _user_from_claims(claims: dict) -> IdentityUser:
    # Descope keeps email and name in the nsec claim for session tokens
    nsec_claims = claims.get("nsec", {}) or {}
    return IdentityUser(
        id=claims.get("sub"),
        email=nsec_claims.get("email") or claims.get("email"),
        name=nsec_claims.get("name") or claims.get("name"),
    )


def _session_from_response(jwt_response: dict) -> AuthSession:
    user_info = jwt_response.get("user", {}) or {}
    session_token = jwt_response.get(SESSION_TOKEN_KEY, {}) or {}
    refresh_token = jwt_response.get(REFRESH_TOKEN_KEY, {}) or {}

    user_id = user_info.get("userId") or session_token.get("sub")
    email = user_info.get("email")
    if not email:
        login_ids = user_info.get("loginIds") or []
        email = login_ids[0] if login_ids else None

    return AuthSession(
        access_token=session_token.get("jwt"),
        refresh_token=refresh_token.get("jwt"),
        user=IdentityUser(id=user_id, email=email, name=user_info.get("name")),
    )


class IdentityAdmin:
    """Management operations that require the service credential."""

    def __init__(self, client: DescopeClient):
        self.client = client

    async def create_user(
        self, email: str, password: str, name: Optional[str] = None
    ) -> IdentityUser:
        try:
            response = self.client.mgmt.user.create(
                login_id=email,
                email=email,
                display_name=name,
                verified_email=True,
            )
            self.client.mgmt.user.set_active_password(login_id=email, password=password)

            user_info = response.get("user", {}) or {}
            user = IdentityUser(id=user_info.get("userId"), email=email, name=name)

            logger.info("Identity record created", user_id=user.id)
            return user

        except AuthException as e:
            logger.error("Descope management API error", error=str(e))
            raise AuthError("Failed to create identity record", e)

    async def update_display_name(self, email: str, name: str) -> None:
        try:
            self.client.mgmt.user.update_display_name(login_id=email, display_name=name)
            logger.info("Identity display name updated", email=email)
        except AuthException as e:
            logger.error("Descope management API error", error=str(e))
            raise AuthError("Failed to update identity record", e)

    async def delete_user(self, user_id: str) -> None:
        try:
            self.client.mgmt.user.delete_by_user_id(user_id)
            logger.info("Identity record deleted", user_id=user_id)
        except AuthException as e:
            logger.error(
                "Descope management API error", error=str(e), user_id=user_id
            )
            raise AuthError("Failed to delete identity record", e)


class IdentityProvider:
    """Hosted identity provider access.

    The Descope client is built on first use so the application can start
    (and reject unauthenticated requests) before the provider is configured.
    """

    def __init__(
        self, project_id: Optional[str], management_key: Optional[str] = None
    ):
        self.project_id = project_id
        self.management_key = management_key
        self._client: Optional[DescopeClient] = None

    @property
    def client(self) -> DescopeClient:
        if self._client is None:
            if not self.project_id:
                raise AppError(
                    "Authentication service not configured", "AUTH_UNAVAILABLE"
                )
            self._client = DescopeClient(
                project_id=self.project_id, management_key=self.management_key
            )
            logger.info(
                "Descope client initialized",
                project_id=self.project_id[:4] + "***",
                management=bool(self.management_key),
            )
        return self._client

    async def get_user(self, token: str) -> IdentityUser:
        """Resolve the caller behind a session token."""
        try:
            claims = self.client.validate_session(token)
        except AuthException as e:
            logger.warning("Session validation failed", error=str(e))
            raise AuthError("Unauthorized", e)

        user = _user_from_claims(claims)
        if not user.id:
            logger.error("No user ID found in JWT token")
            raise AuthError("Unauthorized")
        return user

    async def sign_in(self, email: str, password: str) -> AuthSession:
        try:
            jwt_response = self.client.password.sign_in(login_id=email, password=password)
        except AuthException as e:
            logger.info("Password sign-in rejected", email=email)
            raise AuthError("Invalid login credentials", e)
        return _session_from_response(jwt_response)

    async def sign_up(
        self, email: str, password: str, name: Optional[str] = None
    ) -> AuthSession:
        user = {"email": email}
        if name:
            user["name"] = name
        try:
            jwt_response = self.client.password.sign_up(
                login_id=email, password=password, user=user
            )
        except AuthException as e:
            logger.info("Password sign-up rejected", email=email, error=str(e))
            raise AuthError("Registration failed", e)
        return _session_from_response(jwt_response)

    async def sign_out(self, refresh_token: str) -> None:
        try:
            self.client.logout(refresh_token)
        except AuthException as e:
            raise AuthError("Sign out failed", e)

    async def update_password(
        self, email: str, new_password: str, refresh_token: str
    ) -> None:
        try:
            self.client.password.update(
                login_id=email, new_password=new_password, refresh_token=refresh_token
            )
        except AuthException as e:
            logger.error("Password update failed", email=email, error=str(e))
            raise AuthError("Failed to update password", e)

    def admin(self) -> IdentityAdmin:
        """Elevated access using the management key."""
        if not self.management_key:
            raise AppError("Service credential not configured", "AUTH_UNAVAILABLE")
        return IdentityAdmin(self.client)


identity_provider = IdentityProvider(
    project_id=settings.DESCOPE_PROJECT_ID,
    management_key=settings.DESCOPE_MANAGEMENT_KEY,
)


def get_identity_provider() -> IdentityProvider:
    """Dependency returning the configured identity provider."""
    return identity_provider
