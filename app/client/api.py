import time
from typing import Any, Dict, List, Optional

import httpx
import structlog

from app.client.session import AuthEvent, Session, SessionContext
from app.core.errors import AuthError, DatabaseError
from app.core.result import as_result
from app.models.profile import UserRole
from app.schemas.note import AdminNoteResponse, NoteResponse, NoteSave
from app.schemas.profile import AuthSessionResponse, ProfileResponse

logger = structlog.get_logger(__name__)

PROVISIONAL_ID_PREFIX = "draft-"


def new_draft_note(user_id: str, title: str = "New Note") -> NoteSave:
    """A note that only exists client-side until its first save."""
    return NoteSave(
        id=f"{PROVISIONAL_ID_PREFIX}{int(time.time() * 1000)}",
        title=title,
        content="",
        user_id=user_id,
    )


def is_provisional_id(note_id: Optional[str]) -> bool:
    return bool(note_id) and note_id.startswith(PROVISIONAL_ID_PREFIX)


def _error_message(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get("error") or None
    return None


class NotesApiClient:
    """
    HTTP data-access for the notes service.

    Every public call returns ``Ok(value)`` or ``Err(AppError)``; nothing is
    raised to the caller. The bearer token always comes from the shared
    ``SessionContext``.
    """

    def __init__(
        self,
        base_url: str,
        session: SessionContext,
        http: Optional[httpx.AsyncClient] = None,
        api_prefix: str = "/api/v1",
    ):
        self.session = session
        self.api_prefix = api_prefix
        self.http = http or httpx.AsyncClient(base_url=base_url, timeout=10.0)

    async def aclose(self) -> None:
        await self.http.aclose()

    async def __aenter__(self) -> "NotesApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def _auth_headers(self) -> Dict[str, str]:
        token = self.session.access_token
        if not token:
            raise DatabaseError("Authentication required")
        return {"Authorization": f"Bearer {token}"}

    async def _request(
        self,
        method: str,
        path: str,
        fallback_message: str,
        authenticated: bool = True,
        **kwargs: Any,
    ) -> httpx.Response:
        headers = self._auth_headers() if authenticated else {}
        try:
            response = await self.http.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error("Request failed", method=method, path=path, error=str(e))
            raise DatabaseError(fallback_message, e)

        if response.is_error:
            message = _error_message(response) or fallback_message
            logger.warning(
                "Request rejected",
                method=method,
                path=path,
                status_code=response.status_code,
            )
            if response.status_code == 401 and not authenticated:
                raise AuthError(message, {"status": response.status_code})
            raise DatabaseError(message, {"status": response.status_code})

        return response

    # Auth

    @as_result
    async def sign_in(self, email: str, password: str) -> Session:
        response = await self._request(
            "POST",
            f"{self.api_prefix}/auth/login",
            "Login failed. Please check your credentials and try again.",
            authenticated=False,
            json={"email": email, "password": password},
        )
        return await self._start_session(response)

    @as_result
    async def sign_up(
        self, email: str, password: str, name: Optional[str] = None
    ) -> Session:
        response = await self._request(
            "POST",
            f"{self.api_prefix}/auth/register",
            "Registration failed. Please try again with a different email.",
            authenticated=False,
            json={"email": email, "password": password, "name": name},
        )
        return await self._start_session(response)

    async def _start_session(self, response: httpx.Response) -> Session:
        payload = AuthSessionResponse.model_validate(response.json())
        session = Session(
            access_token=payload.access_token,
            refresh_token=payload.refresh_token,
            user=payload.user,
        )
        await self.session.set_session(session, AuthEvent.SIGNED_IN)
        return session

    @as_result
    async def sign_out(self) -> None:
        current = self.session.session
        if current and current.refresh_token:
            try:
                await self._request(
                    "POST",
                    f"{self.api_prefix}/auth/logout",
                    "Sign out failed",
                    json={"refresh_token": current.refresh_token},
                )
            finally:
                await self.session.clear()
        else:
            await self.session.clear()

    @as_result
    async def load_profile(self) -> ProfileResponse:
        response = await self._request(
            "GET", f"{self.api_prefix}/profile/me", "Failed to load profile"
        )
        return ProfileResponse.model_validate(response.json())

    @as_result
    async def change_password(
        self, current_password: str, new_password: str, confirm_password: str
    ) -> None:
        await self._request(
            "POST",
            f"{self.api_prefix}/profile/me/password",
            "Failed to update password",
            json={
                "current_password": current_password,
                "new_password": new_password,
                "confirm_password": confirm_password,
            },
        )

    # Notes

    @as_result
    async def load_notes(self) -> List[NoteResponse]:
        response = await self._request(
            "GET", f"{self.api_prefix}/notes/", "Failed to load notes"
        )
        return [NoteResponse.model_validate(item) for item in response.json()]

    @as_result
    async def save_note(self, note: NoteSave) -> NoteResponse:
        payload = note.model_dump()
        if is_provisional_id(payload.get("id")):
            payload["id"] = None

        # Only admins may save on behalf of another user
        current = self.session.user
        path = f"{self.api_prefix}/notes/"
        if (
            current is not None
            and current.role == UserRole.ADMIN
            and payload.get("user_id")
            and payload["user_id"] != current.id
        ):
            path = f"{self.api_prefix}/admin/notes"

        response = await self._request(
            "POST", path, f"Failed to save note: {note.title}", json=payload
        )
        saved = NoteResponse.model_validate(response.json())
        if not saved.id:
            raise DatabaseError("No data returned from save operation")
        return saved

    @as_result
    async def delete_note(self, note_id: str, any_owner: bool = False) -> None:
        path = (
            f"{self.api_prefix}/admin/notes/{note_id}"
            if any_owner
            else f"{self.api_prefix}/notes/{note_id}"
        )
        await self._request(
            "DELETE", path, f"Failed to delete note with ID: {note_id}"
        )

    # Admin

    @as_result
    async def load_all_users(self) -> List[ProfileResponse]:
        response = await self._request(
            "GET", f"{self.api_prefix}/admin/users", "Failed to load all users"
        )
        return [ProfileResponse.model_validate(item) for item in response.json()]

    @as_result
    async def load_all_notes(self) -> List[AdminNoteResponse]:
        response = await self._request(
            "GET", f"{self.api_prefix}/admin/notes", "Failed to load all notes"
        )
        return [AdminNoteResponse.model_validate(item) for item in response.json()]

    @as_result
    async def update_user_profile(
        self, user_id: str, updates: Dict[str, Any]
    ) -> Optional[ProfileResponse]:
        """Partially update a profile; an all-None update makes no request."""
        filtered = {k: v for k, v in updates.items() if v is not None}
        if not filtered:
            return None

        current = self.session.user
        if current is not None and current.id == user_id:
            path = f"{self.api_prefix}/profile/me"
        else:
            path = f"{self.api_prefix}/admin/users/{user_id}"

        response = await self._request(
            "PATCH", path, "Failed to update user profile", json=filtered
        )
        return ProfileResponse.model_validate(response.json())

    @as_result
    async def upload_avatar(
        self, user_id: str, filename: Optional[str], data: Optional[bytes]
    ) -> str:
        if not filename or data is None:
            raise DatabaseError("No file provided for avatar upload")

        current = self.session.user
        if current is not None and current.id == user_id:
            path = f"{self.api_prefix}/profile/me/avatar"
        else:
            path = f"{self.api_prefix}/admin/users/{user_id}/avatar"

        response = await self._request(
            "POST", path, "Failed to upload avatar", files={"file": (filename, data)}
        )
        url = response.json().get("avatar_url")
        if not url:
            raise DatabaseError("Failed to get avatar URL")
        return url

    # Privileged routes

    @as_result
    async def create_user(
        self,
        email: str,
        password: str,
        name: Optional[str] = None,
        role: str = UserRole.USER.value,
    ) -> None:
        await self._request(
            "POST",
            "/api/admin/create-user",
            "Failed to create user",
            json={"email": email, "password": password, "name": name, "role": role},
        )

    @as_result
    async def update_user(
        self, user_id: str, name: Optional[str] = None, role: Optional[str] = None
    ) -> None:
        body: Dict[str, Any] = {"userId": user_id}
        if name is not None:
            body["name"] = name
        if role is not None:
            body["role"] = role
        await self._request(
            "POST", "/api/admin/update-user", "Failed to update user", json=body
        )

    @as_result
    async def delete_user_account(self, user_id: str) -> None:
        await self._request(
            "POST",
            "/api/admin/delete-user",
            "Failed to delete user",
            json={"userId": user_id},
        )

    @as_result
    async def delete_own_account(self) -> None:
        current = self.session.user
        if current is None:
            raise DatabaseError("Authentication required")

        await self._request(
            "POST",
            "/api/user/delete",
            "Failed to delete account",
            json={"userId": current.id},
        )
        await self.session.clear()
