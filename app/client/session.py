import enum
import inspect
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

import structlog

from app.schemas.profile import ProfileResponse

logger = structlog.get_logger(__name__)


class AuthEvent(str, enum.Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"


@dataclass
class Session:
    access_token: str
    refresh_token: Optional[str]
    user: ProfileResponse


AuthListener = Callable[[AuthEvent, Optional[Session]], Any]


class SessionContext:
    """
    Holds the signed-in session for one client.

    Listeners are registered once (typically at startup), are notified on
    every auth state change, and are all released by ``close()``.
    """

    def __init__(self):
        self._session: Optional[Session] = None
        self._listeners: List[AuthListener] = []
        self._closed = False

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def access_token(self) -> Optional[str]:
        return self._session.access_token if self._session else None

    @property
    def user(self) -> Optional[ProfileResponse]:
        return self._session.user if self._session else None

    @property
    def closed(self) -> bool:
        return self._closed

    def on_auth_state_change(self, listener: AuthListener) -> Callable[[], None]:
        """Register a listener; returns a callable that unregisters it."""
        if self._closed:
            raise RuntimeError("Session context is closed")

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _notify(self, event: AuthEvent) -> None:
        for listener in list(self._listeners):
            try:
                result = listener(event, self._session)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(
                    "Auth listener failed", auth_event=event.value, error=str(e)
                )

    async def set_session(
        self, session: Session, event: AuthEvent = AuthEvent.SIGNED_IN
    ) -> None:
        self._session = session
        logger.info("Session updated", auth_event=event.value, user_id=session.user.id)
        await self._notify(event)

    async def clear(self) -> None:
        if self._session is None:
            return
        self._session = None
        logger.info("Session cleared")
        await self._notify(AuthEvent.SIGNED_OUT)

    async def close(self) -> None:
        self._listeners.clear()
        self._session = None
        self._closed = True

    async def __aenter__(self) -> "SessionContext":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
