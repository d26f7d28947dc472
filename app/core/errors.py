from typing import Any, Optional

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_ERROR_MESSAGE = "Something went wrong. Please try again later."


class AppError(Exception):
    """Base application error carrying a stable code and optional details."""

    status_code: int = 500

    def __init__(
        self, message: str, code: Optional[str] = None, details: Any = None
    ):
        self.message = message
        self.code = code
        self.details = details
        super().__init__(message)

    @property
    def name(self) -> str:
        return type(self).__name__


class DatabaseError(AppError):
    """Record store, object storage or privileged route failure."""

    status_code = 500

    def __init__(self, message: str, details: Any = None):
        super().__init__(message, "DATABASE_ERROR", details)


class AuthError(AppError):
    """Missing, invalid or rejected credentials."""

    status_code = 401

    def __init__(self, message: str, details: Any = None):
        super().__init__(message, "AUTH_ERROR", details)


class ForbiddenError(AuthError):
    """Authenticated caller lacks the required role."""

    status_code = 403

    def __init__(self, message: str = "Forbidden", details: Any = None):
        super().__init__(message, details)
        self.code = "FORBIDDEN"


class ValidationError(AppError):
    """Input rejected before reaching the record store."""

    status_code = 400

    def __init__(self, message: str, details: Any = None):
        super().__init__(message, "VALIDATION_ERROR", details)


def handle_error(error: BaseException, friendly_message: Optional[str] = None) -> None:
    """Log an error and surface it to the user as an error toast."""
    # Imported here so server code can use the taxonomy without the client package
    from app.client.notify import show_toast

    logger.error("Error occurred", error=str(error), error_type=type(error).__name__)

    if isinstance(error, AppError):
        show_toast(title=error.name, description=error.message, type="error")
        return

    show_toast(
        title="Error",
        description=friendly_message or DEFAULT_ERROR_MESSAGE,
        type="error",
    )
