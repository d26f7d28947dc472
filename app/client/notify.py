from typing import Callable, Optional

import structlog

logger = structlog.get_logger(__name__)

TOAST_TYPES = ("default", "success", "error", "warning", "info")

# Called as sink(type, message, description=..., duration=...)
ToastSink = Callable[..., None]


def _log_sink(toast_type: str, message: str, **options) -> None:
    log = logger.error if toast_type == "error" else logger.info
    log("Toast", toast_type=toast_type, message=message, **options)


_default_sink: ToastSink = _log_sink


def set_toast_sink(sink: Optional[ToastSink]) -> None:
    """Route all toasts to ``sink``; None restores the logging sink."""
    global _default_sink
    _default_sink = sink or _log_sink


def show_toast(
    title: Optional[str] = None,
    description: Optional[str] = None,
    type: str = "default",
    duration: Optional[int] = None,
) -> None:
    """
    Relay a notification payload to the toast sink.

    The description is the toast's message and the title, when present,
    becomes its secondary line. Unknown types fall back to "default".
    """
    toast_type = type if type in TOAST_TYPES else "default"

    options = {"duration": duration}
    if title:
        options["description"] = title

    _default_sink(toast_type, description or "", **options)
