import asyncio
from typing import Awaitable, Callable, Optional

import structlog

from app.core.errors import handle_error
from app.core.result import Result
from app.schemas.note import NoteSave

logger = structlog.get_logger(__name__)

AUTOSAVE_DELAY_SECONDS = 3.0
UNTITLED_NOTE_TITLE = "Untitled Note"

SaveCallback = Callable[[NoteSave], Awaitable[Result]]


def normalize_title(title: str) -> str:
    return title.strip() or UNTITLED_NOTE_TITLE


class NoteEditor:
    """
    Edit session for a single note with idle-debounced autosave.

    Every title/content change restarts a timer; when it fires and the text
    differs from what was last saved, the note is saved. ``save()`` cancels
    a pending timer first. ``aclose()`` (or leaving ``async with``) cancels
    any timer that has not fired and waits for an autosave already issued,
    so nothing saves after the editor is gone.

    Saves run one at a time in the order they were issued. A draft's first
    save hands its server id to every save queued behind it, so a draft is
    inserted once and later saves update that row.
    """

    def __init__(
        self,
        note: NoteSave,
        on_save: SaveCallback,
        delay: float = AUTOSAVE_DELAY_SECONDS,
    ):
        self.note = note
        self.on_save = on_save
        self.delay = delay

        self.title = note.title
        self.content = note.content
        self._saved_title = note.title
        self._saved_content = note.content

        self.is_saving = False
        self._autosave_task: Optional[asyncio.Task] = None
        self._issued: set = set()
        self._save_lock = asyncio.Lock()
        self._closed = False

    @property
    def is_dirty(self) -> bool:
        return self.title != self._saved_title or self.content != self._saved_content

    @property
    def has_pending_autosave(self) -> bool:
        return (
            self._autosave_task is not None
            and not self._autosave_task.done()
            and self._autosave_task not in self._issued
        )

    def set_title(self, title: str) -> None:
        self._ensure_open()
        self.title = title
        self._reschedule()

    def set_content(self, content: str) -> None:
        self._ensure_open()
        self.content = content
        self._reschedule()

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("Editor is closed")

    def _cancel_pending(self) -> None:
        if self.has_pending_autosave:
            self._autosave_task.cancel()
            self._autosave_task = None

    def _reschedule(self) -> None:
        self._cancel_pending()
        if self.is_dirty:
            self._autosave_task = asyncio.get_running_loop().create_task(
                self._autosave_after_delay()
            )

    async def _autosave_after_delay(self) -> None:
        await asyncio.sleep(self.delay)
        # Past this point the save counts as issued and is no longer cancelled
        task = asyncio.current_task()
        self._issued.add(task)
        task.add_done_callback(self._issued.discard)
        if not self.is_dirty:
            return
        logger.info("Autosaving note", note_id=self.note.id)
        await self._persist()

    async def save(self) -> Result:
        """Save now, cancelling any pending autosave."""
        self._ensure_open()
        self._cancel_pending()

        self.is_saving = True
        try:
            return await self._persist()
        finally:
            self.is_saving = False

    async def _persist(self) -> Result:
        async with self._save_lock:
            return await self._send()

    async def _send(self) -> Result:
        # Read after the lock so a queued save sees the id assigned before it
        title, content = self.title, self.content
        payload = self.note.model_copy(
            update={"title": normalize_title(title), "content": content}
        )

        result = await self.on_save(payload)

        if result.is_ok():
            saved = result.unwrap()
            # A provisional id is replaced by the server-assigned one here
            self.note = NoteSave(
                id=saved.id,
                title=saved.title,
                content=saved.content,
                user_id=saved.user_id,
            )
            self._saved_title = title
            self._saved_content = content
        else:
            handle_error(result.error, "Failed to save note.")

        return result

    async def aclose(self) -> None:
        self._cancel_pending()
        self._closed = True
        if self._issued:
            await asyncio.gather(*self._issued, return_exceptions=True)
        self._autosave_task = None

    async def __aenter__(self) -> "NoteEditor":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
