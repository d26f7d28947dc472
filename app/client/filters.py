from typing import Iterable, List, Optional

from app.schemas.note import AdminNoteResponse, NoteResponse
from app.schemas.profile import ProfileResponse


def _matches(term: str, *values: Optional[str]) -> bool:
    if not term:
        return True
    needle = term.lower()
    return any(value and needle in value.lower() for value in values)


def filter_notes(notes: Iterable[NoteResponse], term: str) -> List[NoteResponse]:
    """Sidebar search over title and content."""
    return [note for note in notes if _matches(term, note.title, note.content)]


def filter_admin_notes(
    notes: Iterable[AdminNoteResponse], term: str
) -> List[AdminNoteResponse]:
    """Admin note search over title, content and owner email/name."""
    result = []
    for note in notes:
        owner = note.users
        if _matches(
            term,
            note.title,
            note.content,
            owner.email if owner else None,
            owner.name if owner else None,
        ):
            result.append(note)
    return result


def filter_users(users: Iterable[ProfileResponse], term: str) -> List[ProfileResponse]:
    """Admin user search over name, email and role."""
    return [
        user for user in users if _matches(term, user.name, user.email, user.role.value)
    ]
