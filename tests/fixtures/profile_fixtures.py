from datetime import datetime, timedelta, timezone

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.note import Note
from app.models.profile import Profile
from app.services.identity import IdentityUser

USER_ID = "user-1"
OTHER_USER_ID = "user-2"
ADMIN_ID = "admin-1"

BASE_TIME = datetime(2024, 1, 15, 10, 30, 0, tzinfo=timezone.utc)


async def _create_profile(
    db: AsyncSession, identity, user_id: str, email: str, name: str, role: str, offset: int
) -> Profile:
    profile = Profile(
        id=user_id,
        email=email,
        name=name,
        role=role,
        created_at=BASE_TIME + timedelta(minutes=offset),
    )
    db.add(profile)
    await db.commit()
    await db.refresh(profile)
    identity.register(IdentityUser(id=user_id, email=email, name=name))
    return profile


@pytest_asyncio.fixture
async def sample_user(db: AsyncSession, identity) -> Profile:
    """A regular user with the "user" role."""
    return await _create_profile(
        db, identity, USER_ID, "user@example.com", "Regular User", "user", 0
    )


@pytest_asyncio.fixture
async def other_user(db: AsyncSession, identity) -> Profile:
    """A second regular user."""
    return await _create_profile(
        db, identity, OTHER_USER_ID, "other@example.com", "Other User", "user", 1
    )


@pytest_asyncio.fixture
async def sample_admin(db: AsyncSession, identity) -> Profile:
    """A user with the "admin" role."""
    return await _create_profile(
        db, identity, ADMIN_ID, "admin@example.com", "Admin User", "admin", 2
    )


@pytest_asyncio.fixture
async def sample_notes(db: AsyncSession, sample_user: Profile) -> list[Note]:
    """Three notes for sample_user, oldest first."""
    notes = [
        Note(
            title=f"Note {i}",
            content=f"Content {i}",
            user_id=USER_ID,
            created_at=BASE_TIME + timedelta(hours=i),
        )
        for i in range(3)
    ]
    db.add_all(notes)
    await db.commit()
    for note in notes:
        await db.refresh(note)
    return notes


@pytest_asyncio.fixture
async def other_user_note(db: AsyncSession, other_user: Profile) -> Note:
    note = Note(
        title="Private",
        content="Belongs to someone else",
        user_id=OTHER_USER_ID,
        created_at=BASE_TIME + timedelta(days=1),
    )
    db.add(note)
    await db.commit()
    await db.refresh(note)
    return note


def get_auth_headers(user_id: str) -> dict[str, str]:
    """
    Generate authentication headers for tests.

    The fake identity provider issues "token-<user id>" for every
    registered fixture user.
    """
    return {"Authorization": f"Bearer token-{user_id}"}
