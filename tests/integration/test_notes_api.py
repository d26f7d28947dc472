"""Integration tests for the notes API."""

from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.note import Note
from app.services.identity import IdentityUser
from tests.fixtures.profile_fixtures import OTHER_USER_ID, USER_ID, get_auth_headers


class TestNotesAPI:
    """Test note endpoints for the signed-in owner."""

    async def test_requires_authentication(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/notes/")

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    async def test_invalid_token(self, async_client: AsyncClient):
        response = await async_client.get(
            "/api/v1/notes/", headers={"Authorization": "Bearer not-a-session"}
        )

        assert response.status_code == 401

    async def test_list_own_notes_newest_first(
        self, async_client: AsyncClient, sample_notes, other_user_note
    ):
        response = await async_client.get(
            "/api/v1/notes/", headers=get_auth_headers(USER_ID)
        )

        assert response.status_code == 200
        data = response.json()
        assert [n["title"] for n in data] == ["Note 2", "Note 1", "Note 0"]
        assert all(n["user_id"] == USER_ID for n in data)

    async def test_create_note_owned_by_caller(
        self, async_client: AsyncClient, sample_user
    ):
        response = await async_client.post(
            "/api/v1/notes/",
            json={"title": "Ideas", "content": "**bold**", "user_id": OTHER_USER_ID},
            headers=get_auth_headers(USER_ID),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["id"]
        assert data["user_id"] == USER_ID
        assert data["updated_at"] is None

    async def test_update_keeps_created_at(self, async_client: AsyncClient, sample_user):
        headers = get_auth_headers(USER_ID)
        created = (
            await async_client.post(
                "/api/v1/notes/", json={"title": "Draft", "content": ""}, headers=headers
            )
        ).json()

        response = await async_client.post(
            "/api/v1/notes/",
            json={"id": created["id"], "title": "Final", "content": "done"},
            headers=headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == created["id"]
        assert data["title"] == "Final"
        assert data["created_at"] == created["created_at"]
        assert data["updated_at"] is not None

    async def test_cannot_update_another_users_note(
        self, async_client: AsyncClient, db: AsyncSession, sample_user, other_user_note
    ):
        note_id = other_user_note.id

        response = await async_client.post(
            "/api/v1/notes/",
            json={"id": note_id, "title": "Hijack", "content": ""},
            headers=get_auth_headers(USER_ID),
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to save note: Hijack"}
        result = await db.execute(select(Note.title).where(Note.id == note_id))
        assert result.scalar_one() == "Private"

    async def test_delete_own_note(self, async_client: AsyncClient, sample_notes):
        note_id = sample_notes[0].id
        headers = get_auth_headers(USER_ID)

        response = await async_client.delete(f"/api/v1/notes/{note_id}", headers=headers)
        assert response.status_code == 204

        listing = await async_client.get("/api/v1/notes/", headers=headers)
        assert note_id not in [n["id"] for n in listing.json()]

    async def test_delete_another_users_note_is_a_no_op(
        self, async_client: AsyncClient, db: AsyncSession, sample_user, other_user_note
    ):
        note_id = other_user_note.id

        response = await async_client.delete(
            f"/api/v1/notes/{note_id}", headers=get_auth_headers(USER_ID)
        )

        assert response.status_code == 204
        result = await db.execute(select(Note.id).where(Note.id == note_id))
        assert result.scalar_one_or_none() == note_id

    async def test_first_request_creates_user_profile(
        self, async_client: AsyncClient, identity
    ):
        token = identity.register(IdentityUser(id="fresh", email="fresh@example.com"))

        response = await async_client.get(
            "/api/v1/profile/me", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 200
        assert response.json()["role"] == "user"
