"""Integration tests for the client data-access layer against the app."""

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.client.api import NotesApiClient, new_draft_note
from app.client.editor import NoteEditor
from app.client.session import AuthEvent, SessionContext
from app.core.errors import AuthError, DatabaseError
from app.core.result import Err, Ok
from app.main import app
from app.schemas.note import NoteSave
from tests.fixtures.profile_fixtures import USER_ID


@pytest_asyncio.fixture
async def client(override_dependencies):
    session = SessionContext()
    http = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
    async with NotesApiClient("http://test", session, http=http) as api:
        yield api
    await session.close()


async def sign_in_user(client: NotesApiClient):
    return (await client.sign_in("user@example.com", "password123")).unwrap()


async def sign_in_admin(client: NotesApiClient):
    return (await client.sign_in("admin@example.com", "password123")).unwrap()


class TestClientAuth:
    """Test session handling through the client."""

    async def test_sign_in_sets_session_and_notifies(
        self, client: NotesApiClient, sample_user
    ):
        events = []
        client.session.on_auth_state_change(lambda event, session: events.append(event))

        session = await sign_in_user(client)

        assert session.user.id == USER_ID
        assert client.session.access_token == session.access_token
        assert events == [AuthEvent.SIGNED_IN]

    async def test_sign_in_wrong_password(self, client: NotesApiClient, sample_user):
        result = await client.sign_in("user@example.com", "wrong")

        assert isinstance(result, Err)
        assert isinstance(result.error, AuthError)
        assert result.error.message == "Invalid login credentials"
        assert client.session.session is None

    async def test_sign_out_clears_session(self, client: NotesApiClient, identity, sample_user):
        await sign_in_user(client)

        result = await client.sign_out()

        assert result.is_ok()
        assert client.session.session is None
        assert len(identity.signed_out) == 1

    async def test_calls_without_session_fail(self, client: NotesApiClient):
        result = await client.create_user("x@example.com", "secret123")

        assert isinstance(result, Err)
        assert isinstance(result.error, DatabaseError)
        assert result.error.message == "Authentication required"


class TestClientNotes:
    """Test note operations through the client."""

    async def test_draft_saved_with_server_id(self, client: NotesApiClient, sample_user):
        await sign_in_user(client)
        draft = new_draft_note(USER_ID)

        saved = (await client.save_note(draft)).unwrap()

        assert not saved.id.startswith("draft-")
        notes = (await client.load_notes()).unwrap()
        assert [n.id for n in notes] == [saved.id]
        assert notes[0].title == "New Note"

    async def test_delete_note(self, client: NotesApiClient, sample_notes):
        await sign_in_user(client)
        note_id = sample_notes[0].id

        assert (await client.delete_note(note_id)).is_ok()

        notes = (await client.load_notes()).unwrap()
        assert note_id not in [n.id for n in notes]

    async def test_admin_editor_saves_blank_title_as_untitled(
        self, client: NotesApiClient, sample_user, sample_admin
    ):
        await sign_in_admin(client)
        note = NoteSave(title="", content="x", user_id=USER_ID)

        async with NoteEditor(note, client.save_note) as editor:
            result = await editor.save()

        saved = result.unwrap()
        assert saved.title == "Untitled Note"
        assert saved.user_id == USER_ID

        all_notes = (await client.load_all_notes()).unwrap()
        assert [(n.title, n.users.email) for n in all_notes] == [
            ("Untitled Note", "user@example.com")
        ]


class TestClientAdmin:
    """Test admin and privileged operations through the client."""

    async def test_non_admin_sees_route_error(self, client: NotesApiClient, sample_user, other_user):
        await sign_in_user(client)

        result = await client.delete_user_account("user-2")

        assert isinstance(result, Err)
        assert result.error.message == "Forbidden"

    async def test_blank_user_id_message_reaches_caller(
        self, client: NotesApiClient, sample_admin
    ):
        await sign_in_admin(client)

        result = await client.delete_user_account("")

        assert isinstance(result, Err)
        assert isinstance(result.error, DatabaseError)
        assert result.error.message == "User ID is required"

    async def test_admin_promotes_user(self, client: NotesApiClient, sample_user, sample_admin):
        await sign_in_admin(client)

        assert (await client.update_user(USER_ID, role="admin")).is_ok()

        users = (await client.load_all_users()).unwrap()
        promoted = next(u for u in users if u.id == USER_ID)
        assert promoted.role.value == "admin"

    async def test_update_own_profile(self, client: NotesApiClient, sample_user):
        await sign_in_user(client)

        profile = (await client.update_user_profile(USER_ID, {"name": "Me Again"})).unwrap()

        assert profile.name == "Me Again"

    async def test_upload_avatar(self, client: NotesApiClient, sample_user):
        await sign_in_user(client)

        url = (await client.upload_avatar(USER_ID, "me.png", b"png")).unwrap()

        assert f"/avatars/{USER_ID}/" in url

    async def test_upload_avatar_without_file(self, client: NotesApiClient, sample_user):
        await sign_in_user(client)

        result = await client.upload_avatar(USER_ID, None, None)

        assert result.error.message == "No file provided for avatar upload"

    async def test_delete_own_account_clears_session(
        self, client: NotesApiClient, identity, sample_notes
    ):
        await sign_in_user(client)

        assert (await client.delete_own_account()).is_ok()

        assert client.session.session is None
        assert identity.deleted_user_ids == [USER_ID]


class TestClientTransport:
    """Test client behavior without the app behind it."""

    @pytest.fixture
    def recorded(self):
        return []

    @pytest_asyncio.fixture
    async def offline_client(self, recorded):
        def handler(request: httpx.Request):
            recorded.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        session = SessionContext()
        http = AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test")
        async with NotesApiClient("http://test", session, http=http) as api:
            yield api

    async def test_empty_profile_update_makes_no_request(self, offline_client, recorded):
        result = await offline_client.update_user_profile("user-1", {"name": None})

        assert result == Ok(None)
        assert recorded == []

    async def test_network_failure_uses_fallback_message(self, offline_client, recorded):
        result = await offline_client.sign_in("user@example.com", "password123")

        assert isinstance(result.error, DatabaseError)
        assert result.error.message == (
            "Login failed. Please check your credentials and try again."
        )
        assert len(recorded) == 1
