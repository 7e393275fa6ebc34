"""Shared pytest fixtures: in-memory fakes for Supabase and Onshape."""

import time
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

from cadnotes.core.exceptions import OAuthError
from cadnotes.core.models.note import Note
from cadnotes.core.models.oauth import OAuthToken
from cadnotes.core.repositories.note_repository import NoteRepository
from cadnotes.core.schemas.auth import AuthSession, AuthUser
from cadnotes.dependencies import (
    _login_attempts,
    get_auth_service,
    get_note_repository,
    get_oauth_client,
    get_onshape_client,
)
from cadnotes.main import create_app

USER_ID = UUID("87654321-4321-8765-4321-876543218765")
OTHER_USER_ID = UUID("12345678-1234-5678-1234-567812345678")


class FakeNoteRepository(NoteRepository):
    """Dict-backed store that keeps at most one active note per user."""

    def __init__(self):
        self.rows: dict[UUID, Note] = {}
        self._tick = 0

    def _now(self) -> datetime:
        # Strictly increasing so recency ordering is deterministic
        self._tick += 1
        return datetime(2025, 1, 1, tzinfo=UTC) + timedelta(seconds=self._tick)

    def add(self, user_id: UUID, *, content: str = "", title: str | None = None, is_active: bool = False) -> Note:
        now = self._now()
        note = Note(user_id=user_id, title=title, content=content, is_active=is_active, created_at=now, updated_at=now)
        self.rows[note.id] = note
        return note

    def active_ids(self, user_id: UUID) -> list[UUID]:
        return [n.id for n in self.rows.values() if n.user_id == user_id and n.is_active]

    async def get_active(self, *, user_id):
        active = [n for n in self.rows.values() if n.user_id == user_id and n.is_active]
        return active[0] if active else None

    async def list(self, *, user_id, limit=100):
        notes = [n for n in self.rows.values() if n.user_id == user_id]
        notes.sort(key=lambda n: n.updated_at, reverse=True)
        return notes[:limit]

    async def activate(self, note_id, *, user_id):
        target = self.rows.get(note_id)
        if target is None or target.user_id != user_id:
            return None
        for note in self.rows.values():
            if note.user_id == user_id:
                note.is_active = note.id == note_id
        return target

    async def create_active(self, *, user_id, title, content):
        await self.deactivate_all(user_id=user_id)
        return self.add(user_id, title=title, content=content, is_active=True)

    async def update_active(self, *, user_id, changes, note_id=None):
        note = await self.get_active(user_id=user_id)
        if note is None or (note_id is not None and note.id != note_id):
            return None
        for key in ("title", "content"):
            if key in changes:
                setattr(note, key, changes[key])
        note.updated_at = self._now()
        return note

    async def deactivate_all(self, *, user_id):
        changed = 0
        for note in self.rows.values():
            if note.user_id == user_id and note.is_active:
                note.is_active = False
                changed += 1
        return changed

    async def owned_ids(self, note_ids, *, user_id):
        return {i for i in note_ids if i in self.rows and self.rows[i].user_id == user_id}

    async def delete_many(self, note_ids, *, user_id):
        deleted = []
        for note_id in note_ids:
            note = self.rows.get(note_id)
            if note is not None and note.user_id == user_id:
                del self.rows[note_id]
                deleted.append(note_id)
        return deleted


class FakeAuthService:
    """Accepts any password except 'wrong-password'."""

    def __init__(self, user_id: UUID = USER_ID):
        self.user_id = user_id
        self.signed_out: list[str | None] = []
        self.refresh_calls = 0
        self.confirm_email = False

    def _session(self, email: str) -> AuthSession:
        return AuthSession(
            user=AuthUser(id=self.user_id, email=email),
            tokens=OAuthToken(access_token="sb-access", refresh_token="sb-refresh", expires_at=time.time() + 3600),
        )

    async def sign_in(self, payload):
        if payload.password == "wrong-password":
            raise ValueError("Invalid email or password")
        return self._session(payload.email)

    async def sign_up(self, payload):
        if self.confirm_email:
            return AuthSession(user=AuthUser(id=self.user_id, email=payload.email))
        return self._session(payload.email)

    async def sign_out(self, access_token):
        self.signed_out.append(access_token)

    async def refresh_session(self, refresh_token):
        self.refresh_calls += 1
        return self._session("user@example.com")


class FakeOAuthClient:
    """Stands in for OnshapeOAuthClient and counts token endpoint calls."""

    def __init__(self):
        self.expires_in = 3600
        self.fail_refresh = False
        self.fail_exchange = False
        self.refresh_calls: list[str] = []
        self.exchanged_codes: list[str] = []

    def authorization_url(self, state: str) -> str:
        return f"https://oauth.example.test/authorize?state={state}"

    async def exchange_code(self, code: str) -> OAuthToken:
        self.exchanged_codes.append(code)
        if self.fail_exchange:
            raise OAuthError("invalid_grant")
        return OAuthToken(access_token="on-access-1", refresh_token="on-refresh-1", expires_at=time.time() + self.expires_in)

    async def refresh(self, refresh_token: str) -> OAuthToken:
        self.refresh_calls.append(refresh_token)
        if self.fail_refresh:
            raise OAuthError("Token endpoint returned 400")
        return OAuthToken(access_token="on-access-2", refresh_token=refresh_token, expires_at=time.time() + 3600)


class FakeOnshapeClient:
    def __init__(self):
        self.calls: list[tuple] = []

    async def get_assembly_definition(self, access_token, did, wid, eid):
        self.calls.append(("assembly", access_token, did, wid, eid))
        return {"rootAssembly": {"instances": []}}

    async def export_gltf(self, access_token, did, wid, eid):
        self.calls.append(("gltf", access_token, did, wid, eid))
        return {"asset": {"version": "2.0"}}

    async def get_exploded_views(self, access_token, did, wid, eid):
        self.calls.append(("exploded", access_token, did, wid, eid))
        return []

    async def get_mates(self, access_token, did, wid, eid):
        self.calls.append(("mates", access_token, did, wid, eid))
        return {"mates": [{"name": "Fastened 1"}]}

    async def list_documents(self, access_token, *, limit=20, offset=0):
        self.calls.append(("documents", access_token, limit, offset))
        return {"items": [{"id": "d1", "name": "Gearbox"}]}


@pytest.fixture(autouse=True)
def reset_rate_limits():
    _login_attempts.clear()
    yield
    _login_attempts.clear()


@pytest.fixture
def repo():
    return FakeNoteRepository()


@pytest.fixture
def auth_service():
    return FakeAuthService()


@pytest.fixture
def oauth_client():
    return FakeOAuthClient()


@pytest.fixture
def onshape_client():
    return FakeOnshapeClient()


@pytest.fixture
def app(repo, auth_service, oauth_client, onshape_client):
    application = create_app()
    application.dependency_overrides[get_note_repository] = lambda: repo
    application.dependency_overrides[get_auth_service] = lambda: auth_service
    application.dependency_overrides[get_oauth_client] = lambda: oauth_client
    application.dependency_overrides[get_onshape_client] = lambda: onshape_client
    return application


@pytest.fixture
def client(app):
    with TestClient(app, follow_redirects=False) as test_client:
        yield test_client


@pytest.fixture
def logged_in(client):
    resp = client.post("/login", json={"email": "user@example.com", "password": "s3cret-pass"})
    assert resp.status_code == 200
    return client


def connect_onshape(client) -> None:
    """Walk the OAuth start/callback flow against the fake client."""
    start = client.get("/oauthStart")
    assert start.status_code == 302
    state = start.headers["location"].split("state=", 1)[1]
    callback = client.get("/oauthRedirect", params={"code": "auth-code", "state": state})
    assert callback.status_code == 302


@pytest.fixture
def other_user_note(repo):
    return repo.add(OTHER_USER_ID, content="not yours", title="Other", is_active=True)


def new_id() -> str:
    return str(uuid4())
