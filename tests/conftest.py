import pytest
from fastapi.testclient import TestClient

from clicks_backend.core.session import SessionProvider, UserSession, get_session_provider
from clicks_backend.database.supabase_client import get_auth_supabase, get_service_supabase, get_supabase
from clicks_backend.main import app
from tests.fakes import FakeSupabase
from tests.helpers import U1, U2, U3


@pytest.fixture
def db():
    fake = FakeSupabase()
    fake.auth.add_user(U1, "u1@example.com", "token-u1")
    fake.auth.add_user(U2, "u2@example.com", "token-u2")
    fake.auth.add_user(U3, "u3@example.com", "token-u3")
    fake.tables["profiles"] = [
        {"id": U1, "username": "alice", "full_name": "Alice", "avatar_url": None},
        {"id": U2, "username": "bob", "full_name": None, "avatar_url": None},
        {"id": U3, "username": "carol", "full_name": None, "avatar_url": None},
    ]
    return fake


@pytest.fixture
def sessions():
    return SessionProvider(ttl_sec=60, max_size=10)


@pytest.fixture
def client(db, sessions):
    app.dependency_overrides[get_supabase] = lambda: db
    app.dependency_overrides[get_service_supabase] = lambda: db
    app.dependency_overrides[get_auth_supabase] = lambda: db
    app.dependency_overrides[get_session_provider] = lambda: sessions
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def u1_session():
    return UserSession(id=U1, email="u1@example.com")
