"""Registration, login and bearer token validation against a fake Supabase client."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from jose import jwt

from pitch_ai import config, dependencies, supabase_client
from pitch_ai.routers import auth

JWT_SECRET = "test-jwt-secret"


class FakeUser:
    def __init__(self, user_id, email):
        self.id = user_id
        self.email = email

    def model_dump(self, mode="python"):
        return {"id": self.id, "email": self.email}


@pytest.fixture
def supabase(monkeypatch):
    """Service role client used for Profiles."""
    admin = MagicMock()
    monkeypatch.setattr(auth, "get_supabase_admin", lambda: admin)
    return admin


@pytest.fixture
def supabase_auth(monkeypatch):
    """Anon client used for sign-up and sign-in."""
    user_client = MagicMock()
    monkeypatch.setattr(auth, "get_supabase_auth", lambda: user_client)
    return user_client


def _token(**claims):
    payload = {"sub": "user-1", "email": "ada@example.com", "aud": "authenticated", "role": "authenticated"}
    payload.update(claims)
    return jwt.encode(payload, JWT_SECRET, algorithm="HS256")


def test_validate_without_token(client):
    resp = client.get("/api/auth/validate")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "No token provided"


def test_validate_with_signed_token(client, monkeypatch):
    monkeypatch.setattr(config, "SUPABASE_JWT_SECRET", JWT_SECRET)
    resp = client.get("/api/auth/validate", headers={"Authorization": f"Bearer {_token()}"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["valid"] is True
    assert body["user"]["id"] == "user-1"
    assert body["user"]["email"] == "ada@example.com"


def test_validate_rejects_wrong_audience(client, monkeypatch):
    monkeypatch.setattr(config, "SUPABASE_JWT_SECRET", JWT_SECRET)
    resp = client.get("/api/auth/validate", headers={"Authorization": f"Bearer {_token(aud='anon')}"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid token"


def test_validate_rejects_garbage_token(client, monkeypatch):
    monkeypatch.setattr(config, "SUPABASE_JWT_SECRET", JWT_SECRET)
    resp = client.get("/api/auth/validate", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


def test_register_requires_all_fields(client, supabase, supabase_auth):
    resp = client.post("/api/auth/register", json={"email": "ada@example.com", "password": "pw"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "All fields are required"
    supabase_auth.auth.sign_up.assert_not_called()


def test_register_rejects_invalid_email(client, supabase, supabase_auth):
    resp = client.post(
        "/api/auth/register",
        json={"firstName": "Ada", "lastName": "Lovelace", "email": "not-an-email", "password": "pw"},
    )
    assert resp.status_code == 400


def test_register(client, supabase, supabase_auth):
    supabase_auth.auth.sign_up.return_value = SimpleNamespace(user=FakeUser("user-1", "ada@example.com"), session=None)
    supabase.table.return_value.insert.return_value.execute.return_value = SimpleNamespace(
        data=[{"id": "user-1", "first_name": "Ada"}]
    )

    resp = client.post(
        "/api/auth/register",
        json={"firstName": "Ada", "lastName": "Lovelace", "email": "ada@example.com", "password": "secret"},
    )

    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "User registered successfully"
    assert body["user"] == {"id": "user-1", "email": "ada@example.com"}
    assert body["session"] is None
    assert body["profile"] == {"id": "user-1", "first_name": "Ada"}

    sign_up_args = supabase_auth.auth.sign_up.call_args.args[0]
    assert sign_up_args["options"]["data"]["name"] == "Ada Lovelace"
    supabase.table.assert_called_with("Profiles")
    supabase.auth.sign_up.assert_not_called()


def test_register_survives_profile_failure(client, supabase, supabase_auth):
    supabase_auth.auth.sign_up.return_value = SimpleNamespace(user=FakeUser("user-2", "bo@example.com"), session=None)
    supabase.table.return_value.insert.return_value.execute.side_effect = Exception("duplicate key")

    resp = client.post(
        "/api/auth/register",
        json={"firstName": "Bo", "lastName": "Li", "email": "bo@example.com", "password": "secret"},
    )
    assert resp.status_code == 201
    assert resp.json()["profile"] is None


def test_register_auth_error(client, supabase, supabase_auth):
    supabase_auth.auth.sign_up.side_effect = Exception("User already registered")
    resp = client.post(
        "/api/auth/register",
        json={"firstName": "Bo", "lastName": "Li", "email": "bo@example.com", "password": "secret"},
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "User already registered"


def test_register_without_supabase_config(client):
    resp = client.post(
        "/api/auth/register",
        json={"firstName": "Bo", "lastName": "Li", "email": "bo@example.com", "password": "secret"},
    )
    assert resp.status_code == 500
    assert resp.json()["detail"] == "Internal server error"


def test_login(client, supabase, supabase_auth):
    supabase_auth.auth.sign_in_with_password.return_value = SimpleNamespace(
        user=FakeUser("user-1", "ada@example.com"), session=None
    )
    query = supabase.table.return_value.select.return_value.eq.return_value.limit.return_value
    query.execute.return_value = SimpleNamespace(data=[{"id": "user-1", "first_name": "Ada"}])

    resp = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "secret"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Login successful"
    assert body["profile"]["first_name"] == "Ada"
    supabase.auth.sign_in_with_password.assert_not_called()
    supabase.table.assert_called_with("Profiles")


def test_login_requires_credentials(client, supabase, supabase_auth):
    resp = client.post("/api/auth/login", json={"email": "ada@example.com"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Email and password are required"


def test_login_bad_credentials(client, supabase, supabase_auth):
    supabase_auth.auth.sign_in_with_password.side_effect = Exception("Invalid login credentials")
    resp = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "wrong"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid login credentials"


@pytest.fixture
def token_lookup(monkeypatch):
    """Admin client used by /validate when no JWT secret or key is configured."""
    admin = MagicMock()
    monkeypatch.setattr(dependencies, "get_supabase_admin", lambda: admin)
    monkeypatch.setattr(dependencies, "SUPABASE_JWT_PUBLIC_KEY", None)
    return admin


def test_validate_falls_back_to_supabase_lookup(client, token_lookup):
    token_lookup.auth.get_user.return_value = SimpleNamespace(user=FakeUser("user-9", "grace@example.com"))
    resp = client.get("/api/auth/validate", headers={"Authorization": "Bearer opaque-token"})
    assert resp.status_code == 200
    assert resp.json() == {"valid": True, "user": {"id": "user-9", "email": "grace@example.com"}}
    token_lookup.auth.get_user.assert_called_once_with("opaque-token")


def test_validate_lookup_rejection_is_401(client, token_lookup):
    token_lookup.auth.get_user.side_effect = Exception("invalid JWT: token is expired")
    resp = client.get("/api/auth/validate", headers={"Authorization": "Bearer expired-token"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid token"


def test_validate_lookup_without_user_is_401(client, token_lookup):
    token_lookup.auth.get_user.return_value = SimpleNamespace(user=None)
    resp = client.get("/api/auth/validate", headers={"Authorization": "Bearer opaque-token"})
    assert resp.status_code == 401


def test_auth_client_prefers_anon_key_and_is_not_shared(monkeypatch):
    created = MagicMock(side_effect=lambda url, key: object())
    monkeypatch.setattr(supabase_client, "create_client", created)
    monkeypatch.setattr(config, "SUPABASE_URL", "https://project.supabase.co")
    monkeypatch.setattr(config, "SUPABASE_KEY", "anon-key")
    monkeypatch.setattr(config, "SUPABASE_SERVICE_ROLE_KEY", "service-key")

    first = supabase_client.get_supabase_auth()
    second = supabase_client.get_supabase_auth()

    assert first is not second
    created.assert_called_with("https://project.supabase.co", "anon-key")
    assert created.call_count == 2


def test_auth_client_requires_configuration():
    with pytest.raises(RuntimeError, match="Supabase is not configured"):
        supabase_client.get_supabase_auth()
