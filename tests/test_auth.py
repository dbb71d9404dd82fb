"""
Tests for registration, login, and API key authentication.

These tests verify:
  - Registration creates a "user" and returns a working API key
  - Duplicate usernames are rejected (409 Conflict)
  - Weak passwords are rejected with every failing rule listed
  - Invalid usernames, ages, and genders are rejected (422)
  - Login returns the API key; wrong password and unknown username
    produce the same 401 body (anti-enumeration)
  - Missing, malformed, and unknown API keys get 401 JSON bodies
"""

import pytest
from sqlalchemy import select

from taskmanager.models import User


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

class TestRegister:
    """Tests for POST /v1/users."""

    async def test_register_success(self, client):
        response = await client.post(
            "/v1/users",
            json={
                "username": "newuser",
                "password": "StrongPass99!",
                "age": 25,
                "gender": "other",
            },
        )
        assert response.status_code == 201
        data = response.json()
        assert data["username"] == "newuser"
        assert data["role"] == "user"
        assert data["age"] == 25
        assert len(data["api_key"]) == 64
        assert "password" not in data
        assert "password_hash" not in data

    async def test_returned_key_authenticates(self, client, alice):
        response = await client.get(
            "/v1/users/me", headers={"Authorization": f"APIKEY {alice['api_key']}"}
        )
        assert response.status_code == 200
        assert response.json()["username"] == "alice"

    async def test_duplicate_username(self, client, alice):
        response = await client.post(
            "/v1/users", json={"username": "alice", "password": "StrongPass99!"}
        )
        assert response.status_code == 409
        assert response.json()["error"] == "username alice is already taken"

    async def test_weak_password_lists_every_problem(self, client):
        response = await client.post(
            "/v1/users", json={"username": "weakling", "password": "password"}
        )
        assert response.status_code == 400
        error = response.json()["error"]
        assert "uppercase letter" in error
        assert "digit" in error
        assert "special character" in error

    @pytest.mark.parametrize(
        "username", ["ab", "1alice", "alice_", "a" * 26, "al ice", "alice!"]
    )
    async def test_invalid_username(self, client, username):
        response = await client.post(
            "/v1/users", json={"username": username, "password": "StrongPass99!"}
        )
        assert response.status_code == 422
        assert "username" in response.json()["error"]

    @pytest.mark.parametrize("age", [12, 121])
    async def test_age_out_of_range(self, client, age):
        response = await client.post(
            "/v1/users",
            json={"username": "youngster", "password": "StrongPass99!", "age": age},
        )
        assert response.status_code == 422

    async def test_unknown_gender(self, client):
        response = await client.post(
            "/v1/users",
            json={"username": "someone", "password": "StrongPass99!", "gender": "robot"},
        )
        assert response.status_code == 422

    async def test_unknown_organization(self, client):
        response = await client.post(
            "/v1/users",
            json={
                "username": "joiner",
                "password": "StrongPass99!",
                "organization_id": "00000000-0000-0000-0000-000000000000",
            },
        )
        assert response.status_code == 404
        assert response.json()["error"] == "organization not found"


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------

class TestLogin:
    """Tests for POST /v1/login."""

    async def test_login_success(self, client, alice):
        response = await client.post(
            "/v1/login", json={"username": "alice", "password": "SecurePass123!"}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["api_key"] == alice["api_key"]
        assert data["user"]["username"] == "alice"

    async def test_username_is_trimmed(self, client, alice):
        response = await client.post(
            "/v1/login", json={"username": "  alice ", "password": "SecurePass123!"}
        )
        assert response.status_code == 200

    async def test_wrong_password(self, client, alice):
        response = await client.post(
            "/v1/login", json={"username": "alice", "password": "WrongPass123!"}
        )
        assert response.status_code == 401
        assert response.json()["error"] == "invalid username or password"

    async def test_unknown_username_same_error(self, client, alice):
        """Unknown username and wrong password must be indistinguishable."""
        wrong_password = await client.post(
            "/v1/login", json={"username": "alice", "password": "WrongPass123!"}
        )
        unknown_user = await client.post(
            "/v1/login", json={"username": "nobody", "password": "WrongPass123!"}
        )
        assert unknown_user.status_code == wrong_password.status_code == 401
        assert unknown_user.json() == wrong_password.json()

    async def test_empty_fields(self, client):
        response = await client.post("/v1/login", json={"username": "", "password": ""})
        assert response.status_code == 422

    async def test_password_keeps_surrounding_whitespace(self, client, register_user):
        await register_user("padded", password="  SecurePass123!  ")

        exact = await client.post(
            "/v1/login", json={"username": "padded", "password": "  SecurePass123!  "}
        )
        assert exact.status_code == 200

        trimmed = await client.post(
            "/v1/login", json={"username": "padded", "password": "SecurePass123!"}
        )
        assert trimmed.status_code == 401

    @pytest.mark.parametrize("params", [
        "m=99999999999999999999,t=1,p=1",
        "m=1024,t=1,p=0",
    ])
    async def test_corrupted_stored_hash_is_uniform_401(
        self, client, alice, session_factory, params
    ):
        async with session_factory() as session:
            user = (
                await session.execute(select(User).where(User.username == "alice"))
            ).scalar_one()
            user.password_hash = user.password_hash.replace("m=1024,t=1,p=1", params)
            await session.commit()

        response = await client.post(
            "/v1/login", json={"username": "alice", "password": "SecurePass123!"}
        )
        assert response.status_code == 401
        assert response.json()["error"] == "invalid username or password"


# ---------------------------------------------------------------------------
# API key authentication
# ---------------------------------------------------------------------------

class TestApiKeyAuthentication:
    """Every protected endpoint resolves the caller from the Authorization header."""

    async def test_missing_header(self, client):
        response = await client.get("/v1/tasks")
        assert response.status_code == 401
        assert response.json()["error"] == "missing authorization header"
        assert response.headers["WWW-Authenticate"] == "APIKEY"

    async def test_blank_header(self, client):
        response = await client.get("/v1/tasks", headers={"Authorization": "   "})
        assert response.status_code == 401
        assert response.json()["error"] == "missing authorization header"

    @pytest.mark.parametrize("value", ["Bearer abc123", "apikey abc123", "APIKEY abc-123"])
    async def test_malformed_header(self, client, value):
        response = await client.get("/v1/tasks", headers={"Authorization": value})
        assert response.status_code == 401
        assert response.json()["error"] == "invalid API key"

    async def test_unknown_key_looks_like_malformed_key(self, client):
        unknown = await client.get("/v1/tasks", headers={"Authorization": "APIKEY deadbeef"})
        malformed = await client.get("/v1/tasks", headers={"Authorization": "Bearer deadbeef"})
        assert unknown.status_code == malformed.status_code == 401
        assert unknown.json() == malformed.json()

    async def test_health_needs_no_key(self, client):
        response = await client.get("/v1/healthz")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
