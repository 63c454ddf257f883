"""Tests for registration, login, logout and bearer-token identity."""
from datetime import timedelta

from eventhub.config import settings
from eventhub.models.user import Role, User
from eventhub.security import blacklist_token, create_access_token, decode_token, is_token_blacklisted
from tests.conftest import auth_headers, register_user


class TestRegister:
    def test_register_returns_token_and_user(self, client):
        data = register_user(client, "Ada Lovelace", "ada@example.com")
        assert data["token_type"] == "bearer"
        assert data["email"] == "ada@example.com"
        assert data["role"] == "USER"
        assert decode_token(data["access_token"])["sub"] == data["user_id"]

    def test_password_is_hashed(self, client, db):
        data = register_user(client, "Ada", "ada@example.com")
        user = db.query(User).filter(User.user_id == data["user_id"]).one()
        assert user.password_hash != "s3cret-password"
        assert user.password_hash.startswith("$2")

    def test_duplicate_email_rejected_case_insensitively(self, client):
        register_user(client, "Ada", "ada@example.com")
        resp = client.post("/api/auth/register", json={
            "name": "Imposter",
            "email": "ADA@example.com",
            "password": "another-password",
        })
        assert resp.status_code == 400
        assert "already registered" in resp.json()["message"]

    def test_invalid_payload(self, client):
        resp = client.post("/api/auth/register", json={"name": "A", "email": "not-an-email", "password": "short"})
        assert resp.status_code == 400
        fields = {d["field"] for d in resp.json()["details"]}
        assert {"body.name", "body.email", "body.password"} <= fields


class TestLogin:
    def test_login_success(self, client):
        register_user(client, "Ada", "ada@example.com")
        resp = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "s3cret-password"})
        assert resp.status_code == 200
        assert resp.json()["access_token"]

    def test_wrong_password(self, client):
        register_user(client, "Ada", "ada@example.com")
        resp = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "wrong-password"})
        assert resp.status_code == 401
        assert resp.json()["message"] == "Invalid email or password"
        assert resp.headers["www-authenticate"] == "Bearer"

    def test_unknown_email(self, client):
        resp = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "whatever1"})
        assert resp.status_code == 401


class TestTokens:
    def test_me_with_token(self, client):
        data = register_user(client, "Ada", "ada@example.com")
        resp = client.get("/api/users/me", headers=auth_headers(data["access_token"]))
        assert resp.status_code == 200
        assert resp.json()["user_id"] == data["user_id"]

    def test_garbage_token_is_unauthenticated(self, client):
        resp = client.get("/api/events", headers=auth_headers("not-a-jwt"))
        assert resp.status_code == 401

    def test_expired_token(self, client, db):
        data = register_user(client, "Ada", "ada@example.com")
        user = db.query(User).filter(User.user_id == data["user_id"]).one()
        token = create_access_token(user, expires_delta=timedelta(seconds=-1))
        assert client.get("/api/users/me", headers=auth_headers(token)).status_code == 401

    def test_logout_blacklists_token(self, client):
        data = register_user(client, "Ada", "ada@example.com")
        headers = auth_headers(data["access_token"])
        assert client.post("/api/auth/logout", headers=headers).status_code == 200
        resp = client.get("/api/users/me", headers=headers)
        assert resp.status_code == 401
        assert "invalidated" in resp.json()["message"]

        fresh = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "s3cret-password"})
        assert client.get("/api/users/me", headers=auth_headers(fresh.json()["access_token"])).status_code == 200

    def test_blacklist_keeps_every_token_until_expiry(self):
        user = User(user_id="bulk-user", role=Role.USER)
        tokens = [create_access_token(user) for _ in range(10 * settings.CACHE_MAX_ENTRIES + 1)]
        for token in tokens:
            blacklist_token(token)
        assert is_token_blacklisted(tokens[0])
        assert is_token_blacklisted(tokens[-1])

    def test_logout_requires_token(self, client):
        assert client.post("/api/auth/logout").status_code == 401


class TestRateLimit:
    def test_login_rate_limited(self, client):
        statuses = [
            client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "wrong-password"}).status_code
            for _ in range(101)
        ]
        assert statuses[:100] == [401] * 100
        assert statuses[100] == 429
