"""
ALOKA Backend — Auth Tests
===========================

What:  Signup, login, bearer identity resolution and the optional studio
       write gate.
How:   Credential primitives are tested directly; endpoints through the
       HTTPX test client. bcrypt runs at cost 4 (see conftest).

What we test:
    ✅ Signup returns a 7-day credential with sub/email/role claims
    ✅ Duplicate email (case/whitespace-insensitive) → 409
    ✅ Login never reveals which part of the credentials was wrong
    ✅ /me: missing, forged or expired credential → 401; deleted account → 404
    ✅ Write gate: off by default; 401 without credential, 403 for clients
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest
from sqlalchemy import delete

from aloka.config import settings
from aloka.exceptions import AuthenticationError
from aloka.models.user import User
from aloka.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)

ANA = {"name": "Ana", "email": "ana@example.com", "password": "s3cret-pass"}

STUDIO = {
    "studioName": "Loft A",
    "description": "x",
    "address": "1 Main",
    "location": {"city": "X", "state": "Y", "zipCode": "0"},
    "perHourCharge": 100,
}


async def _signup(client, **overrides) -> dict:
    response = await client.post("/api/auth/signup", json={**ANA, **overrides})
    assert response.status_code == 200, response.text
    return response.json()


def _bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


class TestCredentialPrimitives:

    def test_password_hash_roundtrip(self):
        hashed = hash_password("correct horse")

        assert hashed != "correct horse"
        assert verify_password("correct horse", hashed) is True
        assert verify_password("wrong horse", hashed) is False

    def test_overlong_password_never_verifies(self):
        hashed = hash_password("a" * 72)

        assert verify_password("a" * 73, hashed) is False

    def test_corrupt_hash_does_not_raise(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False

    def test_token_claims(self):
        issued = datetime(2026, 3, 1, tzinfo=timezone.utc)
        token = create_access_token("user-1", "a@b.c", "client", now=issued)

        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=["HS256"],
            options={"verify_exp": False},
        )

        assert claims["sub"] == "user-1"
        assert claims["email"] == "a@b.c"
        assert claims["role"] == "client"
        assert claims["exp"] - claims["iat"] == 7 * 24 * 3600

    def test_expired_token_rejected(self):
        token = create_access_token(
            "user-1", "a@b.c", "client",
            now=datetime.now(timezone.utc) - timedelta(days=8),
        )

        with pytest.raises(AuthenticationError) as exc_info:
            decode_access_token(token)

        assert exc_info.value.message == "Token has expired"

    def test_forged_token_rejected(self):
        token = jwt.encode({"sub": "user-1", "exp": 4102444800}, "other-secret", algorithm="HS256")

        with pytest.raises(AuthenticationError) as exc_info:
            decode_access_token(token)

        assert exc_info.value.message == "Invalid token"


class TestSignup:

    @pytest.mark.asyncio
    async def test_signup_returns_token_and_user(self, test_client):
        body = await _signup(test_client)

        assert body["success"] is True
        assert body["user"]["email"] == "ana@example.com"
        assert body["user"]["role"] == "client"
        assert "password" not in body["user"]
        claims = decode_access_token(body["token"])
        assert claims["sub"] == body["user"]["id"]

    @pytest.mark.asyncio
    async def test_signup_as_videographer(self, test_client):
        body = await _signup(test_client, role="videographer")

        assert body["user"]["role"] == "videographer"

    @pytest.mark.asyncio
    async def test_admin_role_cannot_be_self_assigned(self, test_client):
        response = await test_client.post("/api/auth/signup", json={**ANA, "role": "admin"})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_missing_fields(self, test_client):
        response = await test_client.post("/api/auth/signup", json={"email": "a@b.c"})

        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Name, email, and password are required"
        assert body["details"]["missing"] == ["name", "password"]

    @pytest.mark.asyncio
    async def test_overlong_password_rejected(self, test_client):
        response = await test_client.post("/api/auth/signup", json={**ANA, "password": "p" * 73})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_duplicate_email_is_conflict(self, test_client):
        await _signup(test_client)

        response = await test_client.post(
            "/api/auth/signup", json={**ANA, "email": "  ANA@Example.com "}
        )

        assert response.status_code == 409
        assert response.json()["error"] == "conflict"
        assert response.json()["message"] == "User with this email already exists"


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_with_valid_credentials(self, test_client):
        created = await _signup(test_client)

        response = await test_client.post(
            "/api/auth/login", json={"email": "Ana@Example.com", "password": ANA["password"]}
        )

        assert response.status_code == 200
        assert response.json()["user"]["id"] == created["user"]["id"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email,password", [
        ("ana@example.com", "wrong-pass"),
        ("nobody@example.com", "s3cret-pass"),
    ])
    async def test_bad_credentials_share_one_message(self, test_client, email, password):
        await _signup(test_client)

        response = await test_client.post("/api/auth/login", json={"email": email, "password": password})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"


class TestMe:

    @pytest.mark.asyncio
    async def test_me_returns_profile(self, test_client):
        created = await _signup(test_client, role="videographer")

        response = await test_client.get("/api/auth/me", headers=_bearer(created["token"]))

        assert response.status_code == 200
        assert response.json() == {
            "id": created["user"]["id"],
            "name": "Ana",
            "email": "ana@example.com",
            "role": "videographer",
            "avatar": None,
        }

    @pytest.mark.asyncio
    async def test_missing_header_is_401(self, test_client):
        response = await test_client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json()["error"] == "unauthorized"

    @pytest.mark.asyncio
    async def test_garbage_token_is_401(self, test_client):
        response = await test_client.get("/api/auth/me", headers=_bearer("not.a.jwt"))

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_expired_token_is_401(self, test_client):
        created = await _signup(test_client)
        expired = create_access_token(
            created["user"]["id"], ANA["email"], "client",
            now=datetime.now(timezone.utc) - timedelta(days=8),
        )

        response = await test_client.get("/api/auth/me", headers=_bearer(expired))

        assert response.status_code == 401
        assert response.json()["message"] == "Token has expired"

    @pytest.mark.asyncio
    async def test_deleted_account_is_404(self, test_client, session_factory):
        created = await _signup(test_client)
        async with session_factory() as session:
            await session.execute(delete(User).where(User.email == ANA["email"]))
            await session.commit()

        response = await test_client.get("/api/auth/me", headers=_bearer(created["token"]))

        assert response.status_code == 404
        assert response.json()["message"] == "User not found"


class TestStudioWriteGate:

    @pytest.mark.asyncio
    async def test_writes_open_by_default(self, test_client):
        response = await test_client.post("/api/studios", json=STUDIO)

        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_missing_credential_is_401(self, test_client, monkeypatch):
        monkeypatch.setattr(settings, "studio_writes_require_auth", True)

        response = await test_client.post("/api/studios", json=STUDIO)

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_client_role_is_403(self, test_client, monkeypatch):
        monkeypatch.setattr(settings, "studio_writes_require_auth", True)
        created = await _signup(test_client)

        response = await test_client.post(
            "/api/studios", json=STUDIO, headers=_bearer(created["token"])
        )

        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"

    @pytest.mark.asyncio
    async def test_videographer_can_write(self, test_client, monkeypatch):
        monkeypatch.setattr(settings, "studio_writes_require_auth", True)
        created = await _signup(test_client, role="videographer")

        response = await test_client.post(
            "/api/studios", json=STUDIO, headers=_bearer(created["token"])
        )

        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_reads_stay_public(self, test_client, monkeypatch):
        monkeypatch.setattr(settings, "studio_writes_require_auth", True)

        response = await test_client.get("/api/studios")

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_deleted_account_cannot_write(self, test_client, session_factory, monkeypatch):
        monkeypatch.setattr(settings, "studio_writes_require_auth", True)
        created = await _signup(test_client, role="videographer")
        async with session_factory() as session:
            await session.execute(delete(User).where(User.email == ANA["email"]))
            await session.commit()

        response = await test_client.post(
            "/api/studios", json=STUDIO, headers=_bearer(created["token"])
        )

        assert response.status_code == 401
