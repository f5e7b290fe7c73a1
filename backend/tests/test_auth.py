"""
Tattooed World Backend — Auth API Tests
=========================================

What:  End-to-end tests for /api/auth against a real (SQLite) database.
How:   HTTPX AsyncClient on the ASGI app; outgoing mail patched with AsyncMock
       so reset and verification tokens can be captured.

What we test:
    ✅ Register → 201, duplicate e-mail → 409 with the error body
    ✅ Login success, wrong password and deactivated account → 401
    ✅ /me requires a bearer token; refresh issues a new access token
    ✅ Reset tokens are single-use and expire
    ✅ Change password checks the current password
    ✅ E-mail verification flow when verification is required
"""

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import select

from conftest import DEFAULT_PASSWORD, create_user
from tattooed_world.config import settings
from tattooed_world.models import User
from tattooed_world.models.common import utcnow
from tattooed_world.services.mail_service import mail_service

REGISTRATION = {
    "email": "New.Client@Example.com",
    "password": "secret123",
    "first_name": "  Nia ",
    "last_name": "Okafor",
}


class TestRegister:
    """POST /api/auth/register"""

    @pytest.mark.asyncio
    async def test_register_creates_user(self, test_client):
        """A new account is created with a normalized e-mail and CLIENT role."""
        response = await test_client.post("/api/auth/register", json=REGISTRATION)

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Registration successful"
        assert body["requires_email_verification"] is False
        assert body["user"]["email"] == "new.client@example.com"
        assert body["user"]["first_name"] == "Nia"
        assert body["user"]["role"] == "CLIENT"
        assert "password_hash" not in body["user"]

    @pytest.mark.asyncio
    async def test_duplicate_email_is_conflict(self, test_client):
        """Registering the same address twice (any case) answers 409."""
        await test_client.post("/api/auth/register", json=REGISTRATION)
        again = dict(REGISTRATION, email="new.client@example.com")

        response = await test_client.post("/api/auth/register", json=again)

        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "conflict"
        assert body["message"] == "User with this email already exists"
        assert body["request_id"]

    @pytest.mark.asyncio
    async def test_admin_role_cannot_be_self_assigned(self, test_client):
        """The schema only accepts CLIENT, ARTIST and ARTIST_ADMIN."""
        response = await test_client.post(
            "/api/auth/register", json=dict(REGISTRATION, role="ADMIN")
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_short_password_lists_field_details(self, test_client):
        """Schema failures come back as a details list keyed by field."""
        response = await test_client.post(
            "/api/auth/register", json=dict(REGISTRATION, password="123")
        )

        assert response.status_code == 400
        details = response.json()["details"]
        assert any(item["field"] == "password" for item in details)

    @pytest.mark.asyncio
    async def test_verification_required_sends_mail(self, test_client):
        """With verification on, the user is unverified and a link is mailed."""
        with patch.object(settings, "require_email_verification", True), patch.object(
            mail_service, "send_verification_email", AsyncMock(return_value=True)
        ) as send:
            response = await test_client.post("/api/auth/register", json=REGISTRATION)

        assert response.status_code == 201
        body = response.json()
        assert body["requires_email_verification"] is True
        assert body["user"]["email_verified"] is False
        send.assert_awaited_once()


class TestLogin:
    """POST /api/auth/login, /refresh and GET /me"""

    @pytest.mark.asyncio
    async def test_login_returns_token_pair(self, test_client, client_user):
        response = await test_client.post(
            "/api/auth/login", json={"email": client_user.email, "password": DEFAULT_PASSWORD}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["access_token"]
        assert body["refresh_token"]
        assert body["token_type"] == "bearer"
        assert body["user"]["id"] == str(client_user.id)

    @pytest.mark.asyncio
    async def test_wrong_password_is_401(self, test_client, client_user):
        response = await test_client.post(
            "/api/auth/login", json={"email": client_user.email, "password": "nope-nope"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_deactivated_account_cannot_login(self, test_client, session_factory):
        user = await create_user(session_factory, "gone@example.com", is_active=False)

        response = await test_client.post(
            "/api/auth/login", json={"email": user.email, "password": DEFAULT_PASSWORD}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Account is deactivated"

    @pytest.mark.asyncio
    async def test_me_requires_token(self, test_client):
        response = await test_client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["error"] == "authentication_error"

    @pytest.mark.asyncio
    async def test_me_with_garbage_token(self, test_client):
        response = await test_client.get(
            "/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token"

    @pytest.mark.asyncio
    async def test_me_returns_current_user(self, test_client, client_user):
        response = await test_client.get("/api/auth/me", headers=client_user.headers)

        assert response.status_code == 200
        assert response.json()["email"] == client_user.email

    @pytest.mark.asyncio
    async def test_refresh_issues_access_token(self, test_client, client_user):
        login = await test_client.post(
            "/api/auth/login", json={"email": client_user.email, "password": DEFAULT_PASSWORD}
        )
        refresh_token = login.json()["refresh_token"]

        response = await test_client.post(
            "/api/auth/refresh", json={"refresh_token": refresh_token}
        )

        assert response.status_code == 200
        access = response.json()["access_token"]
        me = await test_client.get("/api/auth/me", headers={"Authorization": f"Bearer {access}"})
        assert me.status_code == 200

    @pytest.mark.asyncio
    async def test_access_token_rejected_as_refresh_token(self, test_client, client_user):
        access = client_user.headers["Authorization"].split()[1]

        response = await test_client.post("/api/auth/refresh", json={"refresh_token": access})

        assert response.status_code == 401


class TestPasswordReset:
    """POST /api/auth/forgot-password and /reset-password"""

    async def _request_reset(self, test_client, email: str) -> str:
        with patch.object(
            mail_service, "send_password_reset_email", AsyncMock(return_value=True)
        ) as send:
            response = await test_client.post("/api/auth/forgot-password", json={"email": email})
        assert response.status_code == 200
        send.assert_awaited_once()
        return send.await_args.args[2]

    @pytest.mark.asyncio
    async def test_unknown_email_gets_same_answer(self, test_client):
        """No account enumeration: unknown addresses get the generic message."""
        with patch.object(
            mail_service, "send_password_reset_email", AsyncMock(return_value=True)
        ) as send:
            response = await test_client.post(
                "/api/auth/forgot-password", json={"email": "nobody@example.com"}
            )

        assert response.status_code == 200
        assert response.json()["message"]
        send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_reset_token_is_single_use(self, test_client, client_user):
        token = await self._request_reset(test_client, client_user.email)

        first = await test_client.post(
            "/api/auth/reset-password", json={"token": token, "password": "brand-new-pass"}
        )
        second = await test_client.post(
            "/api/auth/reset-password", json={"token": token, "password": "another-pass"}
        )

        assert first.status_code == 200
        assert second.status_code == 400
        assert second.json()["message"] == "Invalid or expired reset token"

        login = await test_client.post(
            "/api/auth/login", json={"email": client_user.email, "password": "brand-new-pass"}
        )
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_expired_reset_token_rejected(self, test_client, client_user, session_factory):
        token = await self._request_reset(test_client, client_user.email)
        async with session_factory() as db:
            user = await db.get(User, client_user.id)
            user.reset_token_expires = utcnow() - timedelta(minutes=1)
            await db.commit()

        response = await test_client.post(
            "/api/auth/reset-password", json={"token": token, "password": "brand-new-pass"}
        )

        assert response.status_code == 400
        assert response.json()["details"] == [
            {"field": "token", "message": "Invalid or expired reset token"}
        ]

    @pytest.mark.asyncio
    async def test_only_the_digest_is_stored(self, test_client, client_user, session_factory):
        token = await self._request_reset(test_client, client_user.email)

        async with session_factory() as db:
            stored = (
                await db.execute(select(User.reset_token).where(User.id == client_user.id))
            ).scalar_one()
        assert stored is not None
        assert stored != token
        assert len(stored) == 64


class TestChangePassword:
    """PUT /api/auth/change-password"""

    @pytest.mark.asyncio
    async def test_wrong_current_password(self, test_client, client_user):
        response = await test_client.put(
            "/api/auth/change-password",
            json={"current_password": "wrong-one", "new_password": "new-secret"},
            headers=client_user.headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Current password is incorrect"

    @pytest.mark.asyncio
    async def test_change_password_then_login(self, test_client, client_user):
        response = await test_client.put(
            "/api/auth/change-password",
            json={"current_password": DEFAULT_PASSWORD, "new_password": "new-secret"},
            headers=client_user.headers,
        )
        assert response.status_code == 200

        login = await test_client.post(
            "/api/auth/login", json={"email": client_user.email, "password": "new-secret"}
        )
        assert login.status_code == 200


class TestEmailVerification:
    """POST /api/auth/verify-email and /resend-verification"""

    @pytest.mark.asyncio
    async def test_verify_then_login(self, test_client):
        with patch.object(settings, "require_email_verification", True), patch.object(
            mail_service, "send_verification_email", AsyncMock(return_value=True)
        ) as send:
            await test_client.post("/api/auth/register", json=REGISTRATION)
            token = send.await_args.args[2]

            blocked = await test_client.post(
                "/api/auth/login",
                json={"email": REGISTRATION["email"], "password": REGISTRATION["password"]},
            )
            verified = await test_client.post("/api/auth/verify-email", json={"token": token})
            allowed = await test_client.post(
                "/api/auth/login",
                json={"email": REGISTRATION["email"], "password": REGISTRATION["password"]},
            )

        assert blocked.status_code == 401
        assert blocked.json()["details"] == {"requires_email_verification": True}
        assert verified.status_code == 200
        assert verified.json()["email_verified"] is True
        assert allowed.status_code == 200

    @pytest.mark.asyncio
    async def test_resend_for_verified_account_is_400(self, test_client, client_user):
        response = await test_client.post(
            "/api/auth/resend-verification", json={"email": client_user.email}
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Email is already verified"
