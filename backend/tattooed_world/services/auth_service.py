"""
Tattooed World Backend — Auth Service
=======================================

What:  Registration, login, token refresh, profile edits, e-mail verification
       and the password-reset flow.
How:   Stateless service over an AsyncSession; the request-scoped session
       commits after the route returns, so every method only flushes.
Who:   Called by routes/auth.py and, for token → user resolution, by the
       auth dependencies.

Login decision order:
    unknown e-mail or wrong password → 401 "Invalid credentials"
    deactivated account               → 401 "Account is deactivated"
    unverified e-mail (when required) → 401 + requires_email_verification
    otherwise                         → user + access token + refresh token

One-time tokens (reset / verification) are looked up by digest with the
expiry checked in SQL, and cleared on use so each works exactly once.
"""

import logging
import uuid
from datetime import timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tattooed_world.config import settings
from tattooed_world.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from tattooed_world.models import User
from tattooed_world.models.common import utcnow
from tattooed_world.schemas.auth import (
    AccessTokenResponse,
    AuthResponse,
    ChangePasswordRequest,
    ProfileUpdateRequest,
    RegisterRequest,
    RegisterResponse,
    UserResponse,
)
from tattooed_world.services import security
from tattooed_world.services.mail_service import mail_service

logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = "If an account with that email exists, a password reset link has been sent"
RESEND_VERIFICATION_MESSAGE = (
    "If an account with that email exists, a verification email has been sent"
)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:
    async def get_user_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == normalize_email(email)))
        return result.scalar_one_or_none()

    async def get_user(self, db: AsyncSession, user_id: uuid.UUID) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return user

    # ── Registration & Login ──────────────────────────────────────────────

    async def register(self, db: AsyncSession, data: RegisterRequest) -> RegisterResponse:
        email = normalize_email(data.email)
        if await self.get_user_by_email(db, email) is not None:
            raise ConflictError("User with this email already exists")

        verification_required = settings.require_email_verification
        raw_token: Optional[str] = None
        user = User(
            email=email,
            password_hash=security.hash_password(data.password),
            first_name=data.first_name,
            last_name=data.last_name,
            phone=data.phone,
            role=data.role,
            is_active=True,
            email_verified=not verification_required,
        )
        if verification_required:
            raw_token, digest = security.generate_one_time_token()
            user.email_verification_token = digest
            user.email_verification_expires = utcnow() + timedelta(
                hours=settings.verification_token_ttl_hours
            )

        db.add(user)
        try:
            await db.flush()
        except IntegrityError as exc:
            raise ConflictError("User with this email already exists") from exc
        logger.info("User registered: %s (role=%s)", user.id, user.role)

        if raw_token:
            await mail_service.send_verification_email(user.email, user.first_name, raw_token)
            message = "Registration successful! Please check your email to verify your account."
        else:
            message = "Registration successful"

        return RegisterResponse(
            message=message,
            user=UserResponse.model_validate(user),
            requires_email_verification=verification_required,
        )

    async def login(self, db: AsyncSession, email: str, password: str) -> AuthResponse:
        user = await self.get_user_by_email(db, email)
        if user is None or not security.verify_password(password, user.password_hash):
            logger.info("Failed login for %s", normalize_email(email))
            raise AuthenticationError("Invalid credentials")
        if not user.is_active:
            raise AuthenticationError("Account is deactivated")
        if settings.require_email_verification and not user.email_verified:
            raise AuthenticationError(
                "Please verify your email address before logging in",
                context={"requires_email_verification": True},
            )

        logger.info("User logged in: %s", user.id)
        return AuthResponse(
            user=UserResponse.model_validate(user),
            access_token=security.create_access_token(user.id, user.role),
            refresh_token=security.create_refresh_token(user.id, user.role),
        )

    async def refresh(self, db: AsyncSession, refresh_token: str) -> AccessTokenResponse:
        claims = security.decode_token(refresh_token, expected_type=security.REFRESH_TOKEN)
        user = await db.get(User, security.user_id_from_claims(claims))
        if user is None or not user.is_active:
            raise AuthenticationError("User no longer exists or is deactivated")
        return AccessTokenResponse(access_token=security.create_access_token(user.id, user.role))

    async def resolve_access_token(self, db: AsyncSession, token: str) -> User:
        """Bearer token → active User, or AuthenticationError."""
        claims = security.decode_token(token, expected_type=security.ACCESS_TOKEN)
        user = await db.get(User, security.user_id_from_claims(claims))
        if user is None:
            raise AuthenticationError("User not found")
        if not user.is_active:
            raise AuthenticationError("Account is deactivated")
        return user

    # ── Profile ───────────────────────────────────────────────────────────

    async def update_profile(
        self, db: AsyncSession, user: User, data: ProfileUpdateRequest
    ) -> UserResponse:
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(user, field, value)
        user.updated_at = utcnow()
        await db.flush()
        return UserResponse.model_validate(user)

    async def change_password(
        self, db: AsyncSession, user: User, data: ChangePasswordRequest
    ) -> None:
        if not security.verify_password(data.current_password, user.password_hash):
            raise ValidationError("Current password is incorrect", field="current_password")
        user.password_hash = security.hash_password(data.new_password)
        user.updated_at = utcnow()
        await db.flush()
        logger.info("Password changed for user %s", user.id)

    # ── E-mail verification ───────────────────────────────────────────────

    async def verify_email(self, db: AsyncSession, token: str) -> UserResponse:
        digest = security.hash_one_time_token(token)
        result = await db.execute(
            select(User).where(
                User.email_verification_token == digest,
                User.email_verification_expires > utcnow(),
            )
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise ValidationError("Invalid or expired verification token", field="token")

        user.email_verified = True
        user.email_verification_token = None
        user.email_verification_expires = None
        await db.flush()
        logger.info("E-mail verified for user %s", user.id)
        return UserResponse.model_validate(user)

    async def resend_verification(self, db: AsyncSession, email: str) -> str:
        user = await self.get_user_by_email(db, email)
        if user is None:
            return RESEND_VERIFICATION_MESSAGE
        if user.email_verified:
            raise ValidationError("Email is already verified", field="email")

        raw_token, digest = security.generate_one_time_token()
        user.email_verification_token = digest
        user.email_verification_expires = utcnow() + timedelta(
            hours=settings.verification_token_ttl_hours
        )
        await db.flush()
        await mail_service.send_verification_email(user.email, user.first_name, raw_token)
        return RESEND_VERIFICATION_MESSAGE

    # ── Password reset ────────────────────────────────────────────────────

    async def forgot_password(self, db: AsyncSession, email: str) -> str:
        user = await self.get_user_by_email(db, email)
        if user is None or not user.is_active:
            return FORGOT_PASSWORD_MESSAGE

        raw_token, digest = security.generate_one_time_token()
        user.reset_token = digest
        user.reset_token_expires = utcnow() + timedelta(minutes=settings.reset_token_ttl_minutes)
        await db.flush()
        await mail_service.send_password_reset_email(user.email, user.first_name, raw_token)
        logger.info("Password reset requested for user %s", user.id)
        return FORGOT_PASSWORD_MESSAGE

    async def reset_password(self, db: AsyncSession, token: str, password: str) -> None:
        digest = security.hash_one_time_token(token)
        result = await db.execute(
            select(User).where(
                User.reset_token == digest,
                User.reset_token_expires > utcnow(),
            )
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise ValidationError("Invalid or expired reset token", field="token")

        user.password_hash = security.hash_password(password)
        user.reset_token = None
        user.reset_token_expires = None
        user.updated_at = utcnow()
        await db.flush()
        logger.info("Password reset completed for user %s", user.id)


auth_service = AuthService()
