"""
Tattooed World Backend — Auth Routes
======================================

What:  Account lifecycle under /api/auth.
How:   Stateless JWTs. Access tokens go in `Authorization: Bearer`; refresh
       tokens are posted to /refresh in the body. Logout therefore has no
       server state to clear and only acknowledges.

Enumeration safety:
    /forgot-password and /resend-verification answer with the same message
    whether or not the e-mail belongs to an account.
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from tattooed_world.database import get_db_session
from tattooed_world.dependencies import get_current_user
from tattooed_world.models import User
from tattooed_world.schemas.auth import (
    AccessTokenResponse,
    AuthResponse,
    ChangePasswordRequest,
    EmailRequest,
    LoginRequest,
    ProfileUpdateRequest,
    RefreshRequest,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
    TokenRequest,
    UserResponse,
)
from tattooed_world.schemas.common import ErrorResponse, MessageResponse
from tattooed_world.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid input", "model": ErrorResponse},
        409: {"description": "E-mail already registered", "model": ErrorResponse},
    },
    summary="Create an account",
    description=(
        "Registers a CLIENT, ARTIST or ARTIST_ADMIN account. A verification link "
        "is mailed (or logged when SMTP is not configured)."
    ),
)
async def register(
    data: RegisterRequest, db: AsyncSession = Depends(get_db_session)
) -> RegisterResponse:
    return await auth_service.register(db, data)


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={401: {"description": "Invalid credentials", "model": ErrorResponse}},
    summary="Exchange credentials for tokens",
)
async def login(data: LoginRequest, db: AsyncSession = Depends(get_db_session)) -> AuthResponse:
    return await auth_service.login(db, data.email, data.password)


@router.post(
    "/refresh",
    response_model=AccessTokenResponse,
    responses={401: {"description": "Invalid refresh token", "model": ErrorResponse}},
    summary="Issue a new access token",
)
async def refresh(
    data: RefreshRequest, db: AsyncSession = Depends(get_db_session)
) -> AccessTokenResponse:
    return await auth_service.refresh(db, data.refresh_token)


@router.get("/me", response_model=UserResponse, summary="Current user")
async def me(user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(user)


@router.put("/profile", response_model=UserResponse, summary="Update own profile")
async def update_profile(
    data: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    return await auth_service.update_profile(db, user, data)


@router.put(
    "/change-password",
    response_model=MessageResponse,
    responses={400: {"description": "Current password is incorrect", "model": ErrorResponse}},
    summary="Change own password",
)
async def change_password(
    data: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await auth_service.change_password(db, user, data)
    return MessageResponse(message="Password changed successfully")


@router.post(
    "/verify-email",
    response_model=UserResponse,
    responses={400: {"description": "Invalid or expired token", "model": ErrorResponse}},
    summary="Confirm an e-mail address",
)
async def verify_email(
    data: TokenRequest, db: AsyncSession = Depends(get_db_session)
) -> UserResponse:
    return await auth_service.verify_email(db, data.token)


@router.post(
    "/resend-verification",
    response_model=MessageResponse,
    summary="Send a fresh verification link",
)
async def resend_verification(
    data: EmailRequest, db: AsyncSession = Depends(get_db_session)
) -> MessageResponse:
    return MessageResponse(message=await auth_service.resend_verification(db, data.email))


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    summary="Request a password reset link",
)
async def forgot_password(
    data: EmailRequest, db: AsyncSession = Depends(get_db_session)
) -> MessageResponse:
    return MessageResponse(message=await auth_service.forgot_password(db, data.email))


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    responses={400: {"description": "Invalid or expired token", "model": ErrorResponse}},
    summary="Set a new password with a reset token",
)
async def reset_password(
    data: ResetPasswordRequest, db: AsyncSession = Depends(get_db_session)
) -> MessageResponse:
    await auth_service.reset_password(db, data.token, data.password)
    return MessageResponse(message="Password has been reset. You can now log in.")


@router.post("/logout", response_model=MessageResponse, summary="Log out")
async def logout(user: User = Depends(get_current_user)) -> MessageResponse:
    # Tokens are stateless; the client discards them
    logger.info("User %s logged out", user.id)
    return MessageResponse(message="Logged out successfully")
