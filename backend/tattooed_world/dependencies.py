"""
Tattooed World Backend — Auth Dependencies
============================================

What:  FastAPI dependencies that turn the Authorization header into a User
       and enforce roles.
How:   HTTPBearer(auto_error=False) so a missing header becomes our own
       AuthenticationError (401 JSON body) instead of FastAPI's 403.
Who:   Declared in route signatures: `user: User = Depends(get_current_user)`.

Ordering:
    Role dependencies run before the route body, so a wrong role gets 403
    before any resource lookup can answer 404.
"""

from typing import Callable, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tattooed_world.database import get_db_session
from tattooed_world.exceptions import AuthenticationError, PermissionDeniedError
from tattooed_world.models import ADMIN_ROLES, ArtistProfile, User, VerificationStatus
from tattooed_world.services.auth_service import auth_service

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Not authorized to access this route")
    return await auth_service.resolve_access_token(db, credentials.credentials)


def require_roles(*roles: str) -> Callable:
    allowed = set(roles)

    async def dependency(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            raise PermissionDeniedError(
                f"User role {user.role} is not authorized to access this route"
            )
        return user

    return dependency


require_admin = require_roles(*ADMIN_ROLES)


async def require_verified_artist(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ArtistProfile:
    """Returns the caller's approved ArtistProfile, or 403."""
    profile = (
        await db.execute(select(ArtistProfile).where(ArtistProfile.user_id == user.id))
    ).scalar_one_or_none()
    if profile is None:
        raise PermissionDeniedError("Artist profile required")
    if profile.verification_status != VerificationStatus.APPROVED.value:
        raise PermissionDeniedError("Your artist profile must be approved first")
    return profile
