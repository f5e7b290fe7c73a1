"""
Tattooed World Backend — Passwords, JWTs and One-Time Tokens
==============================================================

What:  Password hashing, access/refresh token issue and verification, and
       the random tokens mailed for password reset and e-mail verification.
How:   werkzeug.security for salted password hashes; PyJWT (HS256) for
       bearer tokens; secrets.token_urlsafe + SHA-256 for one-time tokens.
Who:   AuthService and the auth dependencies.

Token types:
    access   → 15 min, signed with JWT_SECRET, sent as `Authorization: Bearer`
    refresh  → 7 days, signed with JWT_REFRESH_SECRET (falls back to JWT_SECRET)
    Claims `sub`, `type`, `iat` and `exp` are required when decoding; a token
    of the wrong type is rejected even when its signature is valid.

One-time tokens:
    The raw token goes into the e-mail link; only its SHA-256 digest is
    stored, so a leaked database row cannot be replayed.
"""

import hashlib
import secrets
import uuid
from datetime import timedelta
from typing import Any, Dict, Tuple

import jwt
from werkzeug.security import check_password_hash, generate_password_hash

from tattooed_world.config import settings
from tattooed_world.exceptions import AuthenticationError
from tattooed_world.models.common import utcnow

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"

_REQUIRED_CLAIMS = ["sub", "type", "iat", "exp"]


# ── Passwords ─────────────────────────────────────────────────────────────

def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    return check_password_hash(password_hash, password)


# ── JWT ───────────────────────────────────────────────────────────────────

def _secret_for(token_type: str) -> str:
    return settings.refresh_secret if token_type == REFRESH_TOKEN else settings.jwt_secret


def _encode(user_id: uuid.UUID, role: str, token_type: str, ttl: timedelta) -> str:
    now = utcnow()
    payload = {
        "sub": str(user_id),
        "role": role,
        "type": token_type,
        "iat": now,
        "exp": now + ttl,
    }
    return jwt.encode(payload, _secret_for(token_type), algorithm=settings.jwt_algorithm)


def create_access_token(user_id: uuid.UUID, role: str) -> str:
    return _encode(
        user_id, role, ACCESS_TOKEN, timedelta(minutes=settings.access_token_ttl_minutes)
    )


def create_refresh_token(user_id: uuid.UUID, role: str) -> str:
    return _encode(
        user_id, role, REFRESH_TOKEN, timedelta(days=settings.refresh_token_ttl_days)
    )


def decode_token(token: str, expected_type: str = ACCESS_TOKEN) -> Dict[str, Any]:
    """
    Verify signature, expiry and type; return the claims.

    Raises:
        AuthenticationError: expired, tampered, malformed or wrong-type token
    """
    try:
        claims = jwt.decode(
            token,
            _secret_for(expected_type),
            algorithms=[settings.jwt_algorithm],
            options={"require": _REQUIRED_CLAIMS},
        )
    except jwt.ExpiredSignatureError as exc:
        raise AuthenticationError("Token has expired") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthenticationError("Invalid token") from exc

    if claims.get("type") != expected_type:
        raise AuthenticationError("Invalid token type")
    return claims


def user_id_from_claims(claims: Dict[str, Any]) -> uuid.UUID:
    try:
        return uuid.UUID(claims["sub"])
    except (KeyError, ValueError) as exc:
        raise AuthenticationError("Invalid token subject") from exc


# ── One-time tokens ───────────────────────────────────────────────────────

def hash_one_time_token(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def generate_one_time_token() -> Tuple[str, str]:
    """Returns (raw token for the e-mail link, digest for the database)."""
    raw = secrets.token_urlsafe(32)
    return raw, hash_one_time_token(raw)
