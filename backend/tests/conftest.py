"""
Tattooed World Backend — Test Configuration (conftest.py)
===========================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.
Who:   Used by all test files in the tests/ directory.
When:  Fixtures are created per-test; every test gets a fresh SQLite file.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── db_engine: aiosqlite engine on a temp file, schema created from the models
    ├── session_factory: async_sessionmaker bound to db_engine
    ├── db_session: one open session for service-level tests
    ├── app: a fresh FastAPI app whose get_db_session uses session_factory
    ├── test_client: HTTPX AsyncClient talking to `app`
    └── client_user / artist_user / admin_user: seeded accounts with tokens
"""

import os

# Override settings for testing BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET"] = "test-jwt-secret-with-enough-length-for-hs256"
os.environ["JWT_REFRESH_SECRET"] = "test-refresh-secret-with-enough-length"
os.environ["GOOGLE_MAPS_API_KEY"] = "test-maps-key"
os.environ["GEOCODE_ON_CREATE"] = "false"
os.environ["REQUIRE_EMAIL_VERIFICATION"] = "false"
os.environ["RETRY_MIN_WAIT"] = "0"
os.environ["RETRY_MAX_WAIT"] = "0"
os.environ["RETRY_JITTER"] = "0"
os.environ["RATE_LIMIT_REQUESTS"] = "1000000"
os.environ["SMTP_HOST"] = ""
os.environ["LOG_LEVEL"] = "WARNING"  # Reduce noise during tests

from dataclasses import dataclass
from typing import Dict, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

import tattooed_world.models  # noqa: F401  (registers every table on Base.metadata)
from tattooed_world.database import Base, get_db_session
from tattooed_world.models import ArtistProfile, Studio, User, UserRole, VerificationStatus
from tattooed_world.services import security
from tattooed_world.services.geocode_cache import geocode_cache
from tattooed_world.services.geocoder import geocoder

DEFAULT_PASSWORD = "password123"


# ══════════════════════════════════════════════════════════════════════════
# Seed helpers
# ══════════════════════════════════════════════════════════════════════════

@dataclass
class SeededUser:
    """A persisted account plus a ready-to-use Authorization header."""

    id: object
    email: str
    role: str
    headers: Dict[str, str]
    artist_id: Optional[object] = None


def auth_headers(user_id, role: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {security.create_access_token(user_id, role)}"}


async def create_user(
    session_factory,
    email: str,
    role: str = UserRole.CLIENT.value,
    password: str = DEFAULT_PASSWORD,
    **fields,
) -> SeededUser:
    fields.setdefault("first_name", "Test")
    fields.setdefault("last_name", "User")
    fields.setdefault("email_verified", True)
    async with session_factory() as db:
        user = User(
            email=email,
            password_hash=security.hash_password(password),
            role=role,
            **fields,
        )
        db.add(user)
        await db.commit()
        return SeededUser(id=user.id, email=email, role=role, headers=auth_headers(user.id, role))


async def create_artist(
    session_factory,
    email: str,
    status: str = VerificationStatus.APPROVED.value,
    **profile_fields,
) -> SeededUser:
    profile_fields.setdefault("city", "London")
    seeded = await create_user(session_factory, email, role=UserRole.ARTIST.value)
    async with session_factory() as db:
        profile = ArtistProfile(
            user_id=seeded.id,
            verification_status=status,
            is_verified=status == VerificationStatus.APPROVED.value,
            **profile_fields,
        )
        db.add(profile)
        await db.commit()
        seeded.artist_id = profile.id
    return seeded


async def create_studio(session_factory, title: str, **fields) -> Studio:
    from tattooed_world.services.studio_service import slugify

    async with session_factory() as db:
        studio = Studio(title=title, slug=slugify(title), **fields)
        db.add(studio)
        await db.commit()
        return studio


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """
    Provides an aiosqlite engine on a throwaway file with the full schema.

    NullPool gives every session its own connection, so a test's seeding
    session and the request session never share a transaction.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """One session for tests that call services directly."""
    async with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def reset_geocoding_singletons():
    """The process-wide cache and circuit breaker must not leak between tests."""
    geocode_cache._memory.clear()
    geocode_cache.hits = 0
    geocode_cache.misses = 0
    geocoder.circuit_breaker.reset()
    yield
    geocode_cache._memory.clear()
    geocoder.circuit_breaker.reset()


# ══════════════════════════════════════════════════════════════════════════
# API Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def app(session_factory):
    """A fresh app whose request sessions come from the test database."""
    from tattooed_world.main import create_app

    application = create_app()

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db_session] = override_get_db_session
    return application


@pytest_asyncio.fixture
async def test_client(app):
    """
    Provides an async HTTP test client for endpoint testing.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def client_user(session_factory) -> SeededUser:
    return await create_user(session_factory, "client@example.com")


@pytest_asyncio.fixture
async def artist_user(session_factory) -> SeededUser:
    return await create_artist(session_factory, "artist@example.com")


@pytest_asyncio.fixture
async def admin_user(session_factory) -> SeededUser:
    return await create_user(session_factory, "admin@example.com", role=UserRole.ADMIN.value)
