"""
NewsNext Backend — Test Configuration (conftest.py)
====================================================

Environment variables are set before anything from `newsnext` is
imported: settings, the engine and the tenacity decorators all read them
at import time.

Fixture Hierarchy (all function-scoped):
    ├── db_engine:      fresh in-memory SQLite with every table created
    ├── db_session:     AsyncSession on that engine
    ├── make_user / make_ad / make_media: row factories
    ├── auth_headers:   Bearer header for a user
    ├── client:         HTTPX AsyncClient against the app, sharing db_session
    └── temp_uploads:   temporary uploads directory
"""

import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["UPLOADS_ROOT"] = tempfile.mkdtemp(prefix="newsnext_test_uploads_")
os.environ["BACKEND_URL"] = "http://localhost:5000"
os.environ["JWT_SECRET"] = "test-secret-not-for-production-use-0123456789"
os.environ["PASSWORD_HASH_ITERATIONS"] = "1000"
os.environ["RETRY_MAX_ATTEMPTS"] = "1"
os.environ["RETRY_MIN_WAIT"] = "0"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"
os.environ["STRIPE_SECRET_KEY"] = ""
os.environ["STRIPE_WEBHOOK_SECRET"] = ""
os.environ["EMAIL_API_KEY"] = ""
os.environ["GA4_MEASUREMENT_ID"] = ""
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import timedelta
from decimal import Decimal
from typing import Dict
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import newsnext.models  # noqa: F401
from newsnext.database import Base, get_db_session, utcnow
from newsnext.models.ad import Ad
from newsnext.models.enums import AdStatus, AdType, MediaType, ProcessingStatus, Role
from newsnext.models.media import Media
from newsnext.models.user import User
from newsnext.security import create_access_token, hash_password


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """In-memory SQLite; StaticPool keeps the single connection alive."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


# ══════════════════════════════════════════════════════════════════════════
# Row factories
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def make_user(db_session):
    """
    Usage:
        admin = await make_user(Role.ADMIN)
        bob = await make_user(email="bob@example.com", password="s3cret-pass")
    """

    async def _make(role: Role = Role.USER, email=None, password="password123", **fields) -> User:
        user = User(
            email=email or f"user-{uuid4().hex[:8]}@example.com",
            password_hash=hash_password(password),
            name=fields.pop("name", "Test User"),
            role=role,
            allowed_categories=[],
            **fields,
        )
        db_session.add(user)
        await db_session.flush()
        return user

    return _make


@pytest.fixture
def make_ad(db_session):
    """
    Active, paid HEADER banner running from yesterday to next week unless
    overridden.
    """

    async def _make(advertiser=None, **fields) -> Ad:
        now = utcnow()
        values = {
            "title": "Test Ad",
            "type": AdType.BANNER_TOP,
            "position": "HEADER",
            "image_url": "/uploads/ad.png",
            "target_url": "https://example.com",
            "start_date": now - timedelta(days=1),
            "end_date": now + timedelta(days=7),
            "status": AdStatus.ACTIVE,
            "price": Decimal("100.00"),
            "is_paid": True,
        }
        values.update(fields)
        ad = Ad(advertiser=advertiser, transactions=[], **values)
        db_session.add(ad)
        await db_session.flush()
        return ad

    return _make


@pytest.fixture
def make_media(db_session):
    async def _make(uploader=None, **fields) -> Media:
        values = {
            "url": "/uploads/videos/clip.mp4",
            "type": MediaType.VIDEO,
            "filename": "clip.mp4",
            "mime_type": "video/mp4",
            "processing_status": ProcessingStatus.PENDING,
        }
        values.update(fields)
        media = Media(uploader=uploader, **values)
        db_session.add(media)
        await db_session.flush()
        return media

    return _make


# ══════════════════════════════════════════════════════════════════════════
# HTTP
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def auth_headers():
    def _headers(user: User) -> Dict[str, str]:
        token = create_access_token(str(user.id), user.email, user.role.value)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest_asyncio.fixture
async def client(db_session):
    """
    AsyncClient against the real app; every request uses `db_session`, so
    rows created by the factories are visible to the routes.
    """
    from newsnext.main import app

    async def _override_session():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db_session] = _override_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()


@pytest.fixture
def temp_uploads(tmp_path):
    uploads = tmp_path / "uploads"
    uploads.mkdir()
    return uploads


@pytest.fixture
def sample_png_bytes():
    """PNG signature plus an IHDR chunk header; enough for libmagic."""
    return (
        b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"
        b"\x08\x06\x00\x00\x00\x1f\x15\xc4\x89"
    )
