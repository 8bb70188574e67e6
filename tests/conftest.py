"""Shared test fixtures for pytest"""
import os

# Settings are read at import time; configure before importing the app
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["REDIS_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from main import app
from src.domain.enums import SystemRole
from src.infrastructure.persistence import models  # noqa: F401
from src.infrastructure.persistence.database import Base, get_db, get_db_transactional
from src.infrastructure.persistence.models.user import User
from src.infrastructure.security.jwt import create_access_token
from src.infrastructure.security.password import get_password_hash

TEST_DATABASE_URL = "sqlite+aiosqlite://"
TEST_PASSWORD = "testpass123"


@pytest.fixture
async def test_engine():
    """In-memory database shared by every connection of one test"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def test_db(test_engine):
    """Create test database session"""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
        autocommit=False,
    )

    async with async_session() as session:
        yield session


@pytest.fixture
async def client(test_db):
    """HTTP client for API testing"""

    async def override_get_db():
        yield test_db

    async def override_get_db_transactional():
        try:
            yield test_db
            await test_db.commit()
        except Exception:
            await test_db.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_db_transactional] = override_get_db_transactional

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _create_user(db: AsyncSession, username: str, role: str | None) -> dict:
    user = User(
        username=username,
        email=f"{username}@clinic.test",
        full_name=username.replace("_", " ").title(),
        hashed_password=get_password_hash(TEST_PASSWORD),
        role=role or "",
        is_active=True,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    # Plain values: ORM instances expire when a request rolls back the shared session
    return {"id": user.id, "username": user.username, "role": role}


def _headers(user: dict) -> dict[str, str]:
    claims = {"sub": user["id"], "username": user["username"]}
    if user["role"]:
        claims["role"] = user["role"]
    return {"Authorization": f"Bearer {create_access_token(data=claims)}"}


@pytest.fixture
async def master_admin_user(test_db):
    return await _create_user(test_db, "master_admin", SystemRole.MASTER_ADMIN.value)


@pytest.fixture
async def admin_user(test_db):
    return await _create_user(test_db, "clinic_admin", SystemRole.ADMIN.value)


@pytest.fixture
async def doctor_user(test_db):
    return await _create_user(test_db, "dr_house", SystemRole.DOCTOR.value)


@pytest.fixture
async def patient_user(test_db):
    return await _create_user(test_db, "jane_patient", SystemRole.PATIENT.value)


@pytest.fixture
def master_admin_headers(master_admin_user):
    return _headers(master_admin_user)


@pytest.fixture
def admin_headers(admin_user):
    return _headers(admin_user)


@pytest.fixture
def doctor_headers(doctor_user):
    return _headers(doctor_user)


@pytest.fixture
def patient_headers(patient_user):
    return _headers(patient_user)
