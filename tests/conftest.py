"""
Pytest fixtures for session-auth tests.

Every test gets its own file-backed SQLite database so that separate
sessions (and the app under test) share one store.
"""

import os
import uuid
from typing import AsyncGenerator

# Configure before anything reads settings
os.environ.setdefault("ACCESS_TOKEN_SECRET", "test-access-secret-for-testing-only-000000")
os.environ.setdefault("REFRESH_TOKEN_SECRET", "test-refresh-secret-for-testing-only-11111")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./session_auth_test.db")

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from sessionauth.config import get_settings
from sessionauth.database import build_engine, build_session_maker
from sessionauth.kernel.identity.auth_service import AuthService
from sessionauth.kernel.identity.credential_store import CredentialStore
from sessionauth.kernel.identity.password import PasswordHasher
from sessionauth.kernel.identity.tokens import TokenService
from sessionauth.kernel.models import Base, Identity

get_settings.cache_clear()

ACCESS_SECRET = "unit-access-secret-0123456789abcdef0123"
REFRESH_SECRET = "unit-refresh-secret-0123456789abcdef012"
TEST_ROUNDS = 4


@pytest.fixture
def token_service() -> TokenService:
    """Token service with deterministic test secrets."""
    return TokenService(
        access_secret=ACCESS_SECRET,
        refresh_secret=REFRESH_SECRET,
        access_token_expire_minutes=15,
        refresh_token_expire_days=10,
    )


@pytest.fixture
def hasher() -> PasswordHasher:
    """Cheap bcrypt cost so the suite stays fast."""
    return PasswordHasher(rounds=TEST_ROUNDS)


@pytest.fixture
def transient_identity() -> Identity:
    """An identity that never touches the database."""
    return Identity(
        id=uuid.uuid4(),
        username="carol",
        email="carol@example.com",
        full_name="Carol Example",
        password_hash="not-a-real-hash",
    )


@pytest_asyncio.fixture
async def db_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh database with the identity schema."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'auth.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_maker(db_engine)


@pytest_asyncio.fixture
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def store(db_session: AsyncSession) -> CredentialStore:
    return CredentialStore(db_session)


@pytest.fixture
def auth_service(store, token_service, hasher) -> AuthService:
    return AuthService(store=store, token_service=token_service, hasher=hasher)


@pytest_asyncio.fixture
async def alice(auth_service: AuthService):
    """Registered identity alice / alice@x.com / pw1."""
    return await auth_service.register(
        username="Alice",
        email="alice@x.com",
        full_name="Alice Liddell",
        password="pw1",
    )
