"""Pytest configuration and fixtures."""
import os
import uuid
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config as AlembicConfig
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

# Ensure the application uses a dedicated SQLite database during tests
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
# Locks stay in-process during tests
os.environ["REDIS_URL"] = ""
os.environ["LOG_DIR"] = "logs/test"

from roulette.config import get_settings


BASE_DIR = Path(__file__).resolve().parent.parent
TEST_DB_PATH = Path("test.db").resolve()
settings = get_settings()


def _remove_test_db():
    if TEST_DB_PATH.exists():
        try:
            TEST_DB_PATH.unlink()
        except PermissionError:
            pass  # Still open on Windows; the next run removes it


@pytest.fixture(scope="session", autouse=True)
def apply_migrations():
    """Apply database migrations against the test database."""
    _remove_test_db()

    alembic_cfg = AlembicConfig(str(BASE_DIR / "alembic.ini"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.database_url)
    command.upgrade(alembic_cfg, "head")

    yield

    _remove_test_db()


@pytest.fixture
async def test_engine():
    """Create test database engine using the same database as migrations."""
    engine = create_async_engine(settings.database_url, echo=False, pool_pre_ping=True)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    """Session factory for tests that need several independent sessions."""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db_session(session_factory):
    """Create test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()
        await session.close()


@pytest.fixture
async def test_app(session_factory):
    """Create test app with database override."""
    from roulette.main import app
    from roulette.database import get_db

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            finally:
                await session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def unique_name():
    """Player names must be unique across the whole test database."""
    def _make(prefix: str = "player") -> str:
        return f"{prefix}_{uuid.uuid4().hex[:8]}"

    return _make


@pytest.fixture
async def player_factory(db_session, unique_name):
    """Factory for logging in fresh players with the configured starting funds."""
    from roulette.services import PlayerService

    player_service = PlayerService(db_session)

    async def _create_player(name: str | None = None):
        return await player_service.login(name or unique_name())

    return _create_player
