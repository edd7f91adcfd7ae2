"""Pytest configuration and fixtures for autohistory.

Sync fixtures run on a temporary SQLite file; async fixtures use aiosqlite.
Both create the bundled auto_history table plus the test entities from
history_models. The db_session fixture uses the configured DATABASE_URL
(see autohistory.infrastructure.persistence.database) and skips without it.
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session, sessionmaker

from autohistory.core.config import get_settings
from autohistory.infrastructure.persistence import database
from autohistory.infrastructure.persistence.database import Base
from autohistory.infrastructure.persistence.session import AutoHistorySession

import history_models  # noqa: F401  (registers test tables on Base.metadata)


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Each test reads settings from the current environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def engine(tmp_path):
    """SQLite engine on a temp file with all tables created."""
    engine = create_engine(f"sqlite:///{tmp_path / 'history.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker[Session]:
    """Factory for history-recording sessions."""
    return sessionmaker(bind=engine, class_=AutoHistorySession, expire_on_commit=False)


@pytest.fixture
def session(session_factory) -> Session:
    with session_factory() as session:
        yield session


@pytest.fixture
def expiring_session(engine) -> Session:
    """History-recording session with the default expire_on_commit=True."""
    with sessionmaker(bind=engine, class_=AutoHistorySession)() as session:
        yield session


@pytest.fixture
async def async_session_factory(tmp_path) -> async_sessionmaker[AsyncSession]:
    """Async factory (aiosqlite) whose sessions record history."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'history_async.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(
        engine, sync_session_class=AutoHistorySession, expire_on_commit=False
    )
    await engine.dispose()


@pytest.fixture
async def db_session() -> AsyncSession:
    """Session from the configured engine. Rolls back after test.

    Requires DATABASE_URL with the schema in place. Skips (pytest.skip) when
    it is not set. Use @pytest.mark.requires_db on tests that need it; run
    without a database via: pytest -m 'not requires_db'.
    """
    database._ensure_engine()
    if database.AsyncSessionLocal is None:
        pytest.skip("SQL database not configured: set DATABASE_URL")
    async with database.AsyncSessionLocal() as session:
        yield session
        await session.rollback()
