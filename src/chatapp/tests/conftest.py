"""
Core pytest configuration for the entire test suite.

Only the database setup and logging bootstrap shared by every layer lives
here. Domain fixtures are in:
- tests/test_fixtures/repository_fixtures.py
- tests/test_fixtures/service_fixtures.py
"""

from __future__ import annotations

# -------------------------------
# Standard library imports
# -------------------------------
import logging
import os
from typing import AsyncGenerator
from urllib.parse import urlparse

# -------------------------------
# Early logging tuning
# -------------------------------
# Silence noisy third-party loggers before anything imports them.
NOISY_LOGGERS = (
    "faker",
    "faker.factory",
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.engine.Engine",
    "asyncio",
    "httpx",
    "aiosqlite",
)
for _name in NOISY_LOGGERS:
    logging.getLogger(_name).setLevel(logging.WARNING)

# -------------------------------
# Third-party / project imports
# -------------------------------
import pytest
from pytest import FixtureRequest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from chatapp.config.settings import get_settings
from chatapp.core.logging.builder import setup_logging
from chatapp.database.base import Base
import chatapp.models  # noqa: F401  registers tables and counter listeners

settings = get_settings()
logger = logging.getLogger(__name__)


@pytest.fixture(scope="session", autouse=True)
def configure_logging(request: FixtureRequest):
    """
    Install the application's dictConfig once per session, then re-attach
    pytest's capture handler (dictConfig drops it) so `caplog` keeps working.
    """
    setup_logging(settings)

    caplog_plugin = request.config.pluginmanager.getplugin("logging-plugin")
    handler = getattr(caplog_plugin, "caplog_handler", None)
    if handler is not None:
        logging.getLogger().addHandler(handler)

    yield


# ------------------------------------------------------------------------------------------------
# Test database URL
# ------------------------------------------------------------------------------------------------
def safe_log_db_url(db_url: str) -> str:
    """Database URL without credentials, for logging."""
    parsed = urlparse(db_url)
    return f"{parsed.scheme}://{parsed.hostname or ''}:{parsed.port or ''}/{parsed.path.lstrip('/')}"


def get_test_database_url() -> str:
    """
    1. `TEST_DATABASE_URL` environment variable (CI override, e.g. PostgreSQL).
    2. The app's DATABASE_URL when `TESTING=true` and a test database is configured.
    3. In-memory SQLite.
    """
    if test_url := os.getenv("TEST_DATABASE_URL"):
        return test_url

    if settings.TESTING and settings.TEST_DB_NAME:
        return settings.DATABASE_URL

    return "sqlite+aiosqlite://"


TEST_DATABASE_URL = get_test_database_url()
logger.info("tests.database", extra={"url": safe_log_db_url(TEST_DATABASE_URL)})


def _make_engine(url: str) -> AsyncEngine:
    if not url.startswith("sqlite"):
        return create_async_engine(url, pool_pre_ping=True)

    # One shared in-memory connection for the whole test
    engine = create_async_engine(
        url,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite's own transaction handling breaks SAVEPOINTs; let SQLAlchemy emit BEGIN itself
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


@pytest.fixture()
async def async_engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    Function-scoped engine with a freshly created schema. Function scope keeps
    the engine on the same event loop as the test using it.
    """
    engine = _make_engine(TEST_DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture()
async def db_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """
    Transaction-per-test session.

    The session joins an outer transaction on a dedicated connection and wraps
    its own work in SAVEPOINTs, so `commit()` and `rollback()` called by the
    code under test never reach the database. The outer transaction is rolled
    back at teardown.

    Note: a rollback inside a test expires loaded objects. Copy ids into
    locals before calling an operation that is expected to fail.
    """
    async with async_engine.connect() as connection:
        await connection.begin()
        session = AsyncSession(
            bind=connection,
            expire_on_commit=False,
            join_transaction_mode="create_savepoint",
        )
        try:
            yield session
        finally:
            await session.close()
            await connection.rollback()


from .test_fixtures.repository_fixtures import (  # noqa: E402,F401
    make_user,
    users,
    user_repository,
    conversation_repository,
    member_repository,
    message_repository,
    call_repository,
    group_conversation,
    one_to_one_conversation,
)
from .test_fixtures.service_fixtures import (  # noqa: E402,F401
    conversation_service,
)
