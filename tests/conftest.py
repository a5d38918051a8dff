"""Pytest configuration: environment loading, database fixtures and opt-in suites.

.querykit_env is loaded FIRST (if present) so tests never pick up query
logging settings from the developer's shell by accident.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

_QUERYKIT_ENV_FILE = Path(__file__).parent.parent / ".querykit_env"
if _QUERYKIT_ENV_FILE.exists():
    load_dotenv(_QUERYKIT_ENV_FILE, override=True)

# Keep test output free of the default stderr error sink
os.environ.setdefault("QUERYKIT_ERROR_LOG_TO_STDERR", "false")

import io
import re
from typing import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Connection
from sqlalchemy.engine.url import make_url

from querykit.config import get_settings
from querykit.io.database import DBX, QueryLogger

POSTGRES_OPTION = "run_postgres_tests"
POSTGRES_MARK = "postgres_suite"
POSTGRES_ENV = "RUN_POSTGRES_TESTS"
POSTGRES_URL_ENV = "QUERYKIT_TEST_DATABASE_URL"


def _validate_test_database(dsn: str) -> bool:
    """Ensure we're not connected to a production database.

    Examples:
        >>> _validate_test_database("postgresql://localhost/querykit_test")
        True
        >>> _validate_test_database("postgresql://localhost/orders")
        Traceback (most recent call last):
        ...
        RuntimeError: Refusing to run tests against non-test database...
    """
    db_name = make_url(dsn).database
    if not db_name:
        raise RuntimeError("Refusing to run tests against empty/missing database name.")

    if not re.search(r"(test|tmp|dev|local|sandbox)", db_name, re.IGNORECASE):
        raise RuntimeError(
            f"Refusing to run tests against non-test database: {db_name}. "
            f"Test databases must contain one of: test, tmp, dev, local, sandbox."
        )
    return True


def _env_enabled(name: str) -> bool:
    """Return True when the opt-in environment flag is set to '1'."""
    return os.getenv(name) == "1"


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register the CLI flag mirroring RUN_POSTGRES_TESTS."""
    parser.addoption(
        "--run-postgres-tests",
        action="store_true",
        dest=POSTGRES_OPTION,
        default=_env_enabled(POSTGRES_ENV),
        help="Run the PostgreSQL suite "
        "(set RUN_POSTGRES_TESTS=1 or pass --run-postgres-tests).",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip the PostgreSQL suite unless explicitly enabled."""
    if config.getoption(POSTGRES_OPTION):
        return

    skip_postgres = pytest.mark.skip(
        reason="PostgreSQL suite disabled (use --run-postgres-tests or RUN_POSTGRES_TESTS=1)"
    )
    for item in items:
        if POSTGRES_MARK in item.keywords:
            item.add_marker(skip_postgres)


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> Generator[None, None, None]:
    """Make every test read settings from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sqlite_connection() -> Generator[Connection, None, None]:
    """In-memory SQLite connection with an empty ``person`` table."""
    engine = create_engine("sqlite://")
    with engine.connect() as conn:
        conn.exec_driver_sql(
            "create table person (id integer, name text, location text, is_alive boolean)"
        )
        conn.commit()
        yield conn
    engine.dispose()


@pytest.fixture
def sinks() -> dict[str, io.StringIO]:
    return {"error": io.StringIO(), "debug": io.StringIO(), "slow": io.StringIO()}


@pytest.fixture
def db(sqlite_connection: Connection) -> Generator[DBX, None, None]:
    """DBX handle on SQLite with no channel attached."""
    handle = DBX(sqlite_connection, QueryLogger())
    yield handle
    handle.close()


@pytest.fixture
def postgres_connection() -> Generator[Connection, None, None]:
    """Connection to the opt-in PostgreSQL test database."""
    dsn = os.getenv(POSTGRES_URL_ENV)
    if not dsn:
        pytest.skip(f"{POSTGRES_URL_ENV} not set")
    _validate_test_database(dsn)

    engine = create_engine(dsn)
    with engine.connect() as conn:
        yield conn
        conn.rollback()
    engine.dispose()
