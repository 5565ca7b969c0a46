"""Shared fixtures: test settings and an in-memory SQLite engine with the audit table."""

import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")

from usage_audit.config.settings import get_settings  # noqa: E402
from usage_audit.infrastructure.database.session import init_schema  # noqa: E402


@pytest.fixture(autouse=True)
def reset_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sqlite_engine():
    """Single shared in-memory connection so every connect() sees the same table."""
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_schema(engine)
    yield engine
    engine.dispose()
