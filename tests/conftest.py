"""
Shared test configuration.

Settings are read at import time, so the environment is prepared here
before any ``forum_access`` module is imported.
"""

import os

os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key-with-enough-length-for-hs256")
os.environ.setdefault("MONTHLY_KEY_SALT", "s")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("REDIS_URL", "")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import datetime, timezone  # noqa: E402
from types import SimpleNamespace  # noqa: E402
from unittest.mock import AsyncMock  # noqa: E402
from uuid import uuid4  # noqa: E402

import pytest  # noqa: E402


@pytest.fixture
def mock_db():
    """Create a mock async database session"""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.flush = AsyncMock()
    return db


@pytest.fixture
def fixed_now():
    return datetime(2024, 5, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def sample_user():
    return SimpleNamespace(
        id=uuid4(),
        email="member@example.org",
        name="Forum Member",
        is_active=True,
        role_assignments=[],
    )
