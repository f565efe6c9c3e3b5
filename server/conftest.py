"""Root conftest — shared fixtures for all server tests."""

from __future__ import annotations

import os
import sys
from pathlib import Path

# Ensure server/ is on sys.path
_server_dir = str(Path(__file__).resolve().parent)
if _server_dir not in sys.path:
    sys.path.insert(0, _server_dir)

# Fixed signing key (keeps config from writing one to .env) and cheap bcrypt
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-unit-tests")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from sqlalchemy.orm import sessionmaker

from database import Base, make_engine
import models  # noqa: F401  register all models with Base

# In-memory SQLite, built the same way as the app engine
TEST_ENGINE = make_engine("sqlite:///:memory:")

TestSession = sessionmaker(bind=TEST_ENGINE, autoflush=False, expire_on_commit=False)


@pytest.fixture(autouse=True)
def _setup_db():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=TEST_ENGINE)
    yield
    Base.metadata.drop_all(bind=TEST_ENGINE)


@pytest.fixture
def db():
    """Yield a test database session."""
    session = TestSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def user(db):
    import bcrypt
    from models.user import User

    profile = User(
        username="testuser",
        email="testuser@example.com",
        password_hash=bcrypt.hashpw(b"testpass", bcrypt.gensalt(rounds=4)).decode(),
    )
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


@pytest.fixture
def session_token(db, user):
    """A live session token for ``user``."""
    from services.auth import _open_session

    token = _open_session(db, user.id)
    db.commit()
    return token


@pytest.fixture
def fake_llm():
    """Chat model double whose ``ainvoke`` returns a canned AIMessage."""
    from unittest.mock import AsyncMock, MagicMock

    from langchain_core.messages import AIMessage

    llm = MagicMock()
    llm.ainvoke = AsyncMock(return_value=AIMessage(content="Try a short walk and a glass of water."))
    return llm
