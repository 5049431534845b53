"""Shared test fixtures for backend tests."""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from chaat.core.database import get_session
from chaat.models.chat import Character
from chaat.services.chat.store import MessageStore
from tests.fakes import FakeProvider

# In-memory SQLite with StaticPool so all connections (including threads) share one DB
test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def get_test_session():
    with Session(test_engine) as session:
        yield session


@pytest.fixture(autouse=True)
def setup_test_db():
    """Create all tables before each test, drop after."""
    import chaat.models.chat  # noqa: F401 - register models
    SQLModel.metadata.create_all(test_engine)
    yield
    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture
def engine():
    return test_engine


@pytest.fixture
def store():
    return MessageStore(test_engine)


@pytest.fixture
def character():
    """A character inserted directly into the test DB."""
    with Session(test_engine) as session:
        char = Character(id="char_test", name="Mochi", system_instruction="You are Mochi, a cat.")
        session.add(char)
        session.commit()
        session.refresh(char)
        return char


@pytest.fixture
def provider():
    """Fake model that streams two bubbles with a separator split across chunks."""
    return FakeProvider(["Hi there!|", "||How can", " I help?"])


async def noop_auto_reply():
    """No-op replacement for auto_reply_loop."""
    return


@pytest.fixture
def client(provider):
    """FastAPI TestClient with all external deps patched."""
    with (
        patch("chaat.core.database.engine", test_engine),
        patch("chaat.api.chat.engine", test_engine),
        patch("chaat.api.chat.get_llm_provider", return_value=provider),
        patch("chaat.main.auto_reply_loop", noop_auto_reply),
    ):
        from chaat.main import app

        # Use FastAPI's dependency override for get_session
        app.dependency_overrides[get_session] = get_test_session

        with TestClient(app) as c:
            yield c

        app.dependency_overrides.clear()
