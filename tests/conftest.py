"""Pytest fixtures for chat-backend tests."""

from datetime import datetime, timedelta, timezone

import pytest

from chat_backend.config.settings import get_settings
from chat_backend.users.schemas import ChatEntry, FeedbackEntry, User

USER_ID = "user_0123456789ab"
BASE_TIME = datetime(2026, 2, 5, 10, 0, 0, tzinfo=timezone.utc)


def pytest_addoption(parser):
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="Run tests that need a live PostgreSQL",
    )


def pytest_collection_modifyitems(config, items):
    if config.getoption("--integration"):
        return
    skip_integration = pytest.mark.skip(reason="needs --integration")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Drop cached settings so env patches in one test don't leak."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sample_user() -> User:
    return User(
        user_id=USER_ID,
        email="a@example.com",
        created_at=BASE_TIME,
    )


@pytest.fixture
def sample_chats() -> list[ChatEntry]:
    """Two chat entries, oldest first."""
    return [
        ChatEntry(
            chat_id="chat_aaaaaaaaaaaa",
            user_id=USER_ID,
            role="user",
            content="hi",
            created_at=BASE_TIME,
        ),
        ChatEntry(
            chat_id="chat_bbbbbbbbbbbb",
            user_id=USER_ID,
            role="assistant",
            content="hello! how can I help?",
            created_at=BASE_TIME + timedelta(seconds=2),
        ),
    ]


@pytest.fixture
def sample_feedback() -> list[FeedbackEntry]:
    """Two feedback entries, newest first."""
    return [
        FeedbackEntry(
            feedback_id="feedback_bbbbbbbbbbbb",
            user_id=USER_ID,
            rating=5,
            comment="Much better now",
            created_at=BASE_TIME + timedelta(hours=1),
        ),
        FeedbackEntry(
            feedback_id="feedback_aaaaaaaaaaaa",
            user_id=USER_ID,
            rating=2,
            comment="Slow answers",
            created_at=BASE_TIME,
        ),
    ]
