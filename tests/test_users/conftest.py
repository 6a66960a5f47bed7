"""Shared fixtures for user repository tests."""

from unittest.mock import AsyncMock

import pytest

from chat_backend.users.config import UsersConfig
from chat_backend.users.repository import UserRepository


@pytest.fixture
def mock_database():
    """Mock Database with async fetch methods."""
    db = AsyncMock()
    db.fetchrow = AsyncMock()
    db.fetch = AsyncMock(return_value=[])
    db.fetchval = AsyncMock(return_value=True)
    db.execute = AsyncMock(return_value="DELETE 0")
    return db


@pytest.fixture
def repo(mock_database):
    """UserRepository with a mock database."""
    return UserRepository(mock_database, UsersConfig(max_comment_length=20))


def chat_row(chat_id, user_id, role, content, created_at):
    return {
        "chat_id": chat_id,
        "user_id": user_id,
        "role": role,
        "content": content,
        "created_at": created_at,
    }


def feedback_row(feedback_id, user_id, rating, comment, created_at):
    return {
        "feedback_id": feedback_id,
        "user_id": user_id,
        "rating": rating,
        "comment": comment,
        "created_at": created_at,
    }


@pytest.fixture
def make_chat_row():
    return chat_row


@pytest.fixture
def make_feedback_row():
    return feedback_row
