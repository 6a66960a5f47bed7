"""Shared fixtures for API tests."""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from chat_backend.api.app import create_app
from chat_backend.api.dependencies import get_database, get_user_repository
from chat_backend.users.repository import UserRepository


@pytest.fixture
def mock_user_repo():
    """Mock UserRepository."""
    repo = AsyncMock(spec=UserRepository)
    repo.list_chats = AsyncMock(return_value=[])
    repo.list_feedback = AsyncMock(return_value=[])
    repo.clear_chats = AsyncMock(return_value=0)
    return repo


@pytest.fixture
def mock_db():
    """Mock Database reporting a healthy connection."""
    db = AsyncMock()
    db.health_check = AsyncMock(return_value=True)
    return db


@pytest.fixture
def app(mock_user_repo, mock_db):
    """FastAPI app with storage dependencies overridden."""
    app = create_app()
    app.dependency_overrides[get_user_repository] = lambda: mock_user_repo
    app.dependency_overrides[get_database] = lambda: mock_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """TestClient without lifespan, so no database connection is attempted."""
    return TestClient(app)
