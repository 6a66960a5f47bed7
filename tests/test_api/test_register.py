"""Tests for the registration endpoint."""

from datetime import datetime, timezone

from chat_backend.config.settings import get_settings
from chat_backend.errors import StorageError, ValidationError
from chat_backend.users.schemas import User


def _user(user_id="user_0123456789ab", email="a@example.com"):
    return User(
        user_id=user_id,
        email=email,
        created_at=datetime(2026, 2, 5, 10, 0, 0, tzinfo=timezone.utc),
    )


class TestRegister:
    def test_new_user(self, client, mock_user_repo):
        mock_user_repo.create_or_get_user.return_value = (_user(), True)

        resp = client.post("/api/register", json={"email": "a@example.com"})

        assert resp.status_code == 200
        assert resp.json() == {"userId": "user_0123456789ab", "message": "User registered"}
        mock_user_repo.create_or_get_user.assert_awaited_once_with("a@example.com")

    def test_repeat_registration_returns_same_id(self, client, mock_user_repo):
        mock_user_repo.create_or_get_user.side_effect = [
            (_user(), True),
            (_user(), False),
        ]

        first = client.post("/api/register", json={"email": "a@example.com"})
        second = client.post("/api/register", json={"email": " A@Example.com "})

        assert first.json()["userId"] == second.json()["userId"]
        assert second.json()["message"] == "User already registered"

    def test_missing_email(self, client, mock_user_repo):
        mock_user_repo.create_or_get_user.side_effect = ValidationError("Email is required")

        resp = client.post("/api/register", json={})

        assert resp.status_code == 400
        assert resp.json() == {"error": "Email is required", "code": "VALIDATION_ERROR"}

    def test_malformed_body(self, client, mock_user_repo):
        resp = client.post(
            "/api/register",
            content="{not json",
            headers={"Content-Type": "application/json"},
        )

        assert resp.status_code == 400
        assert resp.json()["code"] == "VALIDATION_ERROR"
        mock_user_repo.create_or_get_user.assert_not_awaited()

    def test_wrong_email_type(self, client, mock_user_repo):
        resp = client.post("/api/register", json={"email": 123})

        assert resp.status_code == 400
        assert "email" in resp.json()["error"]

    def test_storage_failure_shows_detail_in_development(self, client, mock_user_repo):
        err = StorageError("Failed to register user", "register_user")
        err.__cause__ = ConnectionRefusedError("connection refused")
        mock_user_repo.create_or_get_user.side_effect = err

        resp = client.post("/api/register", json={"email": "a@example.com"})

        assert resp.status_code == 500
        body = resp.json()
        assert body["error"] == "Failed to register user"
        assert body["code"] == "STORAGE_ERROR"
        assert body["detail"] == "connection refused"

    def test_storage_failure_hides_detail_in_production(self, client, mock_user_repo, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        get_settings.cache_clear()
        err = StorageError("Failed to register user", "register_user")
        err.__cause__ = ConnectionRefusedError("connection refused")
        mock_user_repo.create_or_get_user.side_effect = err

        resp = client.post("/api/register", json={"email": "a@example.com"})

        assert resp.status_code == 500
        assert "detail" not in resp.json()
