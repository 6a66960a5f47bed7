"""Tests for user record dataclasses and validation helpers."""

import re
from datetime import datetime, timezone

import pytest

from chat_backend.errors import InvalidIdentifierError, ValidationError
from chat_backend.users.schemas import (
    USER_ID_PATTERN,
    ChatEntry,
    FeedbackEntry,
    User,
    normalize_email,
    validate_rating,
    validate_user_id,
)


class TestNormalizeEmail:
    def test_trims_and_lowercases(self):
        assert normalize_email("  Alice@Example.COM \n") == "alice@example.com"

    @pytest.mark.parametrize("email", [None, "", "   ", 42])
    def test_missing_email_rejected(self, email):
        with pytest.raises(ValidationError, match="Email is required"):
            normalize_email(email)


class TestValidateUserId:
    def test_generated_ids_are_valid(self):
        user = User(email="a@example.com")
        assert USER_ID_PATTERN.match(user.user_id)
        assert validate_user_id(user.user_id) == user.user_id

    @pytest.mark.parametrize(
        "user_id",
        ["", "abc", "user_XYZ", "user_0123456789abc", "65a1f0c2e4b0a1b2c3d4e5f6", None, 7],
    )
    def test_malformed_ids_rejected(self, user_id):
        with pytest.raises(InvalidIdentifierError) as exc_info:
            validate_user_id(user_id)
        assert exc_info.value.code == "INVALID_USER_ID"
        assert exc_info.value.status_code == 400


class TestValidateRating:
    @pytest.mark.parametrize("rating", [1, 3, 5])
    def test_in_range(self, rating):
        assert validate_rating(rating) == rating

    @pytest.mark.parametrize("rating", [0, 6, -1, 100])
    def test_out_of_range(self, rating):
        with pytest.raises(ValidationError, match="Must be between 1 and 5"):
            validate_rating(rating)

    @pytest.mark.parametrize("rating", [True, "5", 4.5, None])
    def test_non_integer(self, rating):
        with pytest.raises(ValidationError, match="must be an integer"):
            validate_rating(rating)


class TestChatEntry:
    def test_defaults(self):
        entry = ChatEntry(user_id="user_0123456789ab", role="user", content="hi")
        assert re.match(r"^chat_[0-9a-f]{12}$", entry.chat_id)
        assert entry.created_at.tzinfo is not None

    def test_blank_content_rejected(self):
        with pytest.raises(ValidationError, match="Content is required"):
            ChatEntry(user_id="user_0123456789ab", role="user", content="  ")

    def test_blank_role_rejected(self):
        with pytest.raises(ValidationError, match="Role is required"):
            ChatEntry(user_id="user_0123456789ab", role="", content="hi")

    def test_to_dict(self):
        ts = datetime(2026, 2, 5, 10, 0, 0, tzinfo=timezone.utc)
        entry = ChatEntry(
            chat_id="chat_aaaaaaaaaaaa",
            user_id="user_0123456789ab",
            role="assistant",
            content="hello",
            created_at=ts,
        )
        assert entry.to_dict() == {
            "id": "chat_aaaaaaaaaaaa",
            "role": "assistant",
            "content": "hello",
            "timestamp": "2026-02-05T10:00:00+00:00",
        }


class TestFeedbackEntry:
    def test_valid(self):
        entry = FeedbackEntry(user_id="user_0123456789ab", rating=4, comment="nice")
        assert entry.feedback_id.startswith("feedback_")
        assert entry.to_dict()["rating"] == 4

    @pytest.mark.parametrize("rating", [0, 6])
    def test_rating_out_of_range(self, rating):
        with pytest.raises(ValidationError):
            FeedbackEntry(user_id="user_0123456789ab", rating=rating, comment="x")

    def test_comment_required(self):
        with pytest.raises(ValidationError, match="Comment is required"):
            FeedbackEntry(user_id="user_0123456789ab", rating=3, comment="")


class TestUser:
    def test_to_dict_includes_entries(self, sample_user, sample_chats, sample_feedback):
        sample_user.chats = sample_chats
        sample_user.feedback = sample_feedback

        data = sample_user.to_dict()

        assert data["userId"] == "user_0123456789ab"
        assert data["email"] == "a@example.com"
        assert [c["id"] for c in data["chats"]] == ["chat_aaaaaaaaaaaa", "chat_bbbbbbbbbbbb"]
        assert [f["rating"] for f in data["feedback"]] == [5, 2]
