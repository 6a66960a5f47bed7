"""Schema definitions for user records.

A user owns two append-only sequences: chat entries (returned oldest
first) and feedback entries (returned newest first). Each dataclass maps
1:1 to a database table.
"""

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from chat_backend.errors import InvalidIdentifierError, ValidationError

USER_ID_PATTERN = re.compile(r"^user_[0-9a-f]{12}$")

MIN_RATING = 1
MAX_RATING = 5


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_email(email: Any) -> str:
    """Trim and lowercase an email address.

    Raises:
        ValidationError: If the email is missing or blank.
    """
    if not isinstance(email, str) or not email.strip():
        raise ValidationError("Email is required")
    return email.strip().lower()


def validate_user_id(user_id: Any) -> str:
    """Check that ``user_id`` is a well-formed user identifier.

    Runs before any lookup so malformed IDs never reach storage.
    """
    if not isinstance(user_id, str) or not USER_ID_PATTERN.match(user_id):
        raise InvalidIdentifierError(user_id)
    return user_id


def validate_rating(rating: Any) -> int:
    """Check that ``rating`` is an integer between 1 and 5."""
    # bool is an int subclass; True must not count as a rating of 1
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValidationError("Rating must be an integer")
    if not (MIN_RATING <= rating <= MAX_RATING):
        raise ValidationError(
            f"Invalid rating {rating}. Must be between {MIN_RATING} and {MAX_RATING}."
        )
    return rating


def _require_text(value: Any, message: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(message)
    return value


@dataclass
class ChatEntry:
    """One message in a user's chat history.

    Attributes:
        user_id: Owner of the entry.
        role: Free-form speaker label (e.g. "user", "assistant").
        content: Message text.
        chat_id: Identifier (chat_{uuid_hex[:12]}), returned as messageId.
        created_at: When the entry was appended.
    """

    user_id: str
    role: str
    content: str
    chat_id: str = field(default_factory=lambda: _new_id("chat"))
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        _require_text(self.role, "Role is required")
        _require_text(self.content, "Content is required")

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "id": self.chat_id,
            "role": self.role,
            "content": self.content,
            "timestamp": self.created_at.isoformat(),
        }


@dataclass
class FeedbackEntry:
    """A rating left by a user.

    Attributes:
        user_id: Owner of the entry.
        rating: Score from 1 (poor) to 5 (excellent).
        comment: Free-text comment (required).
        feedback_id: Identifier (feedback_{uuid_hex[:12]}).
        created_at: When the feedback was submitted.
    """

    user_id: str
    rating: int
    comment: str
    feedback_id: str = field(default_factory=lambda: _new_id("feedback"))
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        validate_rating(self.rating)
        _require_text(self.comment, "Comment is required")

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "id": self.feedback_id,
            "rating": self.rating,
            "comment": self.comment,
            "timestamp": self.created_at.isoformat(),
        }


@dataclass
class User:
    """A registered user and, when loaded in full, their entries."""

    email: str
    user_id: str = field(default_factory=lambda: _new_id("user"))
    created_at: datetime = field(default_factory=_utcnow)
    chats: list[ChatEntry] = field(default_factory=list)
    feedback: list[FeedbackEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "email": self.email,
            "createdAt": self.created_at.isoformat(),
            "chats": [c.to_dict() for c in self.chats],
            "feedback": [f.to_dict() for f in self.feedback],
        }
