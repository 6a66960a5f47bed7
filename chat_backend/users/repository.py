"""User repository: registration plus chat and feedback persistence.

Each chat or feedback entry is its own row, so an append is a single
``INSERT`` and concurrent appends for the same user cannot overwrite
each other. Driver failures surface as ``StorageError``.
"""

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import asyncpg

from chat_backend.errors import StorageError, UserNotFoundError, ValidationError
from chat_backend.observability.metrics import get_metrics
from chat_backend.storage.database import Database
from chat_backend.users.config import UsersConfig
from chat_backend.users.schemas import (
    ChatEntry,
    FeedbackEntry,
    User,
    normalize_email,
    validate_rating,
    validate_user_id,
)

logger = logging.getLogger(__name__)

_CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS users (
    user_id    TEXT PRIMARY KEY,
    email      TEXT NOT NULL UNIQUE,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS chat_entries (
    chat_id    TEXT PRIMARY KEY,
    user_id    TEXT NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
    role       TEXT NOT NULL,
    content    TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_chat_entries_user_created
    ON chat_entries(user_id, created_at);

CREATE TABLE IF NOT EXISTS feedback_entries (
    feedback_id TEXT PRIMARY KEY,
    user_id     TEXT NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
    rating      SMALLINT NOT NULL CHECK (rating BETWEEN 1 AND 5),
    comment     TEXT NOT NULL,
    created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_feedback_entries_user_created
    ON feedback_entries(user_id, created_at DESC);
"""

_INSERT_USER_SQL = """
INSERT INTO users (user_id, email, created_at)
VALUES ($1, $2, $3)
ON CONFLICT (email) DO NOTHING
RETURNING *
"""

_USER_EXISTS_SQL = "SELECT EXISTS(SELECT 1 FROM users WHERE user_id = $1)"

# Appends only insert when the owner exists; no row back means unknown user.
_APPEND_CHAT_SQL = """
INSERT INTO chat_entries (chat_id, user_id, role, content, created_at)
SELECT $1, $2, $3, $4, $5
WHERE EXISTS (SELECT 1 FROM users WHERE user_id = $2)
RETURNING *
"""

_APPEND_FEEDBACK_SQL = """
INSERT INTO feedback_entries (feedback_id, user_id, rating, comment, created_at)
SELECT $1, $2, $3, $4, $5
WHERE EXISTS (SELECT 1 FROM users WHERE user_id = $2)
RETURNING *
"""

_LIST_CHATS_SQL = """
SELECT * FROM chat_entries
WHERE user_id = $1
ORDER BY created_at ASC, chat_id ASC
"""

_LIST_FEEDBACK_SQL = """
SELECT * FROM feedback_entries
WHERE user_id = $1
ORDER BY created_at DESC, feedback_id DESC
"""

_STORAGE_EXCEPTIONS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


def _row_to_user(row: Any) -> User:
    """Convert an asyncpg Record to a User (without entries)."""
    return User(
        user_id=row["user_id"],
        email=row["email"],
        created_at=row["created_at"],
    )


def _row_to_chat(row: Any) -> ChatEntry:
    """Convert an asyncpg Record to a ChatEntry."""
    return ChatEntry(
        chat_id=row["chat_id"],
        user_id=row["user_id"],
        role=row["role"],
        content=row["content"],
        created_at=row["created_at"],
    )


def _row_to_feedback(row: Any) -> FeedbackEntry:
    """Convert an asyncpg Record to a FeedbackEntry."""
    return FeedbackEntry(
        feedback_id=row["feedback_id"],
        user_id=row["user_id"],
        rating=row["rating"],
        comment=row["comment"],
        created_at=row["created_at"],
    )


def _affected_rows(status: str) -> int:
    """Parse the row count out of a status string like ``DELETE 3``."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (AttributeError, ValueError):
        return 0


class UserRepository:
    """Persistence accessor for user records.

    Provides create_or_get_user, get_user, append/list/clear for chats and
    append/list for feedback. Every operation validates its inputs before
    issuing a query.
    """

    def __init__(self, database: Database, config: UsersConfig | None = None) -> None:
        self._db = database
        self._config = config or UsersConfig()

    @asynccontextmanager
    async def _storage(self, operation: str) -> AsyncIterator[None]:
        """Time an operation and translate driver failures to StorageError."""
        metrics = get_metrics()
        start = time.perf_counter()
        try:
            yield
        except _STORAGE_EXCEPTIONS as e:
            metrics.record_storage_error(operation)
            logger.error("Storage operation %s failed: %s", operation, e)
            raise StorageError(f"Failed to {operation.replace('_', ' ')}", operation) from e
        finally:
            metrics.record_storage_latency(operation, time.perf_counter() - start)

    async def create_tables(self) -> None:
        """Create the users, chat_entries and feedback_entries tables (idempotent)."""
        async with self._storage("create_tables"):
            await self._db.execute(_CREATE_TABLES_SQL)
        logger.info("User tables ensured")

    async def _ensure_user(self, user_id: str) -> None:
        exists = await self._db.fetchval(_USER_EXISTS_SQL, user_id)
        if not exists:
            raise UserNotFoundError(user_id)

    async def create_or_get_user(self, email: Any) -> tuple[User, bool]:
        """Register ``email`` or return the user already holding it.

        The email is trimmed and lowercased, so registrations differing only
        in case or surrounding whitespace resolve to the same user.

        Args:
            email: Raw email from the request.

        Returns:
            (user, created) where ``created`` is False for a repeat registration.
        """
        normalized = normalize_email(email)
        if len(normalized) > self._config.max_email_length:
            raise ValidationError(
                f"Email must be at most {self._config.max_email_length} characters"
            )

        candidate = User(email=normalized)
        async with self._storage("register_user"):
            row = await self._db.fetchrow(
                _INSERT_USER_SQL,
                candidate.user_id,
                candidate.email,
                candidate.created_at,
            )
            if row is not None:
                logger.info("Registered user %s", row["user_id"])
                return _row_to_user(row), True

            row = await self._db.fetchrow(
                "SELECT * FROM users WHERE email = $1", normalized
            )

        if row is None:
            # Lost a race with a concurrent delete; nothing else removes users.
            raise StorageError("Failed to register user", "register_user")
        return _row_to_user(row), False

    async def get_user(self, user_id: Any) -> User:
        """Load a user with their chat (oldest first) and feedback (newest first)."""
        user_id = validate_user_id(user_id)
        async with self._storage("get_user"):
            row = await self._db.fetchrow(
                "SELECT * FROM users WHERE user_id = $1", user_id
            )
            if row is None:
                raise UserNotFoundError(user_id)
            chat_rows = await self._db.fetch(_LIST_CHATS_SQL, user_id)
            feedback_rows = await self._db.fetch(_LIST_FEEDBACK_SQL, user_id)

        user = _row_to_user(row)
        user.chats = [_row_to_chat(r) for r in chat_rows]
        user.feedback = [_row_to_feedback(r) for r in feedback_rows]
        return user

    async def append_chat(self, user_id: Any, role: Any, content: Any) -> ChatEntry:
        """Append a chat entry to a user's history.

        Raises:
            ValidationError: If role or content is missing.
            InvalidIdentifierError: If ``user_id`` is malformed.
            UserNotFoundError: If the user does not exist.
        """
        if not role or not content:
            raise ValidationError("Role and content are required")
        user_id = validate_user_id(user_id)
        entry = ChatEntry(user_id=user_id, role=role, content=content)

        async with self._storage("append_chat"):
            row = await self._db.fetchrow(
                _APPEND_CHAT_SQL,
                entry.chat_id,
                entry.user_id,
                entry.role,
                entry.content,
                entry.created_at,
            )
        if row is None:
            raise UserNotFoundError(user_id)
        return _row_to_chat(row)

    async def list_chats(self, user_id: Any) -> list[ChatEntry]:
        """Get a user's chat history ordered by timestamp ascending."""
        user_id = validate_user_id(user_id)
        async with self._storage("list_chats"):
            await self._ensure_user(user_id)
            rows = await self._db.fetch(_LIST_CHATS_SQL, user_id)
        return [_row_to_chat(row) for row in rows]

    async def clear_chats(self, user_id: Any) -> int:
        """Delete a user's whole chat history. Feedback is left untouched.

        Returns:
            Number of chat entries removed.
        """
        user_id = validate_user_id(user_id)
        async with self._storage("clear_chats"):
            await self._ensure_user(user_id)
            status = await self._db.execute(
                "DELETE FROM chat_entries WHERE user_id = $1", user_id
            )
        deleted = _affected_rows(status)
        logger.info("Cleared %d chat entries for %s", deleted, user_id)
        return deleted

    async def append_feedback(
        self, user_id: Any, rating: Any, comment: Any
    ) -> FeedbackEntry:
        """Append a feedback entry.

        Comments longer than ``max_comment_length`` are truncated.

        Raises:
            ValidationError: If rating or comment is missing, or the rating
                is outside 1-5.
            InvalidIdentifierError: If ``user_id`` is malformed.
            UserNotFoundError: If the user does not exist.
        """
        if rating is None or not comment:
            raise ValidationError("Rating and comment are required")
        rating = validate_rating(rating)
        user_id = validate_user_id(user_id)

        if isinstance(comment, str) and len(comment) > self._config.max_comment_length:
            comment = comment[: self._config.max_comment_length]
        entry = FeedbackEntry(user_id=user_id, rating=rating, comment=comment)

        async with self._storage("append_feedback"):
            row = await self._db.fetchrow(
                _APPEND_FEEDBACK_SQL,
                entry.feedback_id,
                entry.user_id,
                entry.rating,
                entry.comment,
                entry.created_at,
            )
        if row is None:
            raise UserNotFoundError(user_id)
        return _row_to_feedback(row)

    async def list_feedback(self, user_id: Any) -> list[FeedbackEntry]:
        """Get a user's feedback ordered by timestamp descending (newest first)."""
        user_id = validate_user_id(user_id)
        async with self._storage("list_feedback"):
            await self._ensure_user(user_id)
            rows = await self._db.fetch(_LIST_FEEDBACK_SQL, user_id)
        return [_row_to_feedback(row) for row in rows]
