"""Storage layer for PostgreSQL connection management."""

from chat_backend.storage.database import Database

__all__ = ["Database"]
