"""User records with their chat history and feedback.

Components:
- User / ChatEntry / FeedbackEntry: Dataclasses mapping to the users,
  chat_entries and feedback_entries tables
- UsersConfig: Pydantic settings for registration and feedback constraints
- UserRepository: Registration and append/list/clear persistence
"""

from chat_backend.users.config import UsersConfig
from chat_backend.users.repository import UserRepository
from chat_backend.users.schemas import ChatEntry, FeedbackEntry, User

__all__ = [
    "ChatEntry",
    "FeedbackEntry",
    "User",
    "UserRepository",
    "UsersConfig",
]
