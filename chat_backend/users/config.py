"""User record configuration.

Controls constraints on registration and feedback submission. All settings
can be overridden via ``USERS_*`` environment variables.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class UsersConfig(BaseSettings):
    """Configuration for user records and their entries."""

    model_config = SettingsConfigDict(
        env_prefix="USERS_",
        case_sensitive=False,
        extra="ignore",
    )

    max_comment_length: int = Field(
        default=2000,
        ge=1,
        le=10000,
        description="Feedback comments longer than this are truncated",
    )
    max_email_length: int = Field(
        default=254,
        ge=3,
        le=1024,
        description="Longest email accepted at registration",
    )
