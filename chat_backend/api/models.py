"""
Request and response models for the chat backend API.

Wire names are camelCase (``userId``, ``messageId``); fields are declared
snake_case with serialization aliases.
"""

from pydantic import BaseModel, Field, StrictInt


class ErrorResponse(BaseModel):
    """Response model for errors."""

    error: str = Field(..., description="Error message")
    code: str | None = Field(
        default=None,
        description="Machine-readable error code, e.g. USER_NOT_FOUND",
    )
    detail: str | None = Field(
        default=None,
        description="Underlying cause (non-production environments only)",
    )


# Registration


class RegisterRequest(BaseModel):
    """Request model for user registration."""

    email: str | None = Field(default=None, description="Email address to register")


class RegisterResponse(BaseModel):
    """Response model for user registration."""

    user_id: str = Field(..., serialization_alias="userId", description="User identifier")
    message: str | None = Field(default=None, description="Registration outcome")


# Chat


class ChatRequest(BaseModel):
    """Request model for saving a chat message."""

    role: str | None = Field(default=None, description="Speaker role, e.g. user or assistant")
    content: str | None = Field(default=None, description="Message text")


class ChatItem(BaseModel):
    """Single chat entry."""

    id: str = Field(..., description="Chat entry identifier")
    role: str = Field(..., description="Speaker role")
    content: str = Field(..., description="Message text")
    timestamp: str = Field(..., description="When the message was saved (ISO format)")


class ChatSavedResponse(BaseModel):
    """Response model for a saved chat message."""

    success: bool = True
    message_id: str = Field(..., serialization_alias="messageId", description="Saved entry identifier")
    timestamp: str = Field(..., description="When the message was saved (ISO format)")


class ChatHistoryResponse(BaseModel):
    """Response model for a user's chat history (oldest first)."""

    success: bool = True
    chats: list[ChatItem] = Field(default_factory=list)
    count: int = Field(..., description="Number of chat entries")


class ChatClearedResponse(BaseModel):
    """Response model for clearing chat history."""

    success: bool = True
    message: str = Field(..., description="Outcome message")
    deleted: int = Field(..., description="Number of chat entries removed")


# Feedback


class FeedbackRequest(BaseModel):
    """Request model for submitting feedback."""

    rating: StrictInt | None = Field(
        default=None, description="Integer rating from 1 (poor) to 5 (excellent)"
    )
    comment: str | None = Field(default=None, description="Free-text comment")


class FeedbackItem(BaseModel):
    """Single feedback entry."""

    id: str = Field(..., description="Feedback identifier")
    rating: int = Field(..., ge=1, le=5, description="Rating (1-5)")
    comment: str = Field(..., description="Free-text comment")
    timestamp: str = Field(..., description="Submission timestamp (ISO format)")


class FeedbackResponse(BaseModel):
    """Response model for creating feedback."""

    success: bool = True
    feedback: FeedbackItem = Field(..., description="Created feedback entry")


class FeedbackListResponse(BaseModel):
    """Response model for a user's feedback (newest first)."""

    success: bool = True
    feedback: list[FeedbackItem] = Field(default_factory=list)
    count: int = Field(..., description="Number of feedback entries")


# Health


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(..., description="Process status")
    timestamp: str = Field(..., description="Server time (ISO format)")
    storage: str = Field(..., description="Storage connection state: connected or disconnected")
