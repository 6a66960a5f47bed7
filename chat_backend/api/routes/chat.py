"""Chat history endpoints: save a message, read and clear a user's history."""

import time

import structlog
from fastapi import APIRouter, Depends

from chat_backend.api.dependencies import get_user_repository
from chat_backend.api.models import (
    ChatClearedResponse,
    ChatHistoryResponse,
    ChatItem,
    ChatRequest,
    ChatSavedResponse,
    ErrorResponse,
)
from chat_backend.observability.metrics import get_metrics
from chat_backend.users.repository import UserRepository

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/api")

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing fields or malformed user ID"},
    404: {"model": ErrorResponse, "description": "User not found (code USER_NOT_FOUND)"},
    500: {"model": ErrorResponse, "description": "Server error"},
}


@router.post(
    "/chat/{user_id}",
    response_model=ChatSavedResponse,
    responses=_ERROR_RESPONSES,
    summary="Save a chat message",
)
async def save_chat(
    user_id: str,
    request: ChatRequest,
    repository: UserRepository = Depends(get_user_repository),
) -> ChatSavedResponse:
    start_time = time.perf_counter()

    entry = await repository.append_chat(user_id, request.role, request.content)
    get_metrics().record_chat_saved(channel="rest")

    latency_ms = (time.perf_counter() - start_time) * 1000
    logger.info(
        "Chat saved",
        user_id=user_id,
        message_id=entry.chat_id,
        role=entry.role,
        latency_ms=round(latency_ms, 2),
    )

    return ChatSavedResponse(
        message_id=entry.chat_id,
        timestamp=entry.created_at.isoformat(),
    )


@router.get(
    "/chat/{user_id}",
    response_model=ChatHistoryResponse,
    responses=_ERROR_RESPONSES,
    summary="Get chat history",
    description="Return a user's chat history ordered oldest first.",
)
async def get_chats(
    user_id: str,
    repository: UserRepository = Depends(get_user_repository),
) -> ChatHistoryResponse:
    entries = await repository.list_chats(user_id)
    items = [ChatItem(**entry.to_dict()) for entry in entries]

    logger.debug("Chat history retrieved", user_id=user_id, count=len(items))

    return ChatHistoryResponse(chats=items, count=len(items))


@router.delete(
    "/chat/{user_id}",
    response_model=ChatClearedResponse,
    responses=_ERROR_RESPONSES,
    summary="Clear chat history",
    description="Delete every chat entry for a user. Feedback is not affected.",
)
async def clear_chats(
    user_id: str,
    repository: UserRepository = Depends(get_user_repository),
) -> ChatClearedResponse:
    deleted = await repository.clear_chats(user_id)
    get_metrics().record_chats_cleared(deleted)

    logger.info("Chat history cleared", user_id=user_id, deleted=deleted)

    return ChatClearedResponse(message="Chat history cleared", deleted=deleted)
