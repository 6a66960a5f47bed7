"""Feedback endpoints for submitting and listing a user's ratings."""

import time

import structlog
from fastapi import APIRouter, Depends

from chat_backend.api.dependencies import get_user_repository
from chat_backend.api.models import (
    ErrorResponse,
    FeedbackItem,
    FeedbackListResponse,
    FeedbackRequest,
    FeedbackResponse,
)
from chat_backend.observability.metrics import get_metrics
from chat_backend.users.repository import UserRepository

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/api")


@router.post(
    "/feedback/{user_id}",
    response_model=FeedbackResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing fields, rating out of range, or malformed user ID"},
        404: {"model": ErrorResponse, "description": "User not found (code USER_NOT_FOUND)"},
        500: {"model": ErrorResponse, "description": "Server error"},
    },
    summary="Submit feedback",
    description=(
        "Submit a rating from 1 to 5 with a comment. Comments over the "
        "configured maximum length are truncated."
    ),
)
async def create_feedback(
    user_id: str,
    request: FeedbackRequest,
    repository: UserRepository = Depends(get_user_repository),
) -> FeedbackResponse:
    start_time = time.perf_counter()

    entry = await repository.append_feedback(user_id, request.rating, request.comment)
    get_metrics().record_feedback(entry.rating)

    latency_ms = (time.perf_counter() - start_time) * 1000
    logger.info(
        "Feedback created",
        user_id=user_id,
        feedback_id=entry.feedback_id,
        rating=entry.rating,
        latency_ms=round(latency_ms, 2),
    )

    return FeedbackResponse(feedback=FeedbackItem(**entry.to_dict()))


@router.get(
    "/feedback/{user_id}",
    response_model=FeedbackListResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Malformed user ID"},
        404: {"model": ErrorResponse, "description": "User not found (code USER_NOT_FOUND)"},
        500: {"model": ErrorResponse, "description": "Server error"},
    },
    summary="List feedback",
    description="Return a user's feedback ordered newest first.",
)
async def list_feedback(
    user_id: str,
    repository: UserRepository = Depends(get_user_repository),
) -> FeedbackListResponse:
    entries = await repository.list_feedback(user_id)
    items = [FeedbackItem(**entry.to_dict()) for entry in entries]

    return FeedbackListResponse(feedback=items, count=len(items))
