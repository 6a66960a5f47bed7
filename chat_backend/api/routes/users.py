"""Registration endpoint."""

import time

import structlog
from fastapi import APIRouter, Depends

from chat_backend.api.dependencies import get_user_repository
from chat_backend.api.models import ErrorResponse, RegisterRequest, RegisterResponse
from chat_backend.observability.metrics import get_metrics
from chat_backend.users.repository import UserRepository

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/api")


@router.post(
    "/register",
    response_model=RegisterResponse,
    response_model_exclude_none=True,
    responses={
        400: {"model": ErrorResponse, "description": "Missing or invalid email"},
        500: {"model": ErrorResponse, "description": "Server error"},
    },
    summary="Register a user",
    description=(
        "Register an email address. Idempotent: registering an email that "
        "already exists (ignoring case and surrounding whitespace) returns "
        "the existing user identifier."
    ),
)
async def register(
    request: RegisterRequest,
    repository: UserRepository = Depends(get_user_repository),
) -> RegisterResponse:
    start_time = time.perf_counter()

    user, created = await repository.create_or_get_user(request.email)
    get_metrics().record_registration(created)

    latency_ms = (time.perf_counter() - start_time) * 1000
    logger.info(
        "User registered" if created else "Existing user returned",
        user_id=user.user_id,
        created=created,
        latency_ms=round(latency_ms, 2),
    )

    return RegisterResponse(
        user_id=user.user_id,
        message="User registered" if created else "User already registered",
    )
