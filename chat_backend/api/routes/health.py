"""
Health check endpoint.
"""

import time
from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends

from chat_backend.api.dependencies import get_database
from chat_backend.api.models import HealthResponse
from chat_backend.storage.database import Database

router = APIRouter(prefix="/api")
logger = structlog.get_logger(__name__)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="Report process liveness and the storage connection state.",
)
async def health_check(
    db: Database = Depends(get_database),
) -> HealthResponse:
    start = time.perf_counter()
    connected = await db.health_check()
    latency_ms = (time.perf_counter() - start) * 1000

    if not connected:
        logger.warning("Storage health check failed", latency_ms=round(latency_ms, 2))

    return HealthResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc).isoformat(),
        storage="connected" if connected else "disconnected",
    )
