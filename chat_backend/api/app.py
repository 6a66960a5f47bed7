"""
FastAPI application factory.
"""

import time
import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from chat_backend import __version__
from chat_backend.api.dependencies import cleanup_dependencies, init_storage
from chat_backend.api.routes import chat, feedback, health, realtime, users
from chat_backend.config.settings import get_settings
from chat_backend.errors import ChatBackendError, StorageError, ValidationError
from chat_backend.observability.logging import bind_context, clear_context

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler.

    Storage must be reachable at startup; a failure here aborts the process.
    """
    logger.info("Chat backend starting up")

    try:
        await init_storage()
    except Exception as e:
        logger.critical("Storage unreachable at startup, exiting", error=str(e))
        raise

    logger.info("Storage connected")

    yield

    logger.info("Chat backend shutting down")
    await cleanup_dependencies()


def _format_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "invalid value")
    return f"Invalid request: {location}: {message}" if location else f"Invalid request: {message}"


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()

    openapi_tags = [
        {"name": "health", "description": "Service health checks"},
        {"name": "users", "description": "User registration"},
        {"name": "chat", "description": "Chat history per user"},
        {"name": "feedback", "description": "User feedback ratings"},
        {"name": "realtime", "description": "WebSocket chat channel"},
    ]

    app = FastAPI(
        title="Chat Backend API",
        description="""
Backend for a chat-style application.

- Register users by email
- Save, read and clear chat history per user
- Submit and list feedback ratings
- Realtime WebSocket channel for saving chats and reading history
        """,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
        openapi_tags=openapi_tags,
    )

    # CORS (origins from CORS_ORIGINS env var, comma-separated)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # Request logging and correlation ID middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        # Correlation ID: use incoming header or generate a new one
        request_id = (
            request.headers.get("X-Request-ID")
            or request.headers.get("X-Correlation-ID")
            or str(uuid.uuid4())
        )

        request.state.request_id = request_id
        # Bind to structlog contextvars for automatic log correlation
        bind_context(request_id=request_id)

        start_time = time.perf_counter()

        try:
            response = await call_next(request)
            duration = time.perf_counter() - start_time

            response.headers["X-Request-ID"] = request_id

            logger.info(
                "HTTP request",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration * 1000, 2),
            )
            return response
        finally:
            clear_context()

    # Exception handlers
    @app.exception_handler(ChatBackendError)
    async def domain_exception_handler(request: Request, exc: ChatBackendError):
        content = {"error": exc.message, "code": exc.code}
        if isinstance(exc, StorageError):
            logger.error(
                "Storage failure",
                operation=exc.operation,
                path=request.url.path,
                error=str(exc.__cause__ or exc),
            )
            if not get_settings().is_production and exc.__cause__ is not None:
                content["detail"] = str(exc.__cause__)
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=ValidationError.status_code,
            content={"error": _format_validation_error(exc), "code": ValidationError.code},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        # Runs outside the logging middleware, which never saw a response
        request_id = getattr(request.state, "request_id", None) or str(uuid.uuid4())
        logger.error(f"Unhandled exception: {exc}", exc_info=True, request_id=request_id)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error"},
            headers={"X-Request-ID": request_id},
        )

    # Include routers
    app.include_router(health.router, tags=["health"])
    app.include_router(users.router, tags=["users"])
    app.include_router(chat.router, tags=["chat"])
    app.include_router(feedback.router, tags=["feedback"])
    # Catch-all WebSocket path; registered last
    app.include_router(realtime.router, tags=["realtime"])

    return app
