"""
FastAPI chat backend service.

Provides the REST API and realtime channel:
- POST /api/register - Register a user by email
- /api/chat/{userId} - Save, list and clear chat history
- /api/feedback/{userId} - Submit and list feedback
- GET /api/health - Service health check
- WebSocket on any path - Realtime chat channel
"""

from chat_backend.api.app import create_app

__all__ = ["create_app"]
