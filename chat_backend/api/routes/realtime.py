"""WebSocket endpoint for the realtime chat channel.

Upgrades are accepted on any path. Each connection is served by a
``RealtimeConnection`` that owns its liveness probe.
"""

from fastapi import APIRouter, Depends, WebSocket

from chat_backend.api.dependencies import get_user_repository
from chat_backend.config.settings import get_settings
from chat_backend.realtime.connection import RealtimeConnection
from chat_backend.realtime.dispatcher import FrameDispatcher
from chat_backend.users.repository import UserRepository

router = APIRouter()


@router.websocket("/{path:path}")
async def realtime_channel(
    ws: WebSocket,
    repository: UserRepository = Depends(get_user_repository),
) -> None:
    """Serve one realtime connection.

    Client frames: ``chat {userId, role, content}``,
    ``get_chat_history {userId}``, ``pong``, ``ping``.
    """
    settings = get_settings()

    connection = RealtimeConnection(
        ws,
        FrameDispatcher(repository),
        probe_interval=settings.ws_probe_interval_seconds,
        production=settings.is_production,
    )
    await connection.run()
