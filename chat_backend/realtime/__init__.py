"""Realtime channel: WebSocket connections mirroring chat save and history.

Components:
- RealtimeConnection: per-connection state machine with liveness probing
- FrameDispatcher: maps ``chat`` / ``get_chat_history`` frames to the repository
- frames: JSON frame builders and type tags
"""

from chat_backend.realtime.connection import ConnectionState, Liveness, RealtimeConnection
from chat_backend.realtime.dispatcher import FrameDispatcher

__all__ = [
    "ConnectionState",
    "FrameDispatcher",
    "Liveness",
    "RealtimeConnection",
]
