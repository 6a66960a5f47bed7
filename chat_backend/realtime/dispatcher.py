"""Routes parsed realtime frames to repository operations.

The dispatcher knows nothing about the socket: it takes a decoded frame
and returns the reply frame, or None when the frame type is not one it
handles.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from chat_backend.errors import UserNotFoundError, ValidationError
from chat_backend.observability.metrics import get_metrics
from chat_backend.realtime import frames
from chat_backend.users.repository import UserRepository

logger = logging.getLogger(__name__)

Handler = Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]


class FrameDispatcher:
    """Dispatch ``chat`` and ``get_chat_history`` frames.

    Unknown user and validation failures become ``error`` frames here.
    Any other exception propagates to the connection, which reports it
    without closing the socket.
    """

    def __init__(self, repository: UserRepository) -> None:
        self._repository = repository
        self._handlers: dict[str, Handler] = {
            frames.CHAT: self._handle_chat,
            frames.GET_CHAT_HISTORY: self._handle_chat_history,
        }

    def handles(self, frame_type: Any) -> bool:
        return frame_type in self._handlers

    async def dispatch(self, frame: dict[str, Any]) -> dict[str, Any] | None:
        """Handle one frame.

        Args:
            frame: Decoded client frame with a ``type`` tag.

        Returns:
            Reply frame, or None for unrecognized types.
        """
        handler = self._handlers.get(frame.get("type"))
        if handler is None:
            return None

        try:
            return await handler(frame)
        except UserNotFoundError as e:
            logger.info("Realtime frame for unknown user %s", e.user_id)
            return frames.error(e.message)
        except ValidationError as e:
            return frames.error(e.message)

    async def _handle_chat(self, frame: dict[str, Any]) -> dict[str, Any]:
        entry = await self._repository.append_chat(
            frame.get("userId"),
            frame.get("role"),
            frame.get("content"),
        )
        get_metrics().record_chat_saved(channel="realtime")
        logger.debug("Saved chat %s for %s over realtime", entry.chat_id, entry.user_id)
        return frames.chat_saved(entry)

    async def _handle_chat_history(self, frame: dict[str, Any]) -> dict[str, Any]:
        entries = await self._repository.list_chats(frame.get("userId"))
        return frames.chat_history(entries)
