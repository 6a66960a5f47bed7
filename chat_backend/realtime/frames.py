"""JSON frame builders for the realtime channel."""

from typing import Any

from chat_backend.users.schemas import ChatEntry

# Client -> server
CHAT = "chat"
GET_CHAT_HISTORY = "get_chat_history"
PING = "ping"
PONG = "pong"

# Server -> client
CONNECTION_STATUS = "connection_status"
CHAT_SAVED = "chat_saved"
CHAT_HISTORY = "chat_history"
ERROR = "error"


def connection_status() -> dict[str, Any]:
    return {"type": CONNECTION_STATUS, "status": "connected"}


def chat_saved(entry: ChatEntry) -> dict[str, Any]:
    return {
        "type": CHAT_SAVED,
        "success": True,
        "messageId": entry.chat_id,
        "timestamp": entry.created_at.isoformat(),
    }


def chat_history(entries: list[ChatEntry]) -> dict[str, Any]:
    return {
        "type": CHAT_HISTORY,
        "success": True,
        "chats": [e.to_dict() for e in entries],
    }


def error(message: str) -> dict[str, Any]:
    return {"type": ERROR, "message": message}


def ping() -> dict[str, Any]:
    return {"type": PING}


def pong() -> dict[str, Any]:
    return {"type": PONG}
