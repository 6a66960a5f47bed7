"""Per-connection lifecycle for the realtime channel.

State machine: CONNECTING -> OPEN -> CLOSED, with an ALIVE/SUSPECT
liveness flag alongside it.

Each probe tick a connection that has not answered the previous probe is
closed; otherwise it is marked SUSPECT and sent a ``ping`` frame. Any
frame from the client, ``pong`` included, marks it ALIVE again. The probe
runs as a task owned by the connection and is cancelled on every exit path.
"""

import asyncio
import enum
import json
import logging
from typing import Any

from starlette.websockets import WebSocket, WebSocketState

from chat_backend.errors import public_message
from chat_backend.observability.metrics import get_metrics
from chat_backend.realtime import frames
from chat_backend.realtime.dispatcher import FrameDispatcher

logger = logging.getLogger(__name__)

# 1001 "going away": peer stopped answering liveness probes
LIVENESS_CLOSE_CODE = 1001


class ConnectionState(enum.Enum):
    """Realtime connection states."""

    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class Liveness(enum.Enum):
    """Whether the peer answered the most recent probe."""

    ALIVE = "alive"
    SUSPECT = "suspect"


class RealtimeConnection:
    """One client on the realtime channel.

    Lifecycle:
        1. ``run()`` accepts, sends ``connection_status`` and starts the probe
        2. frames are received and answered until the client leaves or the
           probe gives up
        3. the probe task is cancelled and the state moves to CLOSED

    Args:
        ws: Starlette WebSocket (not yet accepted).
        dispatcher: Handles chat frames.
        probe_interval: Seconds between liveness probes.
        production: Hide storage error details from clients.
    """

    def __init__(
        self,
        ws: WebSocket,
        dispatcher: FrameDispatcher,
        probe_interval: float = 30.0,
        production: bool = False,
    ) -> None:
        self._ws = ws
        self._dispatcher = dispatcher
        self._probe_interval = probe_interval
        self._production = production
        self.state = ConnectionState.CONNECTING
        self.liveness = Liveness.ALIVE
        self._probe_task: asyncio.Task | None = None

    @property
    def probe_running(self) -> bool:
        return self._probe_task is not None and not self._probe_task.done()

    async def run(self) -> None:
        """Serve the connection until it closes."""
        metrics = get_metrics()
        await self._ws.accept()
        self.state = ConnectionState.OPEN
        metrics.realtime_connections.inc()
        client = getattr(self._ws, "client", None)
        logger.info("Realtime connection opened from %s", client.host if client else "unknown")

        receiver: asyncio.Task | None = None
        try:
            await self.send(frames.connection_status())
            self._probe_task = asyncio.create_task(
                self._probe_loop(), name="realtime-liveness-probe",
            )
            receiver = asyncio.create_task(
                self._receive_loop(), name="realtime-receiver",
            )
            done, _ = await asyncio.wait(
                {receiver, self._probe_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
            for task in done:
                if not task.cancelled() and task.exception() is not None:
                    logger.warning(
                        "Realtime connection error: %s", task.exception(),
                    )
        finally:
            await _cancel(self._probe_task)
            await _cancel(receiver)
            await self._close_transport()
            self.state = ConnectionState.CLOSED
            metrics.realtime_connections.dec()
            logger.info("Realtime connection closed")

    def mark_alive(self) -> None:
        self.liveness = Liveness.ALIVE

    async def send(self, frame: dict[str, Any]) -> None:
        await self._ws.send_json(frame)

    async def terminate(self) -> None:
        """Force-close a connection that stopped answering probes."""
        logger.info("Terminating inactive realtime connection")
        get_metrics().liveness_terminations.inc()
        self.state = ConnectionState.CLOSED
        await self._ws.close(code=LIVENESS_CLOSE_CODE, reason="Liveness probe timed out")

    async def handle_text(self, raw: str) -> None:
        """Parse one client frame and send the reply, if any.

        Malformed frames and handler failures are reported with an
        ``error`` frame; the connection stays open.
        """
        metrics = get_metrics()
        try:
            frame = json.loads(raw)
            if not isinstance(frame, dict):
                raise ValueError("frame must be a JSON object")
        except ValueError as e:
            metrics.record_frame("malformed")
            logger.warning("Malformed realtime frame: %s", e)
            await self.send(frames.error(f"Error processing message: {e}"))
            return

        frame_type = frame.get("type")
        logger.debug("Received realtime frame type=%s", frame_type)

        if frame_type == frames.PONG:
            metrics.record_frame(frames.PONG)
            self.mark_alive()
            return
        if frame_type == frames.PING:
            metrics.record_frame(frames.PING)
            await self.send(frames.pong())
            return

        metrics.record_frame(frame_type if self._dispatcher.handles(frame_type) else "unknown")
        try:
            reply = await self._dispatcher.dispatch(frame)
        except Exception as e:
            logger.error("Realtime frame %s failed: %s", frame_type, e, exc_info=True)
            reply = frames.error(
                f"Error processing message: {public_message(e, production=self._production)}"
            )

        if reply is not None:
            await self.send(reply)

    async def _receive_loop(self) -> None:
        while True:
            message = await self._ws.receive()
            if message["type"] == "websocket.disconnect":
                logger.info("Realtime client disconnected")
                return

            # Any inbound frame proves the peer is still there
            self.mark_alive()
            raw = message.get("text")
            if raw is None:
                raw = (message.get("bytes") or b"").decode("utf-8", errors="replace")
            await self.handle_text(raw)

    async def _probe_loop(self) -> None:
        while self.state is ConnectionState.OPEN:
            await asyncio.sleep(self._probe_interval)
            if self.liveness is Liveness.SUSPECT:
                await self.terminate()
                return
            self.liveness = Liveness.SUSPECT
            await self.send(frames.ping())

    async def _close_transport(self) -> None:
        if self._ws.application_state != WebSocketState.CONNECTED:
            return
        if self._ws.client_state == WebSocketState.DISCONNECTED:
            return
        try:
            await self._ws.close()
        except RuntimeError as e:
            # Peer went away between the state check and the close
            logger.debug("Realtime close skipped: %s", e)


async def _cancel(task: asyncio.Task | None) -> None:
    """Cancel a task and wait for it to finish."""
    if task is None or task.done():
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
