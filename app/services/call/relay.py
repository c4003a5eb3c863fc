"""
WebSocket relay between the browser's voice SDK and a server-side call session.

The browser owns the audio. It forwards the SDK's events to the server as
`{"event": <name>, "data": {...}}` frames and executes the control frames the
server sends back. Everything the session wants the user to see (alerts,
redirects, status, latest transcript line) goes out on the same socket.
"""
import asyncio
import logging
from typing import Any, Callable, Optional

from fastapi import WebSocket, WebSocketDisconnect

from app.core.exceptions import AppError
from app.schemas.interview import CallStatus, SessionPurpose, TranscriptMessage
from app.services.call.session import CallSessionController, FeedbackHandler, InterviewGenerator
from app.services.call.transport import TRANSPORT_EVENTS, EventEmitterTransport

logger = logging.getLogger(__name__)


def _log_stop_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.error(f"Call stop failed: {error}", exc_info=error)


class RelayTransport(EventEmitterTransport):
    """Transport whose start/stop are control frames for the browser-side SDK."""

    def __init__(self, outbox: asyncio.Queue):
        super().__init__()
        self._outbox = outbox

    async def start(self, config: dict[str, Any]) -> None:
        await self._outbox.put({"type": "control", "action": "start", "config": config})

    async def stop(self) -> None:
        await self._outbox.put({"type": "control", "action": "stop"})


class WebSocketNotifier:
    """Queues session notifications as outbound frames."""

    def __init__(self, outbox: asyncio.Queue):
        self._outbox = outbox

    def notify(self, level: str, message: str) -> None:
        self._outbox.put_nowait({"type": "notify", "level": level, "message": message})

    def navigate(self, path: str) -> None:
        self._outbox.put_nowait({"type": "navigate", "path": path})

    def status_changed(self, status: CallStatus, is_speaking: bool) -> None:
        self._outbox.put_nowait({"type": "status", "status": status.value, "isSpeaking": is_speaking})

    def transcript_updated(self, message: TranscriptMessage) -> None:
        self._outbox.put_nowait({"type": "transcript", "latest": message.model_dump()})


class CallRelay:
    """
    Drives one CallSessionController from one WebSocket connection.

    The controller is created on the first `start-call` frame and reused for
    later calls on the same connection; it is closed when the socket drops.
    """

    def __init__(
        self,
        websocket: WebSocket,
        pipeline_factory: Callable[[], InterviewGenerator],
        feedback: FeedbackHandler,
    ):
        self.websocket = websocket
        self.outbox: asyncio.Queue = asyncio.Queue()
        self.transport = RelayTransport(self.outbox)
        self.notifier = WebSocketNotifier(self.outbox)
        self.controller: Optional[CallSessionController] = None
        self._pipeline_factory = pipeline_factory
        self._feedback = feedback
        self._stop_task: Optional[asyncio.Task] = None

    async def run(self) -> None:
        sender = asyncio.create_task(self._send_loop())
        try:
            while True:
                try:
                    frame = await self.websocket.receive_json()
                except ValueError as e:
                    logger.warning(f"Ignoring non-JSON relay frame: {e}")
                    self.notifier.notify("error", "Invalid message format")
                    continue
                await self.handle_frame(frame)
        except WebSocketDisconnect:
            logger.info("Call relay disconnected")
        finally:
            self.close()
            sender.cancel()

    def close(self) -> None:
        if self.controller is not None:
            self.controller.close()

    async def handle_frame(self, frame: Any) -> None:
        if not isinstance(frame, dict):
            logger.warning(f"Ignoring relay frame that is not an object: {frame!r}")
            self.notifier.notify("error", "Invalid message format")
            return

        event = frame.get("event")
        if event == "start-call":
            await self._start_call(frame)
        elif event == "end-call":
            if self.controller is not None:
                # stop() waits for call-end, which arrives through this same receive loop
                self._stop_task = asyncio.create_task(self.controller.stop())
                self._stop_task.add_done_callback(_log_stop_failure)
        elif event in TRANSPORT_EVENTS:
            data = frame.get("data")
            if data is None:
                self.transport.emit(event)
            else:
                self.transport.emit(event, data)
        else:
            logger.warning(f"Unknown relay frame: {event!r}")

    async def _start_call(self, frame: dict[str, Any]) -> None:
        try:
            if self.controller is None:
                purpose = SessionPurpose(frame.get("purpose", SessionPurpose.GENERATE.value))
                self.controller = CallSessionController(
                    transport=self.transport,
                    purpose=purpose,
                    user_id=frame.get("userId", ""),
                    user_name=frame.get("userName", ""),
                    interview_id=frame.get("interviewId"),
                    questions=frame.get("questions"),
                    notifier=self.notifier,
                    pipeline=self._pipeline_factory() if purpose is SessionPurpose.GENERATE else None,
                    feedback=self._feedback if purpose is SessionPurpose.INTERVIEW else None,
                )
            await self.controller.start()
        except (AppError, ValueError) as e:
            logger.warning(f"Rejected start-call: {e}")
            self.notifier.notify("error", str(e))

    async def _send_loop(self) -> None:
        while True:
            frame = await self.outbox.get()
            await self.websocket.send_json(frame)


class CallRelayManager:
    """Tracks the live relay per client so a reconnect tears down the old session."""

    def __init__(self):
        self.active: dict[str, CallRelay] = {}

    def connect(self, client_id: str, relay: CallRelay) -> None:
        previous = self.active.pop(client_id, None)
        if previous is not None:
            previous.close()
        self.active[client_id] = relay

    def disconnect(self, client_id: str, relay: CallRelay) -> None:
        if self.active.get(client_id) is relay:
            del self.active[client_id]


manager = CallRelayManager()
