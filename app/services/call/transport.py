"""
Voice transport contract.

The vendor voice SDK is a black box that emits a fixed set of named events
and can be started with a call configuration and stopped. Handlers are plain
callables with no return value.
"""
import logging
from collections import defaultdict
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)

CALL_START = "call-start"
CALL_END = "call-end"
MESSAGE = "message"
SPEECH_START = "speech-start"
SPEECH_END = "speech-end"
ERROR = "error"

TRANSPORT_EVENTS = (CALL_START, CALL_END, MESSAGE, SPEECH_START, SPEECH_END, ERROR)

EventHandler = Callable[..., None]


class VoiceTransport(Protocol):
    def on(self, event: str, handler: EventHandler) -> None:
        ...

    def off(self, event: str, handler: EventHandler) -> None:
        ...

    async def start(self, config: dict[str, Any]) -> None:
        ...

    async def stop(self) -> None:
        ...


class EventEmitterTransport:
    """
    Handler bookkeeping shared by concrete transports.
    Subclasses implement `start` / `stop` and call `emit` when the vendor reports an event.
    """

    def __init__(self):
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)

    def on(self, event: str, handler: EventHandler) -> None:
        if event not in TRANSPORT_EVENTS:
            raise ValueError(f"Unknown transport event: {event}")
        self._handlers[event].append(handler)

    def off(self, event: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def handler_count(self, event: str) -> int:
        return len(self._handlers.get(event, []))

    def emit(self, event: str, *args: Any) -> None:
        for handler in list(self._handlers.get(event, [])):
            handler(*args)

    async def start(self, config: dict[str, Any]) -> None:
        raise NotImplementedError

    async def stop(self) -> None:
        raise NotImplementedError


class EventSubscriptions:
    """
    A bounded set of handler registrations on one transport.

    `close()` removes every handler it registered, so repeated calls on the
    same page never stack up duplicate handlers.
    """

    def __init__(self, transport: VoiceTransport):
        self._transport = transport
        self._registered: list[tuple[str, EventHandler]] = []

    def subscribe(self, event: str, handler: EventHandler) -> None:
        self._transport.on(event, handler)
        self._registered.append((event, handler))

    @property
    def active(self) -> bool:
        return bool(self._registered)

    def close(self) -> None:
        while self._registered:
            event, handler = self._registered.pop()
            self._transport.off(event, handler)
        logger.debug("Transport handlers removed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
