"""
Test doubles for the model backend, the voice transport, the session notifier
and the document store.
"""
import uuid
from typing import Any, Optional

from app.services.call.transport import EventEmitterTransport


class FakeTextGenerator:
    """Returns queued responses in order; queued exceptions are raised instead."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeTransport(EventEmitterTransport):
    """Records start/stop calls. With `ends_on_stop`, stop() emits call-end like a healthy SDK."""

    def __init__(self, ends_on_stop: bool = False, fail_on_start: bool = False):
        super().__init__()
        self.ends_on_stop = ends_on_stop
        self.fail_on_start = fail_on_start
        self.started_with: list[dict[str, Any]] = []
        self.stop_calls = 0

    async def start(self, config: dict[str, Any]) -> None:
        if self.fail_on_start:
            raise ConnectionError("microphone permission denied")
        self.started_with.append(config)

    async def stop(self) -> None:
        self.stop_calls += 1
        if self.ends_on_stop:
            self.emit("call-end")

    def say(self, role: str, text: str, final: bool = True) -> None:
        self.emit("message", {
            "type": "transcript",
            "transcriptType": "final" if final else "partial",
            "role": role,
            "transcript": text,
        })


class RecordingNotifier:
    def __init__(self):
        self.notifications: list[tuple[str, str]] = []
        self.navigations: list[str] = []
        self.statuses: list[tuple[str, bool]] = []
        self.latest: Optional[str] = None

    def notify(self, level: str, message: str) -> None:
        self.notifications.append((level, message))

    def navigate(self, path: str) -> None:
        self.navigations.append(path)

    def status_changed(self, status, is_speaking: bool) -> None:
        self.statuses.append((status.value, is_speaking))

    def transcript_updated(self, message) -> None:
        self.latest = message.content


class MemoryDocumentStore:
    """Dict-backed stand-in for DocumentStore; `error` makes every write fail."""

    def __init__(self, error: Optional[Exception] = None):
        self.collections: dict[str, dict[str, dict]] = {}
        self.error = error

    async def add(self, collection: str, data: dict) -> str:
        if self.error is not None:
            raise self.error
        doc_id = uuid.uuid4().hex
        self.collections.setdefault(collection, {})[doc_id] = data
        return doc_id

    async def get(self, collection: str, doc_id: str) -> Optional[dict]:
        return self.collections.get(collection, {}).get(doc_id)


class FakePipeline:
    """Counts extract_and_generate calls; optionally fails with `error`."""

    def __init__(self, error: Optional[Exception] = None):
        self.calls: list[tuple[str, str]] = []
        self.error = error

    async def extract_and_generate(self, conversation: str, user_id: str):
        self.calls.append((conversation, user_id))
        if self.error is not None:
            raise self.error
        return {"id": "interview-1", "userId": user_id}
