import logging
from typing import Any, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from app.schemas.interview import TranscriptMessage, VoiceMessage

logger = logging.getLogger(__name__)


def render_conversation(messages: Sequence[TranscriptMessage]) -> str:
    """Render messages as "<role>: <content>" lines."""
    return "\n".join(f"{message.role}: {message.content}" for message in messages)


class TranscriptAccumulator:
    """
    Ordered transcript of one call.

    Only final transcript events are kept; partial fragments are dropped.
    Messages are never edited once appended.
    """

    def __init__(self):
        self._messages: list[TranscriptMessage] = []

    def append(self, event: Union[VoiceMessage, Mapping[str, Any]]) -> Optional[TranscriptMessage]:
        message = event if isinstance(event, VoiceMessage) else VoiceMessage.model_validate(event)
        if message.type != "transcript" or message.transcriptType != "final":
            return None

        try:
            saved = TranscriptMessage(role=message.role, content=message.transcript or "")
        except ValidationError as e:
            logger.warning(f"Dropping transcript message with unexpected role {message.role!r}: {e}")
            return None

        self._messages.append(saved)
        logger.debug(f"Adding message to transcript: {saved.role}: {saved.content[:80]}")
        return saved

    def reset(self) -> None:
        self._messages.clear()

    @property
    def messages(self) -> tuple[TranscriptMessage, ...]:
        return tuple(self._messages)

    @property
    def latest(self) -> Optional[str]:
        return self._messages[-1].content if self._messages else None

    def render(self) -> str:
        return render_conversation(self._messages)

    def __len__(self) -> int:
        return len(self._messages)
