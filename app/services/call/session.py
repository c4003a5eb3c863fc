"""
Call session controller.

One controller per page view. It starts and stops the voice call, feeds the
transcript accumulator from transport events and, exactly once per finished
call, hands the transcript to either the interview generation pipeline or the
feedback collaborator.

States: INACTIVE -> CONNECTING -> ACTIVE -> FINISHED. A new call may be
started from FINISHED; it resets the transcript and the processed flag.
"""
import asyncio
import logging
from typing import Any, Optional, Protocol, Sequence

from pydantic import ValidationError

from app.core.config import settings
from app.core.exceptions import ConfigurationError, InvalidTransitionError, PersistenceError
from app.core.prompts import GENERATION_AGENT_PROMPT, INTERVIEWER_PROMPT, format_questions_for_call
from app.schemas.interview import CallStatus, InterviewRecord, SessionPurpose, TranscriptMessage
from app.services.call.transcript import TranscriptAccumulator, render_conversation
from app.services.call.transport import (
    CALL_END,
    CALL_START,
    ERROR,
    MESSAGE,
    SPEECH_END,
    SPEECH_START,
    EventSubscriptions,
    VoiceTransport,
)

logger = logging.getLogger(__name__)


class SessionNotifier(Protocol):
    """User-facing side effects of a session (alerts, redirects, presentation state)."""

    def notify(self, level: str, message: str) -> None:
        ...

    def navigate(self, path: str) -> None:
        ...

    def status_changed(self, status: CallStatus, is_speaking: bool) -> None:
        ...

    def transcript_updated(self, message: TranscriptMessage) -> None:
        ...


class InterviewGenerator(Protocol):
    async def extract_and_generate(self, conversation: str, user_id: str) -> InterviewRecord:
        ...


class FeedbackHandler(Protocol):
    async def create_feedback(self, interview_id: str, user_id: str, transcript: Sequence[TranscriptMessage]) -> str:
        ...


def generation_call_config(user_name: str, user_id: str, workflow_id: str = "") -> dict[str, Any]:
    """Call config for the agent that asks the user what interview they want."""
    return {
        "workflowId": workflow_id or settings.VAPI_WORKFLOW_ID,
        "assistant": {"systemPrompt": GENERATION_AGENT_PROMPT.format(username=user_name or "there")},
        "variableValues": {"username": user_name, "userid": user_id},
    }


def interview_call_config(questions: Optional[Sequence[str]]) -> dict[str, Any]:
    """Call config for the interviewer, with the question list injected as context."""
    return {
        "assistant": {"systemPrompt": INTERVIEWER_PROMPT},
        "variableValues": {"questions": format_questions_for_call(questions or [])},
    }


class CallSessionController:

    def __init__(
        self,
        transport: VoiceTransport,
        purpose: SessionPurpose,
        user_id: str,
        notifier: SessionNotifier,
        pipeline: Optional[InterviewGenerator] = None,
        feedback: Optional[FeedbackHandler] = None,
        user_name: str = "",
        interview_id: Optional[str] = None,
        questions: Optional[Sequence[str]] = None,
        workflow_id: str = "",
        grace_seconds: float = settings.DISCONNECT_GRACE_SECONDS,
    ):
        purpose = SessionPurpose(purpose)
        if purpose is SessionPurpose.GENERATE and pipeline is None:
            raise ConfigurationError("A generate session needs an interview pipeline")
        if purpose is SessionPurpose.INTERVIEW and (feedback is None or not interview_id):
            raise ConfigurationError("An interview session needs a feedback handler and an interview id")

        self.transport = transport
        self.purpose = purpose
        self.user_id = user_id
        self.user_name = user_name
        self.interview_id = interview_id
        self.questions = list(questions or [])
        self.workflow_id = workflow_id
        self.grace_seconds = grace_seconds
        self.notifier = notifier
        self.pipeline = pipeline
        self.feedback = feedback

        self.transcript = TranscriptAccumulator()
        self.status = CallStatus.INACTIVE
        self.is_speaking = False
        self.result: Any = None

        self._processed = False
        self._call_ended = asyncio.Event()
        self._dispatch_task: Optional[asyncio.Task] = None
        self._subscriptions = EventSubscriptions(transport)

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    async def start(self) -> None:
        if self.status in (CallStatus.CONNECTING, CallStatus.ACTIVE):
            raise InvalidTransitionError(f"Cannot start a call while {self.status.value}")
        if self._dispatch_task is not None and not self._dispatch_task.done():
            # the previous call's result, notices and redirect belong to that call
            raise InvalidTransitionError("Cannot start a call while the previous call is still being processed")

        logger.info(f"Starting call - purpose: {self.purpose.value}, userId: {self.user_id}")
        self.transcript.reset()
        self._processed = False
        self._call_ended.clear()
        self.result = None
        self._subscribe()
        self._set_status(CallStatus.CONNECTING)

        try:
            await self.transport.start(self._call_config())
        except Exception as e:
            logger.error(f"Voice transport failed to start: {e}", exc_info=True)
            self.notifier.notify("error", "Could not start the call. Please try again.")
            self._set_status(CallStatus.INACTIVE)

    async def stop(self) -> None:
        """
        Manual disconnect. Stops the transport, then waits up to
        `grace_seconds` for its call-end event before forcing FINISHED.
        """
        if self.status in (CallStatus.INACTIVE, CallStatus.FINISHED):
            logger.info(f"Disconnect ignored, call is {self.status.value}")
            return

        logger.info("Manual disconnect triggered")
        try:
            await self.transport.stop()
        except Exception as e:
            logger.error(f"Voice transport failed to stop cleanly: {e}")

        try:
            await asyncio.wait_for(self._call_ended.wait(), timeout=self.grace_seconds)
        except asyncio.TimeoutError:
            logger.warning(f"No call-end event within {self.grace_seconds}s, forcing FINISHED")
        self._finish()

    def close(self) -> None:
        """Tear down: remove transport handlers. An in-flight dispatch keeps running."""
        self._subscriptions.close()

    async def wait_dispatched(self) -> Any:
        """Wait for the post-call dispatch (if any) and return its result."""
        if self._dispatch_task is not None:
            await self._dispatch_task
        return self.result

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.close()

    # ------------------------------------------------------------------
    # Transport events
    # ------------------------------------------------------------------

    def _subscribe(self) -> None:
        if self._subscriptions.active:
            return
        self._subscriptions.subscribe(CALL_START, self._on_call_start)
        self._subscriptions.subscribe(CALL_END, self._on_call_end)
        self._subscriptions.subscribe(MESSAGE, self._on_message)
        self._subscriptions.subscribe(SPEECH_START, self._on_speech_start)
        self._subscriptions.subscribe(SPEECH_END, self._on_speech_end)
        self._subscriptions.subscribe(ERROR, self._on_error)

    def _on_call_start(self, *args) -> None:
        if self.status is CallStatus.FINISHED:
            logger.warning("Late call-start after the call finished, ignoring")
            return
        logger.info("Call started")
        self._set_status(CallStatus.ACTIVE)

    def _on_call_end(self, *args) -> None:
        logger.info("Call ended")
        self._call_ended.set()
        self._finish()

    def _on_message(self, message) -> None:
        try:
            saved = self.transcript.append(message)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed transport message: {e}")
            return
        if saved is not None:
            self.notifier.transcript_updated(saved)

    def _on_speech_start(self, *args) -> None:
        self.is_speaking = True
        self.notifier.status_changed(self.status, self.is_speaking)

    def _on_speech_end(self, *args) -> None:
        self.is_speaking = False
        self.notifier.status_changed(self.status, self.is_speaking)

    def _on_error(self, error=None, *args) -> None:
        logger.error(f"Voice transport error: {error}")

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _set_status(self, status: CallStatus) -> None:
        self.status = status
        if status is not CallStatus.ACTIVE:
            self.is_speaking = False
        self.notifier.status_changed(status, self.is_speaking)

    def _finish(self) -> None:
        if self.status is not CallStatus.FINISHED:
            self._set_status(CallStatus.FINISHED)
        self._on_finished()

    def _on_finished(self) -> None:
        if self._processed:
            return
        self._processed = True

        messages = self.transcript.messages
        if not messages:
            logger.error(f"No messages to process for {self.purpose.value}")
            self.notifier.notify("error", "No conversation data found. Please try again.")
            self.notifier.navigate("/")
            return

        logger.info(f"Call finished with {len(messages)} messages, dispatching {self.purpose.value}")
        self._dispatch_task = asyncio.get_running_loop().create_task(self._dispatch(messages))

    async def _dispatch(self, messages: tuple[TranscriptMessage, ...]) -> None:
        if self.purpose is SessionPurpose.GENERATE:
            await self._generate_interview(messages)
        else:
            await self._generate_feedback(messages)

    async def _generate_interview(self, messages: tuple[TranscriptMessage, ...]) -> None:
        conversation = render_conversation(messages)
        try:
            self.result = await self.pipeline.extract_and_generate(conversation, self.user_id)
        except PersistenceError as e:
            logger.error(f"Error saving generated interview: {e.message}")
            self.notifier.notify("error", "Failed to generate interview. Please try again.")
        except Exception as e:
            logger.error(f"Error in interview generation: {e}", exc_info=True)
            self.notifier.notify("error", "An error occurred while generating interview. Please try again.")
        else:
            self.notifier.notify("success", "Interview generated successfully! Redirecting to home page.")
        self.notifier.navigate("/")

    async def _generate_feedback(self, messages: tuple[TranscriptMessage, ...]) -> None:
        try:
            self.result = await self.feedback.create_feedback(self.interview_id, self.user_id, messages)
        except Exception as e:
            logger.error(f"Error in feedback generation: {e}", exc_info=True)
            self.notifier.notify("error", "Failed to generate feedback. Please try again.")
            self.notifier.navigate("/")
            return
        self.notifier.navigate(f"/interview/{self.interview_id}/feedback")

    def _call_config(self) -> dict[str, Any]:
        if self.purpose is SessionPurpose.GENERATE:
            return generation_call_config(self.user_name, self.user_id, self.workflow_id)
        return interview_call_config(self.questions)
