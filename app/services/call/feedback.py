import logging
from typing import Sequence

from app.schemas.interview import FeedbackRecord, TranscriptMessage
from app.services.pipeline.interview_store import InterviewStore, utc_timestamp

logger = logging.getLogger(__name__)


class FeedbackRecorder:
    """Stores the transcript of a finished mock interview for later feedback."""

    def __init__(self, store: InterviewStore):
        self.store = store

    async def create_feedback(self, interview_id: str, user_id: str, transcript: Sequence[TranscriptMessage]) -> str:
        record = FeedbackRecord(
            interviewId=interview_id,
            userId=user_id,
            transcript=list(transcript),
            createdAt=utc_timestamp(),
        )
        feedback_id = await self.store.add_feedback(record)
        logger.info(f"Feedback created for interview {interview_id}: {feedback_id}")
        return feedback_id
