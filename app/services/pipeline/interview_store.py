import asyncio
import logging
import random
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.database import DocumentStore
from app.core.exceptions import PersistenceError
from app.schemas.interview import ExtractedParameters, FeedbackRecord, InterviewRecord

logger = logging.getLogger(__name__)

INTERVIEWS_COLLECTION = "interviews"
FEEDBACK_COLLECTION = "feedback"

COVER_IMAGES = [
    "/covers/adobe.png",
    "/covers/amazon.png",
    "/covers/facebook.png",
    "/covers/hostinger.png",
    "/covers/pinterest.png",
    "/covers/quora.png",
    "/covers/reddit.png",
    "/covers/skype.png",
    "/covers/spotify.png",
    "/covers/telegram.png",
    "/covers/tiktok.png",
    "/covers/yahoo.png",
]


def get_random_interview_cover() -> str:
    return random.choice(COVER_IMAGES)


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp; sorts lexicographically in time order."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_interview_record(params: ExtractedParameters, questions: list[str], user_id: str) -> InterviewRecord:
    return InterviewRecord(
        role=params.role,
        type=params.type,
        level=params.level,
        techstack=params.techstack_list(),
        questions=questions,
        userId=user_id,
        finalized=True,
        coverImage=get_random_interview_cover(),
        createdAt=utc_timestamp(),
    )


class InterviewStore:
    """
    Writes interview and feedback documents.

    Each write is a single insert bounded by PERSISTENCE_TIMEOUT. Failures
    surface as PersistenceError and are never retried here.
    """

    def __init__(self, documents: Optional[DocumentStore] = None, timeout: float = settings.PERSISTENCE_TIMEOUT):
        self._documents = documents or DocumentStore()
        self.timeout = timeout

    async def _insert(self, collection: str, data: dict) -> str:
        try:
            return await asyncio.wait_for(self._documents.add(collection, data), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"Database write to '{collection}' timed out after {self.timeout}s")
            raise PersistenceError(f"Failed to save {collection} document: timed out") from e
        except SQLAlchemyError as e:
            logger.error(f"Database error: {e}", exc_info=True)
            raise PersistenceError(f"Failed to save {collection} document: {e}") from e

    async def add(self, record: InterviewRecord) -> InterviewRecord:
        doc_id = await self._insert(INTERVIEWS_COLLECTION, record.model_dump(exclude={"id"}))
        logger.info(f"Interview saved successfully (id={doc_id})")
        return record.model_copy(update={"id": doc_id})

    async def get(self, interview_id: str) -> Optional[InterviewRecord]:
        data = await self._documents.get(INTERVIEWS_COLLECTION, interview_id)
        return InterviewRecord(id=interview_id, **data) if data is not None else None

    async def add_feedback(self, record: FeedbackRecord) -> str:
        doc_id = await self._insert(FEEDBACK_COLLECTION, record.model_dump(exclude={"id"}))
        logger.info(f"Feedback saved successfully (id={doc_id})")
        return doc_id
