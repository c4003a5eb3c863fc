"""
Interview Generation Pipeline Orchestrator.

This module orchestrates the two generation paths:
1. Voice path: conversation -> extraction -> question generation -> persistence
2. Form path: structured parameters -> question generation -> persistence

Orchestration only; each stage lives in its own module and owns its fallback.
"""
from __future__ import annotations
import logging
import uuid
from typing import Optional

from app.core.llm import TextGenerator
from app.core.logger import log_async_execution_time, set_correlation_id
from app.schemas.interview import ExtractedParameters, InterviewRecord
from app.services.pipeline.extraction import extract_parameters
from app.services.pipeline.interview_store import InterviewStore, build_interview_record
from app.services.pipeline.question_generator import generate_questions

logger = logging.getLogger(__name__)


class InterviewPipeline:
    """
    Coordinates extraction, question generation and persistence.

    Model failures never leave the stages; a failed store write propagates
    as PersistenceError for the caller to report.
    """

    def __init__(self, generator: TextGenerator, store: InterviewStore, correlation_id: Optional[str] = None):
        self.generator = generator
        self.store = store
        self.correlation_id = correlation_id or str(uuid.uuid4())
        set_correlation_id(self.correlation_id)

    @log_async_execution_time
    async def extract_and_generate(self, conversation: str, user_id: str) -> InterviewRecord:
        params = await extract_parameters(conversation, self.generator)
        logger.info(f"Interview details: {params.model_dump()}")
        return await self.generate_from_parameters(params, user_id)

    @log_async_execution_time
    async def generate_from_parameters(self, params: ExtractedParameters, user_id: str) -> InterviewRecord:
        questions = await generate_questions(params, self.generator)
        record = build_interview_record(params, questions, user_id)
        logger.info(f"Saving interview for user {user_id}: {len(questions)} questions")
        return await self.store.add(record)
