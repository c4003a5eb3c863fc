from typing import Callable

from fastapi import Depends

from app.core.llm import get_text_generator
from app.services.call.feedback import FeedbackRecorder
from app.services.pipeline.interview_pipeline import InterviewPipeline
from app.services.pipeline.interview_store import InterviewStore


def get_interview_store() -> InterviewStore:
    return InterviewStore()


def get_pipeline_factory(store: InterviewStore = Depends(get_interview_store)) -> Callable[[], InterviewPipeline]:
    """
    Dependency for providing a factory to create InterviewPipeline instances.
    This defers building the model client until a request has passed validation.
    """
    def factory(correlation_id: str = None) -> InterviewPipeline:
        return InterviewPipeline(generator=get_text_generator(), store=store, correlation_id=correlation_id)
    return factory


def get_feedback_recorder(store: InterviewStore = Depends(get_interview_store)) -> FeedbackRecorder:
    return FeedbackRecorder(store)
