import logging
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, WebSocket
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from app.api.deps import get_feedback_recorder, get_interview_store, get_pipeline_factory
from app.core.exceptions import PersistenceError
from app.schemas.interview import (
    ExtractAndGenerateRequest,
    ExtractedParameters,
    GenerateRequest,
    InterviewRecord,
    InterviewResponse,
)
from app.services.call.feedback import FeedbackRecorder
from app.services.call.relay import CallRelay, manager
from app.services.pipeline.interview_pipeline import InterviewPipeline
from app.services.pipeline.interview_store import InterviewStore

# Configure logging
logger = logging.getLogger(__name__)

interview_router = APIRouter()


def _failure(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


async def _run_pipeline(run) -> InterviewResponse | JSONResponse:
    try:
        interview = await run()
    except PersistenceError:
        return _failure(500, "Failed to save interview to database")
    except Exception as e:
        logger.error(f"Error in interview generation: {e}", exc_info=True)
        return _failure(500, str(e) or "Unknown error occurred")
    return InterviewResponse(success=True, interview=interview)


@interview_router.post("/vapi/extract-and-generate", response_model=InterviewResponse, response_model_exclude_none=True)
async def extract_and_generate(
    request: ExtractAndGenerateRequest,
    pipeline_factory: Callable[[], InterviewPipeline] = Depends(get_pipeline_factory),
):
    """
    Generates and stores an interview from a voice-call transcript.

    Flow:
    1. Validate conversation and user id
    2. Extract interview details from the conversation (keyword fallback)
    3. Generate questions (template fallback)
    4. Save the interview document
    """
    if not request.conversation or not request.userid:
        logger.error("Missing required parameters")
        return _failure(400, "Missing conversation or userid")

    logger.info(f"Received extract-and-generate request for user {request.userid}")
    return await _run_pipeline(
        lambda: pipeline_factory().extract_and_generate(request.conversation, request.userid)
    )


@interview_router.post("/vapi/generate", response_model=InterviewResponse, response_model_exclude_none=True)
async def generate_interview(
    request: GenerateRequest,
    pipeline_factory: Callable[[], InterviewPipeline] = Depends(get_pipeline_factory),
):
    """Generates and stores an interview from form parameters, skipping extraction."""
    if not all([request.role, request.type, request.level, request.techstack, request.userid]):
        logger.error("Missing required parameters")
        return _failure(400, "Missing required fields")

    try:
        params = ExtractedParameters(
            role=request.role,
            type=request.type,
            level=request.level,
            techstack=request.techstack,
            amount=request.amount,
        )
    except ValidationError as e:
        logger.warning(f"Invalid interview parameters: {e}")
        return _failure(400, "Invalid interview parameters")

    return await _run_pipeline(lambda: pipeline_factory().generate_from_parameters(params, request.userid))


@interview_router.get("/interviews/{interview_id}", response_model=InterviewRecord)
async def get_interview(interview_id: str, store: InterviewStore = Depends(get_interview_store)):
    interview = await store.get(interview_id)
    if interview is None:
        raise HTTPException(status_code=404, detail="Interview not found")
    return interview


@interview_router.websocket("/ws/call/{client_id}")
async def call_session_endpoint(
    websocket: WebSocket,
    client_id: str,
    pipeline_factory: Callable[[], InterviewPipeline] = Depends(get_pipeline_factory),
    feedback: FeedbackRecorder = Depends(get_feedback_recorder),
):
    await websocket.accept()
    relay = CallRelay(websocket, pipeline_factory=pipeline_factory, feedback=feedback)
    manager.connect(client_id, relay)
    try:
        await relay.run()
    finally:
        manager.disconnect(client_id, relay)
