from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.config import settings

# --- Call Session Models ---


class CallStatus(str, Enum):
    """Lifecycle of one call session."""
    INACTIVE = "INACTIVE"
    CONNECTING = "CONNECTING"
    ACTIVE = "ACTIVE"
    FINISHED = "FINISHED"


class SessionPurpose(str, Enum):
    """What a finished call is dispatched to."""
    GENERATE = "generate"
    INTERVIEW = "interview"


class TranscriptMessage(BaseModel):
    """One finalized utterance of a call."""
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "system", "assistant"]
    content: str


class VoiceMessage(BaseModel):
    """
    Payload of the transport's `message` event.
    Only transcript messages matter here; every other kind passes through untouched.
    """
    model_config = ConfigDict(extra="allow")

    type: str
    transcriptType: Optional[str] = None
    role: Optional[str] = None
    transcript: Optional[str] = None

# --- Pipeline Models ---


class ExtractedParameters(BaseModel):
    """Structured interview parameters, from the extraction stage or the web form."""
    role: str = Field(..., min_length=1, description="Job role, e.g. 'Frontend Developer'.")
    type: str = Field(..., min_length=1, description="Interview type: Technical, Behavioral or Mixed.")
    level: str = Field(..., min_length=1, description="Experience level: Junior, Mid or Senior.")
    techstack: str = Field(..., min_length=1, description="Comma-joined technologies, e.g. 'React, JavaScript'.")
    amount: int = Field(default=settings.DEFAULT_QUESTION_AMOUNT, gt=0, description="Number of questions.")

    @field_validator("role", "type", "level", "techstack", mode="before")
    @classmethod
    def _strip_text(cls, value):
        if isinstance(value, list):
            value = ", ".join(str(item) for item in value)
        return value.strip() if isinstance(value, str) else value

    @field_validator("amount", mode="before")
    @classmethod
    def _default_amount(cls, value):
        return settings.DEFAULT_QUESTION_AMOUNT if value in (None, "") else value

    @field_validator("amount")
    @classmethod
    def _cap_amount(cls, value: int) -> int:
        return min(value, settings.MAX_QUESTION_AMOUNT)

    def techstack_list(self) -> list[str]:
        """Split the comma-joined techstack into trimmed, non-empty entries."""
        return [tech.strip() for tech in self.techstack.split(",") if tech.strip()]


class InterviewRecord(BaseModel):
    """The persisted interview document."""
    id: Optional[str] = Field(default=None, description="Document id assigned by the store.")
    role: str
    type: str
    level: str
    techstack: list[str]
    questions: list[str]
    userId: str
    finalized: bool = True
    coverImage: str
    createdAt: str


class FeedbackRecord(BaseModel):
    """Transcript of a completed mock interview, stored for feedback."""
    id: Optional[str] = None
    interviewId: str
    userId: str
    transcript: list[TranscriptMessage]
    createdAt: str

# --- API Request/Response Models ---


class ExtractAndGenerateRequest(BaseModel):
    conversation: Optional[str] = None
    userid: Optional[str] = None


class GenerateRequest(BaseModel):
    role: Optional[str] = None
    type: Optional[str] = None
    level: Optional[str] = None
    techstack: Optional[str] = None
    amount: Optional[int] = None
    userid: Optional[str] = None


class InterviewResponse(BaseModel):
    """Response envelope shared by both generation endpoints."""
    success: bool
    interview: Optional[InterviewRecord] = None
    error: Optional[str] = None
