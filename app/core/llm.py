"""
Generative-text backends.

This module provides:
- A small `TextGenerator` contract (prompt in, raw text out) used by the
  extraction and question generation stages
- A Gemini backend on the GenAI SDK and a Groq backend on LangChain's ChatGroq
- Shared timeout and transient-error retry handling for both
"""
import asyncio
import logging
from functools import lru_cache
from typing import Protocol

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from app.core.config import settings
from app.core.exceptions import ConfigurationError, UpstreamModelError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class TextGenerator(Protocol):
    """Anything that can turn a prompt into model text."""

    async def generate(self, prompt: str) -> str:
        ...


def _is_retryable_error(error: BaseException) -> bool:
    """Check if an error is a transient upstream failure (rate limit, 5xx, dropped connection)."""
    status = getattr(error, "code", None) or getattr(error, "status_code", None)
    if isinstance(status, int) and status in RETRYABLE_STATUS_CODES:
        return True

    error_str = str(error).lower()
    retryable_patterns = [
        "resource exhausted",
        "rate limit",
        "service unavailable",
        "internal server error",
        "bad gateway",
        "connection reset",
    ]
    return any(pattern in error_str for pattern in retryable_patterns)


class BaseTextGenerator:
    """
    Wraps a single provider call with a hard timeout and bounded retries.

    Subclasses implement `_complete`. Every failure that leaves `generate`
    is an `UpstreamModelError`.
    """

    provider = "base"

    def __init__(
        self,
        model: str,
        timeout: float = settings.LLM_REQUEST_TIMEOUT,
        max_attempts: int = settings.RETRY_MAX_ATTEMPTS,
    ):
        self.model = model
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)

    async def _complete(self, prompt: str) -> str:
        raise NotImplementedError

    async def generate(self, prompt: str) -> str:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=settings.RETRY_BASE_DELAY, max=settings.RETRY_MAX_DELAY),
            retry=retry_if_exception(_is_retryable_error),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    text = await asyncio.wait_for(self._complete(prompt), timeout=self.timeout)
                    logger.debug(f"[{self.provider}] Response preview: {text[:200]}...")
                    return text
        except asyncio.TimeoutError as e:
            logger.warning(f"[{self.provider}] No response from {self.model} within {self.timeout}s")
            raise UpstreamModelError(f"{self.provider} request timed out after {self.timeout}s") from e
        except UpstreamModelError:
            raise
        except Exception as e:
            logger.error(f"[{self.provider}] Model call failed: {e}")
            raise UpstreamModelError(f"{self.provider} request failed: {e}") from e
        raise UpstreamModelError(f"{self.provider} request produced no attempts")


class GeminiTextGenerator(BaseTextGenerator):
    """Gemini via the GenAI SDK's async client."""

    provider = "gemini"

    def __init__(self, api_key: str, model: str = settings.GEMINI_MODEL, **kwargs):
        super().__init__(model, **kwargs)
        from google import genai
        from google.genai import types

        self._client = genai.Client(api_key=api_key)
        self._config = types.GenerateContentConfig(temperature=settings.LLM_TEMPERATURE)

    async def _complete(self, prompt: str) -> str:
        response = await self._client.aio.models.generate_content(
            model=self.model,
            contents=prompt,
            config=self._config,
        )
        return response.text or ""


class GroqTextGenerator(BaseTextGenerator):
    """Groq via LangChain's ChatGroq."""

    provider = "groq"

    def __init__(self, api_key: str, model: str = settings.GROQ_MODEL, **kwargs):
        super().__init__(model, **kwargs)
        from langchain_groq import ChatGroq

        self._chat = ChatGroq(model=model, temperature=settings.LLM_TEMPERATURE, api_key=api_key)

    async def _complete(self, prompt: str) -> str:
        from langchain_core.messages import HumanMessage

        response = await self._chat.ainvoke([HumanMessage(content=prompt)])
        content = response.content if hasattr(response, "content") else response
        return content if isinstance(content, str) else str(content)


@lru_cache(maxsize=1)
def get_text_generator() -> TextGenerator:
    """Build the configured backend once per process."""
    provider = settings.LLM_PROVIDER.lower()
    if provider == "gemini":
        if not settings.GEMINI_API_KEY:
            raise ConfigurationError("GEMINI_API_KEY is not set")
        return GeminiTextGenerator(api_key=settings.GEMINI_API_KEY)
    if provider == "groq":
        if not settings.GROQ_API_KEY:
            raise ConfigurationError("GROQ_API_KEY is not set")
        return GroqTextGenerator(api_key=settings.GROQ_API_KEY)
    raise ConfigurationError(f"Unknown LLM_PROVIDER: {settings.LLM_PROVIDER}")
