import asyncio

import pytest

from app.core.config import settings
from app.core.exceptions import ConfigurationError, UpstreamModelError
from app.core.llm import BaseTextGenerator, _is_retryable_error, get_text_generator


class ServiceUnavailable(Exception):
    code = 503


class ScriptedGenerator(BaseTextGenerator):
    provider = "scripted"

    def __init__(self, *outcomes, delay: float = 0.0, **kwargs):
        super().__init__("scripted-model", **kwargs)
        self.outcomes = list(outcomes)
        self.delay = delay
        self.attempts = 0

    async def _complete(self, prompt: str) -> str:
        self.attempts += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    monkeypatch.setattr(settings, "RETRY_BASE_DELAY", 0.0)
    monkeypatch.setattr(settings, "RETRY_MAX_DELAY", 0.0)


def test_transient_error_is_retried():
    generator = ScriptedGenerator(ServiceUnavailable("unavailable"), "[\"Q1\"]", max_attempts=3)
    assert asyncio.run(generator.generate("prompt")) == "[\"Q1\"]"
    assert generator.attempts == 2


def test_retries_are_bounded():
    generator = ScriptedGenerator(*[Exception("429 Resource exhausted")] * 3, max_attempts=3)
    with pytest.raises(UpstreamModelError):
        asyncio.run(generator.generate("prompt"))
    assert generator.attempts == 3


def test_non_transient_error_fails_fast():
    generator = ScriptedGenerator(ValueError("invalid api key"), "unused", max_attempts=3)
    with pytest.raises(UpstreamModelError, match="invalid api key"):
        asyncio.run(generator.generate("prompt"))
    assert generator.attempts == 1


def test_timeout_becomes_upstream_error():
    generator = ScriptedGenerator("too late", delay=1.0, timeout=0.05, max_attempts=1)
    with pytest.raises(UpstreamModelError, match="timed out"):
        asyncio.run(generator.generate("prompt"))


def test_retryable_error_detection():
    assert _is_retryable_error(ServiceUnavailable())
    assert _is_retryable_error(Exception("Rate limit reached for model"))
    assert not _is_retryable_error(ValueError("bad request"))


def test_unknown_provider_is_a_configuration_error(monkeypatch):
    monkeypatch.setattr(settings, "LLM_PROVIDER", "unknown")
    get_text_generator.cache_clear()
    try:
        with pytest.raises(ConfigurationError):
            get_text_generator()
    finally:
        get_text_generator.cache_clear()


def test_missing_key_is_a_configuration_error(monkeypatch):
    monkeypatch.setattr(settings, "LLM_PROVIDER", "gemini")
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "")
    get_text_generator.cache_clear()
    try:
        with pytest.raises(ConfigurationError):
            get_text_generator()
    finally:
        get_text_generator.cache_clear()
