"""
Extraction stage: call transcript -> ExtractedParameters.

The model is asked for a strict JSON object. When its answer cannot be parsed
the parameters are rebuilt from keyword hints in the conversation instead, so
this stage always returns a fully populated value.
"""
import logging
import re
from typing import Optional

from app.core.llm import TextGenerator
from app.core.prompts import generate_extraction_prompt
from app.schemas.interview import ExtractedParameters
from app.services.pipeline.llm_parser import parse_llm_response

logger = logging.getLogger(__name__)

DEFAULT_PARAMETERS = {
    "role": "Software Developer",
    "type": "Technical",
    "level": "Junior",
    "techstack": "React, JavaScript, HTML, CSS",
    "amount": 5,
}

# First match wins
ROLE_HINTS = [
    (("frontend", "front-end"), "Frontend Developer"),
    (("backend", "back-end"), "Backend Developer"),
    (("fullstack", "full-stack"), "Full Stack Developer"),
]

# Keyword -> display name, in scan order
TECH_KEYWORDS = {
    "react": "React",
    "javascript": "JavaScript",
    "html": "HTML",
    "css": "CSS",
    "node": "Node",
    "python": "Python",
    "java": "Java",
    "angular": "Angular",
    "vue": "Vue",
}

LEVEL_HINTS = [
    (re.compile(r"\b(junior|entry[- ]level)\b"), "Junior"),
    (re.compile(r"\b(mid|mid[- ]level|intermediate)\b"), "Mid"),
    (re.compile(r"\bsenior\b"), "Senior"),
]

TYPE_HINTS = [
    (re.compile(r"\bmixed\b"), "Mixed"),
    (re.compile(r"\bbehaviou?ral\b"), "Behavioral"),
    (re.compile(r"\btechnical\b"), "Technical"),
]

_NUMBER_WORDS = {
    "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10,
    "eleven": 11, "twelve": 12, "fifteen": 15, "twenty": 20,
}
_AMOUNT_PATTERN = re.compile(
    r"\b(\d{1,2}|" + "|".join(_NUMBER_WORDS) + r")\s+(?:[a-z-]+\s+)?questions?\b"
)
# Start-anchored so "reactjs" and "node.js" still count; "java" must not match "javascript"
_TECH_PATTERNS = {keyword: re.compile(rf"\b{keyword}") for keyword in TECH_KEYWORDS}
_TECH_PATTERNS["java"] = re.compile(r"\bjava(?!script)")


def _user_text(conversation: str) -> str:
    """User turns only, so the agent listing options does not count as an answer."""
    user_lines = [
        line.split(":", 1)[1] for line in conversation.splitlines()
        if line.lower().startswith("user:")
    ]
    return "\n".join(user_lines) if user_lines else conversation


def _match_first(text: str, hints) -> Optional[str]:
    for pattern, value in hints:
        if pattern.search(text):
            return value
    return None


def _match_amount(text: str) -> Optional[int]:
    match = _AMOUNT_PATTERN.search(text)
    if not match:
        return None
    token = match.group(1)
    amount = int(token) if token.isdigit() else _NUMBER_WORDS[token]
    return amount or None


def fallback_parameters(conversation: str) -> ExtractedParameters:
    """
    Deterministic parameters from keyword hints.

    Role and tech keywords are scanned over the whole conversation. Level,
    type and question count are read from the user's own turns.
    """
    lowered = conversation.lower()
    details = dict(DEFAULT_PARAMETERS)

    for keywords, role in ROLE_HINTS:
        if any(keyword in lowered for keyword in keywords):
            details["role"] = role
            break

    found_tech = [name for keyword, name in TECH_KEYWORDS.items() if _TECH_PATTERNS[keyword].search(lowered)]
    if found_tech:
        details["techstack"] = ", ".join(found_tech)

    user_text = _user_text(lowered)
    details["level"] = _match_first(user_text, LEVEL_HINTS) or details["level"]
    details["type"] = _match_first(user_text, TYPE_HINTS) or details["type"]
    details["amount"] = _match_amount(user_text) or details["amount"]

    return ExtractedParameters(**details)


def _parse_parameters(data) -> ExtractedParameters:
    if not isinstance(data, dict):
        raise TypeError(f"expected a JSON object, got {type(data).__name__}")
    return ExtractedParameters.model_validate(data)


async def extract_parameters(conversation: str, generator: TextGenerator) -> ExtractedParameters:
    """
    Extract interview parameters from a rendered conversation.

    Never raises: model errors and unparsable output both end in
    `fallback_parameters`.
    """
    logger.info("Starting AI extraction...")
    try:
        raw_details = await generator.generate(generate_extraction_prompt(conversation))
    except Exception as e:
        logger.error(f"Extraction request failed, using fallback extraction: {e}")
        return fallback_parameters(conversation)

    logger.info(f"Extracted details: {raw_details}")
    return parse_llm_response(
        raw_details,
        _parse_parameters,
        lambda: fallback_parameters(conversation),
        label="interview details",
    )
