import json
import logging
import re
from typing import Any, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_CODE_FENCE_PATTERN = re.compile(r"```json|```")


def clean_llm_json_output(raw_text: str) -> str:
    """Removes markdown code fences and surrounding whitespace from model output."""
    if not raw_text:
        return ""
    return _CODE_FENCE_PATTERN.sub("", raw_text.strip()).strip()


def parse_llm_response(
    raw_text: str,
    parser: Callable[[Any], T],
    fallback: Callable[[], T],
    label: str = "LLM response",
) -> T:
    """
    Parse model output strictly, or return the deterministic fallback.

    `parser` receives the decoded JSON value and raises (ValueError,
    TypeError, pydantic ValidationError) when it does not have the expected
    shape. `fallback` is only called when decoding or `parser` fails.
    """
    cleaned = clean_llm_json_output(raw_text)
    try:
        return parser(json.loads(cleaned))
    except (ValueError, TypeError) as e:
        # json.JSONDecodeError and pydantic.ValidationError are both ValueErrors
        logger.error(f"Error parsing {label}: {e}")
        logger.error(f"Raw output (first 500 chars): {str(raw_text)[:500]}...")
        result = fallback()
        logger.info(f"Using fallback {label}: {result}")
        return result
