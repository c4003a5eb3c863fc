import logging

from app.core.llm import TextGenerator
from app.core.prompts import generate_questions_prompt
from app.schemas.interview import ExtractedParameters
from app.services.pipeline.llm_parser import parse_llm_response

logger = logging.getLogger(__name__)


def fallback_questions(params: ExtractedParameters) -> list[str]:
    """The five template questions, truncated to the requested amount."""
    first_tech = params.techstack.split(",")[0].strip() or "web development"
    return [
        f"What is your experience with {first_tech}?",
        "How do you approach problem-solving in your development work?",
        "Can you explain a challenging project you've worked on?",
        "What are your thoughts on code quality and testing?",
        "How do you stay updated with new technologies?",
    ][:params.amount]


def _questions_parser(amount: int):
    def parse(data) -> list[str]:
        if not isinstance(data, list):
            raise TypeError(f"expected a JSON array, got {type(data).__name__}")
        questions = [item.strip() for item in data if isinstance(item, str) and item.strip()]
        if not questions:
            raise ValueError("no questions in model output")
        return questions[:amount]
    return parse


async def generate_questions(params: ExtractedParameters, generator: TextGenerator) -> list[str]:
    """
    Ask the model for `params.amount` questions as a JSON array of strings.

    Never raises: on any failure the template questions are returned.
    """
    logger.info(f"Starting question generation ({params.amount} x {params.level} {params.role})...")
    prompt = generate_questions_prompt(
        role=params.role,
        type=params.type,
        level=params.level,
        techstack=params.techstack,
        amount=params.amount,
    )
    try:
        raw_questions = await generator.generate(prompt)
    except Exception as e:
        logger.error(f"Question generation request failed, using fallback questions: {e}")
        return fallback_questions(params)

    questions = parse_llm_response(
        raw_questions,
        _questions_parser(params.amount),
        lambda: fallback_questions(params),
        label="questions",
    )
    if len(questions) < params.amount:
        logger.warning(f"Model returned {len(questions)} of {params.amount} requested questions")
    return questions
