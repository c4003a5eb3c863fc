import asyncio
import json

from app.core.exceptions import UpstreamModelError
from app.schemas.interview import ExtractedParameters
from app.services.pipeline.question_generator import fallback_questions, generate_questions

from fakes import FakeTextGenerator

TEMPLATES = [
    "What is your experience with React?",
    "How do you approach problem-solving in your development work?",
    "Can you explain a challenging project you've worked on?",
    "What are your thoughts on code quality and testing?",
    "How do you stay updated with new technologies?",
]


def _params(**overrides) -> ExtractedParameters:
    values = {"role": "Frontend Developer", "type": "Technical", "level": "Junior",
              "techstack": "React, JavaScript", "amount": 5}
    values.update(overrides)
    return ExtractedParameters(**values)


def _generate(params: ExtractedParameters, *responses) -> list[str]:
    return asyncio.run(generate_questions(params, FakeTextGenerator(*responses)))


def test_model_questions_are_returned():
    questions = ["What is JSX?", "Explain closures.", "What is the virtual DOM?"]
    assert _generate(_params(amount=3), json.dumps(questions)) == questions


def test_fenced_array_is_parsed():
    questions = ["What is JSX?", "Explain closures."]
    assert _generate(_params(amount=2), f"```json\n{json.dumps(questions)}\n```") == questions


def test_prompt_mentions_amount_stack_and_type():
    generator = FakeTextGenerator(json.dumps(["Q1"]))
    asyncio.run(generate_questions(_params(amount=1, type="Mixed"), generator))
    prompt = generator.prompts[0]
    assert "Generate 1 interview questions for a Junior Frontend Developer position." in prompt
    assert "Return exactly 1 questions focused on React, JavaScript and Mixed topics." in prompt


def test_malformed_response_with_amount_three_gives_first_three_templates():
    assert _generate(_params(amount=3), "1. What is React?\n2. What is JSX?") == TEMPLATES[:3]


def test_fallback_never_exceeds_five_templates():
    assert _generate(_params(amount=8), "[\"unterminated") == TEMPLATES


def test_non_list_or_empty_output_falls_back():
    assert _generate(_params(), json.dumps({"questions": ["Q1"]})) == TEMPLATES
    assert _generate(_params(), "[]") == TEMPLATES


def test_non_string_items_are_dropped():
    assert _generate(_params(amount=2), json.dumps(["Q1", 42, None, "Q2"])) == ["Q1", "Q2"]


def test_extra_questions_are_truncated_to_amount():
    questions = [f"Question {i}?" for i in range(6)]
    assert _generate(_params(amount=4), json.dumps(questions)) == questions[:4]


def test_upstream_error_falls_back():
    assert _generate(_params(amount=2), UpstreamModelError("rate limit")) == TEMPLATES[:2]


def test_fallback_uses_first_listed_technology():
    assert fallback_questions(_params(techstack="Vue, CSS"))[0] == "What is your experience with Vue?"


def test_fallback_without_technology_mentions_web_development():
    assert fallback_questions(_params(techstack=","))[0] == "What is your experience with web development?"
