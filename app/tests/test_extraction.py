"""
Tests for the extraction stage: strict JSON parsing, fence stripping and the
keyword fallback used when the model output is unusable.
"""
import asyncio
import json
import logging

from app.core.exceptions import UpstreamModelError
from app.schemas.interview import ExtractedParameters
from app.services.pipeline.extraction import DEFAULT_PARAMETERS, extract_parameters, fallback_parameters
from app.services.pipeline.llm_parser import clean_llm_json_output, parse_llm_response

from fakes import FakeTextGenerator

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

FRONTEND_CONVERSATION = (
    "assistant: Hi! What kind of interview would you like to practice?\n"
    "user: I want to practice for a Frontend Developer role, technical interview, "
    "junior level, using React and JavaScript, 4 questions"
)

VALID_DETAILS = {
    "role": "Backend Developer",
    "type": "Behavioral",
    "level": "Senior",
    "techstack": "Python, Django",
    "amount": 7,
}


def _extract(conversation: str, *responses) -> ExtractedParameters:
    return asyncio.run(extract_parameters(conversation, FakeTextGenerator(*responses)))


def _assert_fully_populated(params: ExtractedParameters):
    for field in ("role", "type", "level", "techstack"):
        assert getattr(params, field).strip()
    assert params.amount > 0


def test_clean_llm_json_output_strips_fences_and_whitespace():
    fenced = "\n```json\n{\"a\": 1}\n```\n"
    assert clean_llm_json_output(fenced) == "{\"a\": 1}"
    assert clean_llm_json_output("") == ""


def test_parse_llm_response_uses_fallback_on_prose():
    result = parse_llm_response("Sure! Here is the JSON you asked for.", json.dumps, lambda: "fallback")
    assert result == "fallback"


def test_valid_model_output_is_used_as_is():
    params = _extract(FRONTEND_CONVERSATION, json.dumps(VALID_DETAILS))
    assert params == ExtractedParameters(**VALID_DETAILS)


def test_fenced_output_parses_like_unfenced_output():
    plain = _extract(FRONTEND_CONVERSATION, json.dumps(VALID_DETAILS))
    fenced = _extract(FRONTEND_CONVERSATION, f"```json\n{json.dumps(VALID_DETAILS)}\n```")
    bare_fence = _extract(FRONTEND_CONVERSATION, f"```{json.dumps(VALID_DETAILS)}```")
    assert plain == fenced == bare_fence


def test_prompt_contains_conversation():
    generator = FakeTextGenerator(json.dumps(VALID_DETAILS))
    asyncio.run(extract_parameters(FRONTEND_CONVERSATION, generator))
    assert FRONTEND_CONVERSATION in generator.prompts[0]
    assert "ONLY valid JSON" in generator.prompts[0]


def test_malformed_output_still_yields_full_parameters():
    for malformed in ["{\"role\": \"Frontend", "not json at all", "[1, 2, 3]", "null", "{}", ""]:
        params = _extract("user: hello there", malformed)
        _assert_fully_populated(params)


def test_missing_amount_defaults_to_five():
    details = {key: value for key, value in VALID_DETAILS.items() if key != "amount"}
    assert _extract(FRONTEND_CONVERSATION, json.dumps(details)).amount == 5
    details["amount"] = None
    assert _extract(FRONTEND_CONVERSATION, json.dumps(details)).amount == 5


def test_upstream_error_falls_back():
    params = _extract(FRONTEND_CONVERSATION, UpstreamModelError("gemini request timed out"))
    assert params.role == "Frontend Developer"


def test_fallback_reproduces_frontend_scenario():
    params = _extract(FRONTEND_CONVERSATION, "I'm sorry, I can't help with that.")
    assert params.model_dump() == {
        "role": "Frontend Developer",
        "type": "Technical",
        "level": "Junior",
        "techstack": "React, JavaScript",
        "amount": 4,
    }


def test_fallback_defaults_without_keywords():
    conversation = "assistant: Hello, how can I help?\nuser: I would like some practice please."
    params = _extract(conversation, "```json\n{oops\n```")
    assert params.model_dump() == DEFAULT_PARAMETERS


def test_fallback_role_priority_and_spellings():
    assert fallback_parameters("user: front-end and backend").role == "Frontend Developer"
    assert fallback_parameters("user: mostly back-end work").role == "Backend Developer"
    assert fallback_parameters("user: a full-stack position").role == "Full Stack Developer"
    assert fallback_parameters("user: fullstack").role == "Full Stack Developer"


def test_fallback_tech_keywords_follow_keyword_order():
    params = fallback_parameters("user: Vue, Python and node.js, some HTML")
    assert params.techstack == "HTML, Node, Python, Vue"


def test_fallback_does_not_report_java_for_javascript():
    assert fallback_parameters("user: JavaScript only").techstack == "JavaScript"
    assert fallback_parameters("user: Java and JavaScript").techstack == "JavaScript, Java"


def test_fallback_recognizes_js_suffixed_names():
    assert fallback_parameters("user: I work with ReactJS, NodeJS and VueJS").techstack == "React, Node, Vue"
    assert fallback_parameters("user: JavaScript and Java8").techstack == "JavaScript, Java"


def test_fallback_reads_level_type_and_amount_from_user_turns():
    conversation = (
        "assistant: Junior, mid or senior? Technical, behavioral or mixed? How many questions, maybe 10 questions?\n"
        "user: senior please, behavioural, and three questions"
    )
    params = fallback_parameters(conversation)
    assert params.level == "Senior"
    assert params.type == "Behavioral"
    assert params.amount == 3
