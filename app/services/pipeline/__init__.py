"""
Interview Generation Pipeline Package

Architecture:
- interview_pipeline.py: Pipeline orchestration
- extraction.py: Conversation -> interview parameters (with keyword fallback)
- question_generator.py: Parameters -> questions (with template fallback)
- interview_store.py: Interview record assembly and persistence
- llm_parser.py: Fence stripping and parse-or-fallback
"""

from .interview_pipeline import InterviewPipeline
from .interview_store import InterviewStore, build_interview_record
from .extraction import extract_parameters, fallback_parameters
from .question_generator import generate_questions, fallback_questions
from .llm_parser import parse_llm_response, clean_llm_json_output

__all__ = [
    'InterviewPipeline',
    'InterviewStore',
    'build_interview_record',
    'extract_parameters',
    'fallback_parameters',
    'generate_questions',
    'fallback_questions',
    'parse_llm_response',
    'clean_llm_json_output',
]
