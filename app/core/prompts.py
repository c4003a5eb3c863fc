from typing import List


def generate_extraction_prompt(conversation: str) -> str:
    """
    Generate the prompt that turns a call transcript into interview parameters.

    Args:
        conversation: The transcript rendered as "<role>: <content>" lines.

    Returns:
        The formatted prompt string.
    """
    return (
        "Extract interview details from this conversation and return ONLY valid JSON.\n\n"
        f"Conversation:\n{conversation}\n\n"
        "Extract the following information and return ONLY valid JSON (no other text):\n"
        "- role: The job role mentioned (e.g., \"Frontend Developer\", \"Software Engineer\")\n"
        "- type: The interview type mentioned (e.g., \"Technical\", \"Behavioral\", \"Mixed\")\n"
        "- level: The experience level mentioned (e.g., \"Junior\", \"Mid\", \"Senior\")\n"
        "- techstack: The technologies mentioned (comma-separated, e.g., \"React, JavaScript, HTML, CSS\")\n"
        "- amount: Number of questions requested (default to 5 if not specified)\n\n"
        "IMPORTANT: Return ONLY this exact JSON format with no additional text, explanations, or formatting:\n"
        "{\"role\":\"Software Developer\",\"type\":\"Technical\",\"level\":\"Junior\","
        "\"techstack\":\"React, JavaScript, HTML, CSS\",\"amount\":5}"
    )


def generate_questions_prompt(role: str, type: str, level: str, techstack: str, amount: int) -> str:
    """
    Generate the prompt for interview question generation.

    Returns:
        The formatted prompt string asking for a bare JSON array of questions.
    """
    return (
        f"Generate {amount} interview questions for a {level} {role} position.\n\n"
        "Job Details:\n"
        f"- Role: {role}\n"
        f"- Level: {level}\n"
        f"- Tech Stack: {techstack}\n"
        f"- Type: {type}\n\n"
        "The questions will be read aloud by a voice assistant, so do not use \"/\", \"*\" "
        "or other special characters that break speech synthesis.\n\n"
        "IMPORTANT: Return ONLY a valid JSON array of questions. No other text, explanations, or formatting.\n\n"
        "Example format:\n"
        "[\"What is your experience with React?\", \"How do you handle state management?\", "
        "\"Explain the difference between let and const\"]\n\n"
        f"Return exactly {amount} questions focused on {techstack} and {type} topics."
    )


GENERATION_AGENT_PROMPT = (
    "You are a friendly assistant helping {username} set up a mock job interview.\n"
    "Ask short questions, one at a time, to find out:\n"
    "- the job role they are preparing for\n"
    "- the interview type (technical, behavioral or mixed)\n"
    "- their experience level (junior, mid or senior)\n"
    "- the technologies they want to be asked about\n"
    "- how many questions they want\n"
    "When you have all five answers, repeat them back, thank the user and end the call."
)


INTERVIEWER_PROMPT = (
    "You are a professional job interviewer conducting a real-time voice interview with a candidate.\n"
    "Follow the structured question flow:\n"
    "{{questions}}\n\n"
    "Listen actively, acknowledge responses and ask brief follow-up questions when an answer is vague.\n"
    "Keep your replies short and conversational, as in a real voice interview.\n"
    "Be professional and polite. When the questions are done, thank the candidate and end the call."
)


def format_questions_for_call(questions: List[str]) -> str:
    """Render questions as the "- question" list injected into the interviewer context."""
    return "\n".join(f"- {question}" for question in questions)
