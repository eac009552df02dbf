"""
Prompt construction for transcript summarization.
"""

from __future__ import annotations

from ..core.exceptions import InvalidArgumentError
from ..core.sanitizer import sanitize

MIN_INSTRUCTION_CHARS = 3
MAX_INSTRUCTION_CHARS = 1000
DEFAULT_MAX_CONTENT_CHARS = 50000
TRUNCATION_MARKER = "... [Content truncated due to length]"


SUMMARY_SYSTEM_PROMPT = """You are a professional meeting notes summarizer. Your task is to analyze meeting transcripts and create clear, concise, and actionable summaries based on the user's specific instructions.

Key guidelines:
- Focus on clarity and brevity
- Maintain professional tone
- Highlight key decisions, action items, and outcomes
- Use bullet points or numbered lists when appropriate
- Ensure the summary is easy to scan and understand
- Remove filler words and redundant information

User's specific instructions: {instruction}

Please provide a well-structured summary that follows these instructions precisely."""


def validate_instruction(instruction: str) -> str:
    """Sanitize a user instruction and check its length."""
    cleaned = sanitize(instruction)
    if len(cleaned) < MIN_INSTRUCTION_CHARS:
        raise InvalidArgumentError(f"Prompt must be at least {MIN_INSTRUCTION_CHARS} characters long")
    if len(cleaned) > MAX_INSTRUCTION_CHARS:
        raise InvalidArgumentError(f"Prompt must not exceed {MAX_INSTRUCTION_CHARS} characters")
    return cleaned


def build_system_prompt(instruction: str) -> str:
    return SUMMARY_SYSTEM_PROMPT.format(instruction=instruction)


def format_content(content: str, max_chars: int = DEFAULT_MAX_CONTENT_CHARS) -> str:
    """Wrap a transcript for the model, truncating very long input."""
    if len(content) > max_chars:
        content = content[:max_chars] + TRUNCATION_MARKER
    return f"Please summarize the following meeting transcript:\n\n{content}"
