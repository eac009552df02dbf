"""
Summarization provider adapters and email delivery of summaries.
"""

from .delivery import EmailSender, SmtpEmailSender, build_email_sender, validate_recipients
from .prompts import build_system_prompt, format_content, validate_instruction
from .providers import AnthropicSummarizer, FallbackSummarizer, Summarizer, build_summarizer

__all__ = [
    "AnthropicSummarizer",
    "EmailSender",
    "FallbackSummarizer",
    "SmtpEmailSender",
    "Summarizer",
    "build_email_sender",
    "build_summarizer",
    "build_system_prompt",
    "format_content",
    "validate_instruction",
    "validate_recipients",
]
