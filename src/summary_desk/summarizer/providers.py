"""
LLM summarization providers.

The rest of the system only needs ``summarize(content, instruction) -> str``;
``FallbackSummarizer`` chains a primary and a backup provider.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

from anthropic import Anthropic, APIError

from ..core.exceptions import InvalidArgumentError, SummarizationError
from .prompts import (
    DEFAULT_MAX_CONTENT_CHARS,
    build_system_prompt,
    format_content,
    validate_instruction,
)

logger = logging.getLogger(__name__)


class Summarizer(Protocol):
    name: str

    def summarize(self, content: str, instruction: str) -> str:
        ...


class AnthropicSummarizer:
    """Summarizes through the Anthropic Messages API."""

    def __init__(
        self,
        model: str,
        temperature: float = 0.3,
        max_tokens: int = 2048,
        max_content_chars: int = DEFAULT_MAX_CONTENT_CHARS,
        client: Optional[Anthropic] = None,
    ):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.max_content_chars = max_content_chars
        self.client = client or Anthropic()
        self.name = f"anthropic:{model}"

    def summarize(self, content: str, instruction: str) -> str:
        if not content:
            raise InvalidArgumentError("Content is required")
        instruction = validate_instruction(instruction)

        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                system=build_system_prompt(instruction),
                messages=[{"role": "user", "content": format_content(content, self.max_content_chars)}],
            )
        except APIError as e:
            raise SummarizationError(f"{self.name} API error: {e}") from e

        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        ).strip()
        if not text:
            raise SummarizationError(f"No response from {self.name}")
        return text


class FallbackSummarizer:
    """Tries the primary provider, then the fallback once."""

    def __init__(self, primary: Summarizer, fallback: Optional[Summarizer] = None):
        self.primary = primary
        self.fallback = fallback
        self.name = primary.name if fallback is None else f"{primary.name}->{fallback.name}"

    def summarize(self, content: str, instruction: str) -> str:
        try:
            return self.primary.summarize(content, instruction)
        except SummarizationError as e:
            if self.fallback is None:
                raise
            logger.warning("%s failed (%s), falling back to %s", self.primary.name, e, self.fallback.name)

        try:
            return self.fallback.summarize(content, instruction)
        except SummarizationError as e:
            raise SummarizationError(f"AI summarization failed: {e.message}") from e


def build_summarizer(summarizer_config: Any, client: Optional[Anthropic] = None) -> FallbackSummarizer:
    """Create the primary/fallback chain described by the summarizer config."""
    client = client or Anthropic()

    def make(model: str) -> AnthropicSummarizer:
        return AnthropicSummarizer(
            model=model,
            temperature=summarizer_config.temperature,
            max_tokens=summarizer_config.max_tokens,
            max_content_chars=summarizer_config.max_content_chars,
            client=client,
        )

    primary = make(summarizer_config.model)
    fallback = None
    if summarizer_config.fallback_model and summarizer_config.fallback_model != summarizer_config.model:
        fallback = make(summarizer_config.fallback_model)
    return FallbackSummarizer(primary, fallback)
