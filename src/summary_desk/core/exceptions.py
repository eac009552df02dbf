"""
Typed failures raised by the Summary Desk core.

Each error carries a stable ``kind`` tag and an HTTP-style status code so
an outer layer (CLI, web handler) can branch on the kind of failure without
parsing the message text.
"""

from __future__ import annotations

from typing import Any, Dict


class SummaryDeskError(Exception):
    """Base class for all Summary Desk failures."""

    kind: str = "error"
    status_code: int = 500
    default_message: str = "Unexpected error"

    def __init__(self, message: str = ""):
        self.message = message or self.default_message
        super().__init__(self.message)

    def public_message(self, redact: bool = False) -> str:
        """Message safe to show to an end user."""
        return self.message

    def to_dict(self, redact: bool = False) -> Dict[str, Any]:
        return {
            "success": False,
            "kind": self.kind,
            "error": self.public_message(redact=redact),
        }


class InvalidArgumentError(SummaryDeskError):
    """A required identifier or content was missing, empty or malformed."""

    kind = "invalid_argument"
    status_code = 400
    default_message = "Invalid argument"


class NotFoundError(SummaryDeskError):
    """The referenced document, revision or file does not exist."""

    kind = "not_found"
    status_code = 404
    default_message = "Not found"


class UnsupportedFormatError(SummaryDeskError):
    """Export or import format is not in the supported catalog."""

    kind = "unsupported_format"
    status_code = 400
    default_message = "Unsupported export format"

    def __init__(self, format_tag: str = "", message: str = ""):
        self.format_tag = format_tag
        if not message and format_tag:
            message = f"Unsupported export format: {format_tag}"
        super().__init__(message)


class RenderFailureError(SummaryDeskError):
    """Writing or reading a temporary export payload failed."""

    kind = "render_failure"
    status_code = 500
    default_message = "Failed to export content"

    def public_message(self, redact: bool = False) -> str:
        if redact:
            return self.default_message
        return self.message


class SummarizationError(SummaryDeskError):
    """Every configured summarization provider failed."""

    kind = "summarization_failure"
    status_code = 502
    default_message = "AI summarization failed"

    def public_message(self, redact: bool = False) -> str:
        if redact:
            return self.default_message
        return self.message


class DeliveryError(SummaryDeskError):
    """Sending a summary by email failed."""

    kind = "delivery_failure"
    status_code = 502
    default_message = "Failed to send email"

    def public_message(self, redact: bool = False) -> str:
        if redact:
            return self.default_message
        return self.message
