"""
Core models, sanitizer and error types.
"""

from .exceptions import (
    DeliveryError,
    InvalidArgumentError,
    NotFoundError,
    RenderFailureError,
    SummarizationError,
    SummaryDeskError,
    UnsupportedFormatError,
)
from .models import (
    ANONYMOUS_AUTHOR,
    Comparison,
    HistoryExport,
    Revision,
    RevisionAction,
    RevisionStats,
    TimelineEntry,
    VersionPage,
    VersionStats,
)
from .sanitizer import sanitize

__all__ = [
    "ANONYMOUS_AUTHOR",
    "Comparison",
    "DeliveryError",
    "HistoryExport",
    "InvalidArgumentError",
    "NotFoundError",
    "RenderFailureError",
    "Revision",
    "RevisionAction",
    "RevisionStats",
    "SummarizationError",
    "SummaryDeskError",
    "TimelineEntry",
    "UnsupportedFormatError",
    "VersionPage",
    "VersionStats",
    "sanitize",
]
