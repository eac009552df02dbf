"""
Export rendering and text import.
"""

from .renderer import (
    SUPPORTED_FORMATS,
    ExportFormat,
    ExportOptions,
    ExportRenderer,
    ExportResult,
)
from .importer import PdfExtraction, extract_text, load_text

__all__ = [
    "SUPPORTED_FORMATS",
    "ExportFormat",
    "ExportOptions",
    "ExportRenderer",
    "ExportResult",
    "PdfExtraction",
    "extract_text",
    "load_text",
]
