"""
Load plain text out of files so it can be saved as an ``import`` revision.
"""

from __future__ import annotations

import io
import logging
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Union

import pdfplumber
from docx import Document
from docx.opc.exceptions import PackageNotFoundError

from ..core.exceptions import InvalidArgumentError, NotFoundError, UnsupportedFormatError

logger = logging.getLogger(__name__)

TEXT_SUFFIXES = frozenset({".txt", ".md", ".markdown"})
DOCX_SUFFIX = ".docx"
PDF_SUFFIX = ".pdf"

# PDF info dictionary key -> metadata key
PDF_INFO_FIELDS = {
    "Title": "title",
    "Author": "author",
    "Subject": "subject",
    "Keywords": "keywords",
    "CreationDate": "creation_date",
    "ModDate": "modification_date",
    "Creator": "creator",
    "Producer": "producer",
}


@dataclass
class PdfExtraction:
    """Text pulled out of a PDF, page by page, plus its info dictionary."""

    text: str
    page_texts: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def page_count(self) -> int:
        return len(self.page_texts)


def _info_value(value: Any) -> Any:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


def extract_text(data: bytes) -> PdfExtraction:
    """
    Extract the text layer of a PDF document.

    Args:
        data: Raw PDF file bytes

    Returns:
        PdfExtraction with the joined text, per-page texts and document info

    Raises:
        InvalidArgumentError: If the bytes are empty, not a readable PDF,
            encrypted, or have no pages
    """
    if not data:
        raise InvalidArgumentError("PDF content is required")

    try:
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            page_texts = [page.extract_text() or "" for page in pdf.pages]
            info = dict(pdf.metadata or {})
    except Exception as e:
        message = str(e).lower()
        if "password" in message or "encrypt" in message:
            raise InvalidArgumentError("PDF is password-protected or encrypted") from e
        logger.error("Failed to extract PDF text: %s", e)
        raise InvalidArgumentError("Could not read PDF: the file appears to be corrupted") from e

    if not page_texts:
        raise InvalidArgumentError("PDF has no pages")

    metadata: Dict[str, Any] = {
        key: _info_value(info[name]) for name, key in PDF_INFO_FIELDS.items() if info.get(name)
    }
    metadata.setdefault("title", "Unknown")
    metadata.setdefault("author", "Unknown")
    metadata["pages"] = len(page_texts)

    logger.debug("Extracted %d page(s) of text from PDF", len(page_texts))
    return PdfExtraction(
        text="\n".join(text for text in page_texts if text).strip(),
        page_texts=page_texts,
        metadata=metadata,
    )


def load_text(path: Union[str, Path]) -> str:
    """
    Read the text of a ``.txt``, ``.md``, ``.docx`` or ``.pdf`` file.

    DOCX paragraphs are joined with newlines; everything else in the
    package (styles, headers, comments) is ignored. PDFs contribute their
    text layer only.

    Raises:
        NotFoundError: If the file does not exist
        InvalidArgumentError: If the file cannot be decoded as its suffix claims
        UnsupportedFormatError: For any other suffix
    """
    path = Path(path)
    if not path.exists():
        raise NotFoundError(f"File not found: {path}")

    suffix = path.suffix.lower()
    if suffix in TEXT_SUFFIXES:
        try:
            return path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise InvalidArgumentError(f"{path.name} is not valid UTF-8 text") from e

    if suffix == DOCX_SUFFIX:
        try:
            doc = Document(str(path))
        except (PackageNotFoundError, zipfile.BadZipFile, KeyError) as e:
            raise InvalidArgumentError(f"{path.name} is not a readable Word document") from e
        return "\n".join(paragraph.text for paragraph in doc.paragraphs)

    if suffix == PDF_SUFFIX:
        return extract_text(path.read_bytes()).text

    raise UnsupportedFormatError(suffix, f"Unsupported import format: {suffix or path.name}")
