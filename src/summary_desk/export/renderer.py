"""
Export renderer turning summary text into downloadable payloads.

One rendering strategy per format. The PDF and DOCX outputs are simplified
textual stand-ins, not structurally valid PDF files or OOXML packages; a
real document generator can replace them behind the same ``render`` call.
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Union
from xml.etree import ElementTree as ET

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..core.exceptions import InvalidArgumentError, RenderFailureError, UnsupportedFormatError
from ..core.sanitizer import sanitize

logger = logging.getLogger(__name__)

W_NAMESPACE = 'http://schemas.openxmlformats.org/wordprocessingml/2006/main'
XML_NAMESPACE = 'http://www.w3.org/XML/1998/namespace'
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'

ET.register_namespace('w', W_NAMESPACE)


@dataclass(frozen=True)
class ExportFormat:
    """Catalog entry for one supported export format."""

    format: str
    name: str
    extension: str
    mime_type: str
    description: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "format": self.format,
            "name": self.name,
            "extension": self.extension,
            "mime_type": self.mime_type,
            "description": self.description,
        }


SUPPORTED_FORMATS = (
    ExportFormat(
        format="pdf",
        name="PDF",
        extension=".pdf",
        mime_type="application/pdf",
        description="Portable Document Format",
    ),
    ExportFormat(
        format="docx",
        name="Word Document",
        extension=".docx",
        mime_type="application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        description="Microsoft Word document",
    ),
    ExportFormat(
        format="markdown",
        name="Markdown",
        extension=".md",
        mime_type="text/markdown",
        description="Markdown formatted text",
    ),
    ExportFormat(
        format="txt",
        name="Plain Text",
        extension=".txt",
        mime_type="text/plain",
        description="Plain text file",
    ),
)

TEXT_FORMATS = frozenset({"txt", "markdown"})


class ExportOptions(BaseModel):
    """Caller options; accepts snake_case or camelCase keys."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: Optional[str] = None
    author: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    category: Optional[str] = None
    include_metadata: bool = Field(default=False, alias="includeMetadata")
    include_frontmatter: bool = Field(default=False, alias="includeFrontmatter")


@dataclass
class ExportResult:
    """
    A rendered payload plus the temp file it was staged in.

    The caller owns ``path`` and must release it with
    ``ExportRenderer.cleanup`` once the payload has been sent.
    """

    format: str
    filename: str
    path: Path
    content_type: str
    payload: bytes

    @property
    def size(self) -> int:
        return len(self.payload)


class ExportRenderer:
    """Maps content plus a format tag to a payload, filename and content type."""

    def __init__(
        self,
        temp_dir: Optional[Path] = None,
        default_title: str = "Exported Document",
        default_author: str = "Summary Desk",
        default_category: str = "export",
        brand: str = "Summary Desk",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.temp_dir = Path(temp_dir) if temp_dir else Path(tempfile.gettempdir()) / "summary-desk"
        self.default_title = default_title
        self.default_author = default_author
        self.default_category = default_category
        self.brand = brand
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self._strategies: Dict[str, Callable[[str, ExportOptions, datetime], str]] = {
            "pdf": self.render_pdf,
            "docx": self.render_docx,
            "markdown": self.render_markdown,
            "txt": self.render_text,
        }

    @classmethod
    def from_config(cls, export_config: Any) -> ExportRenderer:
        return cls(
            temp_dir=export_config.temp_dir,
            default_title=export_config.default_title,
            default_author=export_config.default_author,
            default_category=export_config.default_category,
            brand=export_config.brand,
        )

    def get_supported_formats(self) -> List[ExportFormat]:
        return list(SUPPORTED_FORMATS)

    def get_format(self, format_tag: str) -> ExportFormat:
        for entry in SUPPORTED_FORMATS:
            if entry.format == format_tag:
                return entry
        raise UnsupportedFormatError(format_tag)

    def generate_filename(self, extension: str, now: Optional[datetime] = None) -> str:
        """``export-<ISO timestamp with colons and dots as hyphens>.<ext>``"""
        now = (now or self._clock()).astimezone(timezone.utc)
        stamp = f"{now:%Y-%m-%dT%H:%M:%S}.{now.microsecond // 1000:03d}Z"
        return f"export-{stamp.replace(':', '-').replace('.', '-')}.{extension.lstrip('.')}"

    def _coerce_options(self, options: Union[ExportOptions, Mapping[str, Any], None]) -> ExportOptions:
        if options is None:
            return ExportOptions()
        if isinstance(options, ExportOptions):
            return options
        try:
            return ExportOptions.model_validate(dict(options))
        except ValidationError as e:
            details = "; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in e.errors()
            )
            raise InvalidArgumentError(f"Invalid export options: {details}") from e

    def _title(self, options: ExportOptions) -> str:
        return sanitize(options.title or "") or self.default_title

    def _author(self, options: ExportOptions) -> str:
        return sanitize(options.author or "") or self.default_author

    def render(
        self,
        content: str,
        format_tag: str,
        options: Union[ExportOptions, Mapping[str, Any], None] = None,
    ) -> ExportResult:
        """
        Render ``content`` in the requested format.

        The payload is written to a temp file and read back, so the
        returned result mirrors exactly what a download would send.

        Raises:
            InvalidArgumentError: If content or format is missing
            UnsupportedFormatError: If the format is not in the catalog
            RenderFailureError: If the temp file cannot be written or read
        """
        if not content or not format_tag:
            raise InvalidArgumentError("Content and format are required")

        entry = self.get_format(format_tag)
        opts = self._coerce_options(options)
        now = self._clock()

        text = self._strategies[entry.format](sanitize(content), opts, now)
        filename = self.generate_filename(entry.extension, now)

        path: Optional[Path] = None
        try:
            self.temp_dir.mkdir(parents=True, exist_ok=True)
            fd, raw_path = tempfile.mkstemp(prefix="export-", suffix=entry.extension, dir=self.temp_dir)
            path = Path(raw_path)
            with os.fdopen(fd, 'wb') as f:
                f.write(text.encode('utf-8'))
            payload = path.read_bytes()
        except OSError as e:
            logger.error("Error exporting to %s: %s", entry.name, e, exc_info=True)
            if path is not None:
                self.cleanup(path)
            raise RenderFailureError(f"Failed to export to {entry.name}") from e

        logger.debug("Rendered %s export %s (%d bytes)", entry.format, filename, len(payload))
        return ExportResult(
            format=entry.format,
            filename=filename,
            path=path,
            content_type=entry.mime_type,
            payload=payload,
        )

    def cleanup(self, path: Union[str, Path]) -> None:
        """Release a staged payload. An already-missing file is fine."""
        try:
            Path(path).unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Error cleaning up %s: %s", path, e)

    def preview(
        self,
        content: str,
        format_tag: str,
        options: Union[ExportOptions, Mapping[str, Any], None] = None,
    ) -> Dict[str, Any]:
        """
        Preview an export without staging a file.

        Text formats return the rendered text. PDF and DOCX only return the
        catalog entry plus title, author and creation time.
        """
        if not content or not format_tag:
            raise InvalidArgumentError("Content and format are required")

        entry = self.get_format(format_tag)
        opts = self._coerce_options(options)
        now = self._clock()

        if entry.format in TEXT_FORMATS:
            text = self._strategies[entry.format](sanitize(content), opts, now)
            return {
                "format": entry.to_dict(),
                "filename": self.generate_filename(entry.extension, now),
                "content_type": entry.mime_type,
                "content": text,
                "size": len(text.encode('utf-8')),
            }

        return {
            "format": entry.to_dict(),
            "content": f"Binary content - render as {entry.format} to download",
            "metadata": {
                "title": self._title(opts),
                "author": self._author(opts),
                "created_at": now.isoformat(),
            },
        }

    # Strategies

    def render_text(self, content: str, options: ExportOptions, now: datetime) -> str:
        if not options.include_metadata:
            return content
        return f"{self._text_header(options, now)}\n\n{content}"

    def render_markdown(self, content: str, options: ExportOptions, now: datetime) -> str:
        text = content
        if options.include_frontmatter:
            text = f"{self._frontmatter(options, now)}\n\n{text}"
        if options.include_metadata:
            text += f"\n\n{self._metadata_footer(now)}"
        return text

    def render_pdf(self, content: str, options: ExportOptions, now: datetime) -> str:
        # Plain text stand-in; not a structurally valid PDF.
        return f"{self._title(options)}\n\n{content}"

    def render_docx(self, content: str, options: ExportOptions, now: datetime) -> str:
        # Bare WordprocessingML document part; not a zipped OOXML package.
        document = ET.Element(f'{{{W_NAMESPACE}}}document')
        body = ET.SubElement(document, f'{{{W_NAMESPACE}}}body')

        for text in (self._title(options), content):
            paragraph = ET.SubElement(body, f'{{{W_NAMESPACE}}}p')
            run = ET.SubElement(paragraph, f'{{{W_NAMESPACE}}}r')
            node = ET.SubElement(run, f'{{{W_NAMESPACE}}}t')
            node.set(f'{{{XML_NAMESPACE}}}space', 'preserve')
            node.text = text

        return XML_DECLARATION + ET.tostring(document, encoding='unicode')

    # Decorations

    def _text_header(self, options: ExportOptions, now: datetime) -> str:
        local = now.astimezone()
        return (
            f"Title: {self._title(options)}\n"
            f"Date: {local:%Y-%m-%d}\n"
            f"Time: {local:%H:%M:%S}\n"
            f"Author: {self._author(options)}\n"
            "\n"
            "---"
        )

    def _frontmatter(self, options: ExportOptions, now: datetime) -> str:
        data = {
            "title": self._title(options),
            "date": now.isoformat(),
            "author": self._author(options),
            "tags": [tag for tag in (sanitize(t) for t in options.tags) if tag],
            "category": sanitize(options.category or "") or self.default_category,
        }
        body = yaml.safe_dump(data, default_flow_style=None, sort_keys=False, allow_unicode=True)
        return f"---\n{body.rstrip()}\n---"

    def _metadata_footer(self, now: datetime) -> str:
        local = now.astimezone()
        return (
            "---\n"
            f"*Exported from {self.brand}*\n"
            f"*Date: {local:%Y-%m-%d}*\n"
            f"*Time: {local:%H:%M:%S}*"
        )
