"""Tests for the export renderer."""

from xml.etree import ElementTree as ET

import pytest
import yaml

from summary_desk.core.exceptions import InvalidArgumentError, RenderFailureError, UnsupportedFormatError
from summary_desk.core.sanitizer import sanitize
from summary_desk.export.renderer import W_NAMESPACE, ExportOptions, ExportRenderer


def test_supported_formats_catalog(renderer):
    formats = {entry.format: entry for entry in renderer.get_supported_formats()}

    assert set(formats) == {"pdf", "docx", "markdown", "txt"}
    assert formats["markdown"].extension == ".md"
    assert formats["docx"].mime_type == (
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
    )
    assert formats["txt"].to_dict()["name"] == "Plain Text"


def test_unsupported_format_is_rejected(renderer):
    with pytest.raises(UnsupportedFormatError) as excinfo:
        renderer.render("Hello", "rtf")
    assert excinfo.value.kind == "unsupported_format"
    assert "rtf" in excinfo.value.message


@pytest.mark.parametrize("content, format_tag", [("", "txt"), ("Hello", "")])
def test_content_and_format_are_required(renderer, content, format_tag):
    with pytest.raises(InvalidArgumentError):
        renderer.render(content, format_tag)


def test_filename_uses_timestamp(renderer, fixed_now):
    assert renderer.generate_filename(".pdf", fixed_now) == "export-2025-01-15T12-30-45-123Z.pdf"
    assert renderer.generate_filename("md", fixed_now) == "export-2025-01-15T12-30-45-123Z.md"


def test_render_plain_text(renderer):
    result = renderer.render("Hello world", "txt")

    assert result.payload == b"Hello world"
    assert result.content_type == "text/plain"
    assert result.filename == "export-2025-01-15T12-30-45-123Z.txt"
    assert result.size == len(b"Hello world")
    assert result.format == "txt"


def test_render_sanitizes_content(renderer):
    result = renderer.render("<script>steal()</script>Safe <b id=x>text</b>", "txt")
    assert result.payload == b"Safe <b>text</b>"


def test_text_metadata_header(renderer):
    text = renderer.render("Hello world", "txt", {"includeMetadata": True, "author": "Erin"}).payload.decode()

    assert text.startswith("Title: Exported Document\n")
    assert "\nAuthor: Erin\n" in text
    assert "\nDate: " in text
    assert "\nTime: " in text
    assert text.endswith("---\n\nHello world")


def test_markdown_frontmatter(renderer):
    options = ExportOptions(title="Weekly sync", tags=["team", "q1"], include_frontmatter=True)
    text = renderer.render("Decisions were made", "markdown", options).payload.decode()

    _, front, body = text.split("---", 2)
    data = yaml.safe_load(front)
    assert data["title"] == "Weekly sync"
    assert data["author"] == "Summary Desk"
    assert data["tags"] == ["team", "q1"]
    assert data["category"] == "export"
    assert "date" in data
    assert body == "\n\nDecisions were made"


def test_markdown_metadata_footer(renderer):
    result = renderer.render("Decisions were made", "markdown", {"include_metadata": True})
    text = result.payload.decode()

    assert result.content_type == "text/markdown"
    assert result.filename.endswith(".md")
    assert text.startswith("Decisions were made\n\n---\n*Exported from Summary Desk*\n")
    assert "*Date: " in text
    assert text.endswith("*")


def test_markdown_without_options_is_content_only(renderer):
    assert renderer.render("Plain", "markdown").payload == b"Plain"


def test_text_formats_contain_sanitized_content(renderer):
    content = "Action items: <i>ship</i> & \"review\""
    expected = sanitize(content)

    for format_tag in ("txt", "markdown"):
        text = renderer.render(content, format_tag, {"includeMetadata": True}).payload.decode()
        assert expected in text
        assert text != expected


def test_pdf_stand_in(renderer):
    result = renderer.render("Hello world", "pdf", {"title": "Minutes"})
    assert result.payload == b"Minutes\n\nHello world"
    assert result.content_type == "application/pdf"
    assert renderer.render("Hello world", "pdf").payload.startswith(b"Exported Document\n\n")


def test_docx_document_part(renderer):
    content = "R&D <b>plan</b> for Q1"
    result = renderer.render(content, "docx", {"title": "Roadmap"})

    assert result.payload.startswith(b'<?xml version="1.0" encoding="UTF-8" standalone="yes"?>')
    root = ET.fromstring(result.payload)
    assert root.tag == f"{{{W_NAMESPACE}}}document"
    texts = [node.text for node in root.iter(f"{{{W_NAMESPACE}}}t")]
    assert texts == ["Roadmap", sanitize(content)]


def test_payload_is_staged_and_released(renderer):
    result = renderer.render("Hello world", "txt")

    assert result.path.exists()
    assert result.path.parent == renderer.temp_dir
    assert result.path.read_bytes() == result.payload

    renderer.cleanup(result.path)
    assert not result.path.exists()
    renderer.cleanup(result.path)


def test_each_render_gets_its_own_temp_file(renderer):
    first = renderer.render("one", "txt")
    second = renderer.render("two", "txt")
    assert first.filename == second.filename
    assert first.path != second.path
    assert first.path.read_bytes() == b"one"


def test_render_failure_when_temp_dir_unusable(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("file in the way")
    renderer = ExportRenderer(temp_dir=blocker)

    with pytest.raises(RenderFailureError) as excinfo:
        renderer.render("Hello", "pdf")
    assert excinfo.value.message == "Failed to export to PDF"
    assert excinfo.value.status_code == 500


def test_preview_text_format(renderer):
    preview = renderer.preview("Hello world", "txt", {"includeMetadata": True})
    assert preview["content"].endswith("Hello world")
    assert preview["format"]["format"] == "txt"
    assert not renderer.temp_dir.exists()


def test_preview_binary_format_returns_metadata(renderer, fixed_now):
    preview = renderer.preview("Hello world", "docx", {"title": "Minutes"})
    assert preview["metadata"]["title"] == "Minutes"
    assert preview["metadata"]["author"] == "Summary Desk"
    assert preview["metadata"]["created_at"] == fixed_now.isoformat()
    assert "Hello world" not in str(preview)


def test_options_accept_camel_case():
    options = ExportOptions.model_validate({"includeMetadata": True, "includeFrontmatter": True, "extra": 1})
    assert options.include_metadata is True
    assert options.include_frontmatter is True


@pytest.mark.parametrize("options", [{"tags": "a,b"}, {"includeMetadata": "often"}, {"title": ["x"]}])
def test_malformed_options_are_invalid_arguments(renderer, options):
    with pytest.raises(InvalidArgumentError) as excinfo:
        renderer.render("Hello", "markdown", options)
    assert excinfo.value.message.startswith("Invalid export options: ")


def test_malformed_options_rejected_by_preview(renderer):
    with pytest.raises(InvalidArgumentError, match="tags"):
        renderer.preview("Hello", "markdown", {"tags": "a,b"})
