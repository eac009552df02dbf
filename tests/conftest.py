"""Shared fixtures for Summary Desk tests."""

from datetime import datetime, timezone

import pytest

from summary_desk import config as config_module
from summary_desk.config import ConfigManager
from summary_desk.export.renderer import ExportRenderer
from summary_desk.version.version_control import VersionStore

FIXED_NOW = datetime(2025, 1, 15, 12, 30, 45, 123000, tzinfo=timezone.utc)


@pytest.fixture
def store():
    return VersionStore()


@pytest.fixture
def renderer(tmp_path):
    return ExportRenderer(temp_dir=tmp_path / "exports", clock=lambda: FIXED_NOW)


@pytest.fixture
def config_manager(tmp_path, monkeypatch):
    """Isolated global config manager pointing at a temp directory."""
    for name in (
        "SUMMARY_DESK_MAX_VERSIONS",
        "SUMMARY_DESK_CLEANUP_KEEP_COUNT",
        "SUMMARY_DESK_MODEL",
        "SUMMARY_DESK_FALLBACK_MODEL",
        "SUMMARY_DESK_LOG_LEVEL",
        "SUMMARY_DESK_REDACT_ERRORS",
        "SUMMARY_DESK_SMTP_HOST",
        "SUMMARY_DESK_SMTP_PORT",
        "SUMMARY_DESK_SMTP_USER",
        "SUMMARY_DESK_SMTP_PASSWORD",
        "SUMMARY_DESK_EMAIL_FROM",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SUMMARY_DESK_TEMP_DIR", str(tmp_path / "exports"))

    manager = ConfigManager(config_dir=tmp_path / "config")
    monkeypatch.setattr(config_module, "_config_manager", manager)
    return manager


@pytest.fixture
def fixed_now():
    return FIXED_NOW


def build_pdf(pages, title=None, author=None):
    """Assemble a minimal one-font PDF with one text line per page."""
    objects = {
        1: b"<< /Type /Catalog /Pages 2 0 R >>",
        3: b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    }
    kids = []
    next_id = 4
    for line in pages:
        page_id, content_id = next_id, next_id + 1
        next_id += 2
        stream = f"BT /F1 12 Tf 72 720 Td ({line}) Tj ET".encode("latin-1")
        objects[content_id] = b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream"
        objects[page_id] = (
            "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
            f"/Resources << /Font << /F1 3 0 R >> >> /Contents {content_id} 0 R >>"
        ).encode("latin-1")
        kids.append(f"{page_id} 0 R")
    objects[2] = f"<< /Type /Pages /Kids [{' '.join(kids)}] /Count {len(kids)} >>".encode("latin-1")

    info_ref = ""
    if title or author:
        entries = ""
        if title:
            entries += f" /Title ({title})"
        if author:
            entries += f" /Author ({author})"
        objects[next_id] = f"<<{entries} >>".encode("latin-1")
        info_ref = f" /Info {next_id} 0 R"

    out = bytearray(b"%PDF-1.4\n")
    offsets = {}
    for number in sorted(objects):
        offsets[number] = len(out)
        out += b"%d 0 obj\n" % number + objects[number] + b"\nendobj\n"
    xref_offset = len(out)
    size = max(objects) + 1
    out += b"xref\n0 %d\n0000000000 65535 f \n" % size
    for number in range(1, size):
        out += b"%010d 00000 n \n" % offsets[number]
    out += f"trailer\n<< /Size {size} /Root 1 0 R{info_ref} >>\nstartxref\n{xref_offset}\n%%EOF\n".encode("latin-1")
    return bytes(out)


@pytest.fixture
def make_pdf():
    return build_pdf
