"""
Main CLI application for Summary Desk.

Provides a Typer-based command-line interface for summarizing transcripts,
exporting summaries and working with revision history.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from ..config import get_config_manager, load_config
from ..core.exceptions import NotFoundError, SummaryDeskError
from ..export.importer import extract_text, load_text
from ..export.renderer import ExportOptions, ExportRenderer
from ..summarizer.delivery import build_email_sender
from ..summarizer.providers import build_summarizer
from ..version.diff_engine import diff_lines, unified_diff
from ..version.version_control import VersionStore
from .session import HistorySession

# Initialize Typer app
app = typer.Typer(
    name="summary-desk",
    help="Summarize transcripts, then edit, version and export the summaries",
    add_completion=False,
    rich_markup_mode="rich"
)

# Global console for rich output
console = Console()
err_console = Console(stderr=True)


def get_renderer() -> ExportRenderer:
    return ExportRenderer.from_config(load_config().export)


def _fail(error: SummaryDeskError) -> NoReturn:
    redact = load_config().redact_errors
    console.print(f"[red]Error ({error.kind}): {escape(error.public_message(redact=redact))}[/red]")
    raise typer.Exit(1)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level (default from config)"),
) -> None:
    """
    Summarize transcripts, then edit, version and export the summaries.
    """
    level = (log_level or load_config().log_level).upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True)],
        force=True,
    )


@app.command()
def formats() -> None:
    """
    List the supported export formats.
    """
    table = Table(title="Export Formats")
    table.add_column("Format", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Extension", style="yellow")
    table.add_column("MIME Type", style="blue")
    table.add_column("Description", style="white")

    for entry in get_renderer().get_supported_formats():
        table.add_row(entry.format, entry.name, entry.extension, entry.mime_type, entry.description)

    console.print(table)


@app.command()
def export(
    file_path: Path = typer.Argument(..., help="Text, Markdown, Word or PDF file to export"),
    format_tag: str = typer.Option("txt", "--format", "-f", help="Export format: txt, markdown, pdf, docx"),
    output_path: Optional[Path] = typer.Option(None, "--output", "-o", help="Output path (default: generated filename)"),
    title: Optional[str] = typer.Option(None, "--title", help="Document title"),
    author: Optional[str] = typer.Option(None, "--author", help="Document author"),
    tags: Optional[List[str]] = typer.Option(None, "--tag", help="Frontmatter tag (repeatable)"),
    category: Optional[str] = typer.Option(None, "--category", help="Frontmatter category"),
    include_metadata: bool = typer.Option(False, "--metadata", help="Add a metadata header or footer"),
    include_frontmatter: bool = typer.Option(False, "--frontmatter", help="Add YAML frontmatter (markdown only)"),
) -> None:
    """
    Export a file's content in one of the supported formats.
    """
    renderer = get_renderer()
    options = ExportOptions(
        title=title,
        author=author,
        tags=tags or [],
        category=category,
        include_metadata=include_metadata,
        include_frontmatter=include_frontmatter,
    )

    try:
        result = renderer.render(load_text(file_path), format_tag, options)
    except SummaryDeskError as e:
        _fail(e)

    try:
        target = output_path or Path.cwd() / result.filename
        target.write_bytes(result.payload)
    finally:
        renderer.cleanup(result.path)

    console.print(f"[green]Exported {result.size} bytes ({result.content_type}) to {escape(str(target))}[/green]")


@app.command()
def preview(
    file_path: Path = typer.Argument(..., help="File to preview"),
    format_tag: str = typer.Option("txt", "--format", "-f", help="Export format"),
    title: Optional[str] = typer.Option(None, "--title", help="Document title"),
    include_metadata: bool = typer.Option(False, "--metadata", help="Add a metadata header or footer"),
    include_frontmatter: bool = typer.Option(False, "--frontmatter", help="Add YAML frontmatter"),
) -> None:
    """
    Preview an export without writing a file.
    """
    options = ExportOptions(
        title=title,
        include_metadata=include_metadata,
        include_frontmatter=include_frontmatter,
    )
    try:
        result = get_renderer().preview(load_text(file_path), format_tag, options)
    except SummaryDeskError as e:
        _fail(e)

    if "metadata" in result:
        console.print_json(data=result)
    else:
        console.print(Panel(escape(result["content"]), title=result["filename"], border_style="blue"))


@app.command()
def diff(
    file_a: Path = typer.Argument(..., help="Earlier text"),
    file_b: Path = typer.Argument(..., help="Later text"),
    unified: bool = typer.Option(False, "--unified", "-u", help="Show a unified diff instead of line sets"),
) -> None:
    """
    Show lines added and removed between two files.
    """
    try:
        text_a = load_text(file_a)
        text_b = load_text(file_b)
    except SummaryDeskError as e:
        _fail(e)

    if unified:
        text = unified_diff(text_a, text_b, from_label=file_a.name, to_label=file_b.name)
        console.print(Syntax(text or "(no differences)", "diff", theme="monokai"))
        return

    result = diff_lines(text_a, text_b)
    for line in result.added:
        console.print(f"[green]+ {escape(line)}[/green]")
    for line in result.removed:
        console.print(f"[red]- {escape(line)}[/red]")
    console.print(
        f"{result.added_count} added, {result.removed_count} removed, "
        f"{result.total_changes} total changes"
    )


@app.command()
def summarize(
    file_path: Path = typer.Argument(..., help="Transcript to summarize"),
    prompt: str = typer.Option(..., "--prompt", "-p", help="Instruction for the summary"),
    format_tag: Optional[str] = typer.Option(None, "--format", "-f", help="Also export the summary in this format"),
    output_path: Optional[Path] = typer.Option(None, "--output", "-o", help="Export destination"),
) -> None:
    """
    Summarize a transcript with the configured LLM provider.
    """
    config = load_config()

    try:
        transcript = load_text(file_path)
        with console.status("Summarizing..."):
            summary = build_summarizer(config.summarizer).summarize(transcript, prompt)
    except SummaryDeskError as e:
        _fail(e)

    console.print(Panel(Markdown(summary), title="Summary", border_style="green"))

    if format_tag:
        renderer = get_renderer()
        try:
            result = renderer.render(summary, format_tag, {"title": file_path.stem})
        except SummaryDeskError as e:
            _fail(e)
        try:
            target = output_path or Path.cwd() / result.filename
            target.write_bytes(result.payload)
        finally:
            renderer.cleanup(result.path)
        console.print(f"[green]Summary exported to {escape(str(target))}[/green]")


@app.command()
def share(
    file_path: Path = typer.Argument(..., help="Summary file to send"),
    recipients: List[str] = typer.Option(..., "--to", "-t", help="Recipient address (repeatable)"),
    subject: Optional[str] = typer.Option(None, "--subject", "-s", help="Email subject"),
) -> None:
    """
    Email a summary to up to ten recipients over the configured SMTP relay.
    """
    try:
        body = load_text(file_path)
        sender = build_email_sender(load_config().email)
        message_id = sender.send_email(recipients, subject or f"Meeting Summary - {file_path.stem}", body)
    except SummaryDeskError as e:
        _fail(e)

    console.print(f"[green]Email sent to {len(recipients)} recipient(s)[/green] [dim]{escape(message_id)}[/dim]")


@app.command()
def extract(
    file_path: Path = typer.Argument(..., help="PDF to read"),
    show_text: bool = typer.Option(False, "--text", help="Print the extracted text"),
) -> None:
    """
    Show the document info and text layer of a PDF.
    """
    try:
        if not file_path.exists():
            raise NotFoundError(f"File not found: {file_path}")
        result = extract_text(file_path.read_bytes())
    except SummaryDeskError as e:
        _fail(e)

    table = Table(title=f"PDF: {escape(file_path.name)}", show_header=False)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    for key, value in result.metadata.items():
        table.add_row(key, escape(str(value)))
    table.add_row("characters", str(len(result.text)))
    console.print(table)

    if show_text:
        console.print(escape(result.text))


@app.command()
def session(
    file_path: Optional[Path] = typer.Argument(None, help="File to import as the first revision"),
    document_id: str = typer.Option("default", "--document", "-d", help="Document identifier"),
    author_id: Optional[str] = typer.Option(None, "--author", "-a", help="Author recorded on revisions"),
) -> None:
    """
    Start an interactive revision-history session.

    History lives in memory and is discarded when the session ends.
    """
    config = load_config()
    store = VersionStore(
        max_versions=config.history.max_versions,
        default_keep_count=config.history.cleanup_keep_count,
    )
    history_session = HistorySession(
        store,
        get_renderer(),
        document_id=document_id,
        author_id=author_id,
        console=console,
    )

    if file_path is not None:
        history_session.execute(f"/import {file_path}")

    history_session.run()


@app.command()
def config(
    init: bool = typer.Option(False, "--init", help="Write a default configuration file"),
) -> None:
    """
    Show the current configuration, or create a default one.
    """
    manager = get_config_manager()

    if init:
        path = manager.create_default_config()
        console.print(f"[green]Created default configuration at {escape(str(path))}[/green]")
        return

    table = Table(title="Configuration", show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    for key, value in manager.get_config_info().items():
        table.add_row(key, escape(str(value)))
    console.print(table)


if __name__ == "__main__":
    app()
