"""
Interactive revision-history session.

Keeps an in-memory version store for the lifetime of the session. Plain
input is saved as an ``edit`` revision of the current document; slash
commands browse, compare, restore and export the history.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from ..core.exceptions import InvalidArgumentError, NotFoundError, SummaryDeskError
from ..core.models import Revision, RevisionAction
from ..export.importer import load_text
from ..export.renderer import ExportRenderer
from ..version.diff_engine import unified_diff
from ..version.version_control import VersionStore

logger = logging.getLogger(__name__)

HELP_TEXT = """[bold]Commands[/bold]
  <text>                     save text as a new edit
  /save <text>               same as plain input
  /autosave <text>           save with action auto-save
  /import <file>             save a .txt, .md, .docx or .pdf file as an import
  /list [offset] [limit]     list revisions, newest first
  /show [id]                 show a revision (default: latest)
  /diff <id1> <id2> [-u]     compare two revisions (-u: unified view)
  /restore <id>              restore a revision as the new head
  /stats                     history statistics
  /cleanup [keep]            keep only the most recent revisions
  /history [file]            export history metadata as JSON
  /render <format> [file]    export the latest revision
  /document <id>             switch document
  /help                      show this help
  /quit                      leave the session"""


class HistorySession:
    """Command dispatcher for one interactive history session."""

    def __init__(
        self,
        store: VersionStore,
        renderer: ExportRenderer,
        document_id: str = "default",
        author_id: Optional[str] = None,
        console: Optional[Console] = None,
        output_dir: Optional[Path] = None,
    ):
        self.store = store
        self.renderer = renderer
        self.document_id = document_id
        self.author_id = author_id
        self.console = console or Console()
        self.output_dir = output_dir or Path.cwd()
        self.is_running = True

        self._commands: Dict[str, Callable[[str], None]] = {
            "save": self._save,
            "autosave": self._autosave,
            "import": self._import,
            "list": self._list,
            "show": self._show,
            "diff": self._diff,
            "restore": self._restore,
            "stats": self._stats,
            "cleanup": self._cleanup,
            "history": self._history,
            "render": self._render,
            "document": self._document,
            "help": self._help,
            "quit": self._quit,
            "exit": self._quit,
        }

    @property
    def prompt(self) -> str:
        latest = self.store.get_latest_version(self.document_id)
        words = latest.stats.word_count if latest else 0
        return f"[dim]{escape(self.document_id)} · {words} words[/dim]\n[bold cyan]summary-desk>[/bold cyan] "

    def execute(self, line: str) -> bool:
        """
        Run one line of input.

        Returns:
            False once the session should end
        """
        line = line.strip()
        if not line:
            return self.is_running

        if line.startswith('/'):
            name, _, argument = line[1:].partition(' ')
            handler = self._commands.get(name.lower())
            if handler is None:
                self.console.print(f"[red]Unknown command: /{escape(name)}[/red]")
                self.console.print("Use [cyan]/help[/cyan] to see available commands")
                return self.is_running
        else:
            handler, argument = self._save, line

        try:
            handler(argument.strip())
        except SummaryDeskError as e:
            self.console.print(f"[red]{e.kind}: {escape(e.message)}[/red]")
        except OSError as e:
            logger.error("Session file operation failed: %s", e)
            self.console.print(f"[red]Error: {escape(str(e))}[/red]")

        return self.is_running

    def _announce(self, verb: str, revision: Revision) -> None:
        self.console.print(
            f"[green]{verb} revision {revision.id}[/green] "
            f"({revision.action}, {revision.stats.word_count} words)"
        )

    def _save(self, text: str, action: str = RevisionAction.EDIT.value) -> None:
        revision = self.store.save_version(self.document_id, text, self.author_id, action)
        self._announce("Saved", revision)

    def _autosave(self, text: str) -> None:
        self._save(text, RevisionAction.AUTO_SAVE.value)

    def _import(self, argument: str) -> None:
        if not argument:
            raise InvalidArgumentError("Usage: /import <file>")
        path = Path(argument).expanduser()
        revision = self.store.save_version(
            self.document_id,
            load_text(path),
            self.author_id,
            RevisionAction.IMPORT.value,
            {"source": path.name},
        )
        self._announce("Imported", revision)

    def _list(self, argument: str) -> None:
        args = argument.split()
        try:
            offset = int(args[0]) if args else 0
            limit = int(args[1]) if len(args) > 1 else 10
        except ValueError:
            raise InvalidArgumentError("Usage: /list [offset] [limit]")

        page = self.store.list_versions(self.document_id, offset, limit)
        if not page.total:
            self.console.print("[yellow]No version history available[/yellow]")
            return

        table = Table(title=f"History of {escape(self.document_id)} ({page.total} revisions)")
        table.add_column("Version", style="cyan")
        table.add_column("Action", style="green")
        table.add_column("Author", style="yellow")
        table.add_column("Date", style="blue")
        table.add_column("Words", justify="right")
        table.add_column("Preview", style="white")

        for revision in page.versions:
            preview = revision.content[:40] + ("..." if len(revision.content) > 40 else "")
            table.add_row(
                revision.id,
                revision.action,
                escape(revision.author_id),
                revision.timestamp.astimezone().strftime("%Y-%m-%d %H:%M:%S"),
                str(revision.stats.word_count),
                escape(preview),
            )

        self.console.print(table)
        if page.has_more:
            self.console.print(f"[dim]More revisions available: /list {offset + limit} {limit}[/dim]")

    def _show(self, argument: str) -> None:
        if argument:
            revision = self.store.get_version(self.document_id, argument)
        else:
            revision = self.store.get_latest_version(self.document_id)
        if revision is None:
            raise NotFoundError("Version not found")

        details = [f"[bold]Action:[/bold] {revision.action}", f"[bold]Author:[/bold] {escape(revision.author_id)}"]
        if "restored_from" in revision.extra:
            details.append(f"[bold]Restored from:[/bold] {revision.extra['restored_from']}")
        self.console.print(Panel(
            escape(revision.content) + "\n\n" + "\n".join(details),
            title=f"Revision {revision.id}",
            border_style="blue",
        ))

    def _diff(self, argument: str) -> None:
        args: List[str] = argument.split()
        unified = "-u" in args
        ids = [a for a in args if a != "-u"]
        if len(ids) != 2:
            raise InvalidArgumentError("Usage: /diff <id1> <id2> [-u]")

        comparison = self.store.compare_versions(self.document_id, ids[0], ids[1])
        if unified:
            text = unified_diff(comparison.version1.content, comparison.version2.content,
                                from_label=ids[0], to_label=ids[1])
            self.console.print(Syntax(text or "(no differences)", "diff", theme="monokai"))
            return

        for line in comparison.added:
            self.console.print(f"[green]+ {escape(line)}[/green]")
        for line in comparison.removed:
            self.console.print(f"[red]- {escape(line)}[/red]")
        self.console.print(
            f"{comparison.added_count} added, {comparison.removed_count} removed, "
            f"{comparison.total_changes} total changes"
        )

    def _restore(self, argument: str) -> None:
        if not argument:
            raise InvalidArgumentError("Usage: /restore <id>")
        revision = self.store.restore_version(self.document_id, argument, self.author_id)
        self._announce("Restored as", revision)

    def _stats(self, argument: str) -> None:
        stats = self.store.get_version_stats(self.document_id)
        if not stats.total_versions:
            self.console.print("[yellow]No version history available[/yellow]")
            return

        table = Table(title="Version Statistics", show_header=False)
        table.add_column("Property", style="cyan")
        table.add_column("Value", style="green")
        table.add_row("Total Versions", str(stats.total_versions))
        table.add_row("First Version", stats.first_version.id)
        table.add_row("Last Version", stats.last_version.id)
        table.add_row("Average Word Count", str(stats.average_word_count))
        table.add_row("Edits", str(stats.total_edits))
        self.console.print(table)

    def _cleanup(self, argument: str) -> None:
        try:
            keep = int(argument) if argument else None
        except ValueError:
            raise InvalidArgumentError("Usage: /cleanup [keep]")
        removed = self.store.cleanup_old_versions(self.document_id, keep)
        self.console.print(f"[green]Removed {removed} old revision(s)[/green]")

    def _history(self, argument: str) -> None:
        bundle = self.store.export_version_history(self.document_id)
        if not argument:
            self.console.print_json(bundle.to_json())
            return
        path = Path(argument).expanduser()
        path.write_text(bundle.to_json(), encoding="utf-8")
        self.console.print(f"[green]Wrote {bundle.total_versions} revision(s) of metadata to {escape(str(path))}[/green]")

    def _render(self, argument: str) -> None:
        args = argument.split(maxsplit=1)
        if not args:
            raise InvalidArgumentError("Usage: /render <format> [file]")

        latest = self.store.get_latest_version(self.document_id)
        if latest is None:
            raise NotFoundError("No revisions to export")

        result = self.renderer.render(latest.content, args[0], {"title": self.document_id})
        try:
            target = Path(args[1]).expanduser() if len(args) > 1 else self.output_dir / result.filename
            target.write_bytes(result.payload)
        finally:
            self.renderer.cleanup(result.path)
        self.console.print(f"[green]Exported {result.size} bytes to {escape(str(target))}[/green]")

    def _document(self, argument: str) -> None:
        if not argument:
            raise InvalidArgumentError("Usage: /document <id>")
        self.document_id = argument
        self.console.print(f"[blue]Switched to document {escape(argument)}[/blue]")

    def _help(self, argument: str) -> None:
        self.console.print(Panel(HELP_TEXT, title="Summary Desk", border_style="blue"))

    def _quit(self, argument: str) -> None:
        self.is_running = False

    def run(self) -> None:
        """Read commands from the console until /quit or end of input."""
        self._help("")
        while self.is_running:
            try:
                line = self.console.input(self.prompt)
            except (EOFError, KeyboardInterrupt):
                self.console.print()
                break
            self.execute(line)
