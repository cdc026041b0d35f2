"""Rich presentation helpers for CLI commands."""

from __future__ import annotations

from pathlib import Path

from rich import box
from rich.table import Table
from rich.text import Text

from labrunner.core.pipeline import DocumentOutcome, OutcomeStatus, RunResult

from .state import CLIState


_STATUS_STYLES = {
    OutcomeStatus.GENERATED: "bright_green",
    OutcomeStatus.SKIPPED: "dim",
    OutcomeStatus.FAILED: "red",
}


def _format_path(path: Path) -> str:
    """Format a path relative to the current working directory for display."""
    resolved = path.resolve()
    try:
        return str(resolved.relative_to(Path.cwd()))
    except ValueError:
        return str(resolved)


def _details(outcome: DocumentOutcome) -> str:
    if outcome.status is OutcomeStatus.GENERATED:
        return outcome.title or ""
    if outcome.status is OutcomeStatus.FAILED and outcome.error is not None:
        return str(outcome.error).splitlines()[0]
    return "up to date"


def present_run_summary(state: CLIState, result: RunResult, *, entry_page: Path | None) -> None:
    """Render the per-journal outcome table, fetched images and the entry page."""
    console = state.console
    table = Table(box=box.SQUARE, header_style="bold cyan")
    table.add_column("Journal", style="cyan")
    table.add_column("Status")
    table.add_column("Output")
    table.add_column("Details")
    for outcome in result.outcomes:
        status = Text(outcome.status.value, style=_STATUS_STYLES[outcome.status])
        written = _format_path(outcome.written) if outcome.written is not None else ""
        table.add_row(outcome.source.path.name, status, written, _details(outcome))
    console.print(table)
    downloads = state.consume_events("asset_fetch")
    if downloads:
        console.print(f"Downloaded {len(downloads)} remote image(s).", markup=False, highlight=False)
    if entry_page is not None:
        console.print(Text.assemble(("Entry page: ", "bold"), (_format_path(entry_page), "bright_cyan")))


__all__ = ["present_run_summary"]
