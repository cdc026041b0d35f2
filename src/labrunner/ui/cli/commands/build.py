"""Implementation of the `labrunner build` command."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import typer

from labrunner.core.config import RunnerConfig, load_config
from labrunner.core.context import OutputKind
from labrunner.core.exceptions import RunnerError, exception_hint
from labrunner.core.landing import get_default_file
from labrunner.core.pipeline import process_script_files
from labrunner.core.templates import rendered_path

from .._options import (
    ConfigOption,
    DebugOption,
    FailFastOption,
    FloatFormatOption,
    LatexOption,
    OnlyOption,
    OutputDirOption,
    OverwriteOption,
    RootArgument,
    TemplatesOption,
    VerboseOption,
)
from ..diagnostics import CliEmitter
from ..presenter import present_run_summary
from ..state import debug_enabled, emit_error, emit_warning, set_cli_state


def describe_error(exc: RunnerError) -> str:
    """Return a one-line summary of a failed run, naming its root cause."""
    summary = str(exc).rstrip(".")
    cause = exc.__cause__ or exc.__context__
    hint = exception_hint(cause) if cause is not None else None
    if hint and hint not in summary:
        summary = f"{summary}: {hint}"
    return f"{summary}. Re-run with --debug for technical details."


def merge_options(
    config: RunnerConfig,
    *,
    root: Path | None = None,
    output: Path | None = None,
    latex: bool = False,
    float_format: str | None = None,
    templates: Path | None = None,
    only: list[str] | None = None,
    overwrite: bool = False,
    fail_fast: bool = False,
) -> RunnerConfig:
    """Apply command line values on top of a configuration."""
    updates: dict[str, Any] = {}
    if root is not None:
        updates["root"] = root
    if output is not None:
        updates["output"] = output
    if latex:
        updates["output_kind"] = OutputKind.LATEX
    if float_format is not None:
        updates["float_format"] = float_format
    if templates is not None:
        updates["template_location"] = templates
    if only:
        updates["whitelist"] = list(only)
    if overwrite:
        updates["overwrite"] = True
    if fail_fast:
        updates["fail_fast"] = True
    return config.model_copy(update=updates)


def build(
    ctx: typer.Context,
    root: RootArgument = None,
    output: OutputDirOption = None,
    latex: LatexOption = False,
    float_format: FloatFormatOption = None,
    templates: TemplatesOption = None,
    only: OnlyOption = None,
    overwrite: OverwriteOption = False,
    fail_fast: FailFastOption = False,
    config: ConfigOption = None,
    verbose: VerboseOption = 0,
    debug: DebugOption = False,
) -> None:
    """Render every stale journal of ROOT and report the entry page."""
    state = set_cli_state(ctx=ctx, verbosity=verbose, debug=debug)
    emitter = CliEmitter(state=state)

    try:
        settings = load_config(config) if config is not None else RunnerConfig()
        settings = merge_options(
            settings,
            root=root,
            output=output,
            latex=latex,
            float_format=float_format,
            templates=templates,
            only=only,
            overwrite=overwrite,
            fail_fast=fail_fast,
        )
        context = settings.to_context()
        result = process_script_files(context, overwrite=settings.overwrite, emitter=emitter)
        page = get_default_file(
            context,
            result.generated,
            discovered=[document.path for document in result.discovered],
            emitter=emitter,
        )
    except RunnerError as exc:
        if debug_enabled():
            raise
        emit_error(describe_error(exc), exception=exc)
        raise typer.Exit(code=1) from exc

    present_run_summary(state, result, entry_page=rendered_path(context, context.output / page))
    if result.failures:
        emit_warning(f"{len(result.failures)} journal(s) could not be evaluated.")


__all__ = ["build", "describe_error", "merge_options"]
