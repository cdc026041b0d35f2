"""Shared Typer option definitions for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer


INPUTS_PANEL = "Input Handling"
OUTPUT_PANEL = "Output"
TEMPLATE_PANEL = "Template"
DIAGNOSTICS_PANEL = "Diagnostics"

RootArgument = Annotated[
    Path | None,
    typer.Argument(
        metavar="ROOT",
        help="Folder containing the literate scripts (.py) and Markdown (.md) journals.",
        file_okay=False,
        dir_okay=True,
        rich_help_panel=INPUTS_PANEL,
    ),
]

OnlyOption = Annotated[
    list[str] | None,
    typer.Option(
        "--only",
        help="Only process the given file name. Repeat to select several journals.",
        rich_help_panel=INPUTS_PANEL,
    ),
]

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="YAML configuration file. Command line options take precedence.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        rich_help_panel=INPUTS_PANEL,
    ),
]

OutputDirOption = Annotated[
    Path | None,
    typer.Option(
        "--output",
        "-o",
        help="Output folder. Defaults to '<ROOT>/output'.",
        file_okay=False,
        dir_okay=True,
        rich_help_panel=OUTPUT_PANEL,
    ),
]

LatexOption = Annotated[
    bool,
    typer.Option(
        "--latex",
        help="Produce LaTeX (.tex) instead of HTML pages.",
        rich_help_panel=OUTPUT_PANEL,
    ),
]

FloatFormatOption = Annotated[
    str | None,
    typer.Option(
        "--float-format",
        help="Format for floating point results, e.g. G4, F2, E3 or '.3f'.",
        rich_help_panel=OUTPUT_PANEL,
    ),
]

OverwriteOption = Annotated[
    bool,
    typer.Option(
        "--overwrite",
        help="Regenerate every journal even when its output is up to date.",
        rich_help_panel=OUTPUT_PANEL,
    ),
]

TemplatesOption = Annotated[
    Path | None,
    typer.Option(
        "--templates",
        "-t",
        help="Folder holding a 'styles' folder with template.html / template.tex.",
        file_okay=False,
        dir_okay=True,
        rich_help_panel=TEMPLATE_PANEL,
    ),
]

FailFastOption = Annotated[
    bool,
    typer.Option(
        "--fail-fast",
        help="Abort at the first snippet that fails to evaluate.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]

VerboseOption = Annotated[
    int,
    typer.Option(
        "--verbose",
        "-v",
        count=True,
        help="Increase CLI verbosity. Combine multiple times for additional diagnostics.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]

DebugOption = Annotated[
    bool,
    typer.Option(
        "--debug",
        help="Show full tracebacks when an unexpected error occurs.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]


__all__ = [
    "ConfigOption",
    "DebugOption",
    "FailFastOption",
    "FloatFormatOption",
    "LatexOption",
    "OnlyOption",
    "OutputDirOption",
    "OverwriteOption",
    "RootArgument",
    "TemplatesOption",
    "VerboseOption",
]
