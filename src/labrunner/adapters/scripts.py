"""Literate Python scripts written in percent-cell format.

```python
# %% [markdown]
# # Report title
# Some narrative text.

# %%
values = [1.0, 2.5]
sum(values)
```

Markdown cells are comment blocks; every other cell is evaluated as Python.
Code placed before the first marker forms an implicit code cell.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
import re
from typing import Any

from labrunner.core.documents import LiterateDocument, SourceKind

from .evaluator import Evaluator
from .markdown import parse_markdown_text


_CELL_MARKER = re.compile(r"^#\s*%%(?P<rest>.*)$")
_MARKDOWN_TAG = re.compile(r"\[\s*(markdown|md)\s*\]", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class ScriptCell:
    kind: str
    source: str


def _strip_comment(line: str) -> str:
    if line.startswith("# "):
        return line[2:]
    if line.startswith("#"):
        return line[1:]
    return line


def _trim_blank_lines(lines: list[str]) -> list[str]:
    start, end = 0, len(lines)
    while start < end and not lines[start].strip():
        start += 1
    while end > start and not lines[end - 1].strip():
        end -= 1
    return lines[start:end]


def split_cells(text: str) -> list[ScriptCell]:
    """Split a percent-format script into markdown and code cells."""
    cells: list[ScriptCell] = []
    kind = "code"
    lines: list[str] = []

    def close() -> None:
        body = _trim_blank_lines(lines)
        if body:
            if kind == "markdown":
                body = [_strip_comment(line) for line in body]
            cells.append(ScriptCell(kind, "\n".join(body)))

    for line in text.splitlines():
        marker = _CELL_MARKER.match(line)
        if marker is None:
            lines.append(line)
            continue
        close()
        lines = []
        kind = "markdown" if _MARKDOWN_TAG.search(marker.group("rest")) else "code"
    close()
    return cells


def _longest_backtick_run(text: str) -> int:
    runs = re.findall(r"`+", text)
    return max((len(run) for run in runs), default=0)


def script_to_markdown(text: str) -> str:
    """Render a literate script as Markdown with fenced Python blocks."""
    chunks: list[str] = []
    for cell in split_cells(text):
        if cell.kind == "markdown":
            chunks.append(cell.source)
        else:
            fence = "`" * max(3, _longest_backtick_run(cell.source) + 1)
            chunks.append(f"{fence}python\n{cell.source}\n{fence}")
    return "\n\n".join(chunks) + "\n"


def parse_script_file(
    path: Path | str,
    evaluator: Evaluator,
    *,
    extensions: Sequence[Any] | None = None,
) -> LiterateDocument:
    """Parse and evaluate a literate Python script."""
    source = Path(path)
    text = source.read_text(encoding="utf-8")
    return parse_markdown_text(
        script_to_markdown(text),
        evaluator,
        path=source,
        kind=SourceKind.SCRIPT,
        extensions=extensions,
    )


__all__ = ["ScriptCell", "parse_script_file", "script_to_markdown", "split_cells"]
