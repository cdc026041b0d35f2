"""Processing context shared by every stage of a journal run."""

from __future__ import annotations

from collections.abc import Callable, Iterable
import dataclasses
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .exceptions import EvaluationAbortedError


if TYPE_CHECKING:  # pragma: no cover - typing only
    from labrunner.adapters.evaluator import EvaluationFailure, Evaluator


DEFAULT_FLOAT_FORMAT = "G4"
DEFAULT_OUTPUT_FOLDER = "output"


class OutputKind(str, Enum):
    """Markup produced for each journal."""

    HTML = "html"
    LATEX = "latex"

    @classmethod
    def parse(cls, value: str | OutputKind) -> OutputKind:
        if isinstance(value, OutputKind):
            return value
        lowered = str(value).strip().lower()
        if lowered in {"tex", "latex"}:
            return cls.LATEX
        if lowered == "html":
            return cls.HTML
        raise ValueError(f"Unknown output kind '{value}', expected 'html' or 'latex'.")

    @property
    def template_name(self) -> str:
        return "template.tex" if self is OutputKind.LATEX else "template.html"


FailureHandler = Callable[["EvaluationFailure"], Any]


def ignore_failure(failure: EvaluationFailure) -> None:
    """Default failure handler: the failing document is skipped."""
    return None


def abort_on_failure(failure: EvaluationFailure) -> None:
    """Failure handler that stops the run at the first failing snippet."""
    where = f" in '{failure.path.name}'" if failure.path is not None else ""
    raise EvaluationAbortedError(f"Evaluation failed{where}: {failure.message}") from failure.exception


@dataclass(frozen=True, slots=True)
class ProcessingContext:
    """Immutable settings for one run over a folder of journals.

    `root`
    : Folder containing the `*.py` and `*.md` journals.

    `output`
    : Folder receiving the generated pages and the `styles` folder.

    `template_location`
    : Folder holding a `styles` subfolder to mirror into the output. When
      `None` the styles bundled with the package are used.

    `file_whitelist`
    : Restrict processing to these file names, for example `("Report.py",)`.

    `failed_handler`
    : Called with an `EvaluationFailure` whenever embedded code fails. Raise
      from it to abort the run.

    `evaluator`
    : Evaluation engine used instead of the default Python evaluator. It is used
      as given, so subscribe your own failure handler on it.
    """

    root: Path
    output: Path
    output_kind: OutputKind = OutputKind.HTML
    float_format: str = DEFAULT_FLOAT_FORMAT
    template_location: Path | None = None
    file_whitelist: tuple[str, ...] | None = None
    failed_handler: FailureHandler = ignore_failure
    evaluator: Evaluator | None = None
    markdown_extensions: tuple[str, ...] = ()

    @classmethod
    def create(cls, root: Path | str) -> ProcessingContext:
        """Create a context with defaults for the given journal folder."""
        root_path = Path(root)
        return cls(root=root_path, output=root_path / DEFAULT_OUTPUT_FOLDER)

    def replace(self, **changes: Any) -> ProcessingContext:
        """Return a copy with the given fields changed."""
        if "file_whitelist" in changes and changes["file_whitelist"] is not None:
            changes["file_whitelist"] = _as_names(changes["file_whitelist"])
        if "output_kind" in changes:
            changes["output_kind"] = OutputKind.parse(changes["output_kind"])
        return dataclasses.replace(self, **changes)

    def transform(self, func: Callable[[ProcessingContext], ProcessingContext]) -> ProcessingContext:
        """Apply ``func`` to the context and return its result."""
        return func(self)


def _as_names(values: Iterable[str]) -> tuple[str, ...]:
    if isinstance(values, str):
        return (values,)
    return tuple(values)


__all__ = [
    "DEFAULT_FLOAT_FORMAT",
    "FailureHandler",
    "OutputKind",
    "ProcessingContext",
    "abort_on_failure",
    "ignore_failure",
]
