"""Custom exception hierarchy for the journal processing pipeline."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING


if TYPE_CHECKING:  # pragma: no cover - typing only
    from labrunner.adapters.evaluator import EvaluationFailure


class RunnerError(RuntimeError):
    """Base exception for journal processing failures."""


class SourceRootMissingError(RunnerError):
    """Raised when the configured root folder does not exist."""


class NoDocumentsError(RunnerError):
    """Raised when a run does not find any document to process."""


class TemplateMissingError(RunnerError):
    """Raised when the page template is absent from the output styles folder."""


class AssetFetchError(RunnerError):
    """Raised when a remote image cannot be downloaded."""


class EvaluationAbortedError(RunnerError):
    """Raised by a failure handler to stop the whole run."""


class EvaluationError(RunnerError):
    """Raised when code embedded in a document failed to evaluate."""

    def __init__(self, path: Path | None, failures: Sequence[EvaluationFailure]) -> None:
        self.path = path
        self.failures = list(failures)
        where = f" in '{path.name}'" if path is not None else ""
        count = len(self.failures)
        noun = "block" if count == 1 else "blocks"
        detail = ""
        if self.failures:
            first = self.failures[0].exception
            detail = f": {type(first).__name__}: {first}"
        super().__init__(f"{count} code {noun} failed to evaluate{where}{detail}")


def exception_messages(exc: BaseException) -> list[str]:
    """Return the collected message chain for an exception and its causes."""
    messages: list[str] = []
    visited: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        text = str(current).strip()
        if text:
            first_line = text.splitlines()[0].strip()
            if first_line:
                messages.append(first_line)
        current = current.__cause__ or current.__context__
    return messages


def exception_hint(exc: BaseException) -> str | None:
    """Return the most specific message available for an exception chain."""
    messages = exception_messages(exc)
    return messages[-1] if messages else None


__all__ = [
    "AssetFetchError",
    "EvaluationAbortedError",
    "EvaluationError",
    "NoDocumentsError",
    "RunnerError",
    "SourceRootMissingError",
    "TemplateMissingError",
    "exception_hint",
    "exception_messages",
]
