"""In-process Python evaluation engine used by the literate parsers."""

from __future__ import annotations

import ast
from collections.abc import Callable
import contextlib
from dataclasses import dataclass, field
import io
import logging
from pathlib import Path
import re
import traceback
from typing import Any, Protocol, runtime_checkable

from labrunner.core.context import DEFAULT_FLOAT_FORMAT


logger = logging.getLogger(__name__)

_DOTNET_FORMAT = re.compile(r"^(?P<kind>[GgFfEeNnPp])(?P<digits>\d*)$")


@dataclass(slots=True)
class EvaluationFailure:
    """Details about a snippet that raised while being evaluated."""

    path: Path | None
    code: str
    exception: BaseException
    output: str = ""

    @property
    def message(self) -> str:
        return "".join(traceback.format_exception_only(type(self.exception), self.exception)).strip()


@dataclass(slots=True)
class EvaluationResult:
    """Captured output of one snippet."""

    output: str = ""
    value_text: str | None = None
    value_html: str | None = None
    value_latex: str | None = None
    failure: EvaluationFailure | None = None

    @property
    def succeeded(self) -> bool:
        return self.failure is None

    @property
    def is_empty(self) -> bool:
        return not self.output and self.value_text is None and self.failure is None


FailureListener = Callable[[EvaluationFailure], Any]


@runtime_checkable
class Evaluator(Protocol):
    """Evaluation engine contract consumed by the parsers."""

    def start(self, path: Path | None) -> None: ...

    def evaluate(self, code: str) -> EvaluationResult: ...

    def subscribe(self, handler: FailureListener) -> None: ...


def float_format_spec(float_format: str) -> str:
    """Translate .NET style numeric formats (``G4``, ``F2``...) to Python specs."""
    parsed = _DOTNET_FORMAT.match(float_format.strip())
    if parsed is None:
        return float_format
    kind = parsed.group("kind").upper()
    digits = parsed.group("digits")
    precision = f".{digits}" if digits else ""
    match kind:
        case "G":
            return f"{precision}g"
        case "F":
            return f"{precision or '.2'}f"
        case "E":
            return f"{precision or '.6'}e"
        case "N":
            return f",{precision or '.2'}f"
        case _:
            return f"{precision or '.2'}%"


def format_value(value: Any, float_format: str = DEFAULT_FLOAT_FORMAT) -> str:
    """Render a value the way an interactive session would, formatting floats."""
    spec = float_format_spec(float_format)
    if isinstance(value, bool):
        return repr(value)
    if isinstance(value, float):
        return format(value, spec)
    if isinstance(value, list):
        return "[" + ", ".join(format_value(item, float_format) for item in value) + "]"
    if isinstance(value, tuple):
        inner = ", ".join(format_value(item, float_format) for item in value)
        return f"({inner},)" if len(value) == 1 else f"({inner})"
    if type(value) is dict:
        items = (
            f"{format_value(key, float_format)}: {format_value(item, float_format)}"
            for key, item in value.items()
        )
        return "{" + ", ".join(items) + "}"
    return repr(value)


def _rich_repr(value: Any, method: str) -> str | None:
    renderer = getattr(value, method, None)
    if not callable(renderer):
        return None
    rendered = renderer()
    return rendered if isinstance(rendered, str) else None


@dataclass
class PythonEvaluator:
    """Run snippets in a namespace shared by all snippets of one document."""

    float_format: str = DEFAULT_FLOAT_FORMAT
    handlers: list[FailureListener] = field(default_factory=list)
    namespace: dict[str, Any] = field(default_factory=dict, init=False)
    path: Path | None = field(default=None, init=False)

    def subscribe(self, handler: FailureListener) -> None:
        self.handlers.append(handler)

    def start(self, path: Path | None) -> None:
        """Reset the namespace before evaluating a new document."""
        self.path = path
        self.namespace = {"__name__": "__journal__"}
        if path is not None:
            self.namespace["__file__"] = str(path)

    def evaluate(self, code: str) -> EvaluationResult:
        buffer = io.StringIO()
        result = EvaluationResult()
        filename = str(self.path) if self.path is not None else "<journal>"
        try:
            tree = ast.parse(code, filename=filename, mode="exec")
            trailing: ast.expr | None = None
            if tree.body and isinstance(tree.body[-1], ast.Expr):
                trailing = tree.body.pop().value
            with contextlib.redirect_stdout(buffer):
                exec(compile(tree, filename, "exec"), self.namespace)
                if trailing is not None:
                    expression = ast.Expression(trailing)
                    value = eval(compile(expression, filename, "eval"), self.namespace)
                    if value is not None:
                        result.value_text = format_value(value, self.float_format)
                        result.value_html = _rich_repr(value, "_repr_html_")
                        result.value_latex = _rich_repr(value, "_repr_latex_")
        except (Exception, SystemExit) as exc:
            result.failure = EvaluationFailure(
                path=self.path, code=code, exception=exc, output=buffer.getvalue()
            )
            logger.debug("Evaluation failed in %s: %s", filename, exc)
            for handler in list(self.handlers):
                handler(result.failure)
        result.output = buffer.getvalue()
        return result


__all__ = [
    "EvaluationFailure",
    "EvaluationResult",
    "Evaluator",
    "FailureListener",
    "PythonEvaluator",
    "float_format_spec",
    "format_value",
]
