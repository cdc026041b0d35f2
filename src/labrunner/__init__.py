"""Primary public API for labrunner."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as _pkg_version

from labrunner.core.config import RunnerConfig, load_config
from labrunner.core.context import (
    OutputKind,
    ProcessingContext,
    abort_on_failure,
    ignore_failure,
)
from labrunner.core.documents import GeneratedEntry, LiterateDocument
from labrunner.core.exceptions import (
    AssetFetchError,
    EvaluationAbortedError,
    EvaluationError,
    NoDocumentsError,
    RunnerError,
    SourceRootMissingError,
    TemplateMissingError,
)
from labrunner.core.landing import get_default_file
from labrunner.core.pipeline import DocumentOutcome, RunResult, process_script_files
from labrunner.core.templates import generate_file
from labrunner.core.walker import drop_title, extract_title


try:
    __version__ = _pkg_version("labrunner")
except PackageNotFoundError:
    __version__ = "0.0.0"


__all__ = [
    "AssetFetchError",
    "DocumentOutcome",
    "EvaluationAbortedError",
    "EvaluationError",
    "GeneratedEntry",
    "LiterateDocument",
    "NoDocumentsError",
    "OutputKind",
    "ProcessingContext",
    "RunResult",
    "RunnerConfig",
    "RunnerError",
    "SourceRootMissingError",
    "TemplateMissingError",
    "__version__",
    "abort_on_failure",
    "drop_title",
    "extract_title",
    "generate_file",
    "get_default_file",
    "ignore_failure",
    "load_config",
    "process_script_files",
]
