"""Discover journals, regenerate the stale ones, and collect the results."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
import logging
from pathlib import Path
from typing import Any

from labrunner.adapters.evaluator import Evaluator, PythonEvaluator
from labrunner.adapters.markdown import parse_markdown_file
from labrunner.adapters.scripts import parse_script_file

from .context import ProcessingContext
from .diagnostics import DiagnosticEmitter, ensure_emitter
from .documents import GeneratedEntry, LiterateDocument, SourceKind
from .exceptions import EvaluationError, SourceRootMissingError, TemplateMissingError
from .files import copy_files, ensure_directory
from .templates import STYLES_FOLDER, generate_file, rendered_path
from .walker import extract_title


logger = logging.getLogger(__name__)

SCRIPT_SUFFIX = ".py"
MARKDOWN_SUFFIX = ".md"
BUILD_SCRIPT_NAME = "build"
UNTITLED = "Untitled"
BUNDLED_TEMPLATE_LOCATION = Path(__file__).resolve().parent.parent


@dataclass(frozen=True, slots=True)
class SourceDocument:
    """A journal found under the root folder."""

    path: Path
    kind: SourceKind

    @property
    def name(self) -> str:
        return self.path.stem

    @property
    def output_name(self) -> str:
        return f"{self.path.stem}.html"


class OutcomeStatus(str, Enum):
    GENERATED = "generated"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class DocumentOutcome:
    """What happened to one journal during a run."""

    source: SourceDocument
    status: OutcomeStatus
    title: str | None = None
    written: Path | None = None
    error: BaseException | None = None

    @property
    def entry(self) -> GeneratedEntry | None:
        if self.status is not OutcomeStatus.GENERATED or self.title is None:
            return None
        return GeneratedEntry(self.source.output_name, self.title)


@dataclass(slots=True)
class RunResult:
    """Aggregate result of processing a journal folder."""

    discovered: list[SourceDocument] = field(default_factory=list)
    outcomes: list[DocumentOutcome] = field(default_factory=list)

    def _with_status(self, status: OutcomeStatus) -> list[DocumentOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status is status]

    @property
    def generated(self) -> list[GeneratedEntry]:
        return [outcome.entry for outcome in self._with_status(OutcomeStatus.GENERATED) if outcome.entry]

    @property
    def skipped(self) -> list[DocumentOutcome]:
        return self._with_status(OutcomeStatus.SKIPPED)

    @property
    def failures(self) -> list[DocumentOutcome]:
        return self._with_status(OutcomeStatus.FAILED)


# Discovery -----------------------------------------------------------------


def _matches_suffix(path: Path, whitelist: Iterable[str] | None) -> bool:
    if whitelist is None:
        return True
    return any(str(path).endswith(entry) for entry in whitelist)


def _is_build_script(path: Path) -> bool:
    return path.stem.lower() == BUILD_SCRIPT_NAME


def _list_files(directory: Path, suffix: str) -> list[Path]:
    return sorted(
        (entry for entry in directory.iterdir() if entry.is_file() and entry.suffix == suffix),
        key=lambda entry: entry.name,
    )


def discover_documents(context: ProcessingContext) -> list[SourceDocument]:
    """List the journals directly under the root folder.

    Scripts come first, then Markdown documents. A configured whitelist is
    applied twice: as a path suffix filter while listing, then as an exact file
    name filter on the result.
    """
    root = Path(context.root)
    if not root.is_dir():
        raise SourceRootMissingError(f"Journal folder '{root}' does not exist.")

    whitelist = context.file_whitelist
    documents: list[SourceDocument] = []
    for path in _list_files(root, SCRIPT_SUFFIX):
        if _matches_suffix(path, whitelist) and not _is_build_script(path):
            documents.append(SourceDocument(path, SourceKind.SCRIPT))
    for path in _list_files(root, MARKDOWN_SUFFIX):
        if _matches_suffix(path, whitelist) and not _is_build_script(path):
            documents.append(SourceDocument(path, SourceKind.MARKDOWN))

    if whitelist is not None:
        names = set(whitelist)
        documents = [document for document in documents if document.path.name in names]
    return documents


def _modified_time(path: Path) -> float:
    try:
        return path.stat().st_mtime
    except FileNotFoundError:
        return 0.0


def is_stale(source: Path, output: Path, *, overwrite: bool = False) -> bool:
    """Return whether ``source`` changed after ``output`` was generated."""
    if overwrite:
        return True
    return _modified_time(source) > _modified_time(output)


# Setup ---------------------------------------------------------------------


def resolve_styles_folder(context: ProcessingContext) -> Path:
    """Folder whose content is mirrored into `<output>/styles`."""
    location = context.template_location or BUNDLED_TEMPLATE_LOCATION
    styles = Path(location) / STYLES_FOLDER
    if not styles.is_dir():
        raise TemplateMissingError(f"Template location '{location}' has no '{STYLES_FOLDER}' folder.")
    return styles


def prepare_output(context: ProcessingContext) -> list[Path]:
    """Create the output folder and copy the styles that are not there yet."""
    ensure_directory(context.output)
    return copy_files(resolve_styles_folder(context), context.output / STYLES_FOLDER)


def create_evaluator(context: ProcessingContext) -> Evaluator:
    """Return the evaluator override or a Python evaluator wired to the failure handler."""
    if context.evaluator is not None:
        return context.evaluator
    evaluator = PythonEvaluator(float_format=context.float_format)
    evaluator.subscribe(context.failed_handler)
    return evaluator


def parse_document(
    context: ProcessingContext, source: SourceDocument, evaluator: Evaluator
) -> LiterateDocument:
    extensions = list(context.markdown_extensions)
    if source.kind is SourceKind.SCRIPT:
        return parse_script_file(source.path, evaluator, extensions=extensions)
    return parse_markdown_file(source.path, evaluator, extensions=extensions)


# Processing ----------------------------------------------------------------


def output_artifact(context: ProcessingContext, source: SourceDocument) -> Path:
    """File written for ``source``, used for the staleness check."""
    return rendered_path(context, context.output / source.output_name)


def regenerate_document(
    context: ProcessingContext,
    source: SourceDocument,
    evaluator: Evaluator,
    *,
    session: Any | None = None,
    emitter: DiagnosticEmitter | None = None,
) -> DocumentOutcome:
    """Parse, evaluate, and render one journal."""
    emitter = ensure_emitter(emitter)
    output = context.output / source.output_name
    emitter.event("document_generate", {"source": source.path.name, "output": source.output_name})
    try:
        document = parse_document(context, source, evaluator)
    except EvaluationError as exc:
        emitter.event(
            "document_failed",
            {"source": source.path.name, "reason": str(exc)},
        )
        return DocumentOutcome(source, OutcomeStatus.FAILED, error=exc)

    title = extract_title(document.paragraphs) or UNTITLED
    written = generate_file(context, output, document, title, session=session, emitter=emitter)
    return DocumentOutcome(source, OutcomeStatus.GENERATED, title=title, written=written)


def process_script_files(
    context: ProcessingContext,
    *,
    overwrite: bool = False,
    session: Any | None = None,
    emitter: DiagnosticEmitter | None = None,
) -> RunResult:
    """Regenerate every stale journal under ``context.root``.

    Staleness is decided for every document before any of them is rendered.
    """
    emitter = ensure_emitter(emitter)
    documents = discover_documents(context)
    prepare_output(context)
    evaluator = create_evaluator(context)

    stale = {
        source.path: is_stale(source.path, output_artifact(context, source), overwrite=overwrite)
        for source in documents
    }

    result = RunResult(discovered=documents)
    for source in documents:
        if not stale[source.path]:
            emitter.event("document_skip", {"source": source.path.name})
            result.outcomes.append(DocumentOutcome(source, OutcomeStatus.SKIPPED))
            continue
        outcome = regenerate_document(
            context, source, evaluator, session=session, emitter=emitter
        )
        result.outcomes.append(outcome)
    logger.debug(
        "Processed %d journals: %d generated, %d skipped, %d failed",
        len(documents),
        len(result.generated),
        len(result.skipped),
        len(result.failures),
    )
    return result


__all__ = [
    "BUNDLED_TEMPLATE_LOCATION",
    "DocumentOutcome",
    "OutcomeStatus",
    "RunResult",
    "SourceDocument",
    "create_evaluator",
    "discover_documents",
    "is_stale",
    "output_artifact",
    "parse_document",
    "prepare_output",
    "process_script_files",
    "regenerate_document",
    "resolve_styles_folder",
]
