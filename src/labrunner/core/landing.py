"""Choose or synthesise the entry page of a generated journal set."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
import re
from typing import Any

from bs4 import BeautifulSoup
from pylatexenc.latex2text import LatexNodes2Text

from .context import ProcessingContext
from .diagnostics import DiagnosticEmitter, ensure_emitter
from .documents import (
    DirectLink,
    GeneratedEntry,
    Heading,
    ListBlock,
    ListKind,
    Literal,
    LiterateDocument,
    LiterateSource,
    Paragraph,
    SourceKind,
)
from .exceptions import NoDocumentsError
from .templates import generate_file, rendered_path


INDEX_TITLE = "FsLab Journals"
INDEX_FILE = "index.html"
DEFAULT_PAGE_NAMES = {"default", "index"}

_LATEX_TITLE = re.compile(r"\\title\{(?P<title>[^{}]*)\}")


def find_existing_default(root: Path) -> str | None:
    """Return `<name>.html` for a `default.*` or `index.*` file under ``root``."""
    for entry in sorted(Path(root).iterdir()):
        if entry.is_file() and entry.stem.lower() in DEFAULT_PAGE_NAMES:
            return f"{entry.stem}.html"
    return None


def index_document(entries: Sequence[GeneratedEntry]) -> LiterateDocument:
    """Build a document listing a link to every generated page."""
    items = tuple(
        (Paragraph((DirectLink((Literal(entry.title),), entry.file_name),)),)
        for entry in entries
    )
    paragraphs: tuple[Heading | ListBlock, ...] = (Heading(1, (Literal(INDEX_TITLE),)),)
    if items:
        paragraphs += (ListBlock(ListKind.UNORDERED, items),)
    return LiterateDocument(paragraphs, source=LiterateSource(SourceKind.MARKDOWN))


def page_title(path: Path) -> str | None:
    """Read the title back from a page written by an earlier run."""
    text = path.read_text(encoding="utf-8")
    if path.suffix == ".tex":
        found = _LATEX_TITLE.search(text)
        title = LatexNodes2Text().latex_to_text(found.group("title")) if found else None
    else:
        soup = BeautifulSoup(text, "html.parser")
        title = soup.title.get_text() if soup.title is not None else None
    if title is None or not title.strip():
        return None
    return title.strip()


def written_pages(context: ProcessingContext, sources: Sequence[Path]) -> list[GeneratedEntry]:
    """Entries for the sources whose page exists in the output folder."""
    entries: list[GeneratedEntry] = []
    for source in sources:
        stem = Path(source).stem
        written = rendered_path(context, context.output / f"{stem}.html")
        if written.is_file():
            entries.append(GeneratedEntry(f"{stem}.html", page_title(written) or stem))
    return entries


def write_index(
    context: ProcessingContext,
    entries: Sequence[GeneratedEntry],
    *,
    session: Any | None = None,
    emitter: DiagnosticEmitter | None = None,
) -> str:
    generate_file(
        context,
        context.output / INDEX_FILE,
        index_document(entries),
        INDEX_TITLE,
        session=session,
        emitter=emitter,
    )
    return INDEX_FILE


def get_default_file(
    context: ProcessingContext,
    generated: Sequence[GeneratedEntry],
    *,
    discovered: Sequence[Path] | None = None,
    session: Any | None = None,
    emitter: DiagnosticEmitter | None = None,
) -> str:
    """Return the output file name to open first.

    ``generated`` lists the pages regenerated by the run. ``discovered`` lists
    every journal found, which lets a run that regenerated nothing still point
    at an entry page.
    """
    emitter = ensure_emitter(emitter)
    discovered = list(discovered or ())
    if not generated and not discovered:
        raise NoDocumentsError("No journal files found!")

    if len(generated) == 1:
        page = generated[0].file_name
        emitter.event("landing_page", {"page": page, "reason": "single document"})
        return page

    existing = find_existing_default(context.root)
    if existing is not None:
        emitter.event("landing_page", {"page": existing, "reason": "existing index"})
        return existing

    if not generated:
        if rendered_path(context, context.output / INDEX_FILE).exists():
            emitter.event("landing_page", {"page": INDEX_FILE, "reason": "up to date"})
            return INDEX_FILE
        generated = written_pages(context, discovered)
        if len(generated) == 1:
            page = generated[0].file_name
            emitter.event("landing_page", {"page": page, "reason": "up to date"})
            return page

    page = write_index(context, generated, session=session, emitter=emitter)
    emitter.event("landing_page", {"page": page, "reason": "generated index"})
    return page


__all__ = [
    "DEFAULT_PAGE_NAMES",
    "INDEX_FILE",
    "INDEX_TITLE",
    "find_existing_default",
    "get_default_file",
    "index_document",
    "page_title",
    "write_index",
    "written_pages",
]
