"""Page templates and final output generation."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from labrunner.adapters import render_document

from .context import OutputKind, ProcessingContext
from .diagnostics import DiagnosticEmitter
from .documents import LiterateDocument
from .exceptions import TemplateMissingError
from .files import ensure_directory
from .images import SAVED_IMAGES_FOLDER, ImageSaver, localize_images
from .walker import drop_title


logger = logging.getLogger(__name__)

STYLES_FOLDER = "styles"
TOOLTIPS_TOKEN = "{tooltips}"
PAGE_TITLE_TOKEN = "{page-title}"
HTML_BODY_TOKEN = "{document}"
LATEX_BODY_TOKEN = "{contents}"


def template_path(context: ProcessingContext) -> Path:
    """Location of the template for the context's output kind."""
    return context.output / STYLES_FOLDER / context.output_kind.template_name


def load_template(context: ProcessingContext) -> str:
    """Read the raw page template from the output styles folder."""
    path = template_path(context)
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise TemplateMissingError(f"Template '{path}' does not exist.") from exc


def rendered_path(context: ProcessingContext, path: Path) -> Path:
    """Path actually written for ``path``; LaTeX output always ends in `.tex`."""
    if context.output_kind is OutputKind.LATEX:
        return path.with_suffix(".tex")
    return path


def fill_template(template: str, *, tooltips: str, body: str, title: str, kind: OutputKind) -> str:
    """Substitute the placeholder tokens of a page template."""
    body_token = LATEX_BODY_TOKEN if kind is OutputKind.LATEX else HTML_BODY_TOKEN
    return (
        template.replace(TOOLTIPS_TOKEN, tooltips)
        .replace(body_token, body)
        .replace(PAGE_TITLE_TOKEN, title)
    )


def prepare_latex_document(
    context: ProcessingContext,
    document: LiterateDocument,
    *,
    session: Any | None = None,
    emitter: DiagnosticEmitter | None = None,
) -> LiterateDocument:
    """Download remote images and drop the level-1 heading used as page title."""
    ensure_directory(context.output / SAVED_IMAGES_FOLDER)
    saver = ImageSaver(context.output, session=session, emitter=emitter)
    paragraphs = localize_images(document.paragraphs, saver, document.defined_links)
    return document.with_paragraphs(drop_title(paragraphs))


def generate_file(
    context: ProcessingContext,
    path: Path,
    document: LiterateDocument,
    title: str,
    *,
    session: Any | None = None,
    emitter: DiagnosticEmitter | None = None,
) -> Path:
    """Render ``document`` through the page template and write it.

    ``session`` is the HTTP session used to fetch remote images in LaTeX mode.
    Returns the path that was written.
    """
    kind = context.output_kind
    template = load_template(context)
    if kind is OutputKind.LATEX:
        document = prepare_latex_document(context, document, session=session, emitter=emitter)
    page = fill_template(
        template,
        tooltips=document.formatted_tips,
        body=render_document(document, kind),
        title=title,
        kind=kind,
    )
    target = rendered_path(context, Path(path))
    ensure_directory(target.parent)
    target.write_text(page, encoding="utf-8")
    logger.debug("Wrote %s", target)
    return target


__all__ = [
    "HTML_BODY_TOKEN",
    "LATEX_BODY_TOKEN",
    "PAGE_TITLE_TOKEN",
    "STYLES_FOLDER",
    "TOOLTIPS_TOKEN",
    "fill_template",
    "generate_file",
    "load_template",
    "prepare_latex_document",
    "rendered_path",
    "template_path",
]
