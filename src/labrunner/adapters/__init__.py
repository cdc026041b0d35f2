"""Parsers, evaluation engine, and writers consumed by the journal pipeline."""

from __future__ import annotations

from labrunner.core.context import OutputKind
from labrunner.core.documents import LiterateDocument

from .html import write_html
from .latex import write_latex


def render_document(document: LiterateDocument, kind: OutputKind) -> str:
    """Render the body of ``document`` for the requested output kind."""
    if kind is OutputKind.LATEX:
        return write_latex(document)
    return write_html(document)


__all__ = ["render_document", "write_html", "write_latex"]
