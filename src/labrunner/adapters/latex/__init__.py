"""LaTeX output for literate documents."""

from __future__ import annotations

from .formatter import LaTeXWriter, write_latex
from .utils import escape_latex_chars, escape_url


__all__ = ["LaTeXWriter", "escape_latex_chars", "escape_url", "write_latex"]
