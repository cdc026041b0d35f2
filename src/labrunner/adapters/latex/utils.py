"""Utility helpers specific to LaTeX rendering."""

from __future__ import annotations

import re
import unicodedata

from pylatexenc.latexencode import unicode_to_latex


_BASIC_LATEX_ESCAPE_MAP = {
    "&": r"\&",
    "%": r"\%",
    "#": r"\#",
    "$": r"\$",
    "_": r"\_",
    "^": r"\^{}",
    "{": r"\{",
    "}": r"\}",
    "~": r"\textasciitilde{}",
    "\\": r"\textbackslash{}",
}

_ACCENT_NEEDS_BRACES_PATTERN = re.compile(
    r"\\([" + re.escape("`'^\"~=\\.Hrvuck") + r"])\s*([A-Za-z])(?!\{)"
)


def _wrap_accents(payload: str) -> str:
    """Ensure accent macros wrap their payload in braces."""

    def _repl(match: re.Match[str]) -> str:
        command, char = match.groups()
        return f"\\{command}{{{char}}}"

    return _ACCENT_NEEDS_BRACES_PATTERN.sub(_repl, payload)


def escape_latex_chars(text: str, *, legacy_accents: bool = False) -> str:
    """Escape LaTeX special characters, optionally spelling accents as macros."""
    if not text:
        return text
    escaped = "".join(_BASIC_LATEX_ESCAPE_MAP.get(char, char) for char in text)
    if not legacy_accents:
        return escaped
    normalised = unicodedata.normalize("NFC", escaped)
    encoded = unicode_to_latex(normalised, non_ascii_only=True, unknown_char_warning=False)
    return _wrap_accents(encoded)


def escape_url(url: str) -> str:
    """Escape the characters `\\href` and `\\includegraphics` cannot take raw."""
    return url.replace("\\", "/").replace("%", r"\%").replace("#", r"\#")


__all__ = ["escape_latex_chars", "escape_url"]
