"""LaTeX writer for literate documents."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from labrunner.core.documents import (
    CodeBlock,
    DirectImage,
    DirectLink,
    Emphasis,
    HardLineBreak,
    Heading,
    HorizontalRule,
    IndirectImage,
    IndirectLink,
    InlineBlock,
    InlineCode,
    ListBlock,
    ListKind,
    Literal,
    LiterateDocument,
    OutputBlock,
    Paragraph,
    ParagraphNode,
    Paragraphs,
    QuotedBlock,
    Span,
    SpanNode,
    Strong,
    TableBlock,
)
from labrunner.core.images import lookup_key

from .utils import escape_latex_chars, escape_url


Links = Mapping[str, tuple[str, str | None]]

_SECTIONING = {
    1: r"\section*",
    2: r"\subsection*",
    3: r"\subsubsection*",
    4: r"\paragraph",
}
_COLUMN_ALIGNMENT = {"left": "l", "center": "c", "right": "r"}


class LaTeXWriter:
    """Render paragraphs to LaTeX markup."""

    def __init__(self, links: Links | None = None, *, legacy_accents: bool = False) -> None:
        self.links: Links = links or {}
        self.legacy_accents = legacy_accents

    def text(self, value: str) -> str:
        return escape_latex_chars(value, legacy_accents=self.legacy_accents)

    def span(self, span: SpanNode) -> str:
        match span:
            case Literal(text):
                return self.text(text)
            case InlineCode(code):
                return rf"\texttt{{{self.text(code)}}}"
            case HardLineBreak():
                return "\\\\\n"
            case Strong(body):
                return rf"\textbf{{{self.spans(body)}}}"
            case Emphasis(body):
                return rf"\emph{{{self.spans(body)}}}"
            case DirectLink(body, url, _):
                return rf"\href{{{escape_url(url)}}}{{{self.spans(body)}}}"
            case IndirectLink(body, original, key):
                resolved = lookup_key(self.links, key)
                if resolved is None:
                    return self.text(original)
                return rf"\href{{{escape_url(resolved[0])}}}{{{self.spans(body)}}}"
            case DirectImage(_, url, _):
                return self.image(url)
            case IndirectImage(_, original, key):
                resolved = lookup_key(self.links, key)
                if resolved is None:
                    return self.text(original)
                return self.image(resolved[0])
        raise TypeError(f"Unsupported span {type(span).__name__}")

    def image(self, url: str) -> str:
        return rf"\includegraphics[width=\linewidth,keepaspectratio]{{{escape_url(url)}}}"

    def spans(self, spans: Iterable[SpanNode]) -> str:
        return "".join(self.span(span) for span in spans)

    def verbatim(self, text: str) -> str:
        return "\\begin{verbatim}\n" + text + "\n\\end{verbatim}"

    def paragraph(self, paragraph: ParagraphNode) -> str:
        match paragraph:
            case Heading(level, body):
                command = _SECTIONING.get(level, r"\subparagraph")
                return f"{command}{{{self.spans(body)}}}"
            case Paragraph(body):
                return self.spans(body) + "\n"
            case Span(body):
                return self.spans(body)
            case CodeBlock(code, _):
                return self.verbatim(code)
            case InlineBlock():
                return ""
            case OutputBlock(text, _, latex, _):
                return latex if latex else self.verbatim(text)
            case HorizontalRule():
                return r"\noindent\rule{\linewidth}{0.4pt}"
            case ListBlock(kind, items):
                environment = "enumerate" if kind is ListKind.ORDERED else "itemize"
                body = "\n".join(rf"\item {self.paragraphs(item)}" for item in items)
                return f"\\begin{{{environment}}}\n{body}\n\\end{{{environment}}}"
            case QuotedBlock(paragraphs):
                return f"\\begin{{quote}}\n{self.paragraphs(paragraphs)}\n\\end{{quote}}"
            case TableBlock(headers, alignments, rows):
                return self.table(headers, alignments, rows)
        raise TypeError(f"Unsupported paragraph {type(paragraph).__name__}")

    def table(
        self,
        headers: tuple[Paragraphs, ...],
        alignments: tuple[str | None, ...],
        rows: tuple[tuple[Paragraphs, ...], ...],
    ) -> str:
        width = max([len(headers), *(len(row) for row in rows)], default=0)
        columns = "".join(
            _COLUMN_ALIGNMENT.get(alignments[index] if index < len(alignments) else None, "l")
            for index in range(width)
        )
        lines = [f"\\begin{{tabular}}{{{columns}}}", r"\hline"]
        if headers:
            lines.append(" & ".join(self.paragraphs(cell).strip() for cell in headers) + r" \\")
            lines.append(r"\hline")
        for row in rows:
            lines.append(" & ".join(self.paragraphs(cell).strip() for cell in row) + r" \\")
        lines.append(r"\hline")
        lines.append(r"\end{tabular}")
        return "\n".join(lines)

    def paragraphs(self, paragraphs: Iterable[ParagraphNode]) -> str:
        rendered = (self.paragraph(paragraph) for paragraph in paragraphs)
        return "\n".join(chunk for chunk in rendered if chunk)


def write_latex(document: LiterateDocument, *, legacy_accents: bool = False) -> str:
    """Render the body of a document as LaTeX."""
    writer = LaTeXWriter(document.defined_links, legacy_accents=legacy_accents)
    return writer.paragraphs(document.paragraphs) + "\n"


__all__ = ["LaTeXWriter", "write_latex"]
