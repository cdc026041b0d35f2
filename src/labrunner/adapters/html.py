"""HTML writer for literate documents."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from html import escape

from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import ClassNotFound, TextLexer, get_lexer_by_name
from slugify import slugify

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
from labrunner.core.walker import extract_text


Links = Mapping[str, tuple[str, str | None]]


def _attribute(name: str, value: str | None) -> str:
    if not value:
        return ""
    return f' {name}="{escape(value, quote=True)}"'


def highlight_code(code: str, language: str | None) -> str:
    """Highlight a code block with Pygments."""
    try:
        lexer = get_lexer_by_name(language or "text")
    except ClassNotFound:
        lexer = TextLexer()
    formatter = HtmlFormatter(cssclass="highlight", wrapcode=True)
    return highlight(code, lexer, formatter).rstrip("\n")


def _span(span: SpanNode, links: Links) -> str:
    match span:
        case Literal(text):
            return escape(text, quote=False)
        case InlineCode(code):
            return f"<code>{escape(code, quote=False)}</code>"
        case HardLineBreak():
            return "<br />"
        case Strong(body):
            return f"<strong>{_spans(body, links)}</strong>"
        case Emphasis(body):
            return f"<em>{_spans(body, links)}</em>"
        case DirectLink(body, url, title):
            return f"<a{_attribute('href', url)}{_attribute('title', title)}>{_spans(body, links)}</a>"
        case IndirectLink(body, original, key):
            resolved = lookup_key(links, key)
            if resolved is None:
                return escape(original, quote=False)
            url, title = resolved
            return f"<a{_attribute('href', url)}{_attribute('title', title)}>{_spans(body, links)}</a>"
        case DirectImage(body, url, title):
            return f"<img{_attribute('src', url)}{_attribute('alt', body)}{_attribute('title', title)} />"
        case IndirectImage(body, original, key):
            resolved = lookup_key(links, key)
            if resolved is None:
                return escape(original, quote=False)
            url, title = resolved
            return f"<img{_attribute('src', url)}{_attribute('alt', body)}{_attribute('title', title)} />"
    raise TypeError(f"Unsupported span {type(span).__name__}")


def _spans(spans: Iterable[SpanNode], links: Links) -> str:
    return "".join(_span(span, links) for span in spans)


def _heading_id(body: Iterable[SpanNode]) -> str:
    return slugify(" ".join(extract_text(body)))


def _paragraph(paragraph: ParagraphNode, links: Links) -> str:
    match paragraph:
        case Heading(level, body):
            anchor = _heading_id(body)
            return f"<h{level}{_attribute('id', anchor)}>{_spans(body, links)}</h{level}>"
        case Paragraph(body):
            return f"<p>{_spans(body, links)}</p>"
        case Span(body):
            return _spans(body, links)
        case CodeBlock(code, language):
            return highlight_code(code, language)
        case InlineBlock(markup):
            return markup
        case OutputBlock(text, html, _, failed):
            if html:
                return f'<div class="output">{html}</div>'
            css = "output error" if failed else "output"
            return f'<pre class="{css}">{escape(text, quote=False)}</pre>'
        case HorizontalRule():
            return "<hr />"
        case ListBlock(kind, items):
            tag = "ol" if kind is ListKind.ORDERED else "ul"
            rendered = "".join(f"<li>{_paragraphs(item, links)}</li>" for item in items)
            return f"<{tag}>{rendered}</{tag}>"
        case QuotedBlock(paragraphs):
            return f"<blockquote>{_paragraphs(paragraphs, links)}</blockquote>"
        case TableBlock(headers, alignments, rows):
            return _table(headers, alignments, rows, links)
    raise TypeError(f"Unsupported paragraph {type(paragraph).__name__}")


def _cell(tag: str, cell: Paragraphs, alignment: str | None, links: Links) -> str:
    style = _attribute("style", f"text-align: {alignment};" if alignment else None)
    return f"<{tag}{style}>{_paragraphs(cell, links)}</{tag}>"


def _table(
    headers: tuple[Paragraphs, ...],
    alignments: tuple[str | None, ...],
    rows: tuple[tuple[Paragraphs, ...], ...],
    links: Links,
) -> str:
    def align(index: int) -> str | None:
        return alignments[index] if index < len(alignments) else None

    parts = ["<table>"]
    if headers:
        cells = "".join(_cell("th", cell, align(i), links) for i, cell in enumerate(headers))
        parts.append(f"<thead><tr>{cells}</tr></thead>")
    parts.append("<tbody>")
    for row in rows:
        cells = "".join(_cell("td", cell, align(i), links) for i, cell in enumerate(row))
        parts.append(f"<tr>{cells}</tr>")
    parts.append("</tbody></table>")
    return "".join(parts)


def _paragraphs(paragraphs: Iterable[ParagraphNode], links: Links) -> str:
    return "\n".join(_paragraph(paragraph, links) for paragraph in paragraphs)


def write_html(document: LiterateDocument) -> str:
    """Render the body of a document as HTML."""
    return _paragraphs(document.paragraphs, document.defined_links) + "\n"


__all__ = ["highlight_code", "write_html"]
