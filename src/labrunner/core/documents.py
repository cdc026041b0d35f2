"""Paragraph and span tree produced by the literate parsers.

Spans

`Literal`, `InlineCode`, `HardLineBreak`
: Leaves carrying text.

`Strong`, `Emphasis`, `DirectLink`, `IndirectLink`
: Span-bearing nodes whose `body` is a tuple of spans.

`DirectImage`, `IndirectImage`
: Leaves; `body` is the alternative text. Indirect nodes keep the reference key
  and resolve through `LiterateDocument.defined_links`.

Paragraphs

`Heading`, `Paragraph`, `Span`
: Span-bearing paragraphs.

`ListBlock`, `QuotedBlock`, `TableBlock`
: Nested blocks whose children are sequences of paragraphs.

`CodeBlock`, `InlineBlock`, `OutputBlock`, `HorizontalRule`
: Leaves.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import NamedTuple, TypeAlias


# Spans ---------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Literal:
    text: str


@dataclass(frozen=True, slots=True)
class InlineCode:
    code: str


@dataclass(frozen=True, slots=True)
class HardLineBreak:
    pass


@dataclass(frozen=True, slots=True)
class Strong:
    body: tuple[SpanNode, ...]


@dataclass(frozen=True, slots=True)
class Emphasis:
    body: tuple[SpanNode, ...]


@dataclass(frozen=True, slots=True)
class DirectLink:
    body: tuple[SpanNode, ...]
    url: str
    title: str | None = None


@dataclass(frozen=True, slots=True)
class IndirectLink:
    body: tuple[SpanNode, ...]
    original: str
    key: str


@dataclass(frozen=True, slots=True)
class DirectImage:
    body: str
    url: str
    title: str | None = None


@dataclass(frozen=True, slots=True)
class IndirectImage:
    body: str
    original: str
    key: str


SpanNode: TypeAlias = (
    Literal
    | InlineCode
    | HardLineBreak
    | Strong
    | Emphasis
    | DirectLink
    | IndirectLink
    | DirectImage
    | IndirectImage
)
Spans: TypeAlias = tuple[SpanNode, ...]


# Paragraphs ----------------------------------------------------------------


class ListKind(str, Enum):
    """Bullet style of a list block."""

    UNORDERED = "unordered"
    ORDERED = "ordered"


@dataclass(frozen=True, slots=True)
class Heading:
    level: int
    body: Spans


@dataclass(frozen=True, slots=True)
class Paragraph:
    body: Spans


@dataclass(frozen=True, slots=True)
class Span:
    """Loose spans, typically the content of a tight list item."""

    body: Spans


@dataclass(frozen=True, slots=True)
class CodeBlock:
    code: str
    language: str | None = None


@dataclass(frozen=True, slots=True)
class InlineBlock:
    """Raw markup passed through untouched."""

    markup: str


@dataclass(frozen=True, slots=True)
class OutputBlock:
    """Result of an evaluated snippet, with optional rich renderings."""

    text: str
    html: str | None = None
    latex: str | None = None
    failed: bool = False


@dataclass(frozen=True, slots=True)
class HorizontalRule:
    pass


@dataclass(frozen=True, slots=True)
class ListBlock:
    kind: ListKind
    items: tuple[Paragraphs, ...]


@dataclass(frozen=True, slots=True)
class QuotedBlock:
    paragraphs: Paragraphs


@dataclass(frozen=True, slots=True)
class TableBlock:
    """Table whose cells are paragraph sequences; `headers` may be empty."""

    headers: tuple[Paragraphs, ...]
    alignments: tuple[str | None, ...]
    rows: tuple[tuple[Paragraphs, ...], ...]


ParagraphNode: TypeAlias = (
    Heading
    | Paragraph
    | Span
    | CodeBlock
    | InlineBlock
    | OutputBlock
    | HorizontalRule
    | ListBlock
    | QuotedBlock
    | TableBlock
)
Paragraphs: TypeAlias = tuple[ParagraphNode, ...]


# Shape helpers -------------------------------------------------------------


def span_children(span: SpanNode) -> Spans | None:
    """Return the body of a span-bearing node, `None` for leaves."""
    match span:
        case Strong(body) | Emphasis(body):
            return body
        case DirectLink(body=body) | IndirectLink(body=body):
            return body
        case _:
            return None


def with_span_children(span: SpanNode, body: Spans) -> SpanNode:
    """Rebuild a span-bearing node with a new body, keeping its kind."""
    return replace(span, body=tuple(body))


def paragraph_spans(paragraph: ParagraphNode) -> Spans | None:
    """Return the spans of a span-bearing paragraph, `None` otherwise."""
    match paragraph:
        case Heading(body=body) | Paragraph(body=body) | Span(body=body):
            return body
        case _:
            return None


def with_paragraph_spans(paragraph: ParagraphNode, body: Spans) -> ParagraphNode:
    return replace(paragraph, body=tuple(body))


def nested_children(paragraph: ParagraphNode) -> list[Paragraphs] | None:
    """Return the child paragraph sequences of a nested block.

    Table cells are flattened header first, then row by row, which is the order
    `with_nested_children` expects them back in.
    """
    match paragraph:
        case ListBlock(items=items):
            return list(items)
        case QuotedBlock(paragraphs=paragraphs):
            return [paragraphs]
        case TableBlock(headers=headers, rows=rows):
            cells = list(headers)
            for row in rows:
                cells.extend(row)
            return cells
        case _:
            return None


def with_nested_children(
    paragraph: ParagraphNode, children: list[Paragraphs]
) -> ParagraphNode:
    """Rebuild a nested block around new children, keeping its wrapper."""
    children = [tuple(child) for child in children]
    match paragraph:
        case ListBlock():
            return replace(paragraph, items=tuple(children))
        case QuotedBlock():
            (only,) = children
            return replace(paragraph, paragraphs=only)
        case TableBlock(headers=headers, rows=rows):
            header_count = len(headers)
            new_headers = tuple(children[:header_count])
            cursor = header_count
            new_rows = []
            for row in rows:
                new_rows.append(tuple(children[cursor : cursor + len(row)]))
                cursor += len(row)
            return replace(paragraph, headers=new_headers, rows=tuple(new_rows))
        case _:
            raise TypeError(f"{type(paragraph).__name__} is not a nested block")


# Documents -----------------------------------------------------------------


class SourceKind(str, Enum):
    """Origin of a literate document."""

    SCRIPT = "script"
    MARKDOWN = "markdown"


@dataclass(frozen=True, slots=True)
class LiterateSource:
    kind: SourceKind
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class LiterateDocument:
    """Parsed and evaluated document ready for rendering."""

    paragraphs: Paragraphs
    defined_links: dict[str, tuple[str, str | None]] = field(default_factory=dict)
    formatted_tips: str = ""
    source: LiterateSource = field(
        default_factory=lambda: LiterateSource(SourceKind.MARKDOWN)
    )

    def with_paragraphs(self, paragraphs: Paragraphs) -> LiterateDocument:
        return replace(self, paragraphs=tuple(paragraphs))


class GeneratedEntry(NamedTuple):
    """Output file name and title of a regenerated document."""

    file_name: str
    title: str


__all__ = [
    "CodeBlock",
    "DirectImage",
    "DirectLink",
    "Emphasis",
    "GeneratedEntry",
    "HardLineBreak",
    "Heading",
    "HorizontalRule",
    "IndirectImage",
    "IndirectLink",
    "InlineBlock",
    "InlineCode",
    "ListBlock",
    "ListKind",
    "Literal",
    "LiterateDocument",
    "LiterateSource",
    "OutputBlock",
    "Paragraph",
    "ParagraphNode",
    "Paragraphs",
    "QuotedBlock",
    "SourceKind",
    "Span",
    "SpanNode",
    "Spans",
    "Strong",
    "TableBlock",
    "nested_children",
    "paragraph_spans",
    "span_children",
    "with_nested_children",
    "with_paragraph_spans",
    "with_span_children",
]
