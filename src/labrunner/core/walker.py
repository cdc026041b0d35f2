"""Recursive traversals over the paragraph/span tree."""

from __future__ import annotations

from collections.abc import Callable, Iterable

from .documents import (
    Heading,
    InlineCode,
    Literal,
    ParagraphNode,
    Paragraphs,
    SpanNode,
    Spans,
    nested_children,
    paragraph_spans,
    span_children,
    with_nested_children,
    with_paragraph_spans,
    with_span_children,
)


SpanMapper = Callable[[SpanNode], SpanNode]


def extract_text(spans: Iterable[SpanNode]) -> list[str]:
    """Collect the literal and inline-code text of a span sequence."""
    texts: list[str] = []
    for span in spans:
        children = span_children(span)
        if children is not None:
            texts.extend(extract_text(children))
            continue
        match span:
            case Literal(text):
                texts.append(text)
            case InlineCode(code):
                texts.append(code)
    return texts


def extract_title(paragraphs: Iterable[ParagraphNode]) -> str | None:
    """Return the text of the first level-1 heading, searching depth first."""
    for paragraph in paragraphs:
        if isinstance(paragraph, Heading) and paragraph.level == 1:
            return " ".join(" ".join(extract_text(paragraph.body)).split())
        children = nested_children(paragraph)
        if children is not None:
            nested = [child for group in children for child in group]
            title = extract_title(nested)
            if title is not None:
                return title
    return None


def drop_title(paragraphs: Iterable[ParagraphNode]) -> Paragraphs:
    """Remove every level-1 heading, at any depth."""
    result: list[ParagraphNode] = []
    for paragraph in paragraphs:
        if isinstance(paragraph, Heading) and paragraph.level == 1:
            continue
        children = nested_children(paragraph)
        if children is not None:
            paragraph = with_nested_children(
                paragraph, [drop_title(child) for child in children]
            )
        result.append(paragraph)
    return tuple(result)


def map_span(mapper: SpanMapper, span: SpanNode) -> SpanNode:
    """Apply ``mapper`` to a leaf span or rebuild a span node around mapped children."""
    children = span_children(span)
    if children is None:
        return mapper(span)
    return with_span_children(span, map_spans(mapper, children))


def map_spans(mapper: SpanMapper, spans: Iterable[SpanNode]) -> Spans:
    return tuple(map_span(mapper, span) for span in spans)


def map_paragraphs(mapper: SpanMapper, paragraphs: Iterable[ParagraphNode]) -> Paragraphs:
    """Apply ``mapper`` to every leaf span across the whole tree."""
    result: list[ParagraphNode] = []
    for paragraph in paragraphs:
        spans = paragraph_spans(paragraph)
        if spans is not None:
            result.append(with_paragraph_spans(paragraph, map_spans(mapper, spans)))
            continue
        children = nested_children(paragraph)
        if children is not None:
            result.append(
                with_nested_children(
                    paragraph, [map_paragraphs(mapper, child) for child in children]
                )
            )
            continue
        result.append(paragraph)
    return tuple(result)


__all__ = [
    "SpanMapper",
    "drop_title",
    "extract_text",
    "extract_title",
    "map_paragraphs",
    "map_span",
    "map_spans",
]
