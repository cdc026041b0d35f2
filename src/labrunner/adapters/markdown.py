"""Markdown parsing into the paragraph/span tree.

Python-Markdown produces HTML which is then walked with BeautifulSoup. A small
extension keeps the raw key of reference links and images so that they come
out as `IndirectLink` / `IndirectImage` nodes instead of being resolved away.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path
import re
from typing import Any

from bs4 import BeautifulSoup
from bs4.element import Comment, NavigableString, Tag
import markdown
from markdown.extensions import Extension
from markdown.inlinepatterns import (
    IMAGE_REFERENCE_RE,
    REFERENCE_RE,
    ImageReferenceInlineProcessor,
    ReferenceInlineProcessor,
    ShortImageReferenceInlineProcessor,
    ShortReferenceInlineProcessor,
)

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
    LiterateSource,
    OutputBlock,
    Paragraph,
    ParagraphNode,
    Paragraphs,
    QuotedBlock,
    SourceKind,
    Span,
    SpanNode,
    Spans,
    Strong,
    TableBlock,
)
from labrunner.core.exceptions import EvaluationError

from .evaluator import EvaluationFailure, EvaluationResult, Evaluator


__all__ = [
    "DEFAULT_MARKDOWN_EXTENSIONS",
    "EVALUATED_LANGUAGES",
    "REFERENCE_ATTRIBUTE",
    "ReferenceKeyExtension",
    "deduplicate_markdown_extensions",
    "evaluate_code_blocks",
    "html_to_paragraphs",
    "parse_markdown_file",
    "parse_markdown_text",
]


DEFAULT_MARKDOWN_EXTENSIONS = ["fenced_code", "tables"]
EVALUATED_LANGUAGES = {"python", "py", "python3"}
REFERENCE_ATTRIBUTE = "data-reference"

_HEADING_TAGS = {f"h{level}": level for level in range(1, 7)}
_BLOCK_TAGS = {
    *_HEADING_TAGS,
    "p",
    "ul",
    "ol",
    "blockquote",
    "pre",
    "hr",
    "table",
    "div",
    "dl",
    "figure",
    "details",
}
_ALIGNMENT_RE = re.compile(r"text-align:\s*(left|right|center)")


class _KeyedReferenceMixin:
    """Remember the raw reference key and expose it on the produced element."""

    _reference_key: str | None = None

    def evalId(self, data: str, index: int, text: str) -> tuple[str | None, int, bool]:  # noqa: N802
        ref_id, end, handled = super().evalId(data, index, text)  # type: ignore[misc]
        self._reference_key = ref_id
        return ref_id, end, handled

    def handleMatch(self, m: re.Match[str], data: str) -> Any:  # noqa: N802
        self._reference_key = None
        element, start, end = super().handleMatch(m, data)  # type: ignore[misc]
        if element is not None and self._reference_key:
            element.set(REFERENCE_ATTRIBUTE, self._reference_key)
        return element, start, end


class _KeyedReference(_KeyedReferenceMixin, ReferenceInlineProcessor):
    pass


class _KeyedShortReference(_KeyedReferenceMixin, ShortReferenceInlineProcessor):
    pass


class _KeyedImageReference(_KeyedReferenceMixin, ImageReferenceInlineProcessor):
    pass


class _KeyedShortImageReference(_KeyedReferenceMixin, ShortImageReferenceInlineProcessor):
    pass


class ReferenceKeyExtension(Extension):
    """Tag reference links and images with the key they were written with."""

    def extendMarkdown(self, md: markdown.Markdown) -> None:  # noqa: N802
        md.inlinePatterns.register(_KeyedReference(REFERENCE_RE, md), "reference", 170)
        md.inlinePatterns.register(
            _KeyedImageReference(IMAGE_REFERENCE_RE, md), "image_reference", 140
        )
        md.inlinePatterns.register(
            _KeyedShortReference(REFERENCE_RE, md), "short_reference", 130
        )
        md.inlinePatterns.register(
            _KeyedShortImageReference(IMAGE_REFERENCE_RE, md), "short_image_ref", 125
        )


def deduplicate_markdown_extensions(values: Iterable[Any]) -> list[Any]:
    """Remove duplicate extension names while preserving order and case."""
    seen: set[str] = set()
    result: list[Any] = []
    for value in values:
        if not isinstance(value, str):
            result.append(value)
            continue
        key = value.lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(value)
    return result


# HTML walking --------------------------------------------------------------


def _merge_literals(spans: Iterable[SpanNode]) -> Spans:
    merged: list[SpanNode] = []
    for span in spans:
        if merged and isinstance(span, Literal) and isinstance(merged[-1], Literal):
            merged[-1] = Literal(merged[-1].text + span.text)
        else:
            merged.append(span)
    return tuple(merged)


def _optional(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text or None


def _convert_span(node: Any) -> list[SpanNode]:
    if isinstance(node, Comment):
        return []
    if isinstance(node, NavigableString):
        text = str(node)
        return [Literal(text)] if text else []
    if not isinstance(node, Tag):
        return []

    name = node.name
    if name == "code":
        return [InlineCode(node.get_text())]
    if name in {"strong", "b"}:
        return [Strong(_spans(node.children))]
    if name in {"em", "i"}:
        return [Emphasis(_spans(node.children))]
    if name == "br":
        return [HardLineBreak()]
    if name == "a":
        body = _spans(node.children)
        key = node.get(REFERENCE_ATTRIBUTE)
        if key:
            return [IndirectLink(body, f"[{node.get_text()}][{key}]", str(key))]
        return [DirectLink(body, str(node.get("href", "")), _optional(node.get("title")))]
    if name == "img":
        alt = str(node.get("alt", ""))
        key = node.get(REFERENCE_ATTRIBUTE)
        if key:
            return [IndirectImage(alt, f"![{alt}][{key}]", str(key))]
        return [DirectImage(alt, str(node.get("src", "")), _optional(node.get("title")))]
    return list(_spans(node.children))


def _spans(nodes: Iterable[Any]) -> Spans:
    converted: list[SpanNode] = []
    for node in nodes:
        converted.extend(_convert_span(node))
    return _merge_literals(converted)


def _code_language(code: Tag | None) -> str | None:
    if code is None:
        return None
    classes = code.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    for css_class in classes:
        if css_class.startswith("language-"):
            return css_class[len("language-") :]
    return classes[0] if classes else None


def _cell_alignment(cell: Tag) -> str | None:
    align = cell.get("align")
    if align:
        return str(align)
    match = _ALIGNMENT_RE.search(str(cell.get("style", "")))
    return match.group(1) if match else None


def _convert_table(table: Tag) -> TableBlock:
    headers: list[Paragraphs] = []
    alignments: list[str | None] = []
    rows: list[tuple[Paragraphs, ...]] = []
    for row in table.find_all("tr"):
        cells = row.find_all(["th", "td"], recursive=False)
        if cells and all(cell.name == "th" for cell in cells) and not headers and not rows:
            headers = [_blocks(cell) for cell in cells]
            alignments = [_cell_alignment(cell) for cell in cells]
            continue
        if not alignments:
            alignments = [_cell_alignment(cell) for cell in cells]
        rows.append(tuple(_blocks(cell) for cell in cells))
    return TableBlock(tuple(headers), tuple(alignments), tuple(rows))


def _convert_block(node: Tag) -> ParagraphNode:
    name = node.name
    if name in _HEADING_TAGS:
        return Heading(_HEADING_TAGS[name], _spans(node.children))
    if name == "p":
        return Paragraph(_spans(node.children))
    if name in {"ul", "ol"}:
        kind = ListKind.ORDERED if name == "ol" else ListKind.UNORDERED
        items = tuple(_blocks(item) for item in node.find_all("li", recursive=False))
        return ListBlock(kind, items)
    if name == "blockquote":
        return QuotedBlock(_blocks(node))
    if name == "pre":
        code = node.find("code")
        text = (code if code is not None else node).get_text()
        if text.endswith("\n"):
            text = text[:-1]
        return CodeBlock(text, _code_language(code))
    if name == "hr":
        return HorizontalRule()
    if name == "table":
        return _convert_table(node)
    return InlineBlock(str(node))


def _blocks(parent: Tag) -> Paragraphs:
    """Convert the children of a container into paragraphs."""
    result: list[ParagraphNode] = []
    pending: list[Any] = []

    def flush() -> None:
        spans = _spans(pending)
        pending.clear()
        if any(not (isinstance(span, Literal) and not span.text.strip()) for span in spans):
            result.append(Span(spans))

    for child in parent.children:
        if isinstance(child, Tag) and child.name in _BLOCK_TAGS:
            flush()
            result.append(_convert_block(child))
        elif isinstance(child, (NavigableString, Tag)) and not isinstance(child, Comment):
            pending.append(child)
    flush()
    return tuple(result)


def html_to_paragraphs(html: str) -> Paragraphs:
    """Parse rendered Markdown HTML into paragraphs."""
    soup = BeautifulSoup(html, "html.parser")
    return _blocks(soup)


# Evaluation ----------------------------------------------------------------


def _output_block(result: EvaluationResult) -> OutputBlock | None:
    if result.failure is not None:
        return OutputBlock(result.failure.message, failed=True)
    if result.is_empty:
        return None
    parts = [result.output.rstrip("\n")] if result.output else []
    if result.value_text is not None:
        parts.append(result.value_text)
    return OutputBlock("\n".join(parts), html=result.value_html, latex=result.value_latex)


def _evaluate_into(
    paragraphs: Sequence[ParagraphNode],
    evaluator: Evaluator,
    failures: list[EvaluationFailure],
) -> Paragraphs:
    result: list[ParagraphNode] = []
    for paragraph in paragraphs:
        match paragraph:
            case ListBlock(kind, items):
                nested = tuple(_evaluate_into(item, evaluator, failures) for item in items)
                result.append(ListBlock(kind, nested))
                continue
            case QuotedBlock(children):
                result.append(QuotedBlock(_evaluate_into(children, evaluator, failures)))
                continue
        result.append(paragraph)
        if not isinstance(paragraph, CodeBlock):
            continue
        if (paragraph.language or "").lower() not in EVALUATED_LANGUAGES:
            continue
        evaluation = evaluator.evaluate(paragraph.code)
        if evaluation.failure is not None:
            failures.append(evaluation.failure)
        block = _output_block(evaluation)
        if block is not None:
            result.append(block)
    return tuple(result)


def evaluate_code_blocks(
    paragraphs: Sequence[ParagraphNode], evaluator: Evaluator
) -> tuple[Paragraphs, list[EvaluationFailure]]:
    """Evaluate Python code blocks in document order and append their output.

    Blocks nested in list items and quotes are evaluated too; their output is
    placed right after them inside the same container.
    """
    failures: list[EvaluationFailure] = []
    return _evaluate_into(paragraphs, evaluator, failures), failures


# Entry points --------------------------------------------------------------


def parse_markdown_text(
    text: str,
    evaluator: Evaluator,
    *,
    path: Path | None = None,
    kind: SourceKind = SourceKind.MARKDOWN,
    extensions: Sequence[Any] | None = None,
) -> LiterateDocument:
    """Parse Markdown source, evaluate its Python blocks, and build a document.

    Raises `EvaluationError` when at least one block failed; the evaluator has
    already notified its failure handlers at that point.
    """
    active = deduplicate_markdown_extensions(
        [*DEFAULT_MARKDOWN_EXTENSIONS, *(extensions or ()), ReferenceKeyExtension()]
    )
    md = markdown.Markdown(extensions=active)
    html = md.convert(text)
    links = {
        str(key): (str(url), _optional(title)) for key, (url, title) in md.references.items()
    }

    evaluator.start(path)
    paragraphs, failures = evaluate_code_blocks(html_to_paragraphs(html), evaluator)
    if failures:
        raise EvaluationError(path, failures)

    return LiterateDocument(
        paragraphs=paragraphs,
        defined_links=links,
        formatted_tips="",
        source=LiterateSource(kind, path),
    )


def parse_markdown_file(
    path: Path | str,
    evaluator: Evaluator,
    *,
    extensions: Sequence[Any] | None = None,
) -> LiterateDocument:
    """Parse and evaluate a Markdown journal."""
    source = Path(path)
    text = source.read_text(encoding="utf-8")
    return parse_markdown_text(
        text, evaluator, path=source, kind=SourceKind.MARKDOWN, extensions=extensions
    )
