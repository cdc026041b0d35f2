from __future__ import annotations

import pytest

from labrunner.core.documents import (
    CodeBlock,
    DirectLink,
    GeneratedEntry,
    Heading,
    ListBlock,
    ListKind,
    Literal,
    LiterateDocument,
    Paragraph,
    QuotedBlock,
    SourceKind,
    Strong,
    nested_children,
    paragraph_spans,
    span_children,
    with_nested_children,
    with_span_children,
)


def test_span_children_classifies_shapes() -> None:
    assert span_children(Strong((Literal("a"),))) == (Literal("a"),)
    assert span_children(DirectLink((Literal("b"),), "http://x")) == (Literal("b"),)
    assert span_children(Literal("leaf")) is None


def test_with_span_children_keeps_kind_and_fields() -> None:
    link = DirectLink((Literal("old"),), "http://x", "t")
    rebuilt = with_span_children(link, (Literal("new"),))
    assert rebuilt == DirectLink((Literal("new"),), "http://x", "t")


def test_paragraph_shapes() -> None:
    assert paragraph_spans(Heading(2, (Literal("h"),))) == (Literal("h"),)
    assert paragraph_spans(CodeBlock("x")) is None
    assert nested_children(CodeBlock("x")) is None
    assert nested_children(QuotedBlock((Paragraph(()),))) == [(Paragraph(()),)]


def test_with_nested_children_keeps_list_kind() -> None:
    block = ListBlock(ListKind.ORDERED, ((Paragraph((Literal("a"),)),),))
    rebuilt = with_nested_children(block, [(Paragraph((Literal("b"),)),)])
    assert rebuilt == ListBlock(ListKind.ORDERED, ((Paragraph((Literal("b"),)),),))


def test_with_nested_children_rejects_leaves() -> None:
    with pytest.raises(TypeError):
        with_nested_children(CodeBlock("x"), [])


def test_document_defaults_and_copy() -> None:
    document = LiterateDocument((Paragraph((Literal("a"),)),))
    assert document.defined_links == {}
    assert document.formatted_tips == ""
    assert document.source.kind is SourceKind.MARKDOWN
    updated = document.with_paragraphs([CodeBlock("x")])
    assert updated.paragraphs == (CodeBlock("x"),)
    assert document.paragraphs == (Paragraph((Literal("a"),)),)


def test_generated_entry_is_a_pair() -> None:
    entry = GeneratedEntry("report.html", "Report")
    file_name, title = entry
    assert (file_name, title) == ("report.html", "Report")
