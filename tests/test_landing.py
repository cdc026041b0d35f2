from __future__ import annotations

from pathlib import Path

import pytest

from labrunner.core.context import OutputKind, ProcessingContext
from labrunner.core.documents import GeneratedEntry, ListBlock
from labrunner.core.exceptions import NoDocumentsError
from labrunner.core.landing import INDEX_TITLE, get_default_file, index_document, written_pages
from labrunner.core.pipeline import prepare_output, process_script_files
from labrunner.core.walker import extract_title


ENTRIES = [GeneratedEntry("a.html", "Alpha"), GeneratedEntry("b.html", "Beta")]


def _context(tmp_path: Path, kind: OutputKind = OutputKind.HTML) -> ProcessingContext:
    root = tmp_path / "journals"
    root.mkdir()
    context = ProcessingContext.create(root).replace(output_kind=kind)
    prepare_output(context)
    return context


def test_nothing_found(tmp_path: Path) -> None:
    with pytest.raises(NoDocumentsError, match="No journal files found!"):
        get_default_file(_context(tmp_path), [])


def test_single_generated_page(tmp_path: Path) -> None:
    context = _context(tmp_path)
    assert get_default_file(context, ENTRIES[:1]) == "a.html"
    assert not (context.output / "index.html").exists()


def test_existing_default_file_wins(tmp_path: Path) -> None:
    context = _context(tmp_path)
    (context.root / "Index.md").write_text("# Home\n", encoding="utf-8")
    assert get_default_file(context, ENTRIES) == "Index.html"
    assert not (context.output / "index.html").exists()


def test_index_is_synthesised(tmp_path: Path) -> None:
    context = _context(tmp_path)

    assert get_default_file(context, ENTRIES) == "index.html"

    page = (context.output / "index.html").read_text(encoding="utf-8")
    assert f"<title>{INDEX_TITLE}</title>" in page
    assert '<a href="a.html">Alpha</a>' in page
    assert '<a href="b.html">Beta</a>' in page


def test_latex_index(tmp_path: Path) -> None:
    context = _context(tmp_path, OutputKind.LATEX)
    assert get_default_file(context, ENTRIES) == "index.html"
    page = (context.output / "index.tex").read_text(encoding="utf-8")
    assert r"\href{a.html}{Alpha}" in page


def test_nothing_regenerated_single_source(tmp_path: Path) -> None:
    context = _context(tmp_path)
    (context.output / "Report.html").write_text("<title>Report</title>", encoding="utf-8")
    discovered = [context.root / "Report.py", context.root / "Broken.md"]
    assert get_default_file(context, [], discovered=discovered) == "Report.html"
    assert not (context.output / "index.html").exists()


def test_nothing_regenerated_reuses_index(tmp_path: Path) -> None:
    context = _context(tmp_path)
    (context.output / "index.html").write_text("existing", encoding="utf-8")
    discovered = [context.root / "a.md", context.root / "b.md"]
    assert get_default_file(context, [], discovered=discovered) == "index.html"
    assert (context.output / "index.html").read_text(encoding="utf-8") == "existing"


def test_nothing_regenerated_builds_index_from_written_pages(tmp_path: Path) -> None:
    context = _context(tmp_path)
    (context.output / "a.html").write_text("<title>Alpha</title>", encoding="utf-8")
    (context.output / "b.html").write_text("<p>no title</p>", encoding="utf-8")
    discovered = [context.root / "a.md", context.root / "b.md", context.root / "c.md"]

    assert get_default_file(context, [], discovered=discovered) == "index.html"

    page = (context.output / "index.html").read_text(encoding="utf-8")
    assert '<a href="a.html">Alpha</a>' in page
    assert '<a href="b.html">b</a>' in page
    assert "c.html" not in page


def test_written_pages_reads_latex_titles(tmp_path: Path) -> None:
    context = _context(tmp_path, OutputKind.LATEX)
    (context.output / "a.tex").write_text("\\title{Sales \\& Costs}\n", encoding="utf-8")
    assert written_pages(context, [context.root / "a.md", context.root / "b.md"]) == [
        GeneratedEntry("a.html", "Sales & Costs")
    ]


def test_index_never_links_to_failed_journals(tmp_path: Path) -> None:
    context = _context(tmp_path)
    for name in ("a.md", "b.md"):
        (context.root / name).write_text("```python\n1 / 0\n```\n", encoding="utf-8")

    result = process_script_files(context)
    page = get_default_file(
        context, result.generated, discovered=[doc.path for doc in result.discovered]
    )

    assert page == "index.html"
    assert len(result.failures) == 2
    html = (context.output / "index.html").read_text(encoding="utf-8")
    assert "a.html" not in html
    assert "b.html" not in html
    assert "<ul>" not in html


def test_index_document_shape() -> None:
    document = index_document(ENTRIES)
    assert extract_title(document.paragraphs) == INDEX_TITLE
    assert isinstance(document.paragraphs[1], ListBlock)
    assert len(document.paragraphs[1].items) == 2
