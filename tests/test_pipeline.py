from __future__ import annotations

import os
from pathlib import Path
import time

import pytest

from labrunner.core.context import OutputKind, ProcessingContext, abort_on_failure
from labrunner.core.documents import GeneratedEntry, SourceKind
from labrunner.core.exceptions import (
    EvaluationAbortedError,
    EvaluationError,
    SourceRootMissingError,
    TemplateMissingError,
)
from labrunner.core.landing import get_default_file
from labrunner.core.pipeline import (
    OutcomeStatus,
    discover_documents,
    is_stale,
    process_script_files,
    resolve_styles_folder,
)


REPORT = """\
# %% [markdown]
# # Quarterly report
# Figures below.

# %%
revenue = [1.25, 2.5]
sum(revenue)
"""

NOTES = """\
# Notes

```python
print("from markdown")
```
"""

BROKEN = """\
# Broken

```python
1 / 0
```
"""

PAST = 1_000_000


def _write(path: Path, text: str, *, mtime: float = PAST) -> Path:
    path.write_text(text, encoding="utf-8")
    os.utime(path, (mtime, mtime))
    return path


@pytest.fixture
def journals(tmp_path: Path) -> Path:
    root = tmp_path / "journals"
    root.mkdir()
    _write(root / "Report.py", REPORT)
    _write(root / "build.py", "raise SystemExit('never evaluated')\n")
    _write(root / "notes.md", NOTES)
    (root / "readme.txt").write_text("ignored", encoding="utf-8")
    return root


def test_discover_documents_orders_scripts_first(journals: Path) -> None:
    documents = discover_documents(ProcessingContext.create(journals))
    assert [(doc.path.name, doc.kind) for doc in documents] == [
        ("Report.py", SourceKind.SCRIPT),
        ("notes.md", SourceKind.MARKDOWN),
    ]
    assert documents[0].output_name == "Report.html"


def test_discover_documents_excludes_build_case_insensitively(journals: Path) -> None:
    _write(journals / "BUILD.md", "# Build\n")
    names = [doc.path.name for doc in discover_documents(ProcessingContext.create(journals))]
    assert "BUILD.md" not in names
    assert "build.py" not in names


def test_whitelist_restricts_to_exact_names(journals: Path) -> None:
    _write(journals / "OldReport.py", REPORT)
    context = ProcessingContext.create(journals).replace(file_whitelist=["Report.py"])
    assert [doc.path.name for doc in discover_documents(context)] == ["Report.py"]


def test_missing_root(tmp_path: Path) -> None:
    with pytest.raises(SourceRootMissingError):
        discover_documents(ProcessingContext.create(tmp_path / "absent"))


def test_is_stale(tmp_path: Path) -> None:
    source = _write(tmp_path / "a.py", "", mtime=PAST + 10)
    output = _write(tmp_path / "a.html", "", mtime=PAST)
    assert is_stale(source, output)
    assert is_stale(source, tmp_path / "missing.html")
    os.utime(output, (PAST + 20, PAST + 20))
    assert not is_stale(source, output)
    assert is_stale(source, output, overwrite=True)


def test_equal_timestamps_are_up_to_date(tmp_path: Path) -> None:
    source = _write(tmp_path / "a.md", "", mtime=PAST)
    output = _write(tmp_path / "a.html", "", mtime=PAST)
    assert not is_stale(source, output)


def test_process_generates_html_pages(journals: Path) -> None:
    context = ProcessingContext.create(journals)

    result = process_script_files(context)

    assert result.generated == [
        GeneratedEntry("Report.html", "Quarterly report"),
        GeneratedEntry("notes.html", "Notes"),
    ]
    assert result.failures == []
    output = context.output
    assert (output / "styles" / "template.html").exists()
    assert (output / "styles" / "style.css").exists()
    assert not (output / "build.html").exists()
    report = (output / "Report.html").read_text(encoding="utf-8")
    assert "<title>Quarterly report</title>" in report
    assert '<pre class="output">3.75</pre>' in report
    notes = (output / "notes.html").read_text(encoding="utf-8")
    assert "from markdown" in notes


def test_second_run_skips_up_to_date_pages(journals: Path) -> None:
    context = ProcessingContext.create(journals)
    process_script_files(context)
    first = {path.name: path.read_bytes() for path in context.output.glob("*.html")}

    again = process_script_files(context)

    assert again.generated == []
    assert [outcome.status for outcome in again.outcomes] == [
        OutcomeStatus.SKIPPED,
        OutcomeStatus.SKIPPED,
    ]
    assert {path.name: path.read_bytes() for path in context.output.glob("*.html")} == first


def test_modified_source_is_regenerated(journals: Path) -> None:
    context = ProcessingContext.create(journals)
    process_script_files(context)
    future = time.time() + 100
    os.utime(journals / "notes.md", (future, future))

    again = process_script_files(context)

    assert again.generated == [GeneratedEntry("notes.html", "Notes")]


def test_overwrite_regenerates_everything(journals: Path) -> None:
    context = ProcessingContext.create(journals)
    process_script_files(context)
    again = process_script_files(context, overwrite=True)
    assert len(again.generated) == 2


def test_customised_styles_are_kept(journals: Path) -> None:
    context = ProcessingContext.create(journals)
    styles = context.output / "styles"
    styles.mkdir(parents=True)
    (styles / "template.html").write_text("custom {page-title} {document}", encoding="utf-8")

    process_script_files(context)

    assert (context.output / "Report.html").read_text(encoding="utf-8").startswith(
        "custom Quarterly report"
    )


def test_custom_template_location(journals: Path, tmp_path: Path) -> None:
    theme = tmp_path / "theme" / "styles"
    theme.mkdir(parents=True)
    (theme / "template.html").write_text("[{page-title}]", encoding="utf-8")
    context = ProcessingContext.create(journals).replace(template_location=tmp_path / "theme")

    process_script_files(context)

    assert (context.output / "notes.html").read_text(encoding="utf-8") == "[Notes]"


def test_template_location_without_styles(journals: Path, tmp_path: Path) -> None:
    context = ProcessingContext.create(journals).replace(template_location=tmp_path / "empty")
    with pytest.raises(TemplateMissingError):
        resolve_styles_folder(context)
    with pytest.raises(TemplateMissingError):
        process_script_files(context)


def test_failed_evaluation_skips_document(journals: Path) -> None:
    _write(journals / "zbroken.md", BROKEN)
    context = ProcessingContext.create(journals)

    result = process_script_files(context)

    assert [entry.file_name for entry in result.generated] == ["Report.html", "notes.html"]
    (failure,) = result.failures
    assert failure.source.path.name == "zbroken.md"
    assert isinstance(failure.error, EvaluationError)
    assert failure.entry is None
    assert not (context.output / "zbroken.html").exists()


def test_exiting_snippet_does_not_end_the_run(journals: Path) -> None:
    _write(journals / "aexit.md", "# Exit\n\n```python\nimport sys\nsys.exit(3)\n```\n")
    seen: list[object] = []
    context = ProcessingContext.create(journals).replace(failed_handler=seen.append)

    result = process_script_files(context)

    assert len(seen) == 1
    (failure,) = result.failures
    assert failure.source.path.name == "aexit.md"
    assert [entry.file_name for entry in result.generated] == ["Report.html", "notes.html"]
    assert (context.output / "notes.html").exists()


def test_abort_handler_stops_the_run(journals: Path) -> None:
    _write(journals / "Broken.py", "# %%\n1 / 0\n")
    context = ProcessingContext.create(journals).replace(failed_handler=abort_on_failure)
    with pytest.raises(EvaluationAbortedError, match="Broken.py"):
        process_script_files(context)


def test_latex_output(journals: Path) -> None:
    context = ProcessingContext.create(journals).replace(
        output_kind=OutputKind.LATEX, file_whitelist=["Report.py"]
    )

    result = process_script_files(context)

    assert result.generated == [GeneratedEntry("Report.html", "Quarterly report")]
    page = (context.output / "Report.tex").read_text(encoding="utf-8")
    assert r"\title{Quarterly report}" in page
    assert r"\section*{Quarterly report}" not in page
    assert "\\begin{verbatim}\n3.75\n\\end{verbatim}" in page
    assert (context.output / "savedimages").is_dir()
    assert not (context.output / "Report.html").exists()

    again = process_script_files(context)
    assert again.generated == []


def test_float_format_applies_to_results(journals: Path) -> None:
    context = ProcessingContext.create(journals).replace(
        float_format="F3", file_whitelist=["Report.py"]
    )
    process_script_files(context)
    assert '<pre class="output">3.750</pre>' in (context.output / "Report.html").read_text(
        encoding="utf-8"
    )


def test_single_report_is_the_entry_page(tmp_path: Path) -> None:
    root = tmp_path / "site"
    root.mkdir()
    _write(root / "Report.py", "# %% [markdown]\n# # Report Title\n")
    _write(root / "Build.py", "# %%\nraise RuntimeError('not a journal')\n")
    context = ProcessingContext.create(root)

    result = process_script_files(context)

    assert result.generated == [GeneratedEntry("Report.html", "Report Title")]
    assert get_default_file(
        context, result.generated, discovered=[doc.path for doc in result.discovered]
    ) == "Report.html"


def test_untitled_document(journals: Path) -> None:
    _write(journals / "plain.md", "Just text.\n")
    context = ProcessingContext.create(journals).replace(file_whitelist=["plain.md"])
    assert process_script_files(context).generated == [GeneratedEntry("plain.html", "Untitled")]
