from __future__ import annotations

from pathlib import Path

import pytest

from labrunner.adapters.evaluator import (
    EvaluationFailure,
    Evaluator,
    PythonEvaluator,
    float_format_spec,
    format_value,
)


@pytest.mark.parametrize(
    ("dotnet", "python"),
    [
        ("G4", ".4g"),
        ("g", "g"),
        ("F2", ".2f"),
        ("F", ".2f"),
        ("E3", ".3e"),
        ("N2", ",.2f"),
        ("P1", ".1%"),
        (".3f", ".3f"),
    ],
)
def test_float_format_spec(dotnet: str, python: str) -> None:
    assert float_format_spec(dotnet) == python


def test_format_value_formats_floats_in_containers() -> None:
    assert format_value(3.14159, "G4") == "3.142"
    assert format_value([1.0, 2.5], "F2") == "[1.00, 2.50]"
    assert format_value((0.5,), "F1") == "(0.5,)"
    assert format_value({"a": 1.23456}, "G3") == "{'a': 1.23}"
    assert format_value(True) == "True"
    assert format_value("text") == "'text'"


def test_python_evaluator_satisfies_protocol() -> None:
    assert isinstance(PythonEvaluator(), Evaluator)


def test_evaluate_captures_output_and_trailing_value() -> None:
    evaluator = PythonEvaluator(float_format="F2")
    evaluator.start(None)
    result = evaluator.evaluate("print('hello')\nx = 2.0\nx / 3")
    assert result.succeeded
    assert result.output == "hello\n"
    assert result.value_text == "0.67"


def test_namespace_is_shared_within_a_document() -> None:
    evaluator = PythonEvaluator()
    evaluator.start(Path("Report.py"))
    evaluator.evaluate("total = 40")
    assert evaluator.evaluate("total + 2").value_text == "42"
    evaluator.start(Path("Other.py"))
    assert evaluator.evaluate("total").failure is not None


def test_statements_only_produce_empty_result() -> None:
    evaluator = PythonEvaluator()
    evaluator.start(None)
    result = evaluator.evaluate("x = 1")
    assert result.is_empty
    assert evaluator.evaluate("None").is_empty


def test_rich_representations_are_kept() -> None:
    evaluator = PythonEvaluator()
    evaluator.start(None)
    evaluator.evaluate(
        "class Table:\n"
        "    def _repr_html_(self):\n"
        "        return '<table></table>'\n"
        "    def _repr_latex_(self):\n"
        "        return r'\\begin{tabular}{l}\\end{tabular}'\n"
    )
    result = evaluator.evaluate("Table()")
    assert result.value_html == "<table></table>"
    assert result.value_latex == r"\begin{tabular}{l}\end{tabular}"


def test_failure_notifies_subscribers() -> None:
    seen: list[EvaluationFailure] = []
    evaluator = PythonEvaluator()
    evaluator.subscribe(seen.append)
    evaluator.start(Path("Broken.py"))

    result = evaluator.evaluate("print('before')\n1 / 0")

    assert not result.succeeded
    assert result.output == "before\n"
    assert len(seen) == 1
    failure = seen[0]
    assert failure.path == Path("Broken.py")
    assert isinstance(failure.exception, ZeroDivisionError)
    assert failure.message.startswith("ZeroDivisionError")


def test_handler_may_abort() -> None:
    class Stop(Exception):
        pass

    def handler(failure: EvaluationFailure) -> None:
        raise Stop(failure.message)

    evaluator = PythonEvaluator(handlers=[handler])
    evaluator.start(None)
    with pytest.raises(Stop):
        evaluator.evaluate("raise ValueError('nope')")


def test_syntax_errors_are_failures() -> None:
    evaluator = PythonEvaluator()
    evaluator.start(None)
    result = evaluator.evaluate("def broken(:\n    pass")
    assert isinstance(result.failure.exception, SyntaxError)


@pytest.mark.parametrize("code", ["import sys\nsys.exit(3)", "raise SystemExit('stop')"])
def test_exit_calls_are_failures(code: str) -> None:
    seen: list[EvaluationFailure] = []
    evaluator = PythonEvaluator(handlers=[seen.append])
    evaluator.start(None)

    result = evaluator.evaluate(code)

    assert isinstance(result.failure.exception, SystemExit)
    assert len(seen) == 1


def test_keyboard_interrupt_propagates() -> None:
    evaluator = PythonEvaluator()
    evaluator.start(None)
    with pytest.raises(KeyboardInterrupt):
        evaluator.evaluate("raise KeyboardInterrupt")
