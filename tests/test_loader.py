from unittest.mock import patch

import pytest

from sandbox.loader import (
    DirectValue,
    ExecutionTimeout,
    ExportedMapping,
    ParseError,
    build_context,
    load_source,
)


def test_statement_source_exports_mapping():
    code = """
def add(a, b):
    return a + b

module.exports = {"add": add}
"""
    artifact = load_source(code, is_expression=False, filename="<add.py>")
    assert isinstance(artifact, ExportedMapping)
    assert artifact.lookup("add")(2, 3) == 5
    assert artifact.lookup("sub") is None


def test_statement_source_without_exports_returns_none():
    artifact = load_source("x = 1\n", is_expression=False)
    assert isinstance(artifact, DirectValue)
    assert artifact.value is None
    assert artifact.lookup("x") is None


def test_expression_source_returns_value():
    artifact = load_source('\n  {"name": "add", "length": [10, 50]}\n', is_expression=True)
    assert isinstance(artifact, DirectValue)
    assert artifact.value == {"name": "add", "length": [10, 50]}
    assert artifact.lookup("name") == "add"


def test_exports_can_be_filled_key_by_key():
    code = """
def inc(n):
    return n + 1

module.exports["inc"] = inc
"""
    artifact = load_source(code, is_expression=False)
    assert artifact.lookup("inc")(1) == 2


def test_non_mapping_export_is_direct_value():
    artifact = load_source("module.exports = 42\n", is_expression=False)
    assert isinstance(artifact, DirectValue)
    assert artifact.value == 42


def test_syntax_error_raises_parse_error_before_running():
    code = """
module.exports = {"ran": True}
def add(a, b)
    return a + b
"""
    with pytest.raises(ParseError) as excinfo:
        load_source(code, is_expression=False, filename="<add.py>")
    assert "<add.py>" in str(excinfo.value)
    assert "line 3" in str(excinfo.value)


def test_expression_with_statements_is_parse_error():
    with pytest.raises(ParseError):
        load_source("x = 1", is_expression=True)


def test_slow_parse_raises_parse_error():
    with patch("sandbox.loader.time.perf_counter", side_effect=[0.0, 5.0]):
        with pytest.raises(ParseError, match="exceeded 1000 ms"):
            load_source("x = 1\n", is_expression=False)


def test_infinite_loop_times_out():
    code = """
while True:
    pass
"""
    with pytest.raises(ExecutionTimeout):
        load_source(code, is_expression=False, execution_timeout_ms=200)


def test_timeout_not_swallowed_by_candidate_except():
    code = """
while True:
    try:
        while True:
            pass
    except Exception:
        pass
"""
    with pytest.raises(ExecutionTimeout):
        load_source(code, is_expression=False, execution_timeout_ms=200)


def test_candidate_exception_propagates():
    with pytest.raises(ZeroDivisionError):
        load_source("1 / 0\n", is_expression=False)


def test_context_is_self_referential_and_minimal():
    context = build_context("add")
    assert context["sandbox"] is context
    assert context["module"].exports == {}
    assert context["logger"].name == "sandbox.exercise.add"

    artifact = load_source(
        'module.exports = {"same": sandbox is globals(), "logger": logger.name}\n',
        is_expression=False,
        filename="<add.py>",
    )
    assert artifact.lookup("same") is True
    assert artifact.lookup("logger") == "sandbox.exercise.add"


def test_loads_do_not_share_state():
    first = 'leaked = 1\n__builtins__["len"] = None\nmodule.exports = {"x": 1}\n'
    second = 'module.exports = {"seen": "leaked" in globals(), "n": len([1, 2])}\n'
    load_source(first, is_expression=False)
    artifact = load_source(second, is_expression=False)
    assert artifact.lookup("seen") is False
    assert artifact.lookup("n") == 2
