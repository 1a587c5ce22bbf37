from evaluator.failure_taxonomy import FailureKind
from evaluator.schemas import VerdictStatus
from sandbox.executor import SandboxExecutor

ADD_IMPL = """
def add(a, b):
    return a + b

module.exports = {"add": add}
"""

ADD_SPEC = '{"name": "add", "length": [10, 50], "cases": [[1, 2, 3], [-1, -1, -2]]}'


def test_valid_exercise_passes():
    executor = SandboxExecutor()
    verdict = executor.check(ADD_IMPL, ADD_SPEC, impl_filename="<add.py>", spec_filename="<add.test>")
    assert verdict.status is VerdictStatus.PASSED
    assert verdict.case_summary == "Passed cases: 2"
    assert verdict.length == 31
    assert verdict.runtime_ms is not None


def test_candidate_output_is_captured():
    code = 'print("hello from candidate")\n' + ADD_IMPL
    verdict = SandboxExecutor().check(code, ADD_SPEC)
    assert verdict.passed
    assert verdict.output == "hello from candidate\n"


def test_infinite_loop_times_out():
    executor = SandboxExecutor(parse_timeout_ms=500, execution_timeout_ms=300)
    code = """
while True:
    pass
"""
    verdict = executor.check(code, ADD_SPEC)
    assert verdict.status is VerdictStatus.ERROR
    assert verdict.kind is FailureKind.EXECUTION_TIMEOUT


def test_process_deadline_kills_uninterruptible_code():
    executor = SandboxExecutor(parse_timeout_ms=100, execution_timeout_ms=200)
    executor.STARTUP_GRACE_S = 1.0
    code = """
import signal
signal.signal(signal.SIGALRM, signal.SIG_IGN)
while True:
    pass
"""
    verdict = executor.check(code, ADD_SPEC, impl_filename="<spin.py>")
    assert verdict.kind is FailureKind.EXECUTION_TIMEOUT
    assert "killed" in (verdict.message or "")


def test_syntax_error_is_parse_error():
    code = """
def add(a, b)
    return a + b
"""
    verdict = SandboxExecutor().check(code, ADD_SPEC)
    assert verdict.status is VerdictStatus.ERROR
    assert verdict.kind is FailureKind.PARSE_ERROR
    assert "line 2" in (verdict.message or "")


def test_system_exit_in_candidate_is_reported():
    verdict = SandboxExecutor().check("raise SystemExit(3)\n", ADD_SPEC)
    assert verdict.status is VerdictStatus.FAILED
    assert verdict.kind is FailureKind.RUNTIME_ERROR
    assert "SystemExit" in (verdict.message or "")


def test_deadline_covers_both_loads_and_cases():
    executor = SandboxExecutor(parse_timeout_ms=1000, execution_timeout_ms=5000)
    assert executor.deadline_seconds == 17 + SandboxExecutor.STARTUP_GRACE_S
