"""
Child process protocol for sandbox execution.
"""

from __future__ import annotations

import contextlib
import io
import json
import sys
import time
from typing import cast

from evaluator.failure_taxonomy import FailureKind
from evaluator.schemas import Verdict
from evaluator.validator import validate
from sandbox.loader import EXECUTION_TIMEOUT_MS, PARSING_TIMEOUT_MS

CHILD_TEMPLATE = """
from sandbox.protocol import child_main
child_main()
""".strip()


def _load_payload() -> dict[str, object]:
    raw = sys.stdin.read()
    if not raw:
        return {}
    try:
        return cast(dict[str, object], json.loads(raw))
    except json.JSONDecodeError:
        return {}


def _format_error(exc: BaseException) -> str:
    return f"{exc.__class__.__name__}: {exc}"


def _as_int(value: object, default: int) -> int:
    try:
        return int(cast(int, value))
    except (TypeError, ValueError):
        return default


def child_main() -> None:
    """Entry point for the sandbox child process: validate one exercise."""
    start = time.perf_counter()
    payload = _load_payload()
    captured = io.StringIO()

    verdict: Verdict
    try:
        with contextlib.redirect_stdout(captured):
            verdict = validate(
                str(payload.get("impl_source", "")),
                str(payload.get("spec_source", "")),
                impl_filename=str(payload.get("impl_filename", "<implementation>")),
                spec_filename=str(payload.get("spec_filename", "<specification>")),
                parse_timeout_ms=_as_int(payload.get("parse_timeout_ms"), PARSING_TIMEOUT_MS),
                execution_timeout_ms=_as_int(payload.get("execution_timeout_ms"), EXECUTION_TIMEOUT_MS),
            )
    except BaseException as exc:  # noqa: BLE001 - capture all child errors
        verdict = Verdict.from_failure(FailureKind.RUNTIME_ERROR, _format_error(exc))

    verdict = verdict.model_copy(
        update={
            "output": captured.getvalue(),
            "runtime_ms": (time.perf_counter() - start) * 1000,
        }
    )
    _ = sys.stdout.write(verdict.to_json())


if __name__ == "__main__":
    child_main()
