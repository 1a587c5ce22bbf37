"""Failure classification for exercise verdicts."""

from __future__ import annotations

from enum import Enum
from typing import Any


class FailureKind(str, Enum):
    MISSING_IMPLEMENTATION = "missing_implementation"
    NAME_MISMATCH = "name_mismatch"
    TOO_LONG = "too_long"
    TOO_SHORT = "too_short"
    CASE_FAILED = "case_failed"
    HOOK_FAILED = "hook_failed"
    RUNTIME_ERROR = "runtime_error"
    INVALID_SPEC = "invalid_spec"
    FILE_ERROR = "file_error"
    PARSE_ERROR = "parse_error"
    EXECUTION_TIMEOUT = "execution_timeout"


# Kinds that point at a broken exercise set rather than a learner mistake.
FATAL_KINDS = frozenset({FailureKind.PARSE_ERROR, FailureKind.EXECUTION_TIMEOUT})


class CheckFailure(Exception):
    """A validation step rejected the candidate."""

    kind: FailureKind = FailureKind.RUNTIME_ERROR

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message: str = message
        self.details: dict[str, Any] = details


class MissingImplementation(CheckFailure):
    kind = FailureKind.MISSING_IMPLEMENTATION


class NameMismatch(CheckFailure):
    kind = FailureKind.NAME_MISMATCH


class TooLong(CheckFailure):
    kind = FailureKind.TOO_LONG


class TooShort(CheckFailure):
    kind = FailureKind.TOO_SHORT


class CaseFailed(CheckFailure):
    kind = FailureKind.CASE_FAILED

    def __init__(self, index: int, expected: str, actual: str) -> None:
        super().__init__(
            f"Case failed: expected {expected}, result: {actual}",
            index=index,
            expected=expected,
            actual=actual,
        )


class HookFailed(CheckFailure):
    kind = FailureKind.HOOK_FAILED


class CandidateError(CheckFailure):
    kind = FailureKind.RUNTIME_ERROR


class InvalidSpec(CheckFailure):
    kind = FailureKind.INVALID_SPEC


class FailureAnalyzer:
    """Tallies failure kinds over a batch of exercises."""

    def __init__(self) -> None:
        self.failures: dict[FailureKind, int] = {kind: 0 for kind in FailureKind}

    def record_failure(self, kind: FailureKind) -> None:
        self.failures[kind] += 1

    def get_top_failures(self, n: int = 5) -> list[tuple[str, int]]:
        sorted_failures = sorted(
            (item for item in self.failures.items() if item[1] > 0),
            key=lambda x: x[1],
            reverse=True,
        )
        return [(kind.value, count) for kind, count in sorted_failures[:n]]
