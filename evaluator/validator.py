"""Validation protocol for one exercise: load both sources, then check the candidate."""

from __future__ import annotations

import inspect
import json
import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from evaluator.failure_taxonomy import (
    CandidateError,
    CaseFailed,
    CheckFailure,
    FailureKind,
    HookFailed,
    InvalidSpec,
    MissingImplementation,
    NameMismatch,
    TooLong,
    TooShort,
)
from evaluator.schemas import ExerciseSpec, Verdict, VerdictStatus
from sandbox.loader import (
    EXECUTION_TIMEOUT_MS,
    PARSING_TIMEOUT_MS,
    BudgetExceeded,
    ExecutionTimeout,
    ParseError,
    load_source,
    time_budget,
)

logger = logging.getLogger(__name__)

NO_CASES = "No test cases"


def stringify(value: Any) -> str:
    """Source text of a function or class, ``str()`` of anything else."""
    try:
        return inspect.getsource(value).rstrip()
    except (OSError, TypeError):
        return str(value)


def count_lines(text: str) -> int:
    return text.count("\n") + 1


def canonical(value: Any) -> str:
    """Stable text form of a value, used in case failure messages."""
    try:
        return json.dumps(value, sort_keys=True, default=repr)
    except (TypeError, ValueError):
        return repr(value)


def _normalize(value: Any) -> Any:
    # bool is an int subclass; tag it so True and 1 stay distinct
    if isinstance(value, bool):
        return (bool, value)
    if isinstance(value, (list, tuple)):
        return [_normalize(item) for item in value]
    if isinstance(value, Mapping):
        return {key: _normalize(item) for key, item in value.items()}
    return value


def deep_equal(expected: Any, actual: Any) -> bool:
    """Structural equality; lists and tuples compare alike, booleans only equal booleans."""
    return _normalize(expected) == _normalize(actual)


def _format_error(exc: BaseException) -> str:
    return f"{exc.__class__.__name__}: {exc}"


class ExerciseValidator:
    """
    Runs the checks for one exercise in a fixed order.

    Attributes filled in along the way (``length``, ``lines``,
    ``cases_passed``, ``case_summary``) survive a failure, so the verdict
    still reports how far the check got.
    """

    def __init__(
        self,
        impl_source: str,
        spec_source: str,
        impl_filename: str = "<implementation>",
        spec_filename: str = "<specification>",
        parse_timeout_ms: int = PARSING_TIMEOUT_MS,
        execution_timeout_ms: int = EXECUTION_TIMEOUT_MS,
    ) -> None:
        self.impl_source = impl_source
        self.spec_source = spec_source
        self.impl_filename = impl_filename
        self.spec_filename = spec_filename
        self.parse_timeout_ms = parse_timeout_ms
        self.execution_timeout_ms = execution_timeout_ms

        self.length: int | None = None
        self.lines: int | None = None
        self.cases_passed: int | None = None
        self.case_summary: str | None = None

    def _load(self, source: str, is_expression: bool, filename: str) -> Any:
        try:
            return load_source(
                source,
                is_expression,
                filename=filename,
                parse_timeout_ms=self.parse_timeout_ms,
                execution_timeout_ms=self.execution_timeout_ms,
            )
        except (ParseError, ExecutionTimeout):
            raise
        except Exception as exc:
            raise CandidateError(f"{filename}: {_format_error(exc)}") from exc

    def load_spec(self) -> ExerciseSpec:
        artifact = self._load(self.spec_source, True, self.spec_filename)
        if not isinstance(artifact.value, Mapping):
            raise InvalidSpec(f"{self.spec_filename}: expected a mapping, got {type(artifact.value).__name__}")
        try:
            return ExerciseSpec.from_dict(artifact.value)
        except ValidationError as exc:
            raise InvalidSpec(f"{self.spec_filename}: {exc.error_count()} invalid field(s): {exc}") from exc

    def check(self) -> str:
        """Run every check; return the case summary or raise CheckFailure."""
        impl = self._load(self.impl_source, False, self.impl_filename)
        spec = self.load_spec()

        target = impl.lookup(spec.name)
        if target is None:
            raise MissingImplementation("No implementation detected")
        if callable(target) and getattr(target, "__name__", None) != spec.name:
            raise NameMismatch(f"Function {spec.name} is not found")

        source = stringify(target)
        self.length = len(source)
        self.lines = count_lines(source)
        if self.length > spec.max_length:
            raise TooLong("Solution is too long", length=self.length, max_length=spec.max_length)
        if self.length < spec.min_length:
            raise TooShort("Solution is too short", length=self.length, min_length=spec.min_length)

        try:
            with time_budget(self.execution_timeout_ms):
                self.case_summary = self._run_cases(target, spec)
                if spec.test is not None:
                    self._run_hook(target, spec)
        except BudgetExceeded as exc:
            raise ExecutionTimeout(
                f"Execution timeout: {spec.name} exceeded {self.execution_timeout_ms} ms"
            ) from exc
        return self.case_summary

    def _run_cases(self, target: Any, spec: ExerciseSpec) -> str:
        if spec.cases is None:
            return NO_CASES
        for index, call_case in enumerate(spec.cases):
            *args, expected = call_case
            try:
                result = target(*args)
            except Exception as exc:
                raise CandidateError(f"Case {index} raised {_format_error(exc)}", index=index) from exc
            if not deep_equal(expected, result):
                raise CaseFailed(index, canonical(expected), canonical(result))
            logger.debug(f"{spec.name}: case {index} passed")
        self.cases_passed = len(spec.cases)
        return f"Passed cases: {self.cases_passed}"

    def _run_hook(self, target: Any, spec: ExerciseSpec) -> None:
        try:
            outcome = spec.test(target)
        except Exception as exc:
            raise HookFailed(str(exc) or exc.__class__.__name__) from exc
        # A .test file is one expression, so a lambda hook can only report by value.
        if outcome is False:
            raise HookFailed(f"Custom test rejected {spec.name}")

    def verdict_fields(self) -> dict[str, Any]:
        return {
            "length": self.length,
            "lines": self.lines,
            "cases_passed": self.cases_passed,
            "case_summary": self.case_summary,
        }


def validate(
    impl_source: str,
    spec_source: str,
    impl_filename: str = "<implementation>",
    spec_filename: str = "<specification>",
    parse_timeout_ms: int = PARSING_TIMEOUT_MS,
    execution_timeout_ms: int = EXECUTION_TIMEOUT_MS,
) -> Verdict:
    """
    Validate an implementation source against a specification source.

    Never raises for candidate problems: every outcome, including parse
    errors and timeouts, comes back as a Verdict whose ``kind`` tells them
    apart.
    """
    validator = ExerciseValidator(
        impl_source,
        spec_source,
        impl_filename=impl_filename,
        spec_filename=spec_filename,
        parse_timeout_ms=parse_timeout_ms,
        execution_timeout_ms=execution_timeout_ms,
    )
    try:
        summary = validator.check()
    except CheckFailure as exc:
        logger.debug(f"{impl_filename}: {exc.kind.value}: {exc.message}")
        return Verdict.from_check_failure(exc, **validator.verdict_fields())
    except ParseError as exc:
        return Verdict.from_failure(FailureKind.PARSE_ERROR, str(exc), **validator.verdict_fields())
    except ExecutionTimeout as exc:
        return Verdict.from_failure(FailureKind.EXECUTION_TIMEOUT, str(exc), **validator.verdict_fields())

    fields = validator.verdict_fields()
    fields["case_summary"] = summary
    return Verdict(status=VerdictStatus.PASSED, **fields)
