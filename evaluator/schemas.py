from __future__ import annotations

from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any, TypeVar, Union

from pydantic import BaseModel, Field, StrictFloat, StrictInt, field_validator

from evaluator.failure_taxonomy import FATAL_KINDS, CheckFailure, FailureKind

TBaseSchema = TypeVar("TBaseSchema", bound="BaseSchema")

# numbers only: no "10" strings, no booleans
LengthBound = Union[StrictInt, StrictFloat]


class BaseSchema(BaseModel):
    def to_json(self) -> str:
        return self.model_dump_json()

    def to_dict(self) -> dict[str, object]:
        return self.model_dump()

    @classmethod
    def from_json(cls: type[TBaseSchema], data: str) -> TBaseSchema:
        return cls.model_validate_json(data)

    @classmethod
    def from_dict(cls: type[TBaseSchema], data: Mapping[str, object]) -> TBaseSchema:
        return cls.model_validate(data)


class ExerciseSpec(BaseSchema):
    """Shape of a ``.test`` specification artifact."""

    name: str
    length: tuple[LengthBound, LengthBound]
    cases: list[list[Any]] | None = None
    test: Callable[[Any], Any] | None = None

    @field_validator("length")
    @classmethod
    def length_ordered(cls, value: tuple[LengthBound, LengthBound]) -> tuple[LengthBound, LengthBound]:
        if value[0] > value[1]:
            raise ValueError(f"minimum length {value[0]} exceeds maximum {value[1]}")
        return value

    @field_validator("cases")
    @classmethod
    def cases_have_expected(cls, value: list[list[Any]] | None) -> list[list[Any]] | None:
        if value is not None:
            for index, case in enumerate(value):
                if not case:
                    raise ValueError(f"case {index} has no expected result")
        return value

    @property
    def min_length(self) -> LengthBound:
        return self.length[0]

    @property
    def max_length(self) -> LengthBound:
        return self.length[1]


class VerdictStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    ERROR = "error"


class Verdict(BaseSchema):
    status: VerdictStatus
    kind: FailureKind | None = None
    message: str | None = None
    length: int | None = None
    lines: int | None = None
    cases_passed: int | None = None
    case_summary: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)
    output: str = ""
    runtime_ms: float | None = None

    @classmethod
    def from_failure(cls, kind: FailureKind, message: str, **fields: Any) -> Verdict:
        status = VerdictStatus.ERROR if kind in FATAL_KINDS else VerdictStatus.FAILED
        return cls(status=status, kind=kind, message=message, **fields)

    @classmethod
    def from_check_failure(cls, failure: CheckFailure, **fields: Any) -> Verdict:
        return cls.from_failure(failure.kind, failure.message, details=failure.details, **fields)

    @property
    def passed(self) -> bool:
        return self.status is VerdictStatus.PASSED

    @property
    def is_fatal(self) -> bool:
        return self.kind in FATAL_KINDS
