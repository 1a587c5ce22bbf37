"""
Evaluator Module

Validation protocol for exercises.

This module provides:
- Specification and verdict schemas
- Failure taxonomy
- Ordered checks: existence, name, length bounds, call cases, custom hook
"""

__version__ = "0.1.0"

from .failure_taxonomy import FATAL_KINDS, FailureKind
from .schemas import ExerciseSpec, Verdict, VerdictStatus
from .validator import validate

__all__ = [
    "FATAL_KINDS",
    "FailureKind",
    "ExerciseSpec",
    "Verdict",
    "VerdictStatus",
    "validate",
]
