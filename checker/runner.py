"""Batch runner: discover exercises and check them one at a time."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from checker import console
from checker.config import CheckerConfig
from evaluator.failure_taxonomy import FailureAnalyzer, FailureKind
from evaluator.schemas import Verdict
from sandbox.executor import SandboxExecutor

logger = logging.getLogger(__name__)


def discover_exercises(directory: Path, spec_suffix: str = ".test") -> list[str]:
    """Exercise names, one per specification file in ``directory``."""
    if not directory.is_dir():
        raise FileNotFoundError(f"Exercises directory not found: {directory}")
    return sorted(
        path.name[: -len(spec_suffix)]
        for path in directory.iterdir()
        if path.is_file() and path.name.endswith(spec_suffix)
    )


@dataclass
class BatchResult:
    verdicts: dict[str, Verdict] = field(default_factory=dict)
    analyzer: FailureAnalyzer = field(default_factory=FailureAnalyzer)
    aborted: bool = False

    @property
    def passed(self) -> int:
        return sum(1 for verdict in self.verdicts.values() if verdict.passed)

    @property
    def failed(self) -> int:
        return len(self.verdicts) - self.passed


class ExerciseRunner:
    """Checks every exercise in a directory and prints one verdict per exercise."""

    def __init__(self, config: CheckerConfig, executor: SandboxExecutor | None = None) -> None:
        self.config = config
        self.directory = config.resolve_exercises_dir()
        self.executor = executor or SandboxExecutor(
            parse_timeout_ms=config.parse_timeout_ms,
            execution_timeout_ms=config.execution_timeout_ms,
        )

    def discover(self) -> list[str]:
        return discover_exercises(self.directory, self.config.spec_suffix)

    def check_exercise(self, name: str) -> Verdict:
        impl_name = f"{name}{self.config.implementation_suffix}"
        spec_name = f"{name}{self.config.spec_suffix}"
        try:
            impl_source = (self.directory / impl_name).read_text(encoding="utf-8")
            spec_source = (self.directory / spec_name).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Cannot read exercise {name}: {e}")
            return Verdict.from_failure(FailureKind.FILE_ERROR, str(e))

        return self.executor.check(
            impl_source,
            spec_source,
            impl_filename=f"<{impl_name}>",
            spec_filename=f"<{spec_name}>",
        )

    def run(self, names: Sequence[str] | None = None) -> BatchResult:
        """Check the selected (default: all discovered) exercises in order."""
        available = self.discover()
        selected = list(names) if names else available
        unknown = [name for name in selected if name not in available]
        if unknown:
            raise ValueError(f"Unknown exercise(s): {', '.join(unknown)}")

        logger.info(f"Checking {len(selected)} exercise(s) in {self.directory}")
        result = BatchResult()
        for name in selected:
            console.exercise_header(name)
            verdict = self.check_exercise(name)
            result.verdicts[name] = verdict
            if verdict.kind is not None:
                result.analyzer.record_failure(verdict.kind)

            if verdict.is_fatal and self.config.fail_fast:
                console.fatal(name, verdict)
                result.aborted = True
                break
            console.report(verdict)

        if not result.aborted:
            console.summary(result.passed, result.failed, result.analyzer.get_top_failures())
        return result
