"""
Subprocess-based sandbox executor for exercise checks.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
import sys
import time
from pathlib import Path

from pydantic import ValidationError

from evaluator.failure_taxonomy import FailureKind
from evaluator.schemas import Verdict
from sandbox import protocol
from sandbox.loader import EXECUTION_TIMEOUT_MS, PARSING_TIMEOUT_MS

logger = logging.getLogger(__name__)


class SandboxExecutor:
    """
    Validate one exercise in a separate Python process.

    Inside the child each phase is bounded by its own interval timer. The
    process as a whole gets a wall-clock deadline and is killed when it
    passes it, which also covers code that the in-process timer cannot
    interrupt and platforms without SIGALRM.
    """

    STARTUP_GRACE_S: float = 5.0

    def __init__(
        self,
        parse_timeout_ms: int = PARSING_TIMEOUT_MS,
        execution_timeout_ms: int = EXECUTION_TIMEOUT_MS,
    ) -> None:
        self.parse_timeout_ms: int = parse_timeout_ms
        self.execution_timeout_ms: int = execution_timeout_ms

    @property
    def deadline_seconds(self) -> float:
        # two loads (parse + run each), then cases and hook under one run budget
        budget_ms = 2 * (self.parse_timeout_ms + self.execution_timeout_ms) + self.execution_timeout_ms
        return budget_ms / 1000 + self.STARTUP_GRACE_S

    def check(
        self,
        impl_source: str,
        spec_source: str,
        impl_filename: str = "<implementation>",
        spec_filename: str = "<specification>",
    ) -> Verdict:
        payload = {
            "impl_source": impl_source,
            "spec_source": spec_source,
            "impl_filename": impl_filename,
            "spec_filename": spec_filename,
            "parse_timeout_ms": self.parse_timeout_ms,
            "execution_timeout_ms": self.execution_timeout_ms,
        }

        env = os.environ.copy()
        project_root = str(Path(__file__).resolve().parents[1])
        existing_pythonpath = env.get("PYTHONPATH", "")
        env["PYTHONPATH"] = (
            f"{project_root}{os.pathsep}{existing_pythonpath}"
            if existing_pythonpath
            else project_root
        )

        timeout_seconds = self.deadline_seconds
        start = time.perf_counter()
        try:
            completed = subprocess.run(
                [sys.executable, "-c", protocol.CHILD_TEMPLATE],
                input=json.dumps(payload),
                text=True,
                capture_output=True,
                timeout=timeout_seconds,
                env=env,
            )
        except subprocess.TimeoutExpired:
            runtime_ms = (time.perf_counter() - start) * 1000
            logger.warning(f"Killed sandbox for {impl_filename} after {timeout_seconds:.1f}s")
            return Verdict.from_failure(
                FailureKind.EXECUTION_TIMEOUT,
                f"Execution timeout: {impl_filename} killed after {timeout_seconds:.1f}s",
                runtime_ms=runtime_ms,
            )

        runtime_ms = (time.perf_counter() - start) * 1000
        logger.debug(f"Sandbox for {impl_filename} exited with {completed.returncode} in {runtime_ms:.1f} ms")
        if not completed.stdout:
            error = completed.stderr.strip() or "Empty response from sandbox"
            return Verdict.from_failure(FailureKind.RUNTIME_ERROR, error, runtime_ms=runtime_ms)

        try:
            verdict = Verdict.from_json(completed.stdout)
        except ValidationError as exc:
            error = f"Invalid response from sandbox: {exc}"
            return Verdict.from_failure(FailureKind.RUNTIME_ERROR, error, runtime_ms=runtime_ms)

        if verdict.runtime_ms is None:
            verdict = verdict.model_copy(update={"runtime_ms": runtime_ms})
        return verdict
