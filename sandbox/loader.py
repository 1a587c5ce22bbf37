"""
Loader for exercise sources executed inside a fresh, isolated namespace.
"""

from __future__ import annotations

import builtins
import linecache
import logging
import signal
import threading
import time
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import PurePath
from types import CodeType
from typing import Any

logger = logging.getLogger(__name__)

PARSING_TIMEOUT_MS = 1000
EXECUTION_TIMEOUT_MS = 5000


class SandboxError(Exception):
    """Base class for loader failures that abort the current load."""


class ParseError(SandboxError):
    """Source could not be compiled, or compiling took longer than allowed."""


class ExecutionTimeout(SandboxError):
    """Sandboxed code ran past its time budget."""


class BudgetExceeded(BaseException):
    # BaseException so that a candidate's ``except Exception`` cannot swallow it.
    def __init__(self, timeout_ms: int) -> None:
        super().__init__(f"time budget of {timeout_ms} ms exceeded")
        self.timeout_ms: int = timeout_ms


class ExportSlot:
    """Module stand-in: candidates publish their names through ``module.exports``."""

    def __init__(self) -> None:
        self.exports: Any = {}

    def __repr__(self) -> str:
        return f"<module exports={self.exports!r}>"


@dataclass(frozen=True)
class ExportedMapping:
    """Artifact published through a non-empty ``module.exports`` mapping."""

    value: Mapping[str, Any]

    def lookup(self, name: str) -> Any:
        return self.value.get(name)


@dataclass(frozen=True)
class DirectValue:
    """Artifact returned directly by the wrapped source."""

    value: Any

    def lookup(self, name: str) -> Any:
        if isinstance(self.value, Mapping):
            return self.value.get(name)
        return None


LoadedArtifact = ExportedMapping | DirectValue


def _alarm_available() -> bool:
    return hasattr(signal, "setitimer") and threading.current_thread() is threading.main_thread()


@contextmanager
def time_budget(timeout_ms: int) -> Iterator[None]:
    """
    Raise BudgetExceeded inside the managed block once ``timeout_ms`` elapses.

    Relies on SIGALRM, so it only preempts code running on the main thread of
    a Unix process. Elsewhere the block runs unbounded and the executor's
    process deadline is the only limit.
    """
    if not _alarm_available():
        logger.warning("Interval timer unavailable; relying on process deadline only")
        yield
        return

    def _on_alarm(_signum: int, _frame: object) -> None:
        raise BudgetExceeded(timeout_ms)

    previous = signal.signal(signal.SIGALRM, _on_alarm)
    _ = signal.setitimer(signal.ITIMER_REAL, timeout_ms / 1000)
    try:
        yield
    finally:
        _ = signal.setitimer(signal.ITIMER_REAL, 0)
        _ = signal.signal(signal.SIGALRM, previous)


def _register_source(filename: str, source: str) -> None:
    # inspect.getsource() reads from linecache; mtime None marks the entry as
    # not backed by a file so checkcache() leaves it alone.
    if not source.endswith("\n"):
        source += "\n"
    linecache.cache[filename] = (len(source), None, source.splitlines(True), filename)


def compile_source(
    source: str,
    is_expression: bool,
    filename: str = "<exercise>",
    parse_timeout_ms: int = PARSING_TIMEOUT_MS,
) -> CodeType:
    """Compile source as a single expression or as a statement sequence."""
    mode = "eval" if is_expression else "exec"
    text = source.strip() if is_expression else source
    started = time.perf_counter()
    try:
        with time_budget(parse_timeout_ms):
            code = compile(text, filename, mode, dont_inherit=True)
    except SyntaxError as exc:
        raise ParseError(f"Parsing error: {exc.msg} ({filename}, line {exc.lineno})") from exc
    except BudgetExceeded as exc:
        raise ParseError(f"Parsing error: {filename} exceeded {parse_timeout_ms} ms") from exc
    elapsed_ms = (time.perf_counter() - started) * 1000
    if elapsed_ms > parse_timeout_ms:
        raise ParseError(f"Parsing error: {filename} exceeded {parse_timeout_ms} ms")
    logger.debug(f"Compiled {filename} in {elapsed_ms:.1f} ms ({mode})")
    _register_source(filename, text)
    return code


def build_context(name: str = "exercise") -> dict[str, Any]:
    """
    Create a brand-new global namespace for one load.

    The namespace exposes the ``module`` export slot, a ``logger`` and a copy
    of the builtins; ``sandbox`` refers back to the namespace itself.
    """
    context: dict[str, Any] = {
        "__name__": "__exercise__",
        "__builtins__": dict(vars(builtins)),
        "module": ExportSlot(),
        "logger": logging.getLogger(f"sandbox.exercise.{name}"),
    }
    context["sandbox"] = context
    return context


def _resolve(context: dict[str, Any], result: Any) -> LoadedArtifact:
    slot = context.get("module")
    exported = getattr(slot, "exports", None)
    if exported:
        if isinstance(exported, Mapping):
            return ExportedMapping(exported)
        return DirectValue(exported)
    return DirectValue(result)


def load_source(
    source: str,
    is_expression: bool,
    filename: str = "<exercise>",
    parse_timeout_ms: int = PARSING_TIMEOUT_MS,
    execution_timeout_ms: int = EXECUTION_TIMEOUT_MS,
) -> LoadedArtifact:
    """
    Compile and run ``source`` in a fresh context and return what it produced.

    Expression sources yield their value; statement sources yield whatever
    they put into ``module.exports``. A non-empty export slot always wins
    over the direct value.

    Raises:
        ParseError: syntax error or parse budget exceeded; nothing has run.
        ExecutionTimeout: the run budget was exceeded.

    Exceptions raised by the candidate's own top-level code propagate as-is.
    """
    code = compile_source(source, is_expression, filename, parse_timeout_ms)
    context = build_context(PurePath(filename.strip("<>")).stem or "exercise")

    started = time.perf_counter()
    try:
        with time_budget(execution_timeout_ms):
            # exec-mode code objects evaluate to None
            result = eval(code, context)
    except BudgetExceeded as exc:
        raise ExecutionTimeout(
            f"Execution timeout: {filename} exceeded {execution_timeout_ms} ms"
        ) from exc
    logger.debug(f"Executed {filename} in {(time.perf_counter() - started) * 1000:.1f} ms")

    return _resolve(context, result)
