"""Styled console lines for checker output."""

from __future__ import annotations

import typer

from evaluator.schemas import Verdict


def _bold(text: object) -> str:
    return typer.style(str(text), fg=typer.colors.WHITE, bold=True)


def banner() -> None:
    typer.secho("How Programming Works", fg=typer.colors.WHITE)
    typer.secho("Labs Auto Checker\n", fg=typer.colors.BLUE)


def exercise_header(name: str) -> None:
    typer.echo(f"\nTest {_bold(name)}")


def report(verdict: Verdict) -> None:
    """Print the length line (when known), captured output, then exactly one status or error line."""
    if verdict.length is not None:
        typer.echo(f"  Length: {_bold(verdict.length)}, lines: {_bold(verdict.lines)}")
    if verdict.output:
        for line in verdict.output.rstrip("\n").splitlines():
            typer.secho(f"  | {line}", dim=True)
    if verdict.passed:
        summary = typer.style(verdict.case_summary or "", fg=typer.colors.GREEN)
        typer.echo(f"  Status: {_bold('Passed')}, {summary}")
    else:
        typer.echo(f"  Error: {typer.style(verdict.message or '', fg=typer.colors.RED, bold=True)}")


def fatal(name: str, verdict: Verdict) -> None:
    typer.secho(f"\n❌ Aborting at {name}: {verdict.message}", fg=typer.colors.RED, err=True)


def summary(passed: int, failed: int, top_failures: list[tuple[str, int]]) -> None:
    color = typer.colors.GREEN if failed == 0 else typer.colors.YELLOW
    typer.secho(f"\n{passed} passed, {failed} failed", fg=color)
    for kind, count in top_failures:
        typer.echo(f"   - {kind}: {count}")
