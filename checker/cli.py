"""CLI interface for checking exercises."""

from __future__ import annotations

import logging
from typing import Optional

import typer

from checker import console
from checker.config import CheckerConfig, load_config
from checker.runner import ExerciseRunner

app = typer.Typer(help="How Programming Works: Labs Auto Checker")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Check learner exercises against their specification files."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _build_config(
    config_path: Optional[str],
    exercises_dir: Optional[str],
    parse_timeout_ms: Optional[int],
    execution_timeout_ms: Optional[int],
) -> CheckerConfig:
    try:
        config = load_config(config_path) if config_path else CheckerConfig()
    except FileNotFoundError as e:
        typer.secho(f"❌ Config file not found: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    except ValueError as e:
        typer.secho(f"❌ Invalid config: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    overrides = {
        "exercises_dir": exercises_dir,
        "parse_timeout_ms": parse_timeout_ms,
        "execution_timeout_ms": execution_timeout_ms,
    }
    update = {key: value for key, value in overrides.items() if value is not None}
    return config.model_copy(update=update) if update else config


@app.command()
def check(
    names: Optional[list[str]] = typer.Argument(None, help="Exercise names to check (default: all)"),
    exercises_dir: Optional[str] = typer.Option(None, "--dir", "-d", help="Exercises directory"),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="Path to checker YAML config"),
    parse_timeout_ms: Optional[int] = typer.Option(None, help="Parse phase budget in milliseconds"),
    execution_timeout_ms: Optional[int] = typer.Option(None, help="Run phase budget in milliseconds"),
    keep_going: bool = typer.Option(
        False,
        "--keep-going",
        help="Report parse errors and timeouts per exercise instead of aborting",
    ),
    strict: bool = typer.Option(False, "--strict", help="Exit with status 1 if any exercise fails"),
) -> None:
    """Check exercises and print one verdict per exercise."""
    config = _build_config(config_path, exercises_dir, parse_timeout_ms, execution_timeout_ms)
    if keep_going:
        config = config.model_copy(update={"fail_fast": False})

    console.banner()
    try:
        runner = ExerciseRunner(config)
        result = runner.run(names)
    except FileNotFoundError as e:
        typer.secho(f"❌ {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    except ValueError as e:
        typer.secho(f"❌ {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    if result.aborted or (strict and result.failed):
        raise typer.Exit(1)


@app.command("list")
def list_exercises(
    exercises_dir: Optional[str] = typer.Option(None, "--dir", "-d", help="Exercises directory"),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="Path to checker YAML config"),
) -> None:
    """List exercises found in the exercises directory."""
    config = _build_config(config_path, exercises_dir, None, None)
    runner = ExerciseRunner(config)
    try:
        names = runner.discover()
    except FileNotFoundError as e:
        typer.secho(f"❌ {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    if not names:
        typer.secho("No exercises found.", fg=typer.colors.YELLOW)
        return

    typer.secho(f"\n📁 Found {len(names)} exercise(s) in {runner.directory}:\n", fg=typer.colors.BLUE)
    for name in names:
        has_impl = "✓" if (runner.directory / f"{name}{config.implementation_suffix}").exists() else "✗"
        typer.echo(f"  {name}  (implementation: {has_impl})")


if __name__ == "__main__":
    app()
