from __future__ import annotations

import sys
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from rich.console import Console

from .click_compat import click
from .context import CLIContext, build_result, error_info_for_exception, exit_code_for_exception
from .render import RenderSettings, render_result
from .results import CommandResult


@dataclass(frozen=True, slots=True)
class CommandOutput:
    """What a command body hands back to `run_command`."""

    data: Any | None = None
    warnings: list[str] | None = None
    exit_code: int = 0


CommandFn = Callable[[CLIContext, list[str]], CommandOutput]


def emit_result(ctx: CLIContext, result: CommandResult) -> None:
    render_result(
        result,
        settings=RenderSettings(output=ctx.output, quiet=ctx.quiet, verbosity=ctx.verbosity),
    )
    # JSON output already carries warnings in the payload.
    if ctx.output == "json" or ctx.quiet or not result.warnings:
        return
    console = Console(file=sys.stderr, force_terminal=False)
    for warning in result.warnings:
        console.print(f"Warning: {warning}")


def run_command(ctx: CLIContext, *, command: str, fn: CommandFn) -> None:
    """
    Run a command body, emit its result, and exit.

    Always ends by raising `click.exceptions.Exit`. Errors from the body are
    rendered as a failed result and mapped through `exit_code_for_exception`.
    """
    started = time.time()
    warnings: list[str] = []
    try:
        out = fn(ctx, warnings)
    except Exception as exc:
        failed = build_result(
            ok=False,
            command=command,
            started_at=started,
            data=None,
            warnings=warnings,
            ctx=ctx,
            error=error_info_for_exception(exc),
        )
        emit_result(ctx, failed)
        raise click.exceptions.Exit(exit_code_for_exception(exc)) from exc

    emit_result(
        ctx,
        build_result(
            ok=True,
            command=command,
            started_at=started,
            data=out.data,
            warnings=out.warnings or warnings,
            ctx=ctx,
        ),
    )
    raise click.exceptions.Exit(out.exit_code)
