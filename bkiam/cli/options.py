from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

from .click_compat import click
from .context import CLIContext

F = TypeVar("F", bound=Callable[..., object])


def _override_output(ctx: click.Context, param: click.Parameter, value: str | bool | None) -> None:
    if not value or not isinstance(ctx.obj, CLIContext):
        return
    ctx.obj.output = "json" if param.name == "json" else value  # type: ignore[assignment]


def output_options(fn: F) -> F:
    """Accept `--output` and `--json` after the subcommand name as well."""
    as_json = click.option(
        "--json",
        is_flag=True,
        expose_value=False,
        callback=_override_output,
        help="Same as --output json.",
    )
    output = click.option(
        "--output",
        type=click.Choice(["table", "json"]),
        expose_value=False,
        callback=_override_output,
        help="Output format for this command.",
    )
    return output(as_json(fn))
