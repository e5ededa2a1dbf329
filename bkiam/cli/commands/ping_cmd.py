from __future__ import annotations

from ..click_compat import RichCommand, click
from ..context import CLIContext
from ..options import output_options
from ..runner import CommandOutput, run_command


@click.command(name="ping", cls=RichCommand)
@output_options
@click.pass_obj
def ping_cmd(ctx: CLIContext) -> None:
    """Check that the IAM backend is reachable."""

    def fn(ctx: CLIContext, warnings: list[str]) -> CommandOutput:
        client = ctx.get_client()
        client.ping()
        return CommandOutput(data={"host": client.config.host, "reachable": True})

    run_command(ctx, command="ping", fn=fn)
