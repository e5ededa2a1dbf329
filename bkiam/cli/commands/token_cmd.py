from __future__ import annotations

from ..click_compat import RichCommand, click
from ..context import CLIContext
from ..options import output_options
from ..runner import CommandOutput, run_command


@click.command(name="token", cls=RichCommand)
@output_options
@click.pass_obj
def token_cmd(ctx: CLIContext) -> None:
    """Show the system token used to authenticate backend callbacks."""

    def fn(ctx: CLIContext, warnings: list[str]) -> CommandOutput:
        client = ctx.get_client()
        return CommandOutput(data={"system": client.config.system, "token": client.get_token()})

    run_command(ctx, command="token", fn=fn)
