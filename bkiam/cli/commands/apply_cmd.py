from __future__ import annotations

from ..click_compat import RichCommand, click
from ..context import CLIContext
from ..options import output_options
from ..runner import CommandOutput, run_command
from ._parsing import read_json_body


@click.command(name="apply-url", cls=RichCommand)
@click.argument("body")
@output_options
@click.pass_obj
def apply_url_cmd(ctx: CLIContext, body: str) -> None:
    """Generate the permission application URL for BODY (JSON, @file or -)."""

    def fn(ctx: CLIContext, warnings: list[str]) -> CommandOutput:
        payload = read_json_body(body)
        client = ctx.get_client()
        return CommandOutput(data={"url": client.get_apply_url(payload)})

    run_command(ctx, command="apply-url", fn=fn)
