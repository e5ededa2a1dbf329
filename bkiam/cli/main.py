from __future__ import annotations

from pathlib import Path

import bkiam
from bkiam.config import (
    DEFAULT_CALL_TIMEOUT,
    ENV_API_GATEWAY,
    ENV_APP_CODE,
    ENV_APP_SECRET,
    ENV_HOST,
    ENV_SYSTEM,
)

from .click_compat import RichGroup, click
from .context import CLIContext
from .logging import configure_logging, restore_logging


@click.group(
    name="bkiam",
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
    cls=RichGroup,
)
@click.option("--host", type=str, envvar=ENV_HOST, default=None, help="IAM backend base URL.")
@click.option("--system", type=str, envvar=ENV_SYSTEM, default=None, help="System identifier.")
@click.option("--app-code", type=str, envvar=ENV_APP_CODE, default=None, help="App code.")
@click.option(
    "--app-secret",
    type=str,
    envvar=ENV_APP_SECRET,
    default=None,
    help=f"App secret (prefer {ENV_APP_SECRET} over the command line).",
)
@click.option(
    "--gateway/--direct",
    "is_api_gateway",
    envvar=ENV_API_GATEWAY,
    default=False,
    help="Send credentials in API gateway format.",
)
@click.option(
    "--timeout",
    type=float,
    default=DEFAULT_CALL_TIMEOUT,
    show_default=True,
    help="Timeout in seconds for each backend call.",
)
@click.option(
    "--debug-api/--no-debug-api",
    default=None,
    help="Append debug=true to requests (default: IAM_API_DEBUG).",
)
@click.option(
    "--force-api/--no-force-api",
    default=None,
    help="Append force=true to requests (default: IAM_API_FORCE).",
)
@click.option(
    "--output",
    type=click.Choice(["table", "json"]),
    default="table",
)
@click.option("--json", "json_flag", is_flag=True, help="Alias for --output json.")
@click.option("-q", "--quiet", is_flag=True, help="Suppress non-essential stderr output.")
@click.option("-v", "verbose", count=True, help="Increase verbosity (-v, -vv).")
@click.option(
    "--trace",
    is_flag=True,
    help="Trace request/response/error events to stderr (query strings stripped).",
)
@click.option("--dotenv/--no-dotenv", default=False, help="Opt-in .env loading.")
@click.option(
    "--env-file",
    type=click.Path(dir_okay=False),
    default=".env",
)
@click.version_option(version=bkiam.__version__, prog_name="bkiam")
@click.pass_context
def cli(
    click_ctx: click.Context,
    *,
    host: str | None,
    system: str | None,
    app_code: str | None,
    app_secret: str | None,
    is_api_gateway: bool,
    timeout: float,
    debug_api: bool | None,
    force_api: bool | None,
    output: str,
    json_flag: bool,
    quiet: bool,
    verbose: int,
    trace: bool,
    dotenv: bool,
    env_file: str,
) -> None:
    if click_ctx.invoked_subcommand is None:
        # No args: show help; no network calls.
        click.echo(click_ctx.get_help())
        raise click.exceptions.Exit(0)

    ctx = CLIContext(
        output="json" if json_flag else output,  # type: ignore[arg-type]
        quiet=quiet,
        verbosity=verbose,
        host=host,
        system=system,
        app_code=app_code,
        app_secret=app_secret,
        is_api_gateway=is_api_gateway,
        timeout=timeout,
        api_debug=debug_api,
        api_force=force_api,
        trace=trace,
        dotenv=dotenv,
        env_file=Path(env_file),
    )
    click_ctx.obj = ctx
    click_ctx.call_on_close(ctx.close)

    previous_logging = configure_logging(verbosity=verbose, secret_for_redaction=app_secret)
    click_ctx.call_on_close(lambda: restore_logging(previous_logging))


# Register commands
from .commands.apply_cmd import apply_url_cmd as _apply_url_cmd  # noqa: E402
from .commands.ping_cmd import ping_cmd as _ping_cmd  # noqa: E402
from .commands.policy_cmds import policy_group as _policy_group  # noqa: E402
from .commands.token_cmd import token_cmd as _token_cmd  # noqa: E402
from .commands.version_cmd import version_cmd as _version_cmd  # noqa: E402

cli.add_command(_version_cmd)
cli.add_command(_ping_cmd)
cli.add_command(_token_cmd)
cli.add_command(_policy_group)
cli.add_command(_apply_url_cmd)


def main() -> None:
    cli()
