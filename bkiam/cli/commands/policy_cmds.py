from __future__ import annotations

from ..click_compat import RichCommand, RichGroup, click
from ..context import CLIContext
from ..options import output_options
from ..runner import CommandOutput, run_command
from ._parsing import parse_params, read_json_body


@click.group(name="policy", cls=RichGroup)
def policy_group() -> None:
    """Policy query, authorization and lookup."""


_system_option = click.option(
    "--system",
    "target_system",
    type=str,
    default=None,
    help="Use the v2 endpoint scoped to this system.",
)


@policy_group.command(name="query", cls=RichCommand)
@click.argument("body")
@_system_option
@output_options
@click.pass_obj
def policy_query(ctx: CLIContext, body: str, target_system: str | None) -> None:
    """Query the policy expression for one action (BODY: JSON, @file or -)."""

    def fn(ctx: CLIContext, warnings: list[str]) -> CommandOutput:
        payload = read_json_body(body)
        client = ctx.get_client()
        if target_system:
            return CommandOutput(data=client.v2_policy_query(target_system, payload))
        return CommandOutput(data=client.policy_query(payload))

    run_command(ctx, command="policy query", fn=fn)


@policy_group.command(name="query-by-actions", cls=RichCommand)
@click.argument("body")
@_system_option
@output_options
@click.pass_obj
def policy_query_by_actions(ctx: CLIContext, body: str, target_system: str | None) -> None:
    """Query policy expressions for several actions."""

    def fn(ctx: CLIContext, warnings: list[str]) -> CommandOutput:
        payload = read_json_body(body)
        client = ctx.get_client()
        if target_system:
            return CommandOutput(data=client.v2_policy_query_by_actions(target_system, payload))
        return CommandOutput(data=client.policy_query_by_actions(payload))

    run_command(ctx, command="policy query-by-actions", fn=fn)


@policy_group.command(name="auth", cls=RichCommand)
@click.argument("body")
@_system_option
@output_options
@click.pass_obj
def policy_auth(ctx: CLIContext, body: str, target_system: str | None) -> None:
    """Ask the backend for an allow/deny decision."""

    def fn(ctx: CLIContext, warnings: list[str]) -> CommandOutput:
        payload = read_json_body(body)
        client = ctx.get_client()
        if target_system:
            return CommandOutput(data=client.v2_policy_auth(target_system, payload))
        return CommandOutput(data=client.policy_auth(payload))

    run_command(ctx, command="policy auth", fn=fn)


@policy_group.command(name="auth-by-resources", cls=RichCommand)
@click.argument("body")
@output_options
@click.pass_obj
def policy_auth_by_resources(ctx: CLIContext, body: str) -> None:
    """Authorize one action against a batch of resources."""

    def fn(ctx: CLIContext, warnings: list[str]) -> CommandOutput:
        payload = read_json_body(body)
        return CommandOutput(data=ctx.get_client().policy_auth_by_resources(payload))

    run_command(ctx, command="policy auth-by-resources", fn=fn)


@policy_group.command(name="auth-by-actions", cls=RichCommand)
@click.argument("body")
@output_options
@click.pass_obj
def policy_auth_by_actions(ctx: CLIContext, body: str) -> None:
    """Authorize several actions against one resource."""

    def fn(ctx: CLIContext, warnings: list[str]) -> CommandOutput:
        payload = read_json_body(body)
        return CommandOutput(data=ctx.get_client().policy_auth_by_actions(payload))

    run_command(ctx, command="policy auth-by-actions", fn=fn)


@policy_group.command(name="get", cls=RichCommand)
@click.argument("policy_id", type=int)
@output_options
@click.pass_obj
def policy_get(ctx: CLIContext, policy_id: int) -> None:
    """Show a policy by ID."""

    def fn(ctx: CLIContext, warnings: list[str]) -> CommandOutput:
        return CommandOutput(data=ctx.get_client().policy_get(policy_id))

    run_command(ctx, command="policy get", fn=fn)


@policy_group.command(name="list", cls=RichCommand)
@click.option(
    "--param",
    "params",
    multiple=True,
    help="Query parameter as key=value (repeatable), e.g. --param action_id=view.",
)
@output_options
@click.pass_obj
def policy_list(ctx: CLIContext, params: tuple[str, ...]) -> None:
    """List the system's policies."""

    def fn(ctx: CLIContext, warnings: list[str]) -> CommandOutput:
        query = parse_params(params)
        return CommandOutput(data=ctx.get_client().policy_list(query))

    run_command(ctx, command="policy list", fn=fn)


@policy_group.command(name="subjects", cls=RichCommand)
@click.argument("policy_ids", type=int, nargs=-1, required=True)
@output_options
@click.pass_obj
def policy_subjects(ctx: CLIContext, policy_ids: tuple[int, ...]) -> None:
    """Show the subject of each policy ID."""

    def fn(ctx: CLIContext, warnings: list[str]) -> CommandOutput:
        return CommandOutput(data=ctx.get_client().policy_subjects(list(policy_ids)))

    run_command(ctx, command="policy subjects", fn=fn)
