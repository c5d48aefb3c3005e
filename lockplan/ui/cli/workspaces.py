"""
CLI commands for workspace inspection.

Thin wrappers over ``lockplan.core.use_cases.inspect``.
"""

from __future__ import annotations

import json
import sys

import click


@click.group()
def workspaces() -> None:
    """Workspaces — list, build order, minimal inclusion."""


@workspaces.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_cmd(ctx: click.Context, as_json: bool) -> None:
    """List workspaces in dependency order."""
    from lockplan.core.use_cases.inspect import list_workspaces

    result = list_workspaces(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    if not result.workspaces:
        click.secho("⚠️  No workspaces in this lockfile", fg="yellow")
        return

    names = {directory: name for name, directory in result.workspaces.items()}
    click.secho(f"📂 Workspaces: {len(result.workspaces)}", fg="cyan", bold=True)
    for directory in result.order:
        marker = "" if directory in result.declared else "  (file: dependency)"
        click.echo(f"   • {names.get(directory, directory)} → {directory}{marker}")


@workspaces.command()
@click.argument("workspace")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def order(ctx: click.Context, workspace: str, as_json: bool) -> None:
    """Build order for WORKSPACE: dependencies first, itself last."""
    from lockplan.core.use_cases.inspect import list_workspaces

    result = list_workspaces(workspace, config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    for i, directory in enumerate(result.order, 1):
        click.echo(f"   {i}. {directory}")


@workspaces.command()
@click.argument("workspace")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def included(ctx: click.Context, workspace: str, as_json: bool) -> None:
    """Workspaces WORKSPACE needs, and the ones it can leave out."""
    from lockplan.core.use_cases.inspect import list_workspaces

    result = list_workspaces(workspace, config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    click.secho(f"✅ Included ({len(result.included)}):", fg="green")
    for directory in result.included:
        click.echo(f"   • {directory}")
    if result.excluded:
        click.secho(f"➖ Excluded ({len(result.excluded)}):", fg="white")
        for directory in result.excluded:
            click.echo(f"   • {directory}")
