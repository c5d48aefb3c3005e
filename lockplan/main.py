"""
lockplan — CLI entrypoint.

Usage:
    python -m lockplan.main --help
    python -m lockplan.main plan
    python -m lockplan.main plan --workspace packages/app --save
    python -m lockplan.main check
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from lockplan import __version__
from lockplan.core.observability.logging_config import (
    ENV_FILE,
    ENV_FILE_LEVEL,
    resolve_level,
    setup_logging,
)


@click.group()
@click.version_option(version=__version__, prog_name="lockplan")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to lockplan.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """lockplan — plan node_modules layouts from package-lock.json."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(verbose=verbose, quiet=quiet, debug=debug),
        log_file=os.environ.get(ENV_FILE),
        log_file_level=os.environ.get(ENV_FILE_LEVEL),
    )


@cli.command()
@click.option("--workspace", "-w", default=None, help="Workspace directory or package name.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--save", is_flag=True, help="Write the plan to the output directory.")
@click.option("--steps", "show_steps", is_flag=True, help="List every plan step.")
@click.pass_context
def plan(
    ctx: click.Context,
    workspace: str | None,
    as_json: bool,
    save: bool,
    show_steps: bool,
) -> None:
    """Plan the node_modules layout for the project or one workspace."""
    from lockplan.core.use_cases.plan import run_plan

    result = run_plan(config_path=ctx.obj.get("config_path"), workspace=workspace, save=save)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    overlay = result.plan
    assert overlay is not None  # guaranteed after error check above
    quiet = ctx.obj.get("quiet", False)

    if not quiet:
        label = overlay.target or "project"
        click.secho(f"\n📦 {overlay.name or 'unnamed'} ({label})", fg="cyan", bold=True)
        click.echo(f"   Fingerprint: {overlay.fingerprint[:16]}")
        click.echo()

    click.secho(f"   Packages: {len(overlay.closure)}", fg="white", bold=True)
    click.echo(f"     artifacts: {len(overlay.artifacts)}")
    click.echo(f"     optional:  {len(overlay.closure.optional_paths)}")
    if overlay.closure.dropped:
        click.echo(f"     dropped:   {len(overlay.closure.dropped)}")

    if overlay.included_workspaces:
        click.echo()
        click.secho(f"   Workspaces: {len(overlay.included_workspaces)}", fg="white", bold=True)
        for directory in overlay.included_workspaces:
            click.echo(f"     • {directory}")

    if overlay.bins:
        click.echo()
        click.secho("   Executables:", fg="white", bold=True)
        for name, rel in overlay.bins.items():
            click.echo(f"     {name} → node_modules/{rel}")

    click.echo()
    click.secho(f"   Steps: {len(overlay.steps)}", fg="white", bold=True)
    if show_steps:
        for step in overlay.steps:
            ref = step.target if step.op == "bin" else step.artifact
            marker = " (replace)" if step.replace else ""
            click.echo(f"     {step.op:<7} {step.path}{' → ' + ref if ref else ''}{marker}")

    if overlay.diagnostics:
        click.echo()
        click.secho(f"⚠️  {len(overlay.diagnostics)} collision(s):", fg="yellow")
        for diag in overlay.diagnostics:
            click.echo(f"   • {diag.path}: {diag.kept} replaces {diag.replaced}")

    if result.saved_to:
        click.echo()
        click.secho(f"💾 Saved to {result.saved_to}", fg="green")

    click.echo()


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def check(ctx: click.Context, as_json: bool) -> None:
    """Validate lockplan.yml and the lockfile."""
    from lockplan.core.use_cases.check import run_check

    result = run_check(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.valid:
        click.secho("✅ Lockfile is plannable", fg="green", bold=True)
        click.echo(f"   Project:    {result.name or 'unnamed'}")
        click.echo(f"   Lockfile:   {result.lockfile_path} (v{result.lockfile_version})")
        click.echo(f"   Packages:   {result.package_count}")
        click.echo(f"   Workspaces: {result.workspace_count}")
    else:
        click.secho("❌ Errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    click.echo()
    if not result.valid:
        sys.exit(1)


@cli.command()
@click.argument("from_path")
@click.argument("name")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def resolve(ctx: click.Context, from_path: str, name: str, as_json: bool) -> None:
    """Show where NAME resolves when required from FROM_PATH ("" = root)."""
    from lockplan.core.use_cases.inspect import resolve_name

    result = resolve_name(from_path, name, config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    if result.path is None:
        click.secho(f"✗ '{name}' is not installed for {from_path or '<root>'}", fg="yellow")
        if ctx.obj.get("verbose"):
            for probe in result.candidates:
                click.echo(f"     tried {probe}")
        sys.exit(1)

    suffix = " (workspace)" if result.workspace else ""
    click.secho(f"✓ {name} → {result.path}{suffix}", fg="green")


@cli.command()
@click.option("--workspace", "-w", default=None, help="Workspace directory or package name.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def closure(ctx: click.Context, workspace: str | None, as_json: bool) -> None:
    """List every package the project (or one workspace) needs."""
    from lockplan.core.use_cases.inspect import compute_closure

    result = compute_closure(workspace, config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    reached = result.closure
    assert reached is not None
    click.secho(
        f"🔗 {result.target or 'project'}: {len(reached)} packages",
        fg="cyan", bold=True,
    )
    for path, optional in reached.paths.items():
        if not path:
            continue
        click.echo(f"   {'?' if optional else '•'} {path}")
    for edge in reached.dropped:
        click.secho(f"   ✗ {edge.name} (optional, from {edge.from_path or '<root>'})", fg="yellow")


# ── Register sub-command groups from lockplan/ui/cli/ ─────────────

from lockplan.ui.cli.workspaces import workspaces

cli.add_command(workspaces)


if __name__ == "__main__":
    cli()
