"""Config commands: inspect and change YAML settings."""

from __future__ import annotations

import click
import yaml

from ..console import console
from ..lib.settings import SETTING_KEYS
from ..lib.settings import AppSettings
from ..lib.settings import coerce_setting
from ..utils.error_format import escape_markup

SCOPE_CHOICE = click.Choice(["global", "project", "local"])


@click.group(invoke_without_command=True)
@click.pass_context
def config(ctx: click.Context):
    """Manage atcompile settings."""
    if ctx.invoked_subcommand is None:
        click.echo("\n" + ctx.get_help())
        ctx.exit()


@config.command(name="show")
@click.pass_context
def config_show(ctx: click.Context):
    """Show merged settings from all scopes."""
    settings: AppSettings = ctx.obj["settings"]
    merged = settings.get_merged_settings()

    if not merged:
        console.print("[dim]No settings configured.[/dim]")
    else:
        console.print(escape_markup(yaml.safe_dump(merged, default_flow_style=False).rstrip()))

    for scope in ("global", "project", "local"):
        path = settings.get_scope_path(scope)
        status = "exists" if path.exists() else "not created"
        console.print(f"[dim]{scope}: {escape_markup(path)} ({status})[/dim]")


@config.command(name="set")
@click.argument("key", type=click.Choice(sorted(SETTING_KEYS)))
@click.argument("value")
@click.option("--scope", type=SCOPE_CHOICE, default="project", help="Settings scope to write")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str, scope: str):
    """Set KEY to VALUE (lists are comma-separated, e.g. .md,.txt)."""
    settings: AppSettings = ctx.obj["settings"]
    try:
        typed = coerce_setting(key, value)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="VALUE") from e

    settings.set_value(key, typed, scope=scope)  # type: ignore[arg-type]
    console.print(f"[green]✓ Set {key} = {escape_markup(typed)} ({scope})[/green]")


@config.command(name="unset")
@click.argument("key", type=click.Choice(sorted(SETTING_KEYS)))
@click.option("--scope", type=SCOPE_CHOICE, default="project", help="Settings scope to change")
@click.pass_context
def config_unset(ctx: click.Context, key: str, scope: str):
    """Remove KEY from a settings scope."""
    settings: AppSettings = ctx.obj["settings"]
    settings.remove_value(key, scope=scope)  # type: ignore[arg-type]
    console.print(f"[green]✓ Removed {key} ({scope})[/green]")
