"""
CLI commands for registry backup & restore.

Thin wrappers over ``RegistryStore.backup`` / ``list_backups`` / ``restore``.
"""

from __future__ import annotations

import json

import click


def _store(ctx: click.Context):
    from bussin.core.persistence.registry_file import RegistryStore

    return RegistryStore(ctx.obj["paths"].registry_file)


@click.group()
def backup() -> None:
    """Backup & Restore — snapshot the tool registry and bring it back."""


@backup.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def create(ctx: click.Context, as_json: bool) -> None:
    """Copy the registry to a timestamped backup file."""
    target = _store(ctx).backup()

    if as_json:
        click.echo(json.dumps({"backup": str(target)}, indent=2))
        return

    click.secho(f"✅ Configuration backed up to {target}", fg="green", bold=True)


@backup.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_backups_cmd(ctx: click.Context, as_json: bool) -> None:
    """List registry backups, newest first."""
    backups = _store(ctx).list_backups()

    if as_json:
        click.echo(json.dumps([str(p) for p in backups], indent=2))
        return

    if not backups:
        click.secho("No backups found.", fg="yellow")
        return

    click.secho(f"📦 Backups ({len(backups)}):", fg="cyan", bold=True)
    for path in backups:
        click.echo(f"   {path.name}  ({path.stat().st_size:,} bytes)")


@backup.command()
@click.argument("ref")
@click.pass_context
def restore(ctx: click.Context, ref: str) -> None:
    """Replace the registry with a backup.

    REF is a backup path, or a backup file name from ``bussin backup list``.
    """
    from bussin.core.errors import BackupNotFound

    try:
        source = _store(ctx).restore(ref)
    except BackupNotFound as e:
        click.secho(f"⚠️  {e}", fg="yellow")
        return

    click.secho(f"✅ Configuration restored from {source}", fg="green", bold=True)
