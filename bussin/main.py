"""
bussin — CLI entrypoint.

Usage:
    bussin --help
    bussin add https://github.com/org/tool/releases/download/v1/tool
    bussin add https://github.com/org/repo.git
    bussin apt jq
    bussin update --parallel
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from bussin import __version__
from bussin.core.observability.logging_config import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="bussin")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Only show errors.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Config folder (default: $BUSSIN_CONFIG_DIR or ~/.config/bussin).",
)
@click.option(
    "--install-dir",
    default=None,
    help="Default installation directory, saved on first use.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_dir: Path | None,
    install_dir: str | None,
) -> None:
    """bussin — keep your tools installed and up to date."""
    from bussin.core.config.loader import INSTALL_DIR_ENV, resolve_paths

    paths = resolve_paths(config_dir)
    try:
        paths.ensure()
    except OSError as e:
        click.secho(f"❌ Cannot create config folder {paths.config_dir}: {e}", fg="red", err=True)
        sys.exit(1)

    ctx.ensure_object(dict)
    ctx.obj["paths"] = paths
    ctx.obj["install_dir"] = install_dir or os.environ.get(INSTALL_DIR_ENV)
    ctx.obj["quiet"] = quiet

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("BUSSIN_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("BUSSIN_LOG_FILE") or str(paths.log_file),
        log_file_level=os.environ.get("BUSSIN_LOG_FILE_LEVEL", "INFO"),
    )


# ── Helpers ─────────────────────────────────────────────────────


def _load_config(ctx: click.Context):
    """Load config.yml or exit on an invalid one."""
    from bussin.core.config.loader import ConfigError, load_engine_config

    try:
        return load_engine_config(ctx.obj["paths"].engine_config_file)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)


def _store(ctx: click.Context):
    from bussin.core.persistence.registry_file import RegistryStore

    return RegistryStore(ctx.obj["paths"].registry_file)


def _engine(ctx: click.Context):
    """Resolve the install root and build the engine context.

    The root prompt is only offered on a terminal; a non-interactive run
    with nothing saved and nothing configured exits 1.
    """
    from bussin.core.config.settings import SettingsResolver
    from bussin.core.context import EngineContext, default_backends
    from bussin.core.errors import UnresolvableRoot

    config = _load_config(ctx)
    paths = ctx.obj["paths"]

    resolver = SettingsResolver(
        paths.settings_file,
        configured=ctx.obj.get("install_dir") or config.default_install_dir,
        prompt=click.prompt if sys.stdin.isatty() else None,
    )
    try:
        install_root = resolver.resolve_install_root()
    except UnresolvableRoot as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    return EngineContext(
        store=_store(ctx),
        backends=default_backends(config),
        install_root=install_root,
        config=config,
    )


def _require_backends(engine, kinds: list[str]) -> None:
    """Exit 1 before any work if a needed CLI (git, apt-get) is missing."""
    missing = engine.backends.missing_dependencies(kinds)
    if not missing:
        return
    for kind in missing:
        click.secho(
            f"❌ Dependency for '{kind}' tools not found. Please install it.",
            fg="red",
            err=True,
        )
    sys.exit(1)


def _build_record(**fields):
    """Build a ToolRecord or exit with the first validation message."""
    from pydantic import ValidationError

    from bussin.core.models.tool import ToolRecord

    try:
        return ToolRecord(**fields)
    except ValidationError as e:
        first = e.errors()[0]
        click.secho(f"❌ Invalid tool: {first['msg']}", fg="red", err=True)
        sys.exit(1)


def _run_add(ctx: click.Context, engine, record) -> None:
    from bussin.core.engine.orchestrator import add_tool

    _require_backends(engine, [record.kind.value])
    result = add_tool(engine, record)

    if not result.ok:
        click.secho(f"✗ {record.name} [{result.error_kind}] {result.error}", fg="red")
        sys.exit(1)

    if result.duplicate:
        click.secho(
            f"⚠️  Tool '{record.name}' already exists in configuration. Skipping addition.",
            fg="yellow",
        )
        return

    where = "apt" if record.is_apt else str(engine.install_root / record.relative_dest)
    click.secho(f"✓ Added {record.name} ({record.kind.value}) → {where}", fg="green")


def _print_batch(ctx: click.Context, report, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        if not report.all_ok:
            sys.exit(1)
        return

    quiet = ctx.obj.get("quiet", False)
    for receipt in report.receipts:
        if receipt.ok:
            if not quiet:
                click.secho(f"✓ {receipt.tool}", fg="green")
        elif receipt.skipped:
            if not quiet:
                click.secho(f"⊘ {receipt.tool}  {receipt.output}", fg="yellow")
        else:
            click.secho(f"✗ {receipt.tool} [{receipt.error_kind}] {receipt.error}", fg="red")

    color = {"ok": "green", "partial": "yellow", "failed": "red"}[report.status]
    click.secho(
        f"\n{report.operation.capitalize()}: {report.succeeded} ok, "
        f"{report.failed} failed, {report.skipped} skipped",
        fg=color,
        bold=True,
    )
    if not report.all_ok:
        sys.exit(1)


def _run_batch_cmd(ctx: click.Context, operation: str, parallel: bool, dry_run: bool, as_json: bool) -> None:
    from bussin.core.engine.orchestrator import required_kinds, run_batch

    tools = list(_store(ctx).list_tools())
    if not tools:
        click.echo("No tools in configuration.")
        return

    engine = _engine(ctx)
    _require_backends(engine, required_kinds(tools, operation))
    report = run_batch(
        engine,
        tools,
        operation,
        parallel=True if parallel else None,
        dry_run=dry_run,
    )
    _print_batch(ctx, report, as_json)


# ── Commands ────────────────────────────────────────────────────


@cli.command()
@click.argument("source")
@click.argument("name", required=False)
@click.option("--dest", "-d", default=None, help="Destination relative to the install root.")
@click.option(
    "--kind",
    type=click.Choice(["binary", "git"]),
    default=None,
    help="Tool type (default: git if SOURCE ends in .git).",
)
@click.option("--checksum", default="", help="Expected checksum (stored, not verified).")
@click.pass_context
def add(
    ctx: click.Context,
    source: str,
    name: str | None,
    dest: str | None,
    kind: str | None,
    checksum: str,
) -> None:
    """Add a binary or git tool, install it, and register it.

    \b
    Examples:
        bussin add https://github.com/org/tool/releases/download/v1.0/tool -d bin
        bussin add https://github.com/org/repo.git
    """
    from bussin.core.models.tool import ToolKind, derive_tool_name, infer_kind

    tool_kind = ToolKind(kind) if kind else infer_kind(source)
    tool_name = name or derive_tool_name(source, tool_kind)
    if dest is None:
        dest = tool_name if tool_kind == ToolKind.GIT else "."

    record = _build_record(
        name=tool_name,
        relative_dest=dest,
        kind=tool_kind,
        source=source,
        checksum=checksum,
    )
    _run_add(ctx, _engine(ctx), record)


@cli.command("apt")
@click.argument("package")
@click.argument("name", required=False)
@click.pass_context
def apt_cmd(ctx: click.Context, package: str, name: str | None) -> None:
    """Install an apt package and register it."""
    from bussin.core.models.tool import APT_DEST, ToolKind

    record = _build_record(
        name=name or package,
        relative_dest=APT_DEST,
        kind=ToolKind.APT,
        source=package,
    )
    _run_add(ctx, _engine(ctx), record)


@cli.command()
@click.option("--parallel", is_flag=True, help="Install all tools concurrently.")
@click.option("--dry-run", is_flag=True, help="Check what would run, change nothing.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(ctx: click.Context, parallel: bool, dry_run: bool, as_json: bool) -> None:
    """Install every registered tool."""
    _run_batch_cmd(ctx, "install", parallel, dry_run, as_json)


@cli.command()
@click.option("--parallel", is_flag=True, help="Update all tools concurrently.")
@click.option("--dry-run", is_flag=True, help="Check what would run, change nothing.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def update(ctx: click.Context, parallel: bool, dry_run: bool, as_json: bool) -> None:
    """Update every registered tool (apt packages are skipped)."""
    _run_batch_cmd(ctx, "update", parallel, dry_run, as_json)


@cli.command()
@click.argument("name")
@click.pass_context
def remove(ctx: click.Context, name: str) -> None:
    """Unregister a tool and delete its directory."""
    from bussin.core.engine.orchestrator import remove_tool

    result = remove_tool(_engine(ctx), name)
    if not result.removed:
        click.secho(f"⚠️  {result.error}", fg="yellow")
        return

    click.secho(f"✓ Removed {name}", fg="green")


@cli.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_cmd(ctx: click.Context, as_json: bool) -> None:
    """List managed tools."""
    tools = list(_store(ctx).list_tools())

    if as_json:
        click.echo(json.dumps([t.model_dump(mode="json") for t in tools], indent=2))
        return

    if not tools:
        click.echo("No tools in configuration.")
        return

    click.secho("Managed Tools:", fg="cyan", bold=True)
    for tool in tools:
        click.echo(
            f"Name: {tool.name} | Type: {tool.kind.value} | "
            f"Dest: {tool.relative_dest} | URL/Package: {tool.source}"
        )


@cli.command()
@click.pass_context
def interactive(ctx: click.Context) -> None:
    """Add a tool by answering prompts."""
    from bussin.core.models.tool import APT_DEST, ToolKind, derive_tool_name

    engine = _engine(ctx)

    kind = ToolKind(
        click.prompt(
            "Tool type",
            type=click.Choice([k.value for k in ToolKind]),
            default=ToolKind.BINARY.value,
        )
    )
    source = click.prompt("Package name" if kind == ToolKind.APT else "URL")
    name = click.prompt("Tool name", default=derive_tool_name(source, kind) or None)

    if kind == ToolKind.APT:
        dest = APT_DEST
    else:
        dest = click.prompt(
            "Destination (relative to install root)",
            default=name if kind == ToolKind.GIT else ".",
        )
    checksum = click.prompt("Checksum (optional)", default="", show_default=False)

    record = _build_record(
        name=name,
        relative_dest=dest,
        kind=kind,
        source=source,
        checksum=checksum,
    )
    _run_add(ctx, engine, record)


# ── Register sub-groups ─────────────────────────────────────────

from bussin.ui.cli.backup import backup

cli.add_command(backup)


def main() -> None:
    """Console-script entry: usage errors exit 1 instead of click's 2."""
    try:
        rv = cli.main(prog_name="bussin", standalone_mode=False)
    except click.exceptions.Abort:
        click.echo("Aborted!", err=True)
        sys.exit(1)
    except click.ClickException as e:
        e.show()
        sys.exit(1)
    if isinstance(rv, int):
        sys.exit(rv)


if __name__ == "__main__":
    main()
