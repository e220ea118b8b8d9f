"""CLI entry point for the pinguard gateway."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Awaitable, Callable, TypeVar

import click

from pinguard.config import load_config
from pinguard.errors import GatewayError
from pinguard.gateway import open_gateway
from pinguard.interfaces.gateway import PinningService
from pinguard.models.records import PinMetadata, PinOptions
from pinguard.pinata.urls import gateway_url
from pinguard.storage.sqlite import SQLiteAuditSink

T = TypeVar("T")


def _require_credentials(cfg):
    """Exit with error if provider credentials are incomplete."""
    missing = cfg.missing_credentials()
    if missing:
        click.echo(f"Error: missing credentials: {', '.join(missing)}", err=True)
        click.echo("Set PINGUARD_API_KEY / PINGUARD_API_SECRET / PINGUARD_JWT "
                   "or the [provider] section of the config.", err=True)
        sys.exit(1)


def _run(ctx: click.Context, operation: Callable[[PinningService], Awaitable[T]]) -> T:
    """Open a gateway, run `operation(gateway)`, and close it again."""
    cfg = ctx.obj["config"]

    async def _main():
        gateway = await open_gateway(cfg)
        async with gateway:
            return await operation(gateway)

    try:
        return asyncio.run(_main())
    except GatewayError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


def _echo_pin(result) -> None:
    click.echo(f"CID:        {result.content_id}")
    click.echo(f"Size:       {result.size} bytes")
    click.echo(f"Pinned at:  {result.timestamp}")
    click.echo(f"Gateway:    {gateway_url(result.content_id)}")


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """pinguard - resilient gateway to a content pinning provider."""
    ctx.ensure_object(dict)
    cfg = load_config(config_path)
    ctx.obj["config"] = cfg

    level = logging.DEBUG if verbose else getattr(logging, cfg.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show gateway configuration."""
    cfg = ctx.obj["config"]
    configured = "***configured***"
    click.echo(f"Provider:    {cfg.base_url}")
    click.echo(f"API key:     {configured if cfg.api_key else '(not set)'}")
    click.echo(f"API secret:  {configured if cfg.api_secret else '(not set)'}")
    click.echo(f"JWT:         {configured if cfg.jwt else '(not set)'}")
    click.echo(f"Retries:     {cfg.max_retries} (base delay {cfg.base_delay_ms}ms)")
    click.echo(f"Max size:    {cfg.max_content_size} bytes")
    click.echo(f"Audit DB:    {cfg.audit.db_path or '(memory)'}")
    click.echo(f"Webhook:     {configured if cfg.audit.webhook_url else '(not set)'}")


@cli.command("test")
@click.pass_context
def test_connection(ctx: click.Context) -> None:
    """Check that the provider accepts our credentials."""
    _require_credentials(ctx.obj["config"])
    ok = _run(ctx, lambda gw: gw.test_connection())
    if ok:
        click.echo("Connection OK")
    else:
        click.echo("Connection failed. Check your API keys.", err=True)
        sys.exit(1)


# ── Pinning ────────────────────────────────────────────


def _options(cid_version: int | None, wrap: bool) -> PinOptions | None:
    if cid_version is None and not wrap:
        return None
    return PinOptions(cid_version=cid_version, wrap_with_directory=wrap or None)


@cli.command("pin-json")
@click.argument("path", type=click.File("r"))
@click.option("--name", default=None, help="Pin name (defaults to 'Untitled')")
@click.option("--cid-version", type=click.IntRange(0, 1), default=None)
@click.pass_context
def pin_json(ctx: click.Context, path, name: str | None, cid_version: int | None) -> None:
    """Pin the JSON document in PATH."""
    _require_credentials(ctx.obj["config"])
    try:
        content = json.load(path)
    except json.JSONDecodeError as exc:
        click.echo(f"Error: {path.name} is not valid JSON: {exc}", err=True)
        sys.exit(1)

    metadata = PinMetadata(name=name) if name else None
    result = _run(
        ctx, lambda gw: gw.pin_json(content, metadata, _options(cid_version, False)),
    )
    _echo_pin(result)


@cli.command("pin-file")
@click.argument("path", type=click.File("rb"))
@click.option("--name", default=None, help="Pin name (defaults to the file name)")
@click.option("--cid-version", type=click.IntRange(0, 1), default=None)
@click.option("--wrap", is_flag=True, help="Wrap the file in a directory")
@click.pass_context
def pin_file(
    ctx: click.Context, path, name: str | None, cid_version: int | None, wrap: bool,
) -> None:
    """Pin the file at PATH."""
    _require_credentials(ctx.obj["config"])
    data = path.read()
    metadata = PinMetadata(name=name or click.format_filename(path.name, shorten=True))
    result = _run(ctx, lambda gw: gw.pin_file(data, metadata, _options(cid_version, wrap)))
    _echo_pin(result)


@cli.command("list")
@click.pass_context
def list_pins(ctx: click.Context) -> None:
    """List pinned content."""
    _require_credentials(ctx.obj["config"])
    result = _run(ctx, lambda gw: gw.list_pins())
    click.echo(f"{result.count} pins")
    for row in result.rows:
        name = row.metadata.get("name") or ""
        click.echo(f"  {row.content_id}  {row.size:>10}  {row.date_pinned or '?'}  {name}")


@cli.command()
@click.argument("cid")
@click.pass_context
def unpin(ctx: click.Context, cid: str) -> None:
    """Remove the pin for CID."""
    _require_credentials(ctx.obj["config"])
    _run(ctx, lambda gw: gw.unpin(cid))
    click.echo(f"Unpinned {cid}")


# ── Audit ──────────────────────────────────────────────


@cli.command()
@click.option("--limit", default=20, show_default=True, help="Number of events to show")
@click.option("--action", default=None, help="Only show actions starting with this prefix")
@click.pass_context
def audit(ctx: click.Context, limit: int, action: str | None) -> None:
    """Show recent audit events."""
    cfg = ctx.obj["config"]
    if not cfg.audit.db_path:
        click.echo("Audit database not configured.", err=True)
        sys.exit(1)

    async def _audit():
        sink = SQLiteAuditSink(cfg.audit.db_path)
        await sink.initialize()
        try:
            return await sink.recent(limit, action)
        finally:
            await sink.close()

    events = asyncio.run(_audit())
    if not events:
        click.echo("No audit events recorded.")
        return
    for e in events:
        click.echo(
            f"{e.timestamp}  {e.status.value:<7}  {e.severity.value:<4}  {e.action}  "
            f"{json.dumps(dict(e.details), default=str)}"
        )
