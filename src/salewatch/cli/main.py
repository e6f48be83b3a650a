"""Salewatch CLI — run the notifier, inspect feeds, dry-run a signature.

Usage:
    salewatch run                                   # Poll feeds, notify, serve status API
    salewatch feeds                                 # Show configured feeds and platforms
    salewatch check <signature> --feed degods:listings   # Build the event, don't send it

All configuration comes from SALEWATCH_* env vars (or .env).
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import sys

import click
from pydantic import ValidationError
from pydantic_settings import SettingsError

from salewatch import __version__
from salewatch.config import Settings, build_feeds
from salewatch.errors import FetchError
from salewatch.logs import configure_logging

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _load_settings() -> Settings:
    """Load settings or exit 1. Bad config is the only fatal startup error."""
    try:
        return Settings()
    except ValidationError as e:
        click.secho("Error: invalid configuration", fg="red", err=True)
        for err in e.errors():
            field = ".".join(str(p) for p in err["loc"]) or "settings"
            click.secho(f"  SALEWATCH_{field.upper()}: {err['msg']}", fg="red", err=True)
        sys.exit(1)
    except SettingsError as e:
        click.secho("Error: invalid configuration", fg="red", err=True)
        click.secho(f"  {e}", fg="red", err=True)
        sys.exit(1)


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="salewatch")
def main():
    """Salewatch — forward marketplace sales and listings to Discord, Twitter and webhooks."""


# ---------------------------------------------------------------------------
# salewatch run
# ---------------------------------------------------------------------------


@main.command()
def run():
    """Start the feed workers, dispatch queue and status server."""
    from salewatch.service import run_service

    settings = _load_settings()
    configure_logging(settings.log_level, json=settings.log_json)
    _run(run_service(settings))


# ---------------------------------------------------------------------------
# salewatch feeds
# ---------------------------------------------------------------------------


@main.command()
def feeds():
    """Show the feeds and destinations the current config would watch."""
    settings = _load_settings()
    configured = build_feeds(settings)

    if not configured:
        click.secho("No feeds configured (set SALEWATCH_MAGIC_EDEN_COLLECTION)", fg="yellow")
        return

    click.secho("Feeds", bold=True)
    for feed in configured:
        allow = ", ".join(sorted(feed.allow_list)) or "all"
        click.echo(f"  {feed.name:<32} {feed.kind.value:<8} allow: {allow}")

    click.secho("Platforms", bold=True)
    click.echo(f"  discord  {'on' if settings.discord_bot_token else 'off'}"
               f"  (channel {settings.discord_channel_id or '—'})")
    click.echo(f"  webhook  {'on' if settings.webhook_url else 'off'}")
    click.echo(f"  twitter  {'on' if settings.twitter_configured else 'off'}")
    click.echo(f"Queue concurrency {settings.queue_concurrency}, "
               f"jitter 0-{settings.jitter_max_ms:g}ms, policy {settings.batch_policy.value}")


# ---------------------------------------------------------------------------
# salewatch check
# ---------------------------------------------------------------------------


@main.command()
@click.argument("signature")
@click.option("--feed", "-f", "feed_name", required=True, help="Feed name, e.g. degods:listings")
def check(signature: str, feed_name: str):
    """Fetch the feed once and print the event SIGNATURE would produce."""
    from salewatch.service import build_runtime

    settings = _load_settings()

    async def _check() -> int:
        runtime = build_runtime(settings)
        try:
            worker = runtime.find_worker(feed_name)
            if worker is None:
                names = ", ".join(w.name for w in runtime.workers) or "none"
                click.secho(f"Unknown feed {feed_name!r} (configured: {names})", fg="red", err=True)
                return 1

            try:
                batch = await worker.fetch()
            except FetchError as e:
                click.secho(f"Fetch failed: {e}", fg="red", err=True)
                return 1

            record = next((r for r in batch if r.signature == signature), None)
            if record is None:
                click.secho("Signature not found in current batch", fg="yellow")
                return 1

            event = await worker.preview(record)
            if event is None:
                click.secho(
                    f"No event: type {record.kind!r}, or asset unresolved / not in allow list",
                    fg="yellow",
                )
                return 1

            click.echo(_pretty_json(event.to_dict()))
            return 0
        finally:
            await runtime.close()

    sys.exit(_run(_check()))


if __name__ == "__main__":
    main()
