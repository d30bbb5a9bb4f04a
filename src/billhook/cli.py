"""
billhook CLI

Command-line interface for running and exercising the webhook service.
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

import click
import structlog

from billhook import __version__
from billhook.config import settings

logger = structlog.get_logger()


# ══════════════════════════════════════════════════════════════
# CLI Group
# ══════════════════════════════════════════════════════════════


@click.group()
@click.version_option(version=__version__, prog_name="billhook")
@click.option("--debug/--no-debug", default=False, help="Enable debug logging")
def cli(debug: bool) -> None:
    """billhook - Stripe billing webhooks.

    Turns Stripe subscription and invoice events into client billing updates.
    """
    if debug:
        import logging
        logging.basicConfig(level=logging.DEBUG)
        structlog.configure(
            wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        )


# ══════════════════════════════════════════════════════════════
# Server Commands
# ══════════════════════════════════════════════════════════════


@cli.command()
@click.option("--host", default="0.0.0.0", help="Host to bind to")
@click.option("--port", default=8000, help="Port to bind to")
@click.option("--reload/--no-reload", default=False, help="Enable auto-reload")
@click.option("--workers", default=1, help="Number of worker processes")
def serve(host: str, port: int, reload: bool, workers: int) -> None:
    """Start the billhook API server."""
    import uvicorn

    click.echo(f"Starting billhook API on {host}:{port}")

    uvicorn.run(
        "billhook.api.app:create_app",
        host=host,
        port=port,
        reload=reload,
        workers=workers if not reload else 1,
        factory=True,
    )


# ══════════════════════════════════════════════════════════════
# Webhook Commands
# ══════════════════════════════════════════════════════════════


def _read_payload(payload_file: Path) -> bytes:
    raw_body = payload_file.read_bytes()
    try:
        json.loads(raw_body)
    except json.JSONDecodeError:
        click.echo("Error: Payload must be valid JSON", err=True)
        sys.exit(1)
    return raw_body


@cli.command()
@click.argument("payload_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--secret", default=None, help="Signing secret (defaults to STRIPE_WEBHOOK_SECRET)")
@click.option("--timestamp", type=int, default=None, help="Signature timestamp (defaults to now)")
def sign(payload_file: Path, secret: Optional[str], timestamp: Optional[int]) -> None:
    """Print a Stripe-Signature header for a JSON payload file."""
    from billhook.webhooks import sign_payload

    secret = secret or settings.stripe_webhook_secret
    if not secret:
        click.echo("Error: no signing secret given", err=True)
        sys.exit(1)

    click.echo(sign_payload(_read_payload(payload_file), secret, timestamp))


@cli.command()
@click.argument("payload_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--url", default=None, help="Webhook URL (defaults to the local server)")
@click.option("--secret", default=None, help="Signing secret (defaults to STRIPE_WEBHOOK_SECRET)")
def send(payload_file: Path, url: Optional[str], secret: Optional[str]) -> None:
    """Sign a JSON payload file and POST it to a running server."""
    import httpx

    from billhook.webhooks import sign_payload

    secret = secret or settings.stripe_webhook_secret
    if not secret:
        click.echo("Error: no signing secret given", err=True)
        sys.exit(1)

    url = url or f"http://localhost:8000/api/{settings.api_version}/webhooks/stripe"
    raw_body = _read_payload(payload_file)

    try:
        response = httpx.post(
            url,
            content=raw_body,
            headers={
                "Content-Type": "application/json",
                "Stripe-Signature": sign_payload(raw_body, secret),
            },
            timeout=settings.http_timeout_seconds,
        )
    except httpx.HTTPError as e:
        click.echo(f"✗ Request failed: {e}", err=True)
        sys.exit(1)

    click.echo(f"{response.status_code} {response.text}")
    if response.status_code >= 400:
        sys.exit(1)


# ══════════════════════════════════════════════════════════════
# Client Store Commands
# ══════════════════════════════════════════════════════════════


@cli.command()
@click.argument("clients_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def seed(clients_file: Path) -> None:
    """Seed the Redis client store from a JSON list when it is empty."""
    if settings.clients_backend != "redis":
        click.echo("Error: seeding requires CLIENTS_BACKEND=redis", err=True)
        sys.exit(1)

    docs = json.loads(clients_file.read_text())
    if not isinstance(docs, list):
        click.echo("Error: clients file must contain a JSON list", err=True)
        sys.exit(1)

    async def run_seed() -> int:
        from billhook.db.redis import close_redis, init_redis
        from billhook.webhooks import build_client_records

        await init_redis()
        try:
            records = await build_client_records(settings)
            return await records.seed(docs)
        finally:
            await close_redis()

    written = asyncio.run(run_seed())
    if written:
        click.echo(f"Seeded {written} clients")
    else:
        click.echo("Client store already has data, nothing seeded")


# ══════════════════════════════════════════════════════════════
# Config Commands
# ══════════════════════════════════════════════════════════════


@cli.command()
def config() -> None:
    """Show current configuration."""
    click.echo("billhook Configuration\n")

    config_items = [
        ("Environment", settings.app_env),
        ("Debug", str(settings.debug)),
        ("Stripe secret key", settings.stripe_secret_key),
        ("Webhook secret", settings.stripe_webhook_secret),
        ("Growth price", settings.stripe_growth_plan_price_id or "Not set"),
        ("Cheap price", settings.stripe_ridiculously_cheap_plan_price_id or "Not set"),
        ("Free price", settings.stripe_free_plan_price_id or "Not set"),
        ("Clients backend", settings.clients_backend),
        ("Clients URL", settings.clients_service_url),
        ("Tracking URL", settings.tracking_service_url),
        ("Redis", str(settings.redis_url)),
    ]

    for key, value in config_items:
        # Mask sensitive values
        if "key" in key.lower() or "secret" in key.lower():
            value = "***" if value else "Not set"
        click.echo(f"  {key:20} {value}")


# ══════════════════════════════════════════════════════════════
# Entry Point
# ══════════════════════════════════════════════════════════════


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
