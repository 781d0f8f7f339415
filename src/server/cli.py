"""Click CLI for running and exercising the webhook relay."""

from __future__ import annotations

import asyncio
import json
import logging

import click
import uvicorn
from dotenv import load_dotenv

from src.config import ConfigError, RelayConfig
from src.server.app import build_composer, create_app


@click.group()
@click.option("--env-file", default=None, help="Load environment variables from this .env file.")
@click.option(
    "--log-level",
    default="info",
    type=click.Choice(["debug", "info", "warning", "error"]),
    help="Root log level.",
)
@click.pass_context
def cli(ctx: click.Context, env_file: str | None, log_level: str) -> None:
    """WhatsApp order-relay CLI."""
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if env_file:
        load_dotenv(env_file)
    try:
        ctx.obj["config"] = RelayConfig.from_env()
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command()
@click.option("--host", default="0.0.0.0", help="Bind address.")
@click.option("--port", default=None, type=int, help="Listen port (defaults to PORT).")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int | None) -> None:
    """Run the webhook server."""
    config: RelayConfig = ctx.obj["config"]
    listen_port = port or config.port
    click.echo(f"Server listening on port {listen_port}", err=True)
    uvicorn.run(create_app(config), host=host, port=listen_port)


@cli.command()
@click.argument("text")
@click.option("--sender", default="cli-user", help="Sender id used in logs.")
@click.pass_context
def reply(ctx: click.Context, text: str, sender: str) -> None:
    """Compose the reply TEXT would get, without sending it."""
    config: RelayConfig = ctx.obj["config"]
    composer = build_composer(config)
    click.echo(asyncio.run(composer.compose(sender, text)))


@cli.command()
@click.pass_context
def verify(ctx: click.Context) -> None:
    """Print the loaded configuration with secrets masked."""
    config: RelayConfig = ctx.obj["config"]
    output = config.masked()
    output["order_lookup_enabled"] = config.order_lookup_enabled
    click.echo(json.dumps(output, indent=2))
