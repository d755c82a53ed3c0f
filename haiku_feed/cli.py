"""Command-line interface for News Haiku Feed.

``serve`` runs the live update server; ``run-once`` runs a single feed
cycle and prints the new haikus as JSON.
"""

import asyncio
import json
from datetime import UTC, datetime

import typer

from .config import Config
from .errors import ConfigurationError
from .logging_config import create_execution_logger, setup_structured_logging
from .server import build_services, run_server

app = typer.Typer(add_completion=False)


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", help="Interface to bind."),
    port: int | None = typer.Option(None, "--port", "-p", help="Port to listen on."),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
):
    """Run the live haiku server."""
    config = Config()
    if host:
        config.host = host
    if port:
        config.port = port
    setup_structured_logging(log_level or config.log_level)

    try:
        run_server(config)
    except ConfigurationError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(code=1)


@app.command("run-once")
def run_once(
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
):
    """Fetch feeds once and print newly generated haikus."""
    config = Config()
    setup_structured_logging(log_level or config.log_level)
    execution_id = f"cli_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S_%f')}"
    logger = create_execution_logger("main", execution_id)

    try:
        config.require_credentials()
        services = build_services(config, execution_id=execution_id)
    except ConfigurationError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(code=1)

    haikus = asyncio.run(services.processor.process_new_feed_items())
    logger.log_metrics(services.processor.last_metrics)
    typer.echo(
        json.dumps(
            {
                "haikus": [haiku.to_dict() for haiku in haikus],
                "metrics": services.processor.last_metrics,
            },
            ensure_ascii=False,
            indent=2,
        )
    )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
