"""revbot command line entry point."""

import logging
from typing import Optional

import typer
import uvicorn
from pydantic import ValidationError

from revbot.config import DEFAULT_CONFIG_PATH, ConfigError, LogLevel, load_settings
from revbot.main import configure_logging, create_app

logger = logging.getLogger(__name__)

app = typer.Typer(help="revbot - GitLab merge request and pipeline notifications for Webex")


@app.command()
def serve(
    config: str = typer.Option(
        DEFAULT_CONFIG_PATH, "--config", "-c", help="Path to the YAML config file"
    ),
    address: Optional[str] = typer.Option(
        None, "--address", help="Address to listen on (overrides config)"
    ),
    port: Optional[int] = typer.Option(
        None,
        "--port",
        "-p",
        min=1,
        max=65535,
        help="Port to listen on (overrides config)",
    ),
    log_level: Optional[LogLevel] = typer.Option(
        None,
        "--log-level",
        case_sensitive=False,
        help="Log level (overrides config)",
    ),
):
    """Run the webhook listener."""
    try:
        settings = load_settings(config)
    except (ConfigError, ValidationError) as e:
        typer.echo(f"Invalid configuration: {e}", err=True)
        raise typer.Exit(code=1)

    overrides = {}
    if address is not None:
        overrides["host"] = address
    if port is not None:
        overrides["port"] = port
    if log_level is not None:
        overrides["log_level"] = log_level.value
    if overrides:
        settings = settings.model_copy(update=overrides)

    configure_logging(settings.log_level)
    logger.info("Starting on: %s:%s", settings.host, settings.port)

    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
