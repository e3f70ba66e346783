"""Run the Hegel metadata service: python -m hegel"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
import uvicorn

from hegel.app import create_app
from hegel.config import load_config

cli = typer.Typer(add_completion=False)


@cli.command()
def serve(
    facility: Optional[str] = typer.Option(
        None, "--facility", help="The facility we are running in (used to reach cacher)"
    ),
    http_port: Optional[int] = typer.Option(None, "--http-port", "--http_port", help="Port to listen on"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Path to hegel.ini"),
) -> None:
    config = load_config(config_path, facility=facility, http_port=http_port)
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    app = create_app(config)
    # Caller resolution reads X-Forwarded-For itself, against TRUSTED_PROXIES.
    uvicorn.run(app, host=config.http_host, port=config.http_port, proxy_headers=False)


if __name__ == "__main__":
    cli()
