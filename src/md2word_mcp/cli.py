"""
Command line entry point for md2word-mcp.

Entry point: ``md2word-mcp`` (configured via pyproject.toml console scripts).

Commands:
- serve: run the HTTP service with uvicorn
- show-config: print the effective settings as JSON
"""

import json
from typing import Any, Dict, Optional

import typer
import uvicorn

from .config import Settings
from .logging_config import configure_logging, get_logger

logger = get_logger(__name__)

app = typer.Typer(
    name="md2word-mcp",
    help="MCP document service: Markdown to Word conversion over HTTP.",
    no_args_is_help=True,
    add_completion=False,
)


def _load_settings(**overrides: Any) -> Settings:
    values: Dict[str, Any] = {k: v for k, v in overrides.items() if v is not None}
    return Settings(**values)


@app.command(name="serve", help="Run the HTTP service.")
def serve_cmd(
    port: Optional[int] = typer.Option(None, help="Listen port (env: PORT)."),
    bind_host: Optional[str] = typer.Option(None, help="Interface to bind (env: BIND_HOST)."),
    basepath: Optional[str] = typer.Option(None, help="Route prefix (env: BASEPATH)."),
    proxy_url: Optional[str] = typer.Option(
        None, help="Externally visible base URL for download links (env: PROXY_URL)."
    ),
    log_level: Optional[str] = typer.Option(None, help="Log level (env: LOG_LEVEL)."),
) -> None:
    """Start uvicorn with the FastAPI application."""
    from .http_app import create_app

    settings = _load_settings(
        port=port,
        bind_host=bind_host,
        basepath=basepath,
        proxy_url=proxy_url,
        log_level=log_level,
    )
    configure_logging(settings.log_level)

    logger.info("uvicorn_starting", bind_host=settings.bind_host, port=settings.port)
    uvicorn.run(
        create_app(settings),
        host=settings.bind_host,
        port=settings.port,
        log_config=None,
    )


@app.command(name="show-config", help="Print the effective settings as JSON.")
def show_config_cmd() -> None:
    settings = _load_settings()
    typer.echo(json.dumps(settings.model_dump(mode="json"), indent=2, sort_keys=True))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
