"""Entry-point for the Passerelles CMS backend."""

from __future__ import annotations

import inspect
import logging
from pathlib import Path
from typing import Optional

import typer
import uvicorn

from passerelles.bootstrap import initialize_app
from passerelles.logging_utils import build_server_handlers, configure_logging
from passerelles.services.uploads import get_max_upload_bytes
from passerelles.web import create_app


LOGGER = logging.getLogger("passerelles.run")


cli = typer.Typer(add_completion=False, help="Passerelles CMS management commands")


DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3001


def _prepare_logging(data_root: Path) -> None:
    configure_logging(handlers=build_server_handlers(data_root))


@cli.callback(invoke_without_command=True)
def main(ctx: typer.Context) -> None:
    """Launch the web server when no explicit command is provided."""

    if ctx.invoked_subcommand is None:
        ctx.invoke(serve, host=DEFAULT_HOST, port=DEFAULT_PORT, root_path=None)


@cli.command()
def serve(
    host: str = typer.Option(DEFAULT_HOST, help="Host interface for the web server"),
    port: int = typer.Option(DEFAULT_PORT, help="Port for the web server"),
    root_path: Optional[str] = typer.Option(
        None,
        help="Prefix the application expects when mounted behind a proxy",
        envvar="PASSERELLES_ROOT_PATH",
    ),
) -> None:
    """Seed the data files if needed and run the API with uvicorn."""

    app_config = initialize_app()
    _prepare_logging(app_config.data_root)

    app = create_app(app_config, root_path=root_path)

    config_kwargs = {}
    max_upload_bytes = get_max_upload_bytes()
    if max_upload_bytes > 0:
        config_signature = inspect.signature(uvicorn.Config.__init__)
        if "limit_max_request_size" in config_signature.parameters:
            config_kwargs["limit_max_request_size"] = max_upload_bytes
        else:
            LOGGER.debug(
                "uvicorn.Config has no 'limit_max_request_size'; "
                "upload size is enforced by the upload handler only.",
            )

    server_config = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_config=None,
        **config_kwargs,
    )
    server = uvicorn.Server(server_config)

    display_host = host if host not in {"", "0.0.0.0", "::"} else "127.0.0.1"
    base_url = f"http://{display_host}:{port}"
    LOGGER.info("Server running on %s", base_url)
    LOGGER.info("Admin panel: %s/admin", base_url)
    LOGGER.info("Public site: %s", base_url)

    server.run()


@cli.command()
def init() -> None:
    """Create the data directories and seed the JSON documents."""

    configure_logging()
    app_config = initialize_app()
    typer.echo(f"Speakers: {app_config.speakers_file}")
    typer.echo(f"Content: {app_config.content_file}")
    typer.echo(f"Uploads: {app_config.uploads_root}")


if __name__ == "__main__":
    cli()
