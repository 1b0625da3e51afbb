"""Entry-point for the QR asset viewer."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
import uvicorn

from asset_viewer.bootstrap import BootstrapError, ViewerServices, build_services, initialize_app
from asset_viewer.logging_utils import build_handlers, configure_logging
from asset_viewer.services.transport import RequestContext
from asset_viewer.services.view_session import AssetViewSession
from asset_viewer.ui.bundle_view import BundleRenderer
from asset_viewer.web import create_app


LOGGER = logging.getLogger("asset_viewer.cli")


cli = typer.Typer(add_completion=False, help="QR asset viewer commands")


DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000


class Tier(str, Enum):
    L1 = "L1"
    L2 = "L2"
    L3 = "L3"


def _prepare_logging(log_root: Path, *, verbose: bool = False) -> None:
    configure_logging(
        logging.DEBUG if verbose else logging.INFO,
        handlers=build_handlers(log_root, verbose=verbose),
    )


def _load_services(config_path: Optional[Path], verbose: bool) -> ViewerServices:
    try:
        config = initialize_app(config_path)
    except BootstrapError as error:
        typer.secho(str(error), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2) from error
    _prepare_logging(config.log_root, verbose=verbose)
    return build_services(config)


def _context(token: Optional[str]) -> Optional[RequestContext]:
    return RequestContext(token=token) if token else None


config_option = typer.Option(None, "--config", "-c", help="Path to a JSON configuration file.")
token_option = typer.Option(
    None,
    "--token",
    help="Bearer token forwarded to the content service.",
    envvar="ASSET_VIEWER_TOKEN",
)
verbose_option = typer.Option(False, "--verbose", "-v", help="Log requests to the terminal.")


@cli.command()
def serve(
    host: str = typer.Option(DEFAULT_HOST, help="Host interface for the web server"),
    port: int = typer.Option(DEFAULT_PORT, help="Port for the web server"),
    config_path: Optional[Path] = config_option,
    verbose: bool = verbose_option,
) -> None:
    """Run the JSON API in front of the content service."""

    services = _load_services(config_path, verbose)
    app = create_app(services.config, services=services)
    server_config = uvicorn.Config(app, host=host, port=port, log_config=None)
    server = uvicorn.Server(server_config)
    app.state.server = server
    LOGGER.info("Serving on http://%s:%s for %s", host, port, services.config.api_root)
    server.run()


async def _open_view(services: ViewerServices, route: str, token: Optional[str]) -> AssetViewSession:
    session = services.new_session(context=_context(token))
    await session.navigate_route(route)
    return session


@cli.command()
def view(
    route: str = typer.Argument(..., help="Viewer route, e.g. /mobile-asset-view/<bookId>/chapters/<chapterId>"),
    token: Optional[str] = token_option,
    config_path: Optional[Path] = config_option,
    verbose: bool = verbose_option,
) -> None:
    """Resolve ROUTE and print everything attached to it."""

    services = _load_services(config_path, verbose)
    renderer = BundleRenderer(asset_base_url=services.config.api_base_url)

    session = asyncio.run(_open_view(services, route, token))
    if session.error is not None:
        renderer.render_error(session.error)
        raise typer.Exit(code=1)
    if session.bundle is None:
        typer.secho("Nothing was loaded for this route.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    renderer.render_bundle(session.bundle)


async def _open_question_set(
    services: ViewerServices,
    route: str,
    tier: str,
    set_id: str,
    subjective: bool,
    token: Optional[str],
) -> AssetViewSession:
    session = await _open_view(services, route, token)
    if session.bundle is not None:
        await session.open_set("subjective" if subjective else "objective", tier, set_id)
    return session


@cli.command()
def questions(
    route: str = typer.Argument(..., help="Viewer route the set belongs to"),
    set_id: str = typer.Option(..., "--set", "-s", help="Identifier of the question set"),
    tier: Tier = typer.Option(Tier.L1, "--tier", "-t", help="Difficulty tier holding the set"),
    subjective: bool = typer.Option(False, "--subjective", help="Open a subjective set"),
    token: Optional[str] = token_option,
    config_path: Optional[Path] = config_option,
    verbose: bool = verbose_option,
) -> None:
    """Open one question set of ROUTE, loading its questions if needed."""

    services = _load_services(config_path, verbose)
    renderer = BundleRenderer(asset_base_url=services.config.api_base_url)

    try:
        session = asyncio.run(
            _open_question_set(services, route, tier.value, set_id, subjective, token)
        )
    except LookupError as error:
        typer.secho(str(error), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from error

    if session.error is not None:
        renderer.render_error(session.error)
        raise typer.Exit(code=1)
    if session.open_set_view is None:
        typer.secho(f"Question set {set_id} was not opened.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    renderer.render_set(session.open_set_view)
    renderer.render_toasts(session.toasts)


if __name__ == "__main__":
    cli()
