"""
This file is the entry point for the 'chauffeur' command-line tool.
Run 'chauffeur --help' in your shell to use the CLI.
"""
import asyncio
import sys
from pathlib import Path
from typing import Optional

import httpx
import typer

from common.app_setup import print_and_log, print_error, setup_logging
from common.settings import ChauffeurSettings, load_settings
from connectors.connections_manager import get_session
from connectors.rest_backend_connector import DeferredSession, RestPackagingService, RestUserService
from deliverables import DeliverableContext, DeliverableHost, DeliverableResponse, build_registry

app = typer.Typer(add_completion=False, help="Script administrative operations against a content-management backend.")

PASS_THROUGH = {"allow_extra_args": True, "ignore_unknown_options": True}


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--config", help="Settings file (YAML or JSON)"),
    logfile: Optional[str] = typer.Option(None, "--logfile", help="Log file (default ~/.chauffeur/log.txt)"),
):
    setup_logging(app_name="chauffeur", daemon=False, logfile=logfile)
    try:
        ctx.obj = load_settings(config)
    except ValueError as e:
        print_error(f"Cannot load settings: {e}")
        raise typer.Exit(1)


def _build_host(settings: ChauffeurSettings) -> DeliverableHost:
    backend = settings.backend
    # the backend is contacted on the first service call, not here
    session = DeferredSession(lambda: get_session(backend.type, backend.url, backend.user, backend.password))
    context = DeliverableContext(
        reader=sys.stdin,
        writer=sys.stdout,
        settings=settings,
        packaging_service=RestPackagingService(session),
        user_service=RestUserService(session),
    )
    return DeliverableHost(build_registry(), context)


def _drive(session_coroutine):
    """Run a host coroutine and turn its final response into the exit code."""
    try:
        response = asyncio.run(session_coroutine)
    except ConnectionError as e:
        print_error(f"Cannot reach the backend: {e}")
        raise typer.Exit(1)
    except httpx.HTTPError as e:
        print_error(f"Backend request failed: {e}")
        raise typer.Exit(1)
    if response is DeliverableResponse.FINISHED_WITH_ERROR:
        raise typer.Exit(1)


@app.command(context_settings=PASS_THROUGH)
def run(ctx: typer.Context, command: str = typer.Argument(..., help="Deliverable name or alias")):
    """Run one deliverable, e.g. `chauffeur run package mypkg -f:./packages`."""
    host = _build_host(ctx.obj)
    _drive(host.deliver(command, list(ctx.args)))


@app.command()
def script(ctx: typer.Context, path: Path = typer.Argument(..., exists=True, dir_okay=False, help="File with one command per line")):
    """Run the commands of a file in order, stopping at the first that finishes the session."""
    host = _build_host(ctx.obj)
    lines = [line for line in path.read_text().splitlines() if not line.lstrip().startswith("#")]
    _drive(host.run_script(lines))


@app.command()
def shell(ctx: typer.Context):
    """Start an interactive session. `quit` or end-of-input leaves it."""
    host = _build_host(ctx.obj)
    print_and_log("Chauffeur shell. Type `help` to list the deliverables, `quit` to leave.")
    _drive(host.run_shell())


if __name__ == "__main__":
    app()
