"""CLI app setup and common utilities.

This module creates the main Typer app and provides the shared client
factory and failure reporting used by all commands.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional

import typer
from typer import Context, Typer

from apptivolink.client import ApptivoClient
from apptivolink.config import config
from apptivolink.result import ResolutionResult

# Initialize Typer app
app = Typer(
    name="apptivolink",
    help="Resolve human-readable field labels against Apptivo app configurations.",
)


# =============================================================================
# Global Context Object for the Client Session
# =============================================================================


class CLIState:
    """Shared state object for CLI commands.

    Holds the client session; tests replace ``client_factory`` to run
    commands against an in-memory store.
    """

    client_factory: Callable[[], ApptivoClient] = staticmethod(ApptivoClient.from_env)

    def __init__(self):
        self._client: Optional[ApptivoClient] = None

    @property
    def client(self) -> ApptivoClient:
        if self._client is None:
            self._client = CLIState.client_factory()
        return self._client


def get_client(ctx: Context) -> ApptivoClient:
    """Get the client session from the Typer context."""
    ctx.ensure_object(CLIState)
    try:
        return ctx.obj.client
    except ValueError as e:
        typer.echo(f"❌ Error: {e}", err=True)
        raise typer.Exit(1)


def unwrap_or_exit(result: ResolutionResult[Any]) -> Any:
    """Return the payload, or print the failure and exit with code 1."""
    if not result:
        typer.echo(f"❌ {result.kind.value}: {result.message}", err=True)
        raise typer.Exit(1)
    return result.payload


def label_from_args(parts: List[str]) -> Any:
    """One CLI argument is a bare label; two are ``[section, field]``."""
    return parts[0] if len(parts) == 1 else list(parts)


@app.callback()
def init_app(
    ctx: Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Configure logging and the shared CLI state."""
    level = logging.DEBUG if verbose else getattr(logging, config.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    ctx.ensure_object(CLIState)
