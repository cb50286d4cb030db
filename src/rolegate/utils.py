"""Utility functions for the rolegate CLI."""

import asyncio
import sys
from collections.abc import Awaitable, Callable
from typing import TypeVar

import typer
from rich.console import Console
from rich.markup import escape

from rolegate.acl.service import AccessControlService
from rolegate.config import Settings, get_settings
from rolegate.core.database import create_engine, create_session_factory
from rolegate.core.errors import AppException, ConflictError
from rolegate.core.logging import configure_logging


T = TypeVar("T")

console = Console()

DATABASE_URL_HELP = "Database URL, overrides ROLEGATE_DATABASE_URL"


def load_settings(database_url: str | None = None) -> Settings:
    """Get settings, optionally pointing at another database."""
    settings = get_settings()
    if database_url:
        return settings.model_copy(
            update={"database_url": Settings(database_url=database_url).database_url}
        )
    return settings


def run_with_service(
    operation: Callable[[AccessControlService], Awaitable[T]],
    database_url: str | None = None,
) -> T:
    """Run an async operation against a freshly built service.

    The engine is disposed once the operation finishes. Library errors
    are printed and turned into exit code 1.
    """
    settings = load_settings(database_url)
    # Keep stdout for command output
    configure_logging(settings, stream=sys.stderr)

    async def _run() -> T:
        engine = create_engine(settings)
        try:
            service = AccessControlService.from_settings(
                settings, create_session_factory(engine)
            )
            return await operation(service)
        finally:
            await engine.dispose()

    try:
        return asyncio.run(_run())
    except ConflictError as exc:
        console.print(f"[yellow]Warning:[/yellow] {escape(exc.message)}")
        _print_details(exc)
        raise typer.Exit(1) from exc
    except AppException as exc:
        console.print(f"[red]Error:[/red] {escape(exc.message)}")
        _print_details(exc)
        raise typer.Exit(1) from exc


def _print_details(exc: AppException) -> None:
    for key, value in exc.details.items():
        console.print(f"  {key}: {escape(str(value))}")
