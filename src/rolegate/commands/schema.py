"""Command: rolegate init-db - Create the access-control tables."""

import typer
from rich.console import Console

from rolegate.utils import DATABASE_URL_HELP


console = Console()


def init_db(
    database_url: str | None = typer.Option(
        None, "--database-url", "-d", help=DATABASE_URL_HELP
    ),
) -> None:
    """Create the role, permission and assignment tables.

    Existing tables are left untouched. The account table belongs to
    the host application and is never created.
    """
    from rolegate.utils import run_with_service

    run_with_service(lambda service: service.repo.create_schema(), database_url)
    console.print("[green]Access-control tables are ready.[/green]")
