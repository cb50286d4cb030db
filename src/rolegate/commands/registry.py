"""Commands: rolegate add-role / add-permission - Register names."""

import typer
from rich.console import Console
from rich.markup import escape

from rolegate.utils import DATABASE_URL_HELP


console = Console()


def add_role(
    name: str = typer.Argument(..., help="Role name, e.g. 'admin'"),
    database_url: str | None = typer.Option(
        None, "--database-url", "-d", help=DATABASE_URL_HELP
    ),
) -> None:
    """Register a new role."""
    from rolegate.utils import run_with_service

    role = run_with_service(lambda service: service.register_role(name), database_url)
    console.print(
        f"[green]✓[/green] Role [cyan]{escape(role.name)}[/cyan] (id {role.id})"
    )


def add_permission(
    name: str = typer.Argument(..., help="Permission name, e.g. 'products.get'"),
    database_url: str | None = typer.Option(
        None, "--database-url", "-d", help=DATABASE_URL_HELP
    ),
) -> None:
    """Register a new permission.

    Permissions checked with a module and method are named
    'module.method' in lowercase.
    """
    from rolegate.utils import run_with_service

    permission = run_with_service(
        lambda service: service.register_permission(name), database_url
    )
    console.print(
        f"[green]✓[/green] Permission [cyan]{escape(permission.name)}[/cyan] "
        f"(id {permission.id})"
    )
