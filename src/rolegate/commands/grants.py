"""Commands: rolegate grant / assign / grant-user - Link names together."""

import typer
from rich.console import Console
from rich.markup import escape

from rolegate.utils import DATABASE_URL_HELP


console = Console()


def grant(
    role: str = typer.Argument(..., help="Role receiving the permissions"),
    permissions: list[str] = typer.Argument(..., help="Permission names"),
    database_url: str | None = typer.Option(
        None, "--database-url", "-d", help=DATABASE_URL_HELP
    ),
) -> None:
    """Grant permissions to a role.

    Either every permission is linked or none is.
    """
    from rolegate.utils import run_with_service

    run_with_service(
        lambda service: service.assign_permissions_to_role(role, permissions),
        database_url,
    )
    granted = escape(", ".join(permissions))
    console.print(
        f"[green]✓[/green] Granted {granted} to role [cyan]{escape(role)}[/cyan]"
    )


def assign(
    user_id: int = typer.Argument(..., help="Account ID"),
    role: str = typer.Argument(..., help="Role name"),
    database_url: str | None = typer.Option(
        None, "--database-url", "-d", help=DATABASE_URL_HELP
    ),
) -> None:
    """Assign a role to a user."""
    from rolegate.utils import run_with_service

    run_with_service(
        lambda service: service.assign_user_to_role(user_id, role), database_url
    )
    console.print(
        f"[green]✓[/green] User {user_id} now has role [cyan]{escape(role)}[/cyan]"
    )


def grant_user(
    user_id: int = typer.Argument(..., help="Account ID"),
    permissions: list[str] = typer.Argument(..., help="Permission names"),
    database_url: str | None = typer.Option(
        None, "--database-url", "-d", help=DATABASE_URL_HELP
    ),
) -> None:
    """Grant permissions directly to a user, independent of roles."""
    from rolegate.utils import run_with_service

    run_with_service(
        lambda service: service.assign_permissions_to_user(user_id, permissions),
        database_url,
    )
    granted = escape(", ".join(permissions))
    console.print(f"[green]✓[/green] Granted {granted} to user {user_id}")
