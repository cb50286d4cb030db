"""Commands: rolegate check / permissions - Inspect access."""

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from rolegate.utils import DATABASE_URL_HELP


console = Console()


def check(
    user_id: int = typer.Argument(..., help="Account ID"),
    expression: str = typer.Argument(
        ..., help="Access expression, e.g. 'role:admin|permission:read'"
    ),
    module: str | None = typer.Option(None, "--module", "-m", help="Resource module"),
    method: str | None = typer.Option(None, "--method", help="HTTP method"),
    database_url: str | None = typer.Option(
        None, "--database-url", "-d", help=DATABASE_URL_HELP
    ),
) -> None:
    """Check whether a user satisfies an access expression.

    Exits with 0 when access is granted and 1 when it is denied.
    """
    from rolegate.utils import run_with_service

    granted = run_with_service(
        lambda service: service.check_access(user_id, expression, module, method),
        database_url,
    )

    if not granted:
        console.print(
            f"[red]✗ denied[/red] user {user_id}: {escape(expression)}"
        )
        raise typer.Exit(1)
    console.print(
        f"[green]✓ granted[/green] user {user_id}: {escape(expression)}"
    )


def permissions(
    user_id: int = typer.Argument(..., help="Account ID"),
    database_url: str | None = typer.Option(
        None, "--database-url", "-d", help=DATABASE_URL_HELP
    ),
) -> None:
    """List every permission a user holds, directly or through roles."""
    from rolegate.utils import run_with_service

    names = run_with_service(
        lambda service: service.list_user_permissions(user_id), database_url
    )

    if not names:
        console.print(f"[yellow]User {user_id} has no permissions.[/yellow]")
        return

    table = Table(title=f"Permissions of user {user_id}", show_header=True)
    table.add_column("Permission", style="cyan", no_wrap=True)
    for name in sorted(names):
        table.add_row(escape(name))

    console.print()
    console.print(table)
    console.print()
