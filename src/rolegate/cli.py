"""Main rolegate CLI application."""

import typer
from rich.console import Console

from rolegate import __version__
from rolegate.commands import grants, query, registry, schema


console = Console()

app = typer.Typer(
    name="rolegate",
    help="Manage roles, permissions and access checks.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Register commands
app.command(name="init-db")(schema.init_db)
app.command(name="add-role")(registry.add_role)
app.command(name="add-permission")(registry.add_permission)
app.command(name="grant")(grants.grant)
app.command(name="assign")(grants.assign)
app.command(name="grant-user")(grants.grant_user)
app.command(name="check")(query.check)
app.command(name="permissions")(query.permissions)


@app.callback(invoke_without_command=True)
def version_callback(
    version: bool = typer.Option(
        False, "--version", "-v", help="Show version and exit."
    ),
) -> None:
    """rolegate CLI - Manage roles, permissions and access checks."""
    if version:
        console.print(f"[bold cyan]rolegate[/bold cyan] version {__version__}")
        raise typer.Exit()


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
