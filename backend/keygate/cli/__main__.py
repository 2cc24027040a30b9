"""
Main CLI entry point.

Run with: python -m keygate.cli
"""
import typer
from rich.console import Console

from keygate import __version__
from keygate.cli.keys import app as keys_app
from keygate.cli.users import app as users_app

console = Console()

app = typer.Typer(
    name="keygate",
    help="keygate CLI - Issue, rotate and revoke API keys",
    add_completion=False,
)

app.add_typer(keys_app, name="keys", help="API key commands")
app.add_typer(users_app, name="users", help="User commands")


@app.command()
def version():
    """Show version information."""
    console.print(f"[bold green]keygate CLI[/bold green] v{__version__}")


if __name__ == "__main__":
    app()
