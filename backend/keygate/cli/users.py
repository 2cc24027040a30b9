"""
User CLI commands.
"""
from typing import Optional
import typer

from keygate.cli.helpers import console, run_in_session
from keygate.services import UserService

app = typer.Typer()


@app.command("create")
def create_user(
    username: str = typer.Argument(..., help="Unique username"),
    email: Optional[str] = typer.Option(None, "--email", help="Contact email"),
):
    """Create a key owner."""
    user = run_in_session(lambda db: UserService(db).create_user(username, email))
    console.print(f"[green]Created user {user.username}[/green] ({user.id})")
