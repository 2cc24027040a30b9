"""
CLI helper functions and utilities.
"""
import asyncio
from datetime import datetime
from typing import Awaitable, Callable, Optional, TypeVar
import typer
from rich.console import Console
from rich.table import Table
from sqlalchemy.ext.asyncio import AsyncSession

from keygate.database import AsyncSessionLocal
from keygate.errors import KeyServiceError, PartialRotationError
from keygate.schemas.api_key import APIKeyResponse, APIKeySecretResponse
from keygate.services.secrets import mask_secret

console = Console()

T = TypeVar("T")


def run_in_session(func: Callable[[AsyncSession], Awaitable[T]]) -> T:
    """
    Run ``func`` with a fresh database session and turn domain errors into a
    red message and exit code 1.
    """

    async def _run():
        async with AsyncSessionLocal() as db:
            return await func(db)

    try:
        return asyncio.run(_run())
    except PartialRotationError as e:
        console.print(f"[bold red]Rotation incomplete:[/bold red] {e.message}")
        console.print(f"  Old key {e.old_key_id} is inactive and has no replacement.")
        raise typer.Exit(code=2)
    except KeyServiceError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(code=1)


def format_datetime(dt: Optional[datetime]) -> str:
    """Format datetime for display."""
    if not dt:
        return "-"
    return dt.strftime("%Y-%m-%d %H:%M")


def key_status(key: APIKeyResponse) -> str:
    if not key.is_active:
        return "[red]revoked[/red]"
    if key.is_expired:
        return "[yellow]expired[/yellow]"
    return "[green]active[/green]"


def keys_table(keys: list[APIKeyResponse], title: str = "API Keys") -> Table:
    table = Table(title=title)
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Prefix")
    table.add_column("Version", justify="right")
    table.add_column("Permissions")
    table.add_column("Status")
    table.add_column("Expires", style="dim")
    table.add_column("Created", style="dim")

    for key in keys:
        table.add_row(
            str(key.id),
            key.name,
            mask_secret(key.prefix),
            str(key.version),
            ",".join(key.permissions),
            key_status(key),
            format_datetime(key.expires_at),
            format_datetime(key.created_at),
        )

    return table


def print_secret(key: APIKeySecretResponse) -> None:
    """Show a newly generated secret. This is the only time it is printed."""
    console.print(f"\n[bold green]Key:[/bold green] {key.api_key}")
    console.print("[yellow]Store it now - it will not be shown again.[/yellow]")
    console.print(f"  ID: {key.id}")
    console.print(f"  Version: {key.version}")
    console.print(f"  Permissions: {', '.join(key.permissions)}")
    console.print(f"  Expires: {format_datetime(key.expires_at)}")
