"""
API key CLI commands.
"""
from typing import Optional
from uuid import UUID
import typer

from keygate.cli.helpers import console, keys_table, print_secret, run_in_session
from keygate.schemas.api_key import APIKeyCreate, APIKeyRotate
from keygate.services import APIKeyService

app = typer.Typer()


@app.command("list")
def list_keys(
    user_id: UUID = typer.Argument(..., help="Owner user ID"),
    active_only: bool = typer.Option(False, "--active", "-a", help="Only active keys"),
):
    """List a user's keys (prefix only, never the secret)."""
    keys = run_in_session(
        lambda db: APIKeyService(db).list_keys(user_id, active_only=active_only)
    )

    if not keys:
        console.print("[yellow]No API keys found.[/yellow]")
        return

    console.print(keys_table(keys))


@app.command("create")
def create_key(
    user_id: UUID = typer.Argument(..., help="Owner user ID"),
    name: str = typer.Argument(..., help="Human-readable key name"),
    permission: Optional[list[str]] = typer.Option(
        None, "--permission", "-p", help="read, write or admin (repeatable)"
    ),
    rate_limit: Optional[int] = typer.Option(None, "--rate-limit", "-r", help="Requests per minute"),
    expires_in: int = typer.Option(0, "--expires-in", "-e", help="Seconds until expiry (0 = never)"),
):
    """Create a key and print its secret once."""
    request = APIKeyCreate(
        name=name,
        permissions=permission or None,
        rate_limit=rate_limit,
        expires_in_seconds=expires_in,
    )
    key = run_in_session(lambda db: APIKeyService(db).create_key(user_id, request))
    print_secret(key)


@app.command("rotate")
def rotate_key(
    user_id: UUID = typer.Argument(..., help="Owner user ID"),
    key_id: UUID = typer.Argument(..., help="Key to rotate"),
    reason: Optional[str] = typer.Option(None, "--reason", help="Why the key is rotated"),
    keep_old: bool = typer.Option(False, "--keep-old", help="Leave the old key active"),
    expires_in: int = typer.Option(0, "--expires-in", "-e", help="Seconds until expiry (0 = inherit)"),
):
    """Rotate a key and print the new secret once."""
    request = APIKeyRotate(
        keep_old_active=keep_old,
        rotation_reason=reason,
        expires_in_seconds=expires_in,
    )
    key = run_in_session(lambda db: APIKeyService(db).rotate_key(user_id, key_id, request))
    print_secret(key)
    if not keep_old:
        console.print(f"[dim]Old key {key_id} deactivated.[/dim]")


@app.command("revoke")
def revoke_key(
    user_id: UUID = typer.Argument(..., help="Owner user ID"),
    key_id: UUID = typer.Argument(..., help="Key to revoke"),
):
    """Revoke a key (the row is kept for audit)."""
    run_in_session(lambda db: APIKeyService(db).delete_key(user_id, key_id))
    console.print(f"[green]Revoked key {key_id}[/green]")


@app.command("chain")
def show_chain(
    user_id: UUID = typer.Argument(..., help="Owner user ID"),
    key_id: UUID = typer.Argument(..., help="Any key in the chain"),
):
    """Show the rotation lineage of a key."""
    chain = run_in_session(lambda db: APIKeyService(db).get_rotation_chain(user_id, key_id))
    console.print(keys_table(chain, title="Rotation Chain"))
