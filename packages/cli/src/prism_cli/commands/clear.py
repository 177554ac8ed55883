"""clear command — delete a session's review history."""

from __future__ import annotations

import click
from rich.console import Console

from prism_store.base import StorageError

console = Console()


@click.command("clear")
@click.option("--session", "session_id", required=True, help="Session whose reviews are deleted.")
@click.option("--yes", "-y", is_flag=True, help="Skip the confirmation prompt.")
@click.pass_context
def clear_cmd(ctx, session_id: str, yes: bool):
    """Delete every review recorded under a session."""
    if not yes:
        click.confirm(f"Delete all reviews for session '{session_id}'?", abort=True)

    try:
        deleted = ctx.obj["runtime"].orchestrator.clear_history(session_id)
    except StorageError as e:
        raise click.ClickException(f"Could not clear history: {e}")

    console.print(f"[green]Deleted {deleted} review(s).[/green]")
