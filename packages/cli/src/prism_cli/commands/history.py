"""history command — display past reviews for a session."""

from __future__ import annotations

import json

import click
from rich.console import Console
from rich.table import Table

from prism_store.base import StorageError

console = Console()


@click.command("history")
@click.option("--session", "session_id", default=None, help="Session id. Omit to show reviews from every session.")
@click.option("--limit", type=click.IntRange(min=1), default=None, help="Maximum number of reviews to show.")
@click.option("--json", "as_json", is_flag=True, help="Print the history as JSON.")
@click.pass_context
def history_cmd(ctx, session_id: str | None, limit: int | None, as_json: bool):
    """Show past reviews, newest first."""
    orchestrator = ctx.obj["runtime"].orchestrator

    try:
        entries = orchestrator.get_history(session_id, limit=limit)
    except StorageError as e:
        raise click.ClickException(f"Could not read history: {e}")

    if as_json:
        click.echo(json.dumps([e.to_dict() for e in entries], indent=2))
        return

    if not entries:
        console.print("[yellow]No reviews found.[/yellow]")
        return

    title = f"Review History — {session_id}" if session_id else "Review History"
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("ID", width=8)
    table.add_column("Session", max_width=16)
    table.add_column("Language", width=12)
    table.add_column("Focus", width=12)
    table.add_column("Score", justify="right", width=6)
    table.add_column("Summary", max_width=50)
    table.add_column("Reviewed At", width=20)

    for entry in entries:
        table.add_row(
            entry.id[:8],
            entry.session_id or "",
            entry.language,
            entry.focus,
            str(entry.score),
            entry.summary,
            entry.created_at.isoformat()[:19].replace("T", " "),
        )

    console.print(table)
