"""analyze command — review a source file and store the result."""

from __future__ import annotations

import json

import click
from rich.console import Console
from rich.table import Table

from prism_core.errors import ValidationError
from prism_core.models import AnalysisRequest, Focus
from prism_store.base import StorageError

console = Console()

_SEVERITY_STYLE = {
    "critical": "red",
    "warning": "yellow",
    "info": "cyan",
}


def _score_style(score: int) -> str:
    if score >= 80:
        return "green"
    if score >= 50:
        return "yellow"
    return "red"


@click.command("analyze")
@click.argument("source", type=click.File("r"))
@click.option("--focus", type=click.Choice(Focus.values()), required=True, help="Analysis focus area.")
@click.option("--language", default=None, help="Programming language. Detected by the model when omitted.")
@click.option("--model", default=None, help="Model id to use for this review (see `prism models`).")
@click.option("--session", "session_id", default=None, help="Session to record the review under.")
@click.option("--json", "as_json", is_flag=True, help="Print the raw JSON response.")
@click.pass_context
def analyze_cmd(ctx, source, focus: str, language: str | None, model: str | None, session_id: str | None, as_json: bool):
    """Review SOURCE (a file path, or - for stdin) and save it to history."""
    orchestrator = ctx.obj["runtime"].orchestrator

    try:
        request = AnalysisRequest(code=source.read(), focus=focus, language=language, model=model)
    except ValidationError as e:
        raise click.UsageError(str(e))

    try:
        response = orchestrator.analyze(request, session_id)
    except StorageError as e:
        raise click.ClickException(f"Review could not be saved: {e}")

    if as_json:
        click.echo(json.dumps(response.to_dict(), indent=2))
        return

    result = response.result
    style = _score_style(result.score)
    console.print(f"\n[bold]Review[/bold] {response.review_id}")
    console.print(f"  Score:   [{style}]{result.score}/100[/{style}]")
    if result.detected_language:
        console.print(f"  Language: {result.detected_language}")
    console.print(f"  Summary: {result.summary}\n")

    if not result.issues:
        console.print("[green]No issues found.[/green]")
        return

    table = Table(title="Issues", show_header=True, header_style="bold cyan")
    table.add_column("Line", justify="right", width=6)
    table.add_column("Severity", width=10)
    table.add_column("Message")
    table.add_column("Suggestion")

    for issue in result.issues:
        sev = issue.severity.value
        sev_style = _SEVERITY_STYLE.get(sev, "white")
        table.add_row(str(issue.line), f"[{sev_style}]{sev}[/{sev_style}]", issue.message, issue.suggestion or "")

    console.print(table)
