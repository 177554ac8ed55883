"""models command — list the models the configured provider offers."""

from __future__ import annotations

import click
from rich.console import Console

console = Console()


@click.command("models")
@click.pass_context
def models_cmd(ctx):
    """List model ids usable with `prism analyze --model`."""
    runtime = ctx.obj["runtime"]
    console.print(f"[bold]Provider:[/bold] {type(runtime.provider).__name__}")
    for model_id in runtime.orchestrator.get_models():
        console.print(f"  {model_id}")
