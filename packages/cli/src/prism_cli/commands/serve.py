"""serve command — run the HTTP API and MCP endpoints."""

from __future__ import annotations

import click
import uvicorn
from rich.console import Console

console = Console()


@click.command("serve")
@click.option("--host", default="127.0.0.1", show_default=True, help="Interface to bind.")
@click.option("--port", default=8000, show_default=True, type=int, help="Port to listen on.")
@click.pass_context
def serve_cmd(ctx, host: str, port: int):
    """Serve /api/v1/review and /api/v1/mcp over HTTP."""
    from prism_cli.server.app import create_app

    runtime = ctx.obj["runtime"]
    app = create_app(runtime)

    console.print(f"[bold]prism[/bold] listening on http://{host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level=runtime.config["log_level"].lower())
