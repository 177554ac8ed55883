"""CLI entry point for prism.

Commands:
  analyze  — review a source file and store the result
  history  — display past reviews for a session
  clear    — delete a session's review history
  models   — list the models the configured provider offers
  serve    — run the HTTP API and MCP endpoints
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from prism_cli.commands.analyze import analyze_cmd
from prism_cli.commands.clear import clear_cmd
from prism_cli.commands.history import history_cmd
from prism_cli.commands.models import models_cmd
from prism_cli.commands.serve import serve_cmd
from prism_cli.runtime import Runtime

console = Console()


def setup_logging(log_level: str = "INFO") -> None:
    """Route library logging through rich on stderr."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
        force=True,
    )
    # SDK request logs are noisy at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("anthropic").setLevel(logging.WARNING)


@click.group()
@click.version_option(
    version=importlib.metadata.version("prism-review"),
    prog_name="prism",
)
@click.option(
    "--config",
    "config_path",
    default=".prism.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="PRISM_CONFIG",
)
@click.option(
    "--provider",
    type=click.Choice(["openai", "anthropic"]),
    default=None,
    help="Analysis provider (overrides config).",
)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, provider: str | None, verbose: bool):
    """AI-powered code review with an MCP interface."""
    from prism_core.config import load_config
    from prism_core.errors import ConfigError
    from prism_store.base import StorageError

    ctx.ensure_object(dict)

    try:
        config = load_config(config_path, cli_overrides={"provider": provider})
    except ConfigError as e:
        raise click.UsageError(str(e))

    setup_logging("DEBUG" if verbose else config["log_level"])

    try:
        runtime = Runtime.from_config(config)
    except (ConfigError, StorageError, ValueError) as e:
        raise click.ClickException(str(e))

    ctx.obj["config"] = config
    ctx.obj["runtime"] = runtime
    ctx.call_on_close(runtime.close)


main.add_command(analyze_cmd)
main.add_command(history_cmd)
main.add_command(clear_cmd)
main.add_command(models_cmd)
main.add_command(serve_cmd)
