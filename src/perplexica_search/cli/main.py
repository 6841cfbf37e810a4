"""
perplexica-search CLI - Main entry point.

Single queries, resumable batches and provider inspection against a
self-hosted Perplexica instance.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.traceback import install as install_rich_traceback

from perplexica_search import __app_name__, __version__
from perplexica_search.core.config import (
    AppConfig,
    ClientConfig,
    ConfigError,
    LoggingConfig,
    load_app_config,
)
from perplexica_search.core.config.loader import DEFAULT_CONFIG_PATH
from perplexica_search.core.logging import setup_logging

# Load environment variables (PERPLEXICA_URL) from .env if present
load_dotenv()

install_rich_traceback(show_locals=False, width=120)

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name=__app_name__,
    help="Resilient batch client for the Perplexica search API",
    rich_markup_mode="rich",
    no_args_is_help=True,
    pretty_exceptions_show_locals=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold cyan]{__app_name__}[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help=f"Configuration file (default: ./{DEFAULT_CONFIG_PATH})",
    ),
    url: Optional[str] = typer.Option(
        None,
        "--url",
        "-u",
        help="Perplexica base URL (overrides config and PERPLEXICA_URL)",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Log level (DEBUG, INFO, WARNING, ERROR)",
    ),
) -> None:
    """perplexica-search - Source-backed answers from Perplexica."""
    if config_path is not None and not config_path.exists():
        err_console.print(f"[red]Configuration file not found:[/red] {config_path}")
        raise typer.Exit(1)

    try:
        config = load_app_config(config_path)
        if url:
            config.client = ClientConfig.model_validate(
                {**config.client.model_dump(), "base_url": url}
            )
        if log_level:
            config.logging = LoggingConfig.model_validate(
                {**config.logging.model_dump(), "level": log_level}
            )
    except ConfigError as e:
        err_console.print(f"[red]{e}[/red]")
        if e.details:
            err_console.print(f"[dim]{e.details}[/dim]")
        raise typer.Exit(1)
    except ValueError as e:
        err_console.print(f"[red]Invalid option:[/red] {e}")
        raise typer.Exit(1)

    setup_logging(
        level=config.logging.level,
        log_file=config.logging.file,
        json_format=config.logging.json_format,
        rich_console=config.logging.rich_console,
    )
    ctx.obj = config


# =============================================================================
# Import and register subcommand modules
# =============================================================================

from .commands import batch, providers, search  # noqa: E402

app.command("query")(search.query)
app.add_typer(batch.app, name="batch", help="Run and inspect query batches")
app.add_typer(providers.app, name="providers", help="Inspect Perplexica providers")


# =============================================================================
# Init Command
# =============================================================================


@app.command()
def init(
    path: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--path",
        "-p",
        help="Where to write the configuration file",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite existing configuration",
    ),
) -> None:
    """Write a default configuration file."""
    if path.exists() and not force:
        err_console.print(f"[yellow]{path} already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)

    _create_default_config(path)

    console.print()
    console.print(Panel.fit(
        f"[bold green]OK - wrote {path}[/bold green]\n\n"
        "Next steps:\n"
        "  1. Check the API: [yellow]perplexica-search providers status[/yellow]\n"
        "  2. Ask something: [yellow]perplexica-search query \"...\"[/yellow]\n"
        "  3. Run a batch:   [yellow]perplexica-search batch run queries.txt -o out.csv[/yellow]",
        title="[bold]Initialization Complete[/bold]",
        border_style="green",
    ))


def _create_default_config(path: Path) -> None:
    """Create the default YAML configuration."""
    defaults = AppConfig()
    default_config = f"""\
# perplexica-search configuration
# PERPLEXICA_URL in the environment overrides client.base_url

client:
  base_url: ${{PERPLEXICA_URL:-{defaults.client.base_url}}}
  timeout_seconds: {defaults.client.timeout_seconds:g}
  mode: {defaults.client.mode.value}

batch:
  delay: {defaults.batch.delay:g}
  checkpoint_every: {defaults.batch.checkpoint_every}
  checkpoint_file: null
  max_retries: {defaults.batch.max_retries}
  mode: {defaults.batch.mode.value}
  verbose: false

logging:
  level: INFO
  file: null
  json_format: true
  rich_console: true
"""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(default_config, encoding="utf-8")


# =============================================================================
# Entry Point
# =============================================================================


def run() -> None:
    """Run the CLI application."""
    app()


if __name__ == "__main__":
    run()
