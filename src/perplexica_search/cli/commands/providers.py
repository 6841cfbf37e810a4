"""
Provider commands.

Inspect the providers and models configured in Perplexica, and check
that the API is reachable.
"""

from __future__ import annotations

import json

import typer
from rich.console import Console
from rich.table import Table

from perplexica_search.cli import state
from perplexica_search.core.api.base import FetchError, ProviderConfigError
from perplexica_search.core.api.client import default_models

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="Inspect Perplexica providers",
    no_args_is_help=True,
)


@app.command("list")
def list_providers(
    ctx: typer.Context,
    format: str = typer.Option(
        "table",
        "--format",
        "-f",
        help="Output format (table, json)",
    ),
) -> None:
    """List configured providers and their models."""
    config = state.get_app_config(ctx)
    client = state.make_client(config)

    try:
        providers = client.providers()
    except FetchError as e:
        err_console.print(f"[red]Cannot reach Perplexica at {client.base_url}:[/red] {e}")
        raise typer.Exit(1)

    if format == "json":
        data = [p.model_dump(by_alias=True) for p in providers]
        console.print_json(json.dumps(data))
        return

    if not providers:
        console.print("[dim]No providers configured.[/dim]")
        console.print(f"Open [yellow]{client.base_url}[/yellow] and complete the setup wizard.")
        return

    table = Table(title="Providers", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Chat models")
    table.add_column("Embedding models")

    for provider in providers:
        table.add_row(
            provider.id,
            provider.name or "",
            ", ".join(m.key for m in provider.chat_models) or "[dim]-[/dim]",
            ", ".join(m.key for m in provider.embedding_models) or "[dim]-[/dim]",
        )

    console.print(table)


@app.command("status")
def status(ctx: typer.Context) -> None:
    """Check whether the Perplexica API is reachable."""
    config = state.get_app_config(ctx)
    client = state.make_client(config)

    if client.status():
        console.print(f"[green]OK[/green] Perplexica is reachable at {client.base_url}")
    else:
        err_console.print(f"[red]x[/red] Perplexica is not reachable at {client.base_url}")
        raise typer.Exit(1)


@app.command("models")
def models(ctx: typer.Context) -> None:
    """Show the chat and embedding models searches will use."""
    config = state.get_app_config(ctx)
    client = state.make_client(config)

    try:
        selection = default_models(client.providers(), setup_url=client.base_url)
    except FetchError as e:
        err_console.print(f"[red]Cannot reach Perplexica at {client.base_url}:[/red] {e}")
        raise typer.Exit(1)
    except ProviderConfigError as e:
        err_console.print(f"[red]Provider configuration error:[/red] {e}")
        raise typer.Exit(1)

    console.print(f"Provider:        [cyan]{selection.chat_model.provider_id}[/cyan]")
    console.print(f"Chat model:      [cyan]{selection.chat_model.key}[/cyan]")
    console.print(f"Embedding model: [cyan]{selection.embedding_model.key}[/cyan]")
