"""
Single query command.
"""

from __future__ import annotations

import json
from typing import Optional

import typer
from rich.console import Console

from perplexica_search.cli import state
from perplexica_search.core.api.base import ProviderConfigError
from perplexica_search.core.config.models import OptimizationMode
from perplexica_search.core.fetch.retries import search_with_retry

console = Console()
err_console = Console(stderr=True)


def query(
    ctx: typer.Context,
    text: str = typer.Argument(..., help="The search query"),
    mode: Optional[OptimizationMode] = typer.Option(
        None,
        "--mode",
        "-m",
        help="Optimisation mode (default: from config)",
    ),
    retries: Optional[int] = typer.Option(
        None,
        "--retries",
        "-r",
        min=0,
        help="Additional attempts on empty or failed answers",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log the query and each retry",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the result as JSON",
    ),
) -> None:
    """Ask Perplexica a single question.

    Examples:
        perplexica-search query "What is the current population of Tokyo?"
        perplexica-search query "Latest R release" --mode balanced -r 3
    """
    config = state.get_app_config(ctx)
    client = state.make_client(config)

    try:
        result = search_with_retry(
            client,
            text,
            max_retries=retries if retries is not None else config.batch.max_retries,
            mode=mode or config.client.mode,
            verbose=verbose,
        )
    except ProviderConfigError as e:
        err_console.print(f"[red]Provider configuration error:[/red] {e}")
        raise typer.Exit(1)

    if as_json:
        console.print_json(json.dumps({"message": result.message, "sources": result.sources}))
    elif result.ok:
        console.print(result.message, markup=False, highlight=False)
        if result.sources:
            console.print()
            console.print("[bold]Sources:[/bold]")
            for url in result.sources:
                console.print(f"  - {url}", markup=False)

    if not result.ok:
        err_console.print("[yellow]No answer returned after all attempts.[/yellow]")
        raise typer.Exit(2)
