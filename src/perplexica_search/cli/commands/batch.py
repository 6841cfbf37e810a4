"""
Batch commands for running query files with checkpoints.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table
from rich.text import Text

from perplexica_search.cli import state
from perplexica_search.core.api.base import ProviderConfigError
from perplexica_search.core.config.models import BatchConfig, OptimizationMode
from perplexica_search.core.orchestrator import BatchResult, BatchRunner, load_checkpoint

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="Run and inspect query batches",
    no_args_is_help=True,
)


def _read_queries(path: Path, column: str) -> list[str]:
    """Read queries from a CSV column or a one-per-line text file."""
    if path.suffix.lower() == ".csv":
        with open(path, "r", newline="", encoding="utf-8") as f:
            reader = csv.DictReader(f)
            if not reader.fieldnames or column not in reader.fieldnames:
                err_console.print(f"[red]Column not found in {path}:[/red] {column}")
                if reader.fieldnames:
                    err_console.print(f"[dim]Available: {', '.join(reader.fieldnames)}[/dim]")
                raise typer.Exit(1)
            return [row[column].strip() for row in reader if (row.get(column) or "").strip()]

    lines = path.read_text(encoding="utf-8").splitlines()
    return [line.strip() for line in lines if line.strip()]


def _write_results(result: BatchResult, output: Path) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)
    with open(output, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["query", "message"])
        for row in result:
            writer.writerow([row.query, row.message])


def _show_summary(result: BatchResult) -> None:
    stats = result.stats
    table = Table(title="Batch Summary", show_header=True, header_style="bold magenta")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Queries", str(stats.total))
    table.add_row("Executed", str(stats.executed))
    table.add_row("Reused from checkpoint", str(stats.reused))
    table.add_row(
        "Empty answers",
        f"[yellow]{stats.empty_answers}[/yellow]" if stats.empty_answers else "0",
    )
    table.add_row("Checkpoints written", str(stats.checkpoints_written))
    if stats.missing:
        table.add_row("Missing rows", f"[red]{stats.missing}[/red]")
    if stats.duration_seconds is not None:
        table.add_row("Duration", f"{stats.duration_seconds:.1f}s")

    console.print(table)


@app.command("run")
def run_batch_command(
    ctx: typer.Context,
    input_file: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        help="Queries file (.txt one per line, or .csv)",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write results (query,message) to this CSV",
    ),
    column: str = typer.Option(
        "query",
        "--column",
        help="CSV column holding the queries",
    ),
    checkpoint_file: Optional[Path] = typer.Option(
        None,
        "--checkpoint-file",
        "-k",
        help="Checkpoint CSV path",
    ),
    checkpoint_every: Optional[int] = typer.Option(
        None,
        "--checkpoint-every",
        min=0,
        help="Checkpoint every N queries (0 disables)",
    ),
    resume_from: Optional[int] = typer.Option(
        None,
        "--resume-from",
        min=1,
        help="1-based row to resume from; earlier rows come from the checkpoint",
    ),
    delay: Optional[float] = typer.Option(
        None,
        "--delay",
        min=0,
        help="Seconds to sleep between queries",
    ),
    retries: Optional[int] = typer.Option(
        None,
        "--retries",
        "-r",
        min=0,
        help="Additional attempts per query",
    ),
    mode: Optional[OptimizationMode] = typer.Option(
        None,
        "--mode",
        "-m",
        help="Optimisation mode (default: batch.mode from config)",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log each query and retry",
    ),
) -> None:
    """Run every query in a file through Perplexica.

    Examples:
        perplexica-search batch run queries.txt -o answers.csv -k checkpoint.csv
        perplexica-search batch run queries.csv -k checkpoint.csv --resume-from 120
    """
    config = state.get_app_config(ctx)

    overrides: dict[str, Any] = {}
    if checkpoint_file is not None:
        overrides["checkpoint_file"] = checkpoint_file
    if checkpoint_every is not None:
        overrides["checkpoint_every"] = checkpoint_every or None
    if resume_from is not None:
        overrides["resume_from"] = resume_from
    if delay is not None:
        overrides["delay"] = delay
    if retries is not None:
        overrides["max_retries"] = retries
    if verbose:
        overrides["verbose"] = True
    if mode is not None:
        overrides["mode"] = mode

    try:
        batch_config = BatchConfig.model_validate({**config.batch.model_dump(), **overrides})
    except ValidationError as e:
        err_console.print(f"[red]Invalid batch options:[/red] {e}")
        raise typer.Exit(1)

    queries = _read_queries(input_file, column)
    if not queries:
        err_console.print(f"[yellow]No queries found in {input_file}[/yellow]")
        raise typer.Exit(1)

    console.print(f"[bold]Running {len(queries)} queries against[/bold] {config.client.base_url}")
    console.print()

    runner = BatchRunner(state.make_client(config), batch_config)
    try:
        result = runner.run(queries)
    except ProviderConfigError as e:
        err_console.print(f"[red]Provider configuration error:[/red] {e}")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        err_console.print("[yellow]Interrupted.[/yellow]")
        if batch_config.checkpoint_file:
            err_console.print(
                f"[dim]Completed rows up to the last checkpoint are in "
                f"{batch_config.checkpoint_file}; rerun with --resume-from.[/dim]"
            )
        raise typer.Exit(130)

    if output:
        _write_results(result, output)
        console.print(f"[green]Wrote {len(result)} rows to[/green] {output}")

    console.print()
    _show_summary(result)


@app.command("inspect")
def inspect_checkpoint(
    checkpoint: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        help="Checkpoint CSV to show",
    ),
    limit: int = typer.Option(
        20,
        "--limit",
        "-n",
        min=1,
        help="Maximum rows to show",
    ),
) -> None:
    """Show the rows saved in a checkpoint file."""
    rows = load_checkpoint(checkpoint)

    if not rows:
        console.print("[dim]Checkpoint is empty.[/dim]")
        return

    table = Table(
        title=f"{checkpoint} ({len(rows)} rows)",
        show_header=True,
        header_style="bold magenta",
    )
    table.add_column("#", justify="right", style="dim")
    table.add_column("Query", style="cyan", max_width=50)
    table.add_column("Answer", max_width=70)

    for i, row in enumerate(rows[:limit], start=1):
        answer = Text(row.message) if row.message else Text("(empty)", style="yellow")
        table.add_row(str(i), Text(row.query), answer)

    console.print(table)

    empty = sum(1 for r in rows if not r.message)
    repeated = len(rows) - len({r.query for r in rows})
    if repeated:
        # Resume matches rows by position; repeats suggest the rows are shifted
        console.print(
            f"[yellow]{repeated} queries appear more than once; check the rows line up "
            "with the input file before resuming.[/yellow]"
        )
    console.print(
        f"[dim]Next resume row: {len(rows) + 1}"
        + (f" - {empty} empty answers" if empty else "")
        + "[/dim]"
    )
