"""
speakeval.cli - Typer CLI entry point.

Provides the batch evaluation command and its helpers.
"""

from __future__ import annotations

import time
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from speakeval import __version__
from speakeval.config import CONFIG_FILENAME, create_default_config, load_config, write_config
from speakeval.exceptions import ConfigError, SpeakevalError, StoreError
from speakeval.logging import configure_logging, logger
from speakeval.utils import format_duration, score_style

app = typer.Typer(
    name="speakeval",
    help="Batch evaluation of recorded spoken answers.\n\n"
    "Downloads each response video of a test session, transcribes it, and "
    "scores the transcript on the CEFR scale with an LLM.",
    add_completion=False,
)
console = Console()


def version_callback(value: bool) -> None:
    if value:
        console.print(f"speakeval {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """Speakeval - batch evaluation of recorded spoken answers."""
    pass


def _load_config_or_exit(config_path: str | None, **overrides):
    try:
        return load_config(Path(config_path) if config_path else None, overrides)
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


@app.command("init")
def init_config(
    database_url: str | None = typer.Option(
        None, "--database-url", help="SQLAlchemy database URL to store in the config"
    ),
    path: str = typer.Option(".", "--path", "-d", help="Directory to write speakeval.yaml in"),
    create_schema: bool = typer.Option(
        False, "--create-schema", help="Create the responses/questions tables if missing"
    ),
) -> None:
    """Write a default speakeval.yaml."""
    config_path = Path(path) / CONFIG_FILENAME

    if config_path.exists():
        console.print(f"[red]Error: '{config_path}' already exists[/red]")
        raise typer.Exit(1)

    config = create_default_config(database_url)
    write_config(config, config_path)
    console.print(f"[green]✓[/green] Wrote {config_path}")

    if create_schema:
        from speakeval.store import open_store

        try:
            with open_store(config["database_url"], create_schema=True):
                pass
        except StoreError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(1)
        console.print(f"[green]✓[/green] Schema ready at {config['database_url']}")


@app.command("evaluate")
def evaluate_test(
    candidate_test_id: str | None = typer.Argument(None, help="Test session to evaluate"),
    config_path: str | None = typer.Option(None, "--config", "-c", help="Path to speakeval.yaml"),
    database_url: str | None = typer.Option(None, "--database-url", help="Override database URL"),
    work_dir: str | None = typer.Option(None, "--work-dir", help="Directory for temporary media"),
    skip_processed: bool = typer.Option(
        False, "--skip-processed", help="Leave already evaluated responses untouched"
    ),
    report: str | None = typer.Option(None, "--report", "-o", help="Write a JSON batch report"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
) -> None:
    """Evaluate every video response of a test session.

    Per-response failures are reported and skipped; the command only fails
    when the batch itself cannot be run.
    """
    if not candidate_test_id:
        console.print("Usage: speakeval evaluate <candidate_test_id>")
        raise typer.Exit(1)

    configure_logging(verbose)

    config = _load_config_or_exit(
        config_path,
        database_url=database_url,
        work_dir=work_dir,
    )

    try:
        Path(config.work_dir).mkdir(parents=True, exist_ok=True)
    except OSError as e:
        console.print(f"[red]Error: work directory {config.work_dir} is not usable: {e}[/red]")
        raise typer.Exit(1)

    from speakeval.llm.evaluator import create_evaluator_from_config
    from speakeval.pipeline import run_batch
    from speakeval.store import open_store
    from speakeval.transcribe.engine import create_transcriber_from_config

    try:
        transcriber = create_transcriber_from_config(config)
        evaluator = create_evaluator_from_config(config)
    except SpeakevalError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[cyan]Evaluating responses for test {candidate_test_id}...[/cyan]\n")
    started = time.monotonic()

    try:
        with open_store(config.database_url) as store:
            batch = run_batch(
                candidate_test_id,
                store=store,
                transcriber=transcriber,
                evaluator=evaluator,
                config=config,
                skip_processed=skip_processed,
                console=console,
            )
    except StoreError as e:
        logger.error("Batch aborted: %s", e)
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if report:
        from speakeval.io import write_json

        write_json(Path(report), batch.model_dump(mode="json"))
        console.print(f"[dim]  Report written to {report}[/dim]")

    summary = batch.summary()
    console.print(
        f"\n[green]✓[/green] Batch evaluation complete: evaluated {summary['evaluated']}, "
        f"skipped {summary['skipped']}, failed {summary['failed']} "
        f"({format_duration(time.monotonic() - started)})"
    )


@app.command("status")
def show_status(
    candidate_test_id: str = typer.Argument(..., help="Test session to inspect"),
    config_path: str | None = typer.Option(None, "--config", "-c", help="Path to speakeval.yaml"),
    database_url: str | None = typer.Option(None, "--database-url", help="Override database URL"),
) -> None:
    """Show evaluation results for a test session."""
    config = _load_config_or_exit(config_path, database_url=database_url)

    from speakeval.store import open_store

    try:
        with open_store(config.database_url) as store:
            records = store.fetch_responses(candidate_test_id)
    except StoreError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if not records:
        console.print(f"[yellow]No responses found for test {candidate_test_id}.[/yellow]")
        raise typer.Exit(0)

    table = Table(title=f"Responses: {candidate_test_id}")
    table.add_column("Response", style="cyan")
    table.add_column("Video", style="dim")
    table.add_column("Score")
    table.add_column("Level", style="green")
    table.add_column("Status", style="yellow")

    for record in records:
        if record.is_processed:
            style = score_style(record.ai_score)
            score = f"[{style}]{record.ai_score:.0f}[/{style}]"
            status = "[green]Evaluated[/green]"
        elif not record.video_url:
            score = "-"
            status = "[dim]No video[/dim]"
        else:
            score = "-"
            status = "Pending"
        table.add_row(
            record.id,
            record.video_url or "-",
            score,
            record.cefr_level.value if record.cefr_level else "-",
            status,
        )

    console.print(table)

    processed = sum(1 for r in records if r.is_processed)
    console.print(f"\n{processed}/{len(records)} response(s) evaluated")
