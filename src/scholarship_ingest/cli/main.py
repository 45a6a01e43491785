"""
CLI Main - Typer command-line interface.
========================================

Commands:
- scrape: Scrape and normalize one scholarship page
- batch: Scrape and normalize many pages
- deadline: Resolve a free-text deadline
- dedup: Deduplicate a JSON file of records
- validate: Validate a JSON file of records
- funding: Classify records as fully funded
- info: Show configuration

Results are printed to stdout as JSON; status output goes to stderr.
"""

import json
from pathlib import Path
from typing import Any, Optional

import typer
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from scholarship_ingest.shared.logging import get_console, get_logger, setup_logging_from_settings

logger = get_logger(__name__)

app = typer.Typer(
    name="scholarship-ingest",
    help="""🎓 Scholarship Ingest - normalize and deduplicate scholarship records

Fetches scholarship pages, extracts a strict record from each (AI-assisted
when GEMINI_API_KEY is set, rule-based otherwise) and collapses
near-duplicate records from different sources.

━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

QUICK START:

  scholarship-ingest scrape https://example.org/award
  scholarship-ingest batch -f urls.txt -c 3 > records.json
  scholarship-ingest dedup records.json --method rules
  scholarship-ingest deadline "Applications close March 1, 2027"

Use 'scholarship-ingest <command> --help' for detailed command options.
""",
    add_completion=False,
    rich_markup_mode="rich",
)

console = get_console()


def _emit(data: Any) -> None:
    """Write a JSON document to stdout."""
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def _load_records(path: Path) -> list[dict[str, Any]]:
    from scholarship_ingest.shared.utils import load_json

    if not path.exists():
        console.print(f"[red]File not found: {path}[/red]")
        raise typer.Exit(1)
    try:
        data = load_json(path)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON in {path}: {e}[/red]")
        raise typer.Exit(1)

    # Accept a bare list or the output of `batch` / `dedup`
    if isinstance(data, dict):
        data = data.get("results") or data.get("deduplicated") or [data]
    return data


def _service(rules_only: bool = False):
    from scholarship_ingest.pipeline.service import create_service

    return create_service(use_ai=not rules_only)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
):
    """Configure logging before any command runs."""
    setup_logging_from_settings(level="DEBUG" if verbose else None)


# ─────────────────────────────────────────────────────────────────────────────
# Scrape Commands
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def scrape(
    url: str = typer.Argument(..., help="Scholarship page URL."),
    rules_only: bool = typer.Option(
        False, "--rules-only", help="Skip the AI extraction step."
    ),
):
    """
    🌐 Scrape and normalize a single scholarship page.

    Examples:
        scholarship-ingest scrape https://www.daad.de/en/scholarship/123
        scholarship-ingest scrape https://example.org/award --rules-only
    """
    service = _service(rules_only)
    try:
        with console.status(f"Fetching {url}..."):
            result = service.scrape_and_normalize(url)
    finally:
        service.close()

    _emit(result.model_dump(mode="json", by_alias=True))
    if not result.success:
        console.print(f"[red]✗ {result.error}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✓ Normalized with '{result.strategy}' strategy[/green]")


@app.command()
def batch(
    urls: Optional[list[str]] = typer.Argument(None, help="URLs to process."),
    file: Optional[Path] = typer.Option(
        None, "--file", "-f", help="Text file with one URL per line."
    ),
    concurrency: Optional[int] = typer.Option(
        None, "--concurrency", "-c", help="Pages processed at once (default from config)."
    ),
    delay: Optional[float] = typer.Option(
        None, "--delay", help="Seconds to pause between chunks (default from config)."
    ),
    rules_only: bool = typer.Option(False, "--rules-only", help="Skip the AI extraction step."),
):
    """
    📦 Scrape and normalize many scholarship pages.

    Failed pages are listed under "errors" with their URL; they never stop
    the batch.

    Examples:
        scholarship-ingest batch https://a.org/x https://b.edu/y
        scholarship-ingest batch -f urls.txt -c 5
    """
    all_urls = list(urls or [])
    if file is not None:
        if not file.exists():
            console.print(f"[red]File not found: {file}[/red]")
            raise typer.Exit(1)
        all_urls.extend(
            line.strip()
            for line in file.read_text(encoding="utf-8").splitlines()
            if line.strip() and not line.strip().startswith("#")
        )

    if not all_urls:
        console.print("[red]No URLs given. Pass URLs or --file.[/red]")
        raise typer.Exit(1)

    service = _service(rules_only)
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("{task.completed}/{task.total}"),
            console=console,
        ) as progress:
            task = progress.add_task("Processing pages...", total=len(all_urls))

            def callback(completed: int, total: int) -> None:
                progress.update(task, completed=completed)

            result = service.batch_scrape_and_normalize(
                all_urls,
                concurrency=concurrency,
                delay_seconds=delay,
                on_progress=callback,
            )
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(2)
    finally:
        service.close()

    _emit(result.model_dump(mode="json", by_alias=True))
    summary = result.summary
    console.print(
        f"[bold]{summary.successful}/{summary.total}[/bold] succeeded "
        f"({summary.success_rate:.0%}), {summary.failed} failed"
    )


# ─────────────────────────────────────────────────────────────────────────────
# Deadline Command
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def deadline(
    text: str = typer.Argument(..., help="Free-text deadline phrasing."),
    rules_only: bool = typer.Option(
        False, "--rules-only", help="Use the rule-based parser only."
    ),
):
    """
    📅 Resolve a deadline to YYYY-MM-DD or "varies".

    Examples:
        scholarship-ingest deadline "Apply by 15 January 2027"
        scholarship-ingest deadline "Rolling admissions" --rules-only
    """
    service = _service(rules_only)
    result = service.parse_deadline(text, rules_only=rules_only)
    _emit(result.model_dump(mode="json"))


# ─────────────────────────────────────────────────────────────────────────────
# Record Commands
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def dedup(
    file: Path = typer.Argument(..., help="JSON file with a list of records."),
    method: str = typer.Option(
        "hybrid", "--method", "-m", help="Deduplication method: ai, rules or hybrid."
    ),
    threshold: Optional[float] = typer.Option(
        None, "--threshold", "-t", help="Rule-based duplicate threshold (0-1)."
    ),
):
    """
    🧹 Collapse near-duplicate records.

    Examples:
        scholarship-ingest dedup records.json --method rules
        scholarship-ingest dedup records.json -m hybrid -t 0.6
    """
    from pydantic import ValidationError

    records = _load_records(file)
    service = _service(rules_only=method == "rules")

    try:
        result = service.deduplicate(records, method=method, threshold=threshold)
    except ValidationError as e:
        console.print(f"[red]Invalid record in {file}: {e}[/red]")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(2)

    _emit(result.model_dump(mode="json", by_alias=True))

    table = Table(title="Deduplication")
    table.add_column("Original")
    table.add_column("Kept")
    table.add_column("Removed")
    table.add_column("Method")
    table.add_row(
        str(result.original_count),
        str(result.deduplicated_count),
        str(result.duplicates_removed),
        result.method,
    )
    console.print(table)


@app.command()
def validate(
    file: Path = typer.Argument(..., help="JSON file with one record or a list."),
):
    """
    ✅ Validate records against the scholarship schema.

    Exits with status 1 when any record is invalid.
    """
    records = _load_records(file)
    service = _service(rules_only=True)

    reports = [service.validate(record) for record in records]
    _emit([report.model_dump(mode="json", by_alias=True) for report in reports])

    invalid = sum(1 for report in reports if not report.is_valid)
    if invalid:
        console.print(f"[red]✗ {invalid}/{len(reports)} record(s) invalid[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✓ {len(reports)} record(s) valid[/green]")


@app.command()
def funding(
    file: Path = typer.Argument(..., help="JSON file with one record or a list."),
    rules_only: bool = typer.Option(False, "--rules-only", help="Use keyword rules only."),
):
    """
    💰 Classify records as fully funded or not.
    """
    records = _load_records(file)
    service = _service(rules_only)

    results = []
    for record in records:
        classification = service.classify_funding(record)
        results.append(
            {
                "id": record.get("id"),
                **classification.model_dump(mode="json", by_alias=True),
            }
        )
    _emit(results)


# ─────────────────────────────────────────────────────────────────────────────
# Info Command
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def info():
    """
    ℹ️ Show configuration.

    Useful for checking whether AI-assisted steps are active.
    """
    from scholarship_ingest import __version__
    from scholarship_ingest.shared.config import DEFAULT_CONFIG_FILE, get_settings

    settings = get_settings()

    console.print(Panel(
        f"[bold]Scholarship Ingest[/bold]\n"
        f"Version: {__version__}\n"
        f"Config: {DEFAULT_CONFIG_FILE}",
        title="ℹ️ Info",
    ))

    table = Table()
    table.add_column("Setting")
    table.add_column("Value")

    table.add_row("AI available", "✓" if settings.ai_available else "✗ (rules only)")
    table.add_row("Model", settings.get_effective_model())
    table.add_row("Fetch timeout", f"{settings.scraping.timeout}s")
    table.add_row("Fetch retries", str(settings.scraping.max_retries))
    table.add_row("Dedup method", settings.dedup.method)
    table.add_row("Dedup threshold", str(settings.get_effective_threshold()))
    table.add_row("Batch concurrency", str(settings.get_effective_concurrency()))
    table.add_row("Batch delay", f"{settings.batch.delay_seconds}s")

    console.print(table)


# ─────────────────────────────────────────────────────────────────────────────
# Entry Point
# ─────────────────────────────────────────────────────────────────────────────


def cli():
    """CLI entry point."""
    app()


if __name__ == "__main__":
    cli()
