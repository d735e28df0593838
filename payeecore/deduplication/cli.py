"""Command line interface for payee duplicate detection."""

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from ..config import ConfigManager
from ..errors import PayeeCoreError
from ..logging_config import setup_logging
from .core_engine import DuplicateDetectionEngine
from .llm_analyzer import LLMDuplicateJudge
from .models import DuplicateDetectionResult
from .validation import run_duplicate_tests

app = typer.Typer(help="Find duplicate payees in a list of payee records.")
console = Console(stderr=True)


def _statistics_table(result: DuplicateDetectionResult) -> Table:
    stats = result.statistics

    table = Table(title="Duplicate Detection", show_header=False, padding=(0, 1))
    table.add_column("Stat", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Total processed", str(stats.total_processed))
    table.add_row("Duplicates found", str(stats.duplicates_found))
    table.add_row("High confidence matches", str(stats.high_confidence_matches))
    table.add_row("Low confidence matches", str(stats.low_confidence_matches))
    table.add_row("AI judgments made", str(stats.ai_judgments_made))
    table.add_row("Duplicate groups", str(len(result.duplicate_groups)))
    table.add_row("Processing time", f"{stats.processing_time_ms:.1f} ms")

    return table


def _load_records(path: Path) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        console.print(f"Cannot read {path}: {e}", style="red", markup=False)
        raise typer.Exit(code=1)


async def _run_detection(
    records: Any,
    overrides: Dict[str, Any],
    manager: ConfigManager,
) -> DuplicateDetectionResult:
    config = manager.config.detection.merged(overrides)
    oracle = LLMDuplicateJudge(manager.oracle_settings()) if config.enable_ai_judgment else None

    async with DuplicateDetectionEngine(config=config, oracle=oracle) as engine:
        return await engine.detect_duplicates(records)


@app.command()
def detect(
    input_file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, help="JSON array of {payee_id, payee_name} records"
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write the full result as JSON to this file"
    ),
    no_ai: bool = typer.Option(False, "--no-ai", help="Disable AI judgment of ambiguous pairs"),
    high: Optional[float] = typer.Option(None, "--high", help="High confidence threshold"),
    low: Optional[float] = typer.Option(None, "--low", help="Low confidence threshold"),
    config: Optional[Path] = typer.Option(
        None, "--config", exists=True, dir_okay=False, help="JSON config file"
    ),
) -> None:
    """Detect duplicate payees in INPUT_FILE."""
    overrides: Dict[str, Any] = {}
    if no_ai:
        overrides["enable_ai_judgment"] = False
    if high is not None:
        overrides["high_confidence_threshold"] = high
    if low is not None:
        overrides["low_confidence_threshold"] = low

    load_dotenv()

    try:
        manager = ConfigManager(str(config) if config else None)
        log_settings = manager.config.logging
        setup_logging(format=log_settings.format, level=log_settings.level, log_file=log_settings.file)

        records = _load_records(input_file)
        result = asyncio.run(_run_detection(records, overrides, manager))
    except PayeeCoreError as e:
        console.print(f"Error: {e}", style="red", markup=False)
        raise typer.Exit(code=1)

    payload = json.dumps(result.to_dict(), indent=2, default=str)
    if output:
        output.write_text(payload)
        console.print(f"Result written to {output}", style="green")
    else:
        typer.echo(payload)

    console.print(_statistics_table(result))


@app.command()
def validate() -> None:
    """Run the built-in duplicate detection scenarios."""
    report = asyncio.run(run_duplicate_tests())

    for result in report.results:
        style = "green" if result.passed else "red"
        console.print(result.details, style=style, markup=False)

    console.print(f"\n{report.passed} passed, {report.failed} failed")
    if not report.all_passed:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
