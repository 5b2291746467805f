"""
EdgeLab command line.

Usage:
    edgelab backtest filter.json logs.json --season 2023-24 --season 2024-25
    edgelab validate filter.json
    edgelab fields --sport nba
"""

import json
import logging
from pathlib import Path
from typing import Any, List, Optional

import pandas as pd
import typer
from rich.console import Console
from rich.table import Table

from .backtest import BacktestConfig, BacktestEngine, BacktestResult
from .core.config import get_settings
from .data.game_log import EnrichedGameLog
from .filters import CustomFilter, FieldRegistry, FilterEngine, summarize_filter


app = typer.Typer(help="Custom prop filter evaluation and backtesting.")
console = Console()


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, get_settings().LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def _read_json(path: Path) -> Any:
    try:
        with open(path) as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]Error: Could not read {path}: {e}[/red]")
        raise typer.Exit(1) from e


def load_game_logs(path: Path) -> List[EnrichedGameLog]:
    """
    Load game logs from a JSON array or a CSV file.

    JSON records keep their nested objects (``stats``, ``propLines``,
    ``weather``) as-is. CSV columns use dotted ``stats.<key>`` and
    ``prop_lines.<key>`` headers.
    """
    try:
        if path.suffix.lower() == ".csv":
            return EnrichedGameLog.from_dataframe(pd.read_csv(path))

        records = _read_json(path)
        if isinstance(records, dict):
            records = records.get("logs", records.get("gameLogs", []))
        if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
            raise ValueError("expected a JSON array of objects")
        return EnrichedGameLog.from_records(records)
    except ValueError as e:
        console.print(f"[red]Error: Invalid game log in {path}: {e}[/red]")
        raise typer.Exit(1) from e


def load_filter(path: Path, filter_engine: FilterEngine) -> CustomFilter:
    """Read a filter definition, exiting with its validation errors if invalid."""
    raw_filter = _read_json(path)
    if not isinstance(raw_filter, dict):
        _print_errors(["Filter definition must be a JSON object"])
        raise typer.Exit(1)

    errors = filter_engine.validate(raw_filter)
    if errors:
        _print_errors(errors)
        raise typer.Exit(1)

    try:
        return CustomFilter.from_dict(raw_filter)
    except ValueError as e:
        _print_errors([str(e)])
        raise typer.Exit(1) from e


def _print_result(result: BacktestResult) -> None:
    m = result.metrics

    table = Table(title=f"Backtest: {result.filter_name}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Games", f"{m.total_games:,}")
    table.add_row("Hits / Misses", f"{m.hits:,} / {m.misses:,}")
    table.add_row("Hit Rate", f"{m.hit_rate:.2%}")
    table.add_row("Total Profit", f"{m.total_profit:+.2f}u")
    table.add_row("ROI", f"{m.roi:+.2%}")
    table.add_row("Max Drawdown", f"{m.max_drawdown:.2f}u")
    table.add_row("Longest Win / Loss Streak", f"{m.longest_win_streak} / {m.longest_loss_streak}")
    table.add_row("Sharpe Ratio", f"{m.sharpe_ratio:.2f}")
    table.add_row("Kelly Fraction", f"{m.kelly_fraction:.2%}")
    table.add_row("Sample Size", m.sample_size.value)
    console.print(table)

    if result.season_breakdown:
        seasons = Table(title="By Season")
        for column in ("Season", "Games", "Hit Rate", "Profit", "ROI"):
            seasons.add_column(column, justify="right" if column != "Season" else "left")
        for b in result.season_breakdown:
            seasons.add_row(b.season, str(b.games), f"{b.hit_rate:.2%}", f"{b.profit:+.2f}", f"{b.roi:+.2%}")
        console.print(seasons)

    if m.confidence_warning:
        console.print(f"[yellow]⚠ {m.confidence_warning}[/yellow]")
    if result.skipped:
        console.print(f"[dim]{result.skipped} matched games had no line and were skipped[/dim]")


@app.command("backtest")
def backtest(
    filter_path: Path = typer.Argument(..., help="Filter definition (JSON)"),
    logs_path: Path = typer.Argument(..., help="Game logs (JSON array or CSV)"),
    season: Optional[List[str]] = typer.Option(
        None, "--season", "-s", help="Season label, e.g. 2024-25 (repeatable)"
    ),
    odds: Optional[float] = typer.Option(
        None, "--odds", help="Assumed American odds (default from settings)"
    ),
    output_json: Optional[Path] = typer.Option(
        None, "--output-json", "-j", help="Save full results to JSON file"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """
    Backtest a filter over historical game logs.

    Example:
        edgelab backtest my_filter.json logs.json --season 2024-25 --odds -115
    """
    _configure_logging(verbose)

    engine = BacktestEngine(FieldRegistry.default(), BacktestConfig.from_settings())
    custom_filter = load_filter(filter_path, engine.filter_engine)
    logs = load_game_logs(logs_path)

    console.print(f"\n[bold]Running backtest: {custom_filter.name}[/bold]")
    console.print(f"Filter: {summarize_filter(custom_filter)}")
    console.print(f"Records: {len(logs):,}\n")

    result = engine.run_backtest(custom_filter, logs, seasons=season or [], assumed_odds=odds)
    _print_result(result)

    if output_json:
        with open(output_json, "w") as f:
            json.dump(result.to_dict(), f, indent=2)
        console.print(f"\n[green]✓[/green] Results saved to {output_json}")


@app.command("validate")
def validate(
    filter_path: Path = typer.Argument(..., help="Filter definition (JSON)"),
):
    """Check a filter definition and print its summary."""
    custom_filter = load_filter(filter_path, FilterEngine(FieldRegistry.default()))
    console.print(f"[green]✓[/green] {custom_filter.name}: {summarize_filter(custom_filter)}")


@app.command("fields")
def fields(
    sport: str = typer.Option("all", "--sport", help="Sport code (nba, mlb, nfl)"),
):
    """List the filterable fields for a sport, grouped by category."""
    registry = FieldRegistry.default()
    sport = sport.lower()

    if sport == "all":
        grouped = {}
        for field_def in registry:
            grouped.setdefault(field_def.category, []).append(field_def)
    else:
        grouped = registry.fields_by_category(sport)

    for category, field_defs in grouped.items():
        table = Table(title=category)
        table.add_column("Key", style="cyan")
        table.add_column("Label")
        table.add_column("Type")
        table.add_column("Description", style="dim")
        for field_def in field_defs:
            table.add_row(field_def.key, field_def.label, field_def.type, field_def.description)
        console.print(table)


def _print_errors(errors: List[str]) -> None:
    console.print("[red]Filter is invalid:[/red]")
    for error in errors:
        console.print(f"  [red]•[/red] {error}")


if __name__ == "__main__":
    app()
