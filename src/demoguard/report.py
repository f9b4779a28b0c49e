"""
Reporting and export for DemoGuard results.

Provides:
- render_report(): one rich table per populated category
- category_frame(): a category's metrics as a pandas DataFrame
- export_result(): CSV or JSON export, format detected from the extension
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd
from rich.console import Console
from rich.table import Table

from demoguard import __version__
from demoguard.core.config import ReportConfig
from demoguard.pipeline.runner import AnalysisResult
from demoguard.stats.models import AntiCheatKey, Category, DemoStats, MetricType, PlayerStats

logger = logging.getLogger(__name__)

RAW_COUNTER_SUFFIX = "_ticks"


# ============================================================================
# Data Conversion Utilities
# ============================================================================


def category_keys(stats: DemoStats, category: Category, hide_raw_counters: bool = True) -> list[str]:
    """Keys written for a category by any player, in first-seen order."""
    keys: list[str] = []
    for player in stats:
        for key, _ in player.items(category):
            if hide_raw_counters and key.value.endswith(RAW_COUNTER_SUFFIX):
                continue
            if key.value not in keys:
                keys.append(key.value)
    return keys


def _raw_value(metric) -> Any:
    if metric.type == MetricType.DURATION:
        return metric.as_float()
    return metric.value


def category_frame(stats: DemoStats, category: Category, hide_raw_counters: bool = True) -> pd.DataFrame:
    """
    One row per player with at least one metric in the category.

    Columns: steam_id, name, then one column per metric key. Missing
    metrics are NaN.
    """
    keys = category_keys(stats, category, hide_raw_counters)
    rows = []
    for player in stats:
        values = {key.value: _raw_value(m) for key, m in player.items(category)}
        if not values:
            continue
        row: dict[str, Any] = {"steam_id": player.steam_id, "name": player.name}
        row.update({key: values.get(key) for key in keys})
        rows.append(row)
    return pd.DataFrame(rows, columns=["steam_id", "name", *keys])


def players_frame(stats: DemoStats, categories: list[Category], hide_raw_counters: bool = True) -> pd.DataFrame:
    """All categories side by side, columns named "<category>.<key>"."""
    frame = pd.DataFrame(
        [{"steam_id": p.steam_id, "name": p.name} for p in stats], columns=["steam_id", "name"]
    )
    for category in categories:
        cat_df = category_frame(stats, category, hide_raw_counters)
        if cat_df.empty:
            continue
        cat_df = cat_df.drop(columns=["name"]).rename(
            columns=lambda c: c if c == "steam_id" else f"{category.value}.{c}"
        )
        frame = frame.merge(cat_df, on="steam_id", how="left")
    return frame.sort_values("name", kind="stable").reset_index(drop=True)


def _sorted_players(stats: DemoStats, category: Category) -> list[PlayerStats]:
    players = [p for p in stats if any(True for _ in p.items(category))]
    if category == Category.ANTI_CHEAT:
        return sorted(
            players,
            key=lambda p: (-p.get_float(Category.ANTI_CHEAT, AntiCheatKey.CHEAT_LIKELIHOOD), p.name),
        )
    return sorted(players, key=lambda p: p.name.lower())


# ============================================================================
# Console Rendering
# ============================================================================


def render_demo_info(stats: DemoStats, console: Console) -> None:
    table = Table(title="Demo Information", show_header=False)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Demo", stats.demo_name or "-")
    table.add_row("Map", stats.map_name or "-")
    table.add_row("Tick Rate", f"{stats.tick_rate:g}")
    table.add_row("Ticks", str(stats.tick_count))
    table.add_row("Players", str(len(stats)))
    for _, metric in stats.replay.items(Category.GAME_INFO):
        table.add_row(metric.description, metric.format())
    console.print(table)
    console.print()


def render_category(
    stats: DemoStats,
    category: Category,
    console: Console,
    config: ReportConfig | None = None,
    cheater_threshold: float = 55.0,
) -> bool:
    """Render one category table. Returns False if no player has metrics in it."""
    config = config or ReportConfig()
    players = _sorted_players(stats, category)
    if not players:
        return False

    keys = category_keys(stats, category, config.hide_raw_counters)
    key_enum = {key.value: key for p in players for key, _ in p.items(category)}

    table = Table(title=category.value.replace("_", " ").title())
    table.add_column("Player", style="cyan")
    for key in keys:
        table.add_column(key.replace("_", " "), justify="right")
    if category == Category.ANTI_CHEAT:
        table.add_column("Flagged", justify="center")

    for player in players:
        cells = [player.name]
        for key in keys:
            metric = player.get(category, key_enum[key])
            cells.append(metric.format(config.float_precision) if metric else "-")
        if category == Category.ANTI_CHEAT:
            likelihood = player.get_float(Category.ANTI_CHEAT, AntiCheatKey.CHEAT_LIKELIHOOD)
            cells.append("[bold red]YES[/bold red]" if likelihood >= cheater_threshold else "no")
        table.add_row(*cells)

    console.print(table)
    console.print()
    return True


def render_report(
    result: AnalysisResult,
    console: Console | None = None,
    config: ReportConfig | None = None,
    cheater_threshold: float = 55.0,
) -> None:
    """Render the demo summary and every populated category."""
    console = console or Console()
    config = config or ReportConfig()

    console.print(f"\n[bold blue]{config.title}[/bold blue]\n")
    render_demo_info(result.stats, console)

    rendered = 0
    for category in result.categories:
        if render_category(result.stats, category, console, config, cheater_threshold):
            rendered += 1
    if rendered == 0:
        console.print("[yellow]No player metrics were collected[/yellow]")


# ============================================================================
# Export
# ============================================================================


def result_to_dict(result: AnalysisResult) -> dict[str, Any]:
    stats = result.stats
    return {
        "_metadata": {
            "exported_at": datetime.now().isoformat(),
            "format": "demoguard_json",
            "version": __version__,
        },
        "demo_info": {
            "demo": stats.demo_name,
            "map": stats.map_name,
            "tick_rate": stats.tick_rate,
            "tick_count": stats.tick_count,
            **stats.replay.to_dict(),
        },
        "players": {
            str(player.steam_id): {"name": player.name, **player.to_dict()} for player in stats
        },
    }


def export_result(
    result: AnalysisResult,
    output_path: Path,
    config: ReportConfig | None = None,
    format: str | None = None,
) -> None:
    """
    Export analysis results.

    Format is detected from the file extension if not specified.

    Raises:
        ValueError: for formats other than csv and json
    """
    config = config or ReportConfig()
    output_path = Path(output_path)
    if format is None:
        format = output_path.suffix.lstrip(".").lower()

    if format == "json":
        output_path.write_text(json.dumps(result_to_dict(result), indent=config.json_indent, default=str))
    elif format == "csv":
        frame = players_frame(result.stats, result.categories, config.hide_raw_counters)
        frame.to_csv(output_path, index=False, sep=config.csv_delimiter)
    else:
        raise ValueError(f"Unsupported export format: {format}")

    logger.info(f"Exported {format.upper()} to: {output_path}")
