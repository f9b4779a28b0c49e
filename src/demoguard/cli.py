"""
DemoGuard CLI - Command Line Interface for CS2 demo cheat analysis

Provides commands for:
- Analyzing demo files
- Showing environment information
- Generating a default configuration file
"""

import logging
import platform as plat
from importlib.metadata import PackageNotFoundError, version
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from demoguard import __version__
from demoguard.core.config import (
    DemoGuardConfig,
    LoggingConfig,
    generate_default_config,
    get_default_config_paths,
    load_config,
)
from demoguard.pipeline.runner import PipelineError, default_pipeline
from demoguard.replay.demoparser import Demoparser2Replay
from demoguard.replay.source import ReplayParseError
from demoguard.report import export_result, render_report

app = typer.Typer(
    name="demoguard",
    help="CS2 demo analysis - per-player behaviour metrics and cheat likelihood scoring",
    add_completion=False,
)
console = Console()
logger = logging.getLogger(__name__)

# Set by the global --verbose flag
_state = {"verbose": False}

# Update the progress spinner every this many frames
PROGRESS_EVERY = 5000


def setup_logging(config: LoggingConfig, verbose: bool = False) -> None:
    """Configure the root logger from config; --verbose forces DEBUG."""
    level = logging.DEBUG if verbose else getattr(logging, str(config.level).upper(), logging.INFO)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.file:
        handlers.append(
            RotatingFileHandler(
                config.file,
                maxBytes=config.file_max_bytes,
                backupCount=config.file_backup_count,
            )
        )
    logging.basicConfig(level=level, format=config.format, handlers=handlers, force=True)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"[bold blue]DemoGuard[/bold blue] v{__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Enable verbose output"),
) -> None:
    """DemoGuard - CS2 demo statistics and cheat likelihood scoring"""
    _state["verbose"] = verbose
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


def _load_config_or_exit(config_file: Optional[Path]) -> DemoGuardConfig:
    try:
        return load_config(config_file)
    except (ValueError, OSError) as e:
        console.print(f"[red]Invalid configuration:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def analyze(
    demo_path: Path = typer.Argument(
        ...,
        help="Path to the .dem file to analyze",
        exists=True,
        dir_okay=False,
        resolve_path=True,
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file for results (format detected from extension: .json, .csv)",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file (.yaml, .toml, .json)",
        exists=True,
        dir_okay=False,
    ),
) -> None:
    """
    Analyze a CS2 demo file and display per-player metrics.

    Runs every detector over the demo:
    - Weapon usage and headshot percentage
    - Aim snap velocity before kills
    - Reaction time after enemies enter the crosshair
    - Recoil control against known spray patterns
    - Composite cheat likelihood (0-100)
    """
    config = _load_config_or_exit(config_file)
    setup_logging(config.logging, _state["verbose"])

    console.print("\n[bold blue]DemoGuard[/bold blue] - Analyzing demo...\n")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task("Parsing demo file...", total=None)

        def on_progress(frames: int) -> None:
            if frames % PROGRESS_EVERY == 0:
                progress.update(task, description=f"Analyzing frames ({frames:,})...")

        try:
            replay = Demoparser2Replay(demo_path, config.parser)
            result = default_pipeline(config).run(replay, progress=on_progress)
        except (ReplayParseError, FileNotFoundError) as e:
            console.print(f"[red]Error parsing demo:[/red] {e}")
            raise typer.Exit(1)
        except PipelineError as e:
            console.print(f"[red]Pipeline error:[/red] {e}")
            raise typer.Exit(1)

        progress.update(task, description="Analysis complete!")

    render_report(result, console, config.report, config.scoring.cheater_threshold)

    for name, count in result.failures.items():
        console.print(f"[yellow]Warning:[/yellow] detector {name} failed {count} time(s), metrics may be incomplete")

    if output:
        try:
            export_result(result, output, config.report)
        except ValueError as e:
            console.print(f"[red]Export failed:[/red] {e}")
            raise typer.Exit(1)
        console.print(f"\n[green]Results exported to:[/green] {output}")


@app.command()
def info() -> None:
    """Show environment and configuration information."""
    table = Table(title="DemoGuard Environment", show_header=False)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("DemoGuard", __version__)
    table.add_row("Python", plat.python_version())
    table.add_row("Platform", plat.system())
    table.add_row("Architecture", plat.machine())

    for package in ("demoparser2", "pandas", "numpy"):
        try:
            table.add_row(package, version(package))
        except PackageNotFoundError:
            table.add_row(package, "[red]not installed[/red]")

    found = [p for p in get_default_config_paths() if p.exists()]
    table.add_row("Config File", str(found[0]) if found else "[yellow]none (using defaults)[/yellow]")

    console.print(table)


@app.command("init-config")
def init_config(
    path: Path = typer.Argument(Path("demoguard.yaml"), help="Where to write the configuration file"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file"),
) -> None:
    """Write a configuration file with the default settings."""
    if path.exists() and not force:
        console.print(f"[yellow]{path} already exists[/yellow] (use --force to overwrite)")
        raise typer.Exit(1)
    try:
        generate_default_config(path)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    console.print(f"[green]Configuration written to:[/green] {path}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
