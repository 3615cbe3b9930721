"""CLI for Movie Survey."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import structlog
import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from movie_survey import __version__
from movie_survey.core.config import StandardizationConfig, SurveyConfig, load_config
from movie_survey.core.errors import SurveyError
from movie_survey.pipeline import PipelineResult, run_pipeline

load_dotenv()

# Configure structlog
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

app = typer.Typer(
    name="movie-survey",
    help="Movie Survey - impute blank ratings and standardize them per movie",
    add_completion=False,
)
console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"movie-survey v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
) -> None:
    """Movie Survey CLI."""


def _load(config_path: Path | None) -> SurveyConfig:
    if config_path is None:
        console.print("[bold]Using bundled reference survey[/bold]")
        return SurveyConfig()
    console.print(f"[bold]Loading config:[/bold] {config_path}")
    return load_config(config_path)


def _print_summary(result: PipelineResult) -> None:
    table = Table(title="Movie Summary")
    table.add_column("Movie")
    table.add_column("Ratings", justify="right")
    table.add_column("Imputed", justify="right")
    table.add_column("Mean", justify="right")
    table.add_column("Std Dev", justify="right")
    for group in result.summary:
        stdev = "n/a" if group.stdev is None else f"{group.stdev:.3f}"
        table.add_row(group.key, str(group.count), str(group.imputed), f"{group.mean:.3f}", stdev)
    console.print(table)
    console.print(
        f"Imputed {result.imputed_count} absent ratings with global mean "
        f"{result.fill_value:.4f}"
    )


@app.command()
def run(
    config_path: Annotated[
        Path | None,
        typer.Argument(help="Path to config YAML file (default: bundled reference survey)"),
    ] = None,
    run_id: Annotated[str | None, typer.Option("--run-id", help="Custom run ID")] = None,
    output_dir: Annotated[
        Path | None, typer.Option("--output-dir", help="Override output directory")
    ] = None,
    zero_variance: Annotated[
        str | None,
        typer.Option("--zero-variance", help="Degenerate group policy: raise or nan"),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-V", help="Verbose output")] = False,
) -> None:
    """Run the survey pipeline.

    Args:
        config_path: Path to YAML configuration file.
        run_id: Custom run ID (default: timestamp).
        output_dir: Override the configured output directory.
        zero_variance: Override the degenerate group policy.
        verbose: Enable verbose logging.
    """
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )

    try:
        config = _load(config_path)
        if output_dir is not None:
            config.output_dir = str(output_dir)
        if zero_variance is not None:
            config.standardization = StandardizationConfig(zero_variance=zero_variance)

        console.print("[bold green]Starting pipeline...[/bold green]")
        console.print(f"  Zero variance policy: {config.standardization.zero_variance}")

        result = run_pipeline(config, run_id=run_id)

        _print_summary(result)
        console.print("\n[bold green]Pipeline complete![/bold green]")
        console.print(f"Results saved to: {result.output_dir}")

    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    except SurveyError as e:
        console.print(f"[red]{e}")
        raise typer.Exit(1) from e
    except Exception as e:
        console.print(f"[red]Unexpected error:[/red] {e}")
        if verbose:
            console.print_exception()
        raise typer.Exit(1) from e


@app.command()
def validate(
    config_path: Annotated[Path, typer.Argument(help="Path to config YAML file")],
) -> None:
    """Validate a configuration file without running.

    Args:
        config_path: Path to YAML configuration file.
    """
    try:
        config = load_config(config_path)
        console.print("[green]Configuration is valid![/green]")
        console.print(f"  Movies: {len(config.dataset.movies)}")
        console.print(f"  Raters: {len(config.dataset.raters)}")
        console.print(f"  Ratings: {len(config.dataset.ratings)}")
        console.print(f"  Absent ratings: {config.dataset.absent_count}")
        console.print(f"  Zero variance policy: {config.standardization.zero_variance}")
        console.print(f"  Output dir: {config.output_dir}")

    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    except SurveyError as e:
        console.print(f"[red]{e}")
        raise typer.Exit(1) from e
    except Exception as e:
        console.print(f"[red]Validation error:[/red] {e}")
        raise typer.Exit(1) from e


@app.command()
def info() -> None:
    """Show tool information and example commands."""
    console.print("[bold]Movie Survey[/bold]")
    console.print(f"Version: {__version__}\n")

    console.print("[bold]Example Commands:[/bold]")
    console.print("  # Run the bundled reference survey")
    console.print("  uv run movie-survey run\n")

    console.print("  # Run a survey from a config file")
    console.print("  uv run movie-survey run config.yaml\n")

    console.print("  # Mark single-row or constant groups as NaN instead of failing")
    console.print("  uv run movie-survey run config.yaml --zero-variance nan\n")

    console.print("  # Validate config")
    console.print("  uv run movie-survey validate config.yaml")


if __name__ == "__main__":
    app()
