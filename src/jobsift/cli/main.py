"""jobsift CLI - search a job site and keep the listings matching a profile."""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional

import structlog
import typer
from rich.console import Console
from rich.panel import Panel

from jobsift.config import cfg
from jobsift.models import DetailSource, DistanceBand, JobType, SearchQuery
from jobsift.runner import run

console = Console()

_initialized = False

app = typer.Typer(
    name="jobsift",
    help="Search job listings and keep the ones matching a classifier.",
    no_args_is_help=True,
)


def _initialize_instrumentation(verbose: bool = False) -> None:
    """Configure structlog once."""
    global _initialized
    if _initialized:
        return

    log_level = logging.DEBUG if verbose else getattr(logging, cfg.log_level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False),
            structlog.processors.CallsiteParameterAdder(
                {
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                }
            ),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
    _initialized = True


@app.command()
def search(
    keyword: str = typer.Argument(..., help="Job title or keywords to search for."),
    location: str = typer.Argument(..., help="Location to look for jobs in."),
    mode: JobType = typer.Argument(..., help="Classifier used to keep jobs."),
    distance: Optional[DistanceBand] = typer.Argument(
        None, help="Search radius around the location, in km."
    ),
    headless: Annotated[
        bool,
        typer.Option("--headless/--headed", help="Hide or show the browser window."),
    ] = cfg.headless,
    output_dir: Annotated[
        Optional[Path], typer.Option(help="Directory to save the matched jobs.")
    ] = None,
    detail_source: Annotated[
        Optional[DetailSource],
        typer.Option(help="Read job details from the viewjob api or the results page."),
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Enable debug logs.")
    ] = False,
):
    """Search jobs, classify every listing and save the matches as JSON."""
    _initialize_instrumentation(verbose=verbose)

    overrides: dict = {"headless": headless}
    if output_dir is not None:
        overrides["output_dir"] = output_dir
        overrides["screenshot_dir"] = output_dir / "screenshots"
    if detail_source is not None:
        overrides["detail_source"] = detail_source
    config = cfg.model_copy(update=overrides)

    query = SearchQuery(keyword=keyword, location=location, distance=distance)
    radius = f" within {distance.value} km" if distance else ""
    console.print(
        Panel(
            f"Searching '{keyword}' in {location}{radius} - Mode: {mode.value}",
            style="bold blue",
        )
    )

    summary = asyncio.run(run(query, mode, config))

    console.print(
        Panel(
            f"Completed: {summary.matched}/{summary.processed} jobs kept "
            f"({summary.job_count} found)\nSaved to {summary.output_path}",
            style="green" if summary.matched > 0 else "yellow",
        )
    )


def main() -> None:
    """CLI for the jobsift application."""
    app()
