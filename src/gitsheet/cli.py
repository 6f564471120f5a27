"""Command-line interface for gitsheet."""

import json
import logging
import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional

import structlog
import typer
from pydantic import TypeAdapter
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from gitsheet.estimation import build_timesheet
from gitsheet.exceptions import InvalidInputError, RepositoryAccessError
from gitsheet.extraction import GitExtractor
from gitsheet.models import CommitRecord, EstimationConfig, RepositoryConfig, Settings, Timesheet
from gitsheet.report import render_lines

app = typer.Typer(
    name="gitsheet",
    help="Estimate a daily timesheet from Git commit history",
    add_completion=False,
)
console = Console()

DATE_FORMATS = ["%Y-%m-%d"]


def configure_logging(level: str) -> None:
    """Route structlog output to stderr at the given level."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level, logging.WARNING)),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def _setup(verbose: bool) -> Settings:
    settings = Settings()
    configure_logging("DEBUG" if verbose else settings.log_level)
    return settings


def _print_timesheet(
    timesheet: Timesheet, output: Optional[Path], config: Optional[EstimationConfig] = None
) -> None:
    for line in render_lines(timesheet, config):
        console.print(line, markup=False, highlight=False)

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        with open(output, "w") as f:
            json.dump(timesheet.model_dump(mode="json"), f, indent=2)
        console.print(f"[bold green]✓[/bold green] Saved to {output}")


def _fail(error: Exception) -> None:
    if isinstance(error, InvalidInputError):
        console.print(f"[bold red]Invalid input:[/bold red] {error}")
    elif isinstance(error, RepositoryAccessError):
        console.print(f"[bold red]Repository error:[/bold red] {error}")
    else:
        console.print(f"[bold red]Error:[/bold red] {error}")
    raise typer.Exit(1)


def _collect(
    repo_path: Path,
    settings: Settings,
    start: datetime,
    end: datetime,
    author: Optional[str],
    prefix: Optional[str],
    branch: Optional[str],
    lookback_days: int,
) -> List[CommitRecord]:
    config = RepositoryConfig(
        repo_path=repo_path,
        branch=branch or settings.branch,
        issue_prefix=prefix or settings.issue_prefix,
        author_email=author or settings.author_email,
    )
    extractor = GitExtractor(config)
    if config.issue_prefix is None:
        detected = extractor.detect_issue_prefix()
        if detected:
            console.print(f"[bold blue]Detected issue prefix:[/bold blue] {detected}")
            extractor = GitExtractor(config.model_copy(update={"issue_prefix": detected}))

    since = start.date() - timedelta(days=lookback_days)
    return extractor.extract_commits(since=since, until=end.date())


@app.command()
def generate(
    repo_path: Path = typer.Argument(..., help="Path to Git repository"),
    start: datetime = typer.Option(..., "--start", "-s", formats=DATE_FORMATS, help="First day (YYYY-MM-DD)"),
    end: datetime = typer.Option(..., "--end", "-e", formats=DATE_FORMATS, help="Last day (YYYY-MM-DD)"),
    author: Optional[str] = typer.Option(None, "--author", "-a", help="Author email to filter on"),
    prefix: Optional[str] = typer.Option(None, "--prefix", "-p", help="Issue key prefix, e.g. ABC"),
    branch: Optional[str] = typer.Option(None, "--branch", "-b", help="Branch to read"),
    strategy: Optional[str] = typer.Option(None, "--strategy", help="Estimation strategy: size or time_delta"),
    weekly_target: Optional[float] = typer.Option(None, "--weekly-target", help="Target tracked hours per week"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the timesheet as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Estimate a timesheet from a Git repository."""
    try:
        settings = _setup(verbose)
        estimation = settings.estimation_config(strategy=strategy, target_weekly_hours=weekly_target)

        console.print(f"[bold green]Reading commits from:[/bold green] {repo_path}")
        commits = _collect(repo_path, settings, start, end, author, prefix, branch, estimation.lookback_days)

        timesheet = build_timesheet(commits, start.date(), end.date(), estimation)
        _print_timesheet(timesheet, output, estimation)

    except typer.Exit:
        raise
    except Exception as e:
        _fail(e)


@app.command(name="generate-from-json")
def generate_from_json(
    commits_file: Path = typer.Argument(..., help="JSON file written by the extract command"),
    start: datetime = typer.Option(..., "--start", "-s", formats=DATE_FORMATS, help="First day (YYYY-MM-DD)"),
    end: datetime = typer.Option(..., "--end", "-e", formats=DATE_FORMATS, help="Last day (YYYY-MM-DD)"),
    strategy: Optional[str] = typer.Option(None, "--strategy", help="Estimation strategy: size or time_delta"),
    weekly_target: Optional[float] = typer.Option(None, "--weekly-target", help="Target tracked hours per week"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the timesheet as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Estimate a timesheet from previously extracted commit records."""
    try:
        settings = _setup(verbose)
        estimation = settings.estimation_config(strategy=strategy, target_weekly_hours=weekly_target)

        if not commits_file.exists():
            raise InvalidInputError(f"Commits file does not exist: {commits_file}")
        commits = TypeAdapter(List[CommitRecord]).validate_json(commits_file.read_text())

        timesheet = build_timesheet(commits, start.date(), end.date(), estimation)
        _print_timesheet(timesheet, output, estimation)

    except typer.Exit:
        raise
    except Exception as e:
        _fail(e)


@app.command()
def extract(
    repo_path: Path = typer.Argument(..., help="Path to Git repository"),
    output: Path = typer.Option(..., "--output", "-o", help="Output JSON file"),
    start: datetime = typer.Option(..., "--start", "-s", formats=DATE_FORMATS, help="First day (YYYY-MM-DD)"),
    end: datetime = typer.Option(..., "--end", "-e", formats=DATE_FORMATS, help="Last day (YYYY-MM-DD)"),
    author: Optional[str] = typer.Option(None, "--author", "-a", help="Author email to filter on"),
    prefix: Optional[str] = typer.Option(None, "--prefix", "-p", help="Issue key prefix, e.g. ABC"),
    branch: Optional[str] = typer.Option(None, "--branch", "-b", help="Branch to read"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Extract reconciled commit records to JSON."""
    try:
        settings = _setup(verbose)
        if end < start:
            raise InvalidInputError(f"End date {end.date()} is before start date {start.date()}")

        commits = _collect(repo_path, settings, start, end, author, prefix, branch, lookback_days=0)

        output.parent.mkdir(parents=True, exist_ok=True)
        with open(output, "w") as f:
            json.dump([c.model_dump(mode="json") for c in commits], f, indent=2)

        duplicates = sum(1 for c in commits if c.is_duplicate)
        console.print(f"[bold green]✓[/bold green] Extracted {len(commits)} commits ({duplicates} duplicates)")
        console.print(f"[bold green]✓[/bold green] Saved to {output}")

    except typer.Exit:
        raise
    except Exception as e:
        _fail(e)


@app.command(name="detect-prefix")
def detect_prefix(
    repo_path: Path = typer.Argument(..., help="Path to Git repository"),
    min_occurrences: int = typer.Option(2, "--min", help="Minimum number of occurrences"),
) -> None:
    """Detect the issue key prefix used in branch names."""
    try:
        _setup(False)
        extractor = GitExtractor(RepositoryConfig(repo_path=repo_path))
        prefix = extractor.detect_issue_prefix(min_occurrences=min_occurrences)
        if prefix is None:
            console.print("[yellow]No issue prefix detected[/yellow]")
            raise typer.Exit(1)
        console.print(prefix, markup=False, highlight=False)

    except typer.Exit:
        raise
    except Exception as e:
        _fail(e)


@app.command(name="list-commits")
def list_commits(
    repo_path: Path = typer.Argument(..., help="Path to Git repository"),
    max_count: int = typer.Option(20, "--max", "-n", help="Maximum commits to show"),
    prefix: Optional[str] = typer.Option(None, "--prefix", "-p", help="Issue key prefix, e.g. ABC"),
    branch: str = typer.Option("HEAD", "--branch", "-b", help="Branch to list from"),
) -> None:
    """List recent commits with their detected tasks."""
    try:
        _setup(False)
        extractor = GitExtractor(RepositoryConfig(repo_path=repo_path, branch=branch, issue_prefix=prefix))

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Hash", style="cyan", width=10)
        table.add_column("Date", style="blue")
        table.add_column("Task", style="green")
        table.add_column("Message", style="white")
        table.add_column("+/-", justify="right", style="yellow")

        for index, commit in enumerate(extractor.iter_commits()):
            if index >= max_count:
                break
            table.add_row(
                commit.sha[:7],
                commit.timestamp.strftime("%Y-%m-%d %H:%M"),
                commit.issue_id or "-",
                escape(commit.title[:60]),
                f"+{commit.lines_added} -{commit.lines_deleted}",
            )

        console.print(table)

    except typer.Exit:
        raise
    except Exception as e:
        _fail(e)


if __name__ == "__main__":
    app()
