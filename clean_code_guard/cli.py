"""
Command-line interface for Clean Code Guard.
"""

import asyncio
import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from clean_code_guard.analyzers import BASELINE_VERSION, get_default_analyzers
from clean_code_guard.config import (
    set_max_concurrency,
    set_store_dir,
    set_verify_ssl,
)
from clean_code_guard.core import get_assessment, run_assessments, trigger_assessment
from clean_code_guard.errors import InvalidReference
from clean_code_guard.store import (
    AssessmentRecord,
    AssessmentStatus,
    JsonFileAssessmentStore,
)

# --- Typer App ---
app = typer.Typer(help="Automated code-quality assessment of submitted repositories.")
console = Console()

# --- Helper Functions ---


def _open_store(store_dir: Path | None) -> JsonFileAssessmentStore:
    if store_dir is not None:
        set_store_dir(store_dir)
    return JsonFileAssessmentStore()


def read_submissions(path: Path) -> list[tuple[str, str]]:
    """
    Read ``submission_id repo_url`` pairs, one per line.

    Blank lines and lines starting with '#' are ignored.

    Raises:
        ValueError: If a line does not contain exactly two fields.
    """
    submissions = []
    with open(path, "r", encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            fields = stripped.split()
            if len(fields) != 2:
                raise ValueError(
                    f"{path}:{line_number}: expected 'submission_id repo_url', "
                    f"got {stripped!r}"
                )
            submissions.append((fields[0], fields[1]))
    return submissions


def display_record(record: AssessmentRecord) -> None:
    """Display one assessment record with its per-bucket breakdown."""
    status = record.status.value if record.status else "not assessed"
    status_color = {
        AssessmentStatus.SUCCESS: "green",
        AssessmentStatus.FAILED: "red",
        AssessmentStatus.PENDING: "yellow",
    }.get(record.status, "dim")

    console.print(
        f"[bold]Submission {record.submission_id}[/bold]: "
        f"[{status_color}]{status}[/{status_color}]"
    )
    if record.score is not None:
        score_color = "green"
        if record.score < 50:
            score_color = "red"
        elif record.score < 80:
            score_color = "yellow"
        console.print(
            f"  Score: [{score_color}]{record.score}/100[/{score_color}] "
            f"({record.error_count} errors, {record.warning_count} warnings)"
        )
    if record.failure_reason:
        console.print(f"  Reason: {record.failure_reason}")
    if record.last_evaluated_at:
        console.print(f"  [dim]Last evaluated: {record.last_evaluated_at.isoformat()}[/dim]")

    report = record.report or {}
    buckets = report.get("perBucket") or []
    if buckets:
        table = Table(title="Per-language findings")
        table.add_column("Bucket", style="cyan", no_wrap=True)
        table.add_column("Files", justify="right")
        table.add_column("Errors", justify="right", style="red")
        table.add_column("Warnings", justify="right", style="yellow")
        table.add_column("Score", justify="right", style="magenta")
        table.add_column("Config", justify="left")
        for bucket in buckets:
            table.add_row(
                bucket.get("label", ""),
                str(bucket.get("fileCount", 0)),
                str(bucket.get("errorCount", 0)),
                str(bucket.get("warningCount", 0)),
                str(bucket.get("bucketScore", "")),
                bucket.get("configSource", ""),
            )
        console.print(table)

    for failure in report.get("failures") or []:
        console.print(
            f"  [yellow]⚠️  {failure.get('label')}: {failure.get('reason')}[/yellow]"
        )
    if report.get("note"):
        console.print(f"  [dim]{report['note']}[/dim]")


# --- Commands ---


@app.command()
def assess(
    submission_id: str = typer.Argument(..., help="Submission identifier."),
    repo_url: str = typer.Argument(
        ..., help="Repository URL (e.g. https://github.com/owner/name)."
    ),
    insecure: bool = typer.Option(
        False,
        "--insecure",
        help="Disable SSL certificate verification for HTTPS requests.",
    ),
    store_dir: Path | None = typer.Option(
        None,
        "--store-dir",
        help="Directory holding assessment records.",
    ),
    output_json: bool = typer.Option(
        False,
        "--json",
        help="Print the resulting record as JSON.",
    ),
):
    """Assess one repository and store the result."""
    set_verify_ssl(not insecure)
    store = _open_store(store_dir)

    try:
        record = asyncio.run(trigger_assessment(submission_id, repo_url, store=store))
    except InvalidReference as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    if output_json:
        console.print_json(json.dumps(record.to_dict()))
    else:
        display_record(record)


@app.command("assess-batch")
def assess_batch(
    submissions_file: Path = typer.Argument(
        ...,
        help="File with one 'submission_id repo_url' pair per line.",
    ),
    max_concurrency: int | None = typer.Option(
        None,
        "--max-concurrency",
        "-j",
        help="Maximum number of repositories assessed at once.",
    ),
    insecure: bool = typer.Option(
        False,
        "--insecure",
        help="Disable SSL certificate verification for HTTPS requests.",
    ),
    store_dir: Path | None = typer.Option(
        None,
        "--store-dir",
        help="Directory holding assessment records.",
    ),
):
    """Assess every repository listed in a file."""
    if not submissions_file.is_file():
        console.print(f"[red]File not found: {submissions_file}[/red]")
        raise typer.Exit(code=1)

    try:
        submissions = read_submissions(submissions_file)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    set_verify_ssl(not insecure)
    if max_concurrency is not None:
        set_max_concurrency(max_concurrency)
    store = _open_store(store_dir)

    results = asyncio.run(run_assessments(submissions, store=store))

    table = Table(title="Clean Code Guard Report")
    table.add_column("Submission", justify="left", style="cyan", no_wrap=True)
    table.add_column("Status", justify="left")
    table.add_column("Score", justify="center", style="magenta")
    table.add_column("Details", justify="left")

    unrecorded = 0
    for submission_id, outcome in results.items():
        if isinstance(outcome, InvalidReference):
            unrecorded += 1
            table.add_row(submission_id, "[red]invalid[/red]", "-", str(outcome))
            continue
        if isinstance(outcome, Exception):
            unrecorded += 1
            table.add_row(submission_id, "[red]error[/red]", "-", str(outcome))
            continue
        status = outcome.status.value if outcome.status else "-"
        score = f"{outcome.score}/100" if outcome.score is not None else "-"
        details = outcome.failure_reason or (
            f"{outcome.error_count} errors, {outcome.warning_count} warnings"
        )
        table.add_row(submission_id, status, score, details)

    console.print(table)
    if unrecorded:
        raise typer.Exit(code=1)


@app.command()
def show(
    submission_id: str = typer.Argument(..., help="Submission identifier."),
    store_dir: Path | None = typer.Option(
        None,
        "--store-dir",
        help="Directory holding assessment records.",
    ),
    output_json: bool = typer.Option(
        False,
        "--json",
        help="Print the record as JSON.",
    ),
):
    """Display the stored assessment of a submission."""
    record = get_assessment(submission_id, _open_store(store_dir))
    if record is None:
        console.print(f"[yellow]No assessment recorded for {submission_id}[/yellow]")
        raise typer.Exit(code=1)

    if output_json:
        console.print_json(json.dumps(record.to_dict()))
    else:
        display_record(record)


@app.command()
def baseline():
    """Print the built-in analyzer configurations used when a project has none."""
    console.print(f"[bold cyan]Baseline rules v{BASELINE_VERSION}[/bold cyan]")
    for label, analyzer in get_default_analyzers().items():
        console.print(f"\n[bold]{analyzer.name}[/bold] ({label})")
        console.print_json(json.dumps(analyzer.baseline_config))


if __name__ == "__main__":
    app()
