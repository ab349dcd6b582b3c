"""
Core assessment pipeline for Clean Code Guard.

trigger_assessment() runs one submission end to end:
visibility check -> CI artifact lookup -> (fallback) snapshot download,
extraction, classification and local analysis -> scoring -> persistence.
"""

import asyncio
from typing import Callable, Iterable

from rich.console import Console

from clean_code_guard.analyzers import BASELINE_VERSION, Analyzer, get_default_analyzers
from clean_code_guard.classifier import classify_files
from clean_code_guard.config import get_max_concurrency, get_timeouts
from clean_code_guard.errors import (
    AssessmentCancelled,
    InvalidReference,
    RepositoryInaccessible,
)
from clean_code_guard.materializer import materialize_snapshot
from clean_code_guard.orchestrator import analyze_buckets
from clean_code_guard.report import QualityReport
from clean_code_guard.repository import RepositoryReference, parse_repository_url
from clean_code_guard.scoring import build_report, report_from_artifact, score_bucket
from clean_code_guard.store import AssessmentRecord, AssessmentStore, ResultPersister
from clean_code_guard.vcs import (
    BaseForgeClient,
    get_forge_client,
    list_supported_platforms,
)

console = Console(stderr=True)

ForgeFactory = Callable[[RepositoryReference], BaseForgeClient]


def _check_cancelled(cancel_event: asyncio.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise AssessmentCancelled()


async def assess_archive(
    archive: bytes,
    analyzers: dict[str, Analyzer] | None = None,
    cancel_event: asyncio.Event | None = None,
) -> QualityReport:
    """
    Extract a repository archive, analyze it and build a QualityReport.

    The extraction directory is removed before this function returns or
    raises.

    Raises:
        ForgeUnavailable: If the archive is corrupt.
        AllAnalyzersFailed: If every analyzed bucket failed.
        AssessmentCancelled: If cancel_event is set.
    """
    analyzers = analyzers if analyzers is not None else get_default_analyzers()
    timeouts = get_timeouts()

    with materialize_snapshot(archive) as source:
        buckets = classify_files(source.root)
        file_counts = buckets.file_counts()

        if buckets.is_empty:
            console.print("[dim]No lintable files found[/dim]")
            return build_report([], file_counts=file_counts)

        outcome = await analyze_buckets(
            source.root,
            buckets,
            analyzers,
            scratch_dir=source.scratch_dir,
            timeout=timeouts.analyzer,
            cancel_event=cancel_event,
        )

    results = [
        score_bucket(
            analysis.label,
            analysis.file_count,
            analysis.findings,
            config_source=analysis.config.describe(),
        )
        for analysis in outcome.analyses
    ]
    return build_report(
        results,
        file_counts=file_counts,
        failures=outcome.failures,
        source="local",
        baseline_version=BASELINE_VERSION if outcome.used_baseline else None,
    )


async def _assess_with_forge(
    reference: RepositoryReference,
    forge: BaseForgeClient,
    analyzers: dict[str, Analyzer] | None,
    cancel_event: asyncio.Event | None,
) -> QualityReport:
    owner, name = reference.owner, reference.name

    _check_cancelled(cancel_event)
    if not await forge.check_visibility(owner, name):
        raise RepositoryInaccessible()

    _check_cancelled(cancel_event)
    try:
        artifact = await forge.find_artifact(owner, name)
    except Exception as e:
        console.print(f"  [yellow]⚠️  Artifact lookup failed: {e}[/yellow]")
        artifact = None

    if artifact is not None:
        console.print(
            f"[dim]Using lint report {artifact.entry_name} "
            f"from artifact {artifact.artifact_name}[/dim]"
        )
        return report_from_artifact(
            artifact.payload,
            run_id=artifact.run_id,
            artifact_name=artifact.artifact_name,
            entry_name=artifact.entry_name,
        )

    _check_cancelled(cancel_event)
    console.print(f"[dim]No lint artifact found, analyzing {reference.slug} locally[/dim]")
    archive = await forge.download_snapshot(owner, name)

    _check_cancelled(cancel_event)
    return await assess_archive(archive, analyzers, cancel_event)


async def _assess(
    reference: RepositoryReference,
    forge: BaseForgeClient | None,
    analyzers: dict[str, Analyzer] | None,
    cancel_event: asyncio.Event | None,
) -> QualityReport:
    if forge is not None:
        return await _assess_with_forge(reference, forge, analyzers, cancel_event)

    async with get_forge_client(reference.host) as owned_forge:
        return await _assess_with_forge(reference, owned_forge, analyzers, cancel_event)


async def trigger_assessment(
    submission_id: str,
    repository_url: str,
    *,
    store: AssessmentStore,
    forge: BaseForgeClient | None = None,
    analyzers: dict[str, Analyzer] | None = None,
    cancel_event: asyncio.Event | None = None,
) -> AssessmentRecord:
    """
    Assess a submitted repository and persist the outcome.

    The record moves to ``pending`` on entry and to exactly one of
    ``success`` / ``failed`` before this coroutine returns. Analyzer and
    network errors are recorded on the record rather than raised.

    Args:
        submission_id: Key of the record to update.
        repository_url: Forge URL of the submitted repository.
        store: Record-update capability.
        forge: Optional forge client; by default one is opened for the
               repository host and closed afterwards.
        analyzers: Bucket label to analyzer; defaults to ESLint, HTMLHint and
                   Stylelint.
        cancel_event: Optional abort signal; a set event ends the run as
                      ``failed``.

    Returns:
        The final AssessmentRecord.

    Raises:
        InvalidReference: If repository_url cannot be parsed. Nothing is
            written in that case.
    """
    reference = parse_repository_url(repository_url)
    if forge is None and reference.host.lower() not in list_supported_platforms():
        raise InvalidReference(f"Unsupported forge host: {reference.host}")

    persister = ResultPersister(store, submission_id)
    persister.mark_pending()
    console.print(
        f"Assessing [bold cyan]{reference.slug}[/bold cyan] "
        f"(submission {submission_id})..."
    )

    with persister.guard():
        report = await _assess(reference, forge, analyzers, cancel_event)
        persister.mark_success(report)
        console.print(
            f"[green]Submission {submission_id} scored {report.score}/100[/green]"
        )

    return store.get(submission_id)


async def run_assessments(
    submissions: Iterable[tuple[str, str]],
    *,
    store: AssessmentStore,
    max_concurrency: int | None = None,
    forge_factory: ForgeFactory | None = None,
    analyzers: dict[str, Analyzer] | None = None,
) -> dict[str, AssessmentRecord | Exception]:
    """
    Assess many submissions concurrently.

    Runs share nothing but the store; a semaphore bounds how many run at once
    to protect forge rate limits and local resources.

    Args:
        submissions: (submission_id, repository_url) pairs.
        store: Record-update capability.
        max_concurrency: Limit on simultaneous runs (default from config).
        forge_factory: Optional factory creating a forge client per reference;
                       clients it creates are closed after each run.
        analyzers: Bucket label to analyzer.

    Returns:
        submission_id -> final record, or the InvalidReference raised for it,
        or the store error that kept its outcome from being recorded.
    """
    limit = max_concurrency or get_max_concurrency()
    semaphore = asyncio.Semaphore(max(1, limit))

    async def _run_one(
        submission_id: str, repository_url: str
    ) -> tuple[str, AssessmentRecord | Exception]:
        async with semaphore:
            try:
                if forge_factory is None:
                    record = await trigger_assessment(
                        submission_id,
                        repository_url,
                        store=store,
                        analyzers=analyzers,
                    )
                else:
                    reference = parse_repository_url(repository_url)
                    async with forge_factory(reference) as forge:
                        record = await trigger_assessment(
                            submission_id,
                            repository_url,
                            store=store,
                            forge=forge,
                            analyzers=analyzers,
                        )
            except InvalidReference as e:
                console.print(f"[red]Skipping {submission_id}: {e}[/red]")
                return submission_id, e
            except Exception as e:
                # Store errors cannot be recorded on the record itself
                console.print(
                    f"[red]Assessment {submission_id} could not be recorded: {e}[/red]"
                )
                return submission_id, e
            return submission_id, record

    results = await asyncio.gather(
        *(_run_one(submission_id, url) for submission_id, url in submissions)
    )
    return dict(results)


def get_assessment(submission_id: str, store: AssessmentStore) -> AssessmentRecord | None:
    """Read-only view of the latest assessment of a submission."""
    return store.get(submission_id)
