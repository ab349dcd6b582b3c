"""
Analyzer orchestration over classified file buckets.
"""

import asyncio
from pathlib import Path
from typing import NamedTuple

from rich.console import Console

from clean_code_guard.analyzers import Analyzer, ConfigResolution
from clean_code_guard.classifier import FileBuckets
from clean_code_guard.errors import (
    AllAnalyzersFailed,
    AnalyzerFailure,
    AssessmentCancelled,
)
from clean_code_guard.findings import NormalizedFindings, normalize_findings
from clean_code_guard.report import BucketFailure

console = Console(stderr=True)


class BucketAnalysis(NamedTuple):
    """Normalized findings of one successfully analyzed bucket."""

    label: str
    file_count: int
    findings: NormalizedFindings
    config: ConfigResolution


class OrchestrationResult(NamedTuple):
    """Per-bucket outcomes of a local analysis run."""

    analyses: list[BucketAnalysis]
    failures: list[BucketFailure]

    @property
    def used_baseline(self) -> bool:
        return any(analysis.config.is_baseline for analysis in self.analyses)


def _check_cancelled(cancel_event: asyncio.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise AssessmentCancelled()


async def analyze_buckets(
    root: Path,
    buckets: FileBuckets,
    analyzers: dict[str, Analyzer],
    *,
    scratch_dir: Path,
    timeout: float,
    cancel_event: asyncio.Event | None = None,
) -> OrchestrationResult:
    """
    Run the matching analyzer for every non-empty bucket, one after another.

    A failing analyzer is recorded as a BucketFailure and the remaining
    buckets still run. Buckets without a registered analyzer count as failed.

    Args:
        root: Materialized source root (analyzer working directory).
        buckets: Classified files.
        analyzers: Bucket label to analyzer.
        scratch_dir: Directory for baseline config files.
        timeout: Per-invocation analyzer timeout in seconds.
        cancel_event: Optional abort signal.

    Returns:
        OrchestrationResult with successful analyses and failures.

    Raises:
        AllAnalyzersFailed: If at least one bucket was attempted and all failed.
        AssessmentCancelled: If cancel_event is set.
    """
    analyses: list[BucketAnalysis] = []
    failures: list[BucketFailure] = []

    for label, files in buckets.analyzable().items():
        _check_cancelled(cancel_event)

        analyzer = analyzers.get(label)
        if analyzer is None:
            failures.append(
                BucketFailure(label, len(files), f"No analyzer registered for {label}")
            )
            continue

        config = analyzer.resolve_config(root)
        console.print(
            f"[dim]Running {analyzer.name} on {len(files)} {label} file(s) "
            f"({config.describe()})[/dim]"
        )

        try:
            payload = await analyzer.run(
                list(files),
                root,
                config,
                scratch_dir=scratch_dir,
                timeout=timeout,
                cancel_event=cancel_event,
            )
        except AssessmentCancelled:
            raise
        except AnalyzerFailure as e:
            console.print(f"  [yellow]⚠️  {label} analysis failed: {e}[/yellow]")
            failures.append(BucketFailure(label, len(files), str(e)))
            continue
        except Exception as e:
            console.print(f"  [yellow]⚠️  {label} analysis failed: {e}[/yellow]")
            failures.append(
                BucketFailure(label, len(files), f"{analyzer.name} crashed: {e}")
            )
            continue

        analyses.append(
            BucketAnalysis(label, len(files), normalize_findings(payload), config)
        )

    if failures and not analyses:
        raise AllAnalyzersFailed(failures)

    return OrchestrationResult(analyses=analyses, failures=failures)
