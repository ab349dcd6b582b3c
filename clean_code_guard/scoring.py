"""
Score aggregation for Clean Code Guard.

Scoring contract (existing consumers rely on these exact values):
- bucket score = clamp(100 - 5 × errors - 2 × warnings, 0, 100)
- combined score = file-count weighted mean of bucket scores,
  weight = max(1, file_count), rounded half up
- no scored buckets -> neutral score 70 with an explanatory note
"""

import math
from typing import Any, Sequence

from clean_code_guard.findings import (
    NormalizedFindings,
    count_reported_files,
    normalize_findings,
)
from clean_code_guard.report import BucketFailure, BucketResult, QualityReport

MAX_SCORE = 100
MIN_SCORE = 0
ERROR_PENALTY = 5
WARNING_PENALTY = 2
NEUTRAL_SCORE = 70

NO_LINTABLE_FILES_NOTE = (
    "No JavaScript, HTML or CSS files were found to analyze; "
    f"a neutral score of {NEUTRAL_SCORE} was assigned."
)
NO_SCORED_BUCKETS_NOTE = (
    "No bucket produced findings; "
    f"a neutral score of {NEUTRAL_SCORE} was assigned."
)


def bucket_score(error_count: int, warning_count: int) -> int:
    """
    Score one bucket from its findings.

    Examples:
        >>> bucket_score(0, 0)
        100
        >>> bucket_score(4, 3)
        74
        >>> bucket_score(25, 0)
        0
    """
    raw = MAX_SCORE - ERROR_PENALTY * error_count - WARNING_PENALTY * warning_count
    return max(MIN_SCORE, min(MAX_SCORE, raw))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def combine_scores(buckets: Sequence[BucketResult]) -> int | None:
    """
    Weighted mean of bucket scores, weighted by file count.

    Returns:
        The combined score, or None if there are no buckets.
    """
    if not buckets:
        return None

    weighted_sum = 0.0
    weight_total = 0
    for bucket in buckets:
        weight = max(1, bucket.file_count)
        weighted_sum += bucket.bucket_score * weight
        weight_total += weight

    return _round_half_up(weighted_sum / weight_total)


def score_bucket(
    label: str,
    file_count: int,
    findings: NormalizedFindings,
    config_source: str = "baseline",
) -> BucketResult:
    """Build a BucketResult from normalized findings."""
    return BucketResult(
        label=label,
        file_count=file_count,
        error_count=findings.error_count,
        warning_count=findings.warning_count,
        bucket_score=bucket_score(findings.error_count, findings.warning_count),
        config_source=config_source,
    )


def build_report(
    buckets: Sequence[BucketResult],
    file_counts: dict[str, int] | None = None,
    failures: Sequence[BucketFailure] = (),
    source: str = "local",
    baseline_version: str | None = None,
    artifact: dict[str, Any] | None = None,
) -> QualityReport:
    """
    Aggregate bucket results into a QualityReport.

    Args:
        buckets: Scored buckets, in report order.
        file_counts: Files per observed language.
        failures: Buckets whose analyzer failed (reported, not scored).
        source: "local" for server-side analysis, "artifact" for CI reports.
        baseline_version: Version of the baseline rules, when any bucket used them.
        artifact: Metadata of the CI artifact the findings came from.
    """
    combined = combine_scores(buckets)
    note = None
    if combined is None:
        combined = NEUTRAL_SCORE
        # Failures without any scored bucket only arrive from direct callers;
        # analyze_buckets raises AllAnalyzersFailed in that case.
        note = NO_SCORED_BUCKETS_NOTE if failures else NO_LINTABLE_FILES_NOTE

    return QualityReport(
        score=combined,
        error_count=sum(bucket.error_count for bucket in buckets),
        warning_count=sum(bucket.warning_count for bucket in buckets),
        buckets=tuple(buckets),
        file_counts=dict(file_counts or {}),
        note=note,
        source=source,
        failures=tuple(failures),
        baseline_version=baseline_version,
        artifact=artifact,
    )


def report_from_artifact(
    payload: Any,
    run_id: int | None = None,
    artifact_name: str | None = None,
    entry_name: str | None = None,
) -> QualityReport:
    """
    Build a report from a lint artifact produced by the repository's own CI.

    The artifact is treated as a single JavaScript bucket; its file count is
    the number of per-file records (0 for aggregate totals).
    """
    findings = normalize_findings(payload)
    file_count = count_reported_files(payload)
    bucket = score_bucket("javascript", file_count, findings, config_source="artifact")
    return build_report(
        [bucket],
        file_counts={"javascript": file_count} if file_count else {},
        source="artifact",
        artifact={
            "runId": run_id,
            "name": artifact_name,
            "entry": entry_name,
        },
    )
