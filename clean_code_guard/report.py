"""
Shared report types.
"""

from typing import Any, NamedTuple


class BucketResult(NamedTuple):
    """Scored findings for one language bucket."""

    label: str
    file_count: int
    error_count: int
    warning_count: int
    bucket_score: int
    config_source: str = "baseline"

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "fileCount": self.file_count,
            "errorCount": self.error_count,
            "warningCount": self.warning_count,
            "bucketScore": self.bucket_score,
            "configSource": self.config_source,
        }


class BucketFailure(NamedTuple):
    """A bucket whose analyzer failed; excluded from scoring."""

    label: str
    file_count: int
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "fileCount": self.file_count,
            "reason": self.reason,
        }


class QualityReport(NamedTuple):
    """The outcome of one successful assessment run."""

    score: int
    error_count: int
    warning_count: int
    buckets: tuple[BucketResult, ...] = ()
    file_counts: dict[str, int] | None = None
    note: str | None = None
    source: str = "local"  # "local" or "artifact"
    failures: tuple[BucketFailure, ...] = ()
    baseline_version: str | None = None
    artifact: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "score": self.score,
            "errorCount": self.error_count,
            "warningCount": self.warning_count,
            "source": self.source,
            "perBucket": [bucket.to_dict() for bucket in self.buckets],
            "fileCounts": dict(self.file_counts or {}),
            "note": self.note,
            "failures": [failure.to_dict() for failure in self.failures],
        }
        if self.baseline_version is not None:
            data["baselineVersion"] = self.baseline_version
        if self.artifact is not None:
            data["artifact"] = dict(self.artifact)
        return data
