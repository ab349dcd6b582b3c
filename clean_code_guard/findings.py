"""
Normalization of analyzer output into error and warning counts.

Analyzers and CI artifacts report findings in several shapes. Each payload is
first classified into a ReportShape and then summed by the matching branch;
anything unrecognized normalizes to zero counts.
"""

import math
from enum import Enum
from typing import Any, NamedTuple


class NormalizedFindings(NamedTuple):
    """Error and warning totals for one bucket."""

    error_count: int = 0
    warning_count: int = 0

    def __add__(self, other):
        if not isinstance(other, NormalizedFindings):
            return NotImplemented
        return NormalizedFindings(
            self.error_count + other.error_count,
            self.warning_count + other.warning_count,
        )


class ReportShape(str, Enum):
    """Known analyzer report layouts.

    - PER_FILE_COUNTS: list of per-file records with errorCount/warningCount
      (ESLint JSON formatter)
    - PER_FILE_MESSAGES: list of per-file records carrying a messages or
      warnings list whose entries have a severity or type (HTMLHint, Stylelint)
    - TOTALS: a single object with errorCount/warningCount or
      totals.errors/totals.warnings
    - UNRECOGNIZED: anything else
    """

    PER_FILE_COUNTS = "per_file_counts"
    PER_FILE_MESSAGES = "per_file_messages"
    TOTALS = "totals"
    UNRECOGNIZED = "unrecognized"


# Severity spellings across analyzers (ESLint uses 2/1 numerically)
ERROR_SEVERITIES = frozenset({"error", "fatal", 2})
WARNING_SEVERITIES = frozenset({"warning", "warn", 1})


def _as_count(value: Any) -> int:
    """Coerce a reported count to a non-negative int; junk becomes 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(0, value)
    if isinstance(value, float) and math.isfinite(value):
        return max(0, int(value))
    return 0


def _has_count_fields(record: Any) -> bool:
    return isinstance(record, dict) and (
        "errorCount" in record or "warningCount" in record
    )


def _message_list(record: Any) -> list | None:
    if not isinstance(record, dict):
        return None
    for key in ("messages", "warnings"):
        if isinstance(record.get(key), list):
            return record[key]
    return None


def detect_shape(payload: Any) -> ReportShape:
    """Classify an analyzer payload."""
    if isinstance(payload, list):
        records = [record for record in payload if isinstance(record, dict)]
        if not records:
            # An empty list is a valid per-file report with no files
            return (
                ReportShape.PER_FILE_COUNTS
                if not payload
                else ReportShape.UNRECOGNIZED
            )
        if any(_has_count_fields(record) for record in records):
            return ReportShape.PER_FILE_COUNTS
        if any(_message_list(record) is not None for record in records):
            return ReportShape.PER_FILE_MESSAGES
        return ReportShape.UNRECOGNIZED

    if isinstance(payload, dict):
        if _has_count_fields(payload):
            return ReportShape.TOTALS
        if isinstance(payload.get("totals"), dict):
            return ReportShape.TOTALS

    return ReportShape.UNRECOGNIZED


def _severity_of(message: Any) -> Any:
    if not isinstance(message, dict):
        return None
    severity = message.get("severity", message.get("type"))
    if isinstance(severity, str):
        return severity.lower()
    if isinstance(severity, int) and not isinstance(severity, bool):
        return severity
    return None


def _count_messages(messages: list) -> NormalizedFindings:
    errors = 0
    warnings = 0
    for message in messages:
        severity = _severity_of(message)
        if severity in ERROR_SEVERITIES:
            errors += 1
        elif severity in WARNING_SEVERITIES:
            warnings += 1
    return NormalizedFindings(errors, warnings)


def normalize_findings(payload: Any) -> NormalizedFindings:
    """
    Sum an analyzer payload into NormalizedFindings.

    Args:
        payload: Parsed JSON output of an analyzer or CI artifact.

    Returns:
        Error and warning totals; zero for unrecognized payloads.
    """
    shape = detect_shape(payload)

    if shape is ReportShape.PER_FILE_COUNTS:
        total = NormalizedFindings()
        for record in payload:
            if _has_count_fields(record):
                total += NormalizedFindings(
                    _as_count(record.get("errorCount")),
                    _as_count(record.get("warningCount")),
                )
            elif _message_list(record) is not None:
                total += _count_messages(_message_list(record))
        return total

    if shape is ReportShape.PER_FILE_MESSAGES:
        total = NormalizedFindings()
        for record in payload:
            messages = _message_list(record)
            if messages is not None:
                total += _count_messages(messages)
        return total

    if shape is ReportShape.TOTALS:
        if _has_count_fields(payload):
            return NormalizedFindings(
                _as_count(payload.get("errorCount")),
                _as_count(payload.get("warningCount")),
            )
        totals = payload["totals"]
        return NormalizedFindings(
            _as_count(totals.get("errors")),
            _as_count(totals.get("warnings")),
        )

    return NormalizedFindings()


def count_reported_files(payload: Any) -> int:
    """Number of per-file records in a payload (0 for aggregate shapes)."""
    if detect_shape(payload) in (
        ReportShape.PER_FILE_COUNTS,
        ReportShape.PER_FILE_MESSAGES,
    ):
        return sum(1 for record in payload if isinstance(record, dict))
    return 0
