"""
Tests for score aggregation.
"""

import pytest

from clean_code_guard.findings import NormalizedFindings
from clean_code_guard.report import BucketFailure, BucketResult, QualityReport
from clean_code_guard.scoring import (
    NEUTRAL_SCORE,
    NO_LINTABLE_FILES_NOTE,
    NO_SCORED_BUCKETS_NOTE,
    bucket_score,
    build_report,
    combine_scores,
    report_from_artifact,
    score_bucket,
)


def _bucket(label, file_count, score):
    return BucketResult(label, file_count, 0, 0, score)


@pytest.mark.parametrize(
    "errors, warnings, expected",
    [
        (0, 0, 100),
        (1, 0, 95),
        (0, 1, 98),
        (4, 3, 74),
        (20, 0, 0),
        (25, 0, 0),
        (100, 100, 0),
    ],
)
def test_bucket_score(errors, warnings, expected):
    """Test the per-bucket penalty formula and its clamping."""
    assert bucket_score(errors, warnings) == expected


def test_bucket_score_stays_in_range():
    """Test that bucket scores never leave [0, 100]."""
    for errors in range(0, 30, 3):
        for warnings in range(0, 60, 7):
            assert 0 <= bucket_score(errors, warnings) <= 100


def test_combine_scores_weights_by_file_count():
    """Test the file-count weighted mean."""
    buckets = [_bucket("javascript", 3, 90), _bucket("css", 1, 50)]
    # (90*3 + 50*1) / 4 = 80
    assert combine_scores(buckets) == 80


def test_combine_scores_zero_files_weigh_one():
    """Test that buckets with zero files still carry weight one."""
    buckets = [_bucket("javascript", 0, 100), _bucket("css", 0, 50)]
    assert combine_scores(buckets) == 75


def test_combine_scores_rounds_half_up():
    """Test that x.5 rounds up rather than to even."""
    buckets = [_bucket("javascript", 1, 100), _bucket("css", 1, 95)]
    # 97.5 -> 98
    assert combine_scores(buckets) == 98
    buckets = [_bucket("javascript", 1, 84), _bucket("css", 1, 85)]
    # 84.5 -> 85
    assert combine_scores(buckets) == 85


def test_combine_scores_empty():
    """Test that no buckets produce no combined score."""
    assert combine_scores([]) is None


def test_score_bucket():
    """Test building a BucketResult from findings."""
    result = score_bucket(
        "html", 2, NormalizedFindings(1, 2), config_source="project:.htmlhintrc"
    )
    assert result.bucket_score == 91
    assert result.to_dict() == {
        "label": "html",
        "fileCount": 2,
        "errorCount": 1,
        "warningCount": 2,
        "bucketScore": 91,
        "configSource": "project:.htmlhintrc",
    }


def test_build_report_totals():
    """Test that report totals are sums over scored buckets."""
    buckets = [
        score_bucket("javascript", 2, NormalizedFindings(2, 1)),
        score_bucket("css", 2, NormalizedFindings(0, 3)),
    ]
    report = build_report(buckets, file_counts={"javascript": 2, "css": 2})
    assert report.error_count == 2
    assert report.warning_count == 4
    # (88*2 + 94*2) / 4 = 91
    assert report.score == 91
    assert report.note is None

    data = report.to_dict()
    assert data["score"] == 91
    assert [bucket["label"] for bucket in data["perBucket"]] == ["javascript", "css"]
    assert data["fileCounts"] == {"javascript": 2, "css": 2}
    assert data["source"] == "local"
    assert "baselineVersion" not in data


def test_build_report_neutral_without_buckets():
    """Test the neutral score and note when nothing could be scored."""
    report = build_report([], file_counts={"python": 3})
    assert report.score == NEUTRAL_SCORE == 70
    assert report.note == NO_LINTABLE_FILES_NOTE
    assert report.error_count == 0
    assert report.warning_count == 0


def test_build_report_neutral_with_failures_only():
    """Test the note used when buckets existed but none was scored."""
    failure = BucketFailure("css", 1, "stylelint is not installed")
    report = build_report([], failures=[failure])
    assert report.score == NEUTRAL_SCORE
    assert report.note == NO_SCORED_BUCKETS_NOTE
    assert report.to_dict()["failures"] == [
        {"label": "css", "fileCount": 1, "reason": "stylelint is not installed"}
    ]


def test_failures_do_not_affect_score():
    """Test that failed buckets are excluded from the weighted mean."""
    buckets = [score_bucket("javascript", 1, NormalizedFindings(0, 0))]
    failures = [BucketFailure("css", 50, "crashed")]
    assert build_report(buckets, failures=failures).score == 100


def test_report_from_artifact():
    """Test building a report from a CI lint artifact."""
    payload = [
        {"filePath": "a.js", "errorCount": 1, "warningCount": 0},
        {"filePath": "b.js", "errorCount": 0, "warningCount": 2},
    ]
    report = report_from_artifact(
        payload, run_id=7, artifact_name="eslint-report", entry_name="eslint.json"
    )
    assert report.source == "artifact"
    assert report.error_count == 1
    assert report.warning_count == 2
    assert report.score == bucket_score(1, 2)
    assert report.buckets[0].config_source == "artifact"
    assert report.file_counts == {"javascript": 2}
    assert report.to_dict()["artifact"] == {
        "runId": 7,
        "name": "eslint-report",
        "entry": "eslint.json",
    }


def test_report_from_artifact_unrecognized_payload():
    """Test that an unreadable artifact payload scores as clean."""
    report = report_from_artifact({"unexpected": True})
    assert report.score == 100
    assert report.file_counts == {}


def test_combine_scores_larger_bucket_dominates():
    """Test that a ten-file bucket outweighs a two-file bucket."""
    buckets = [_bucket("javascript", 10, 80), _bucket("css", 2, 50)]
    assert combine_scores(buckets) == 75


def test_report_default_file_counts_are_not_shared():
    """Test that reports built without file counts serialize an empty mapping."""
    first = QualityReport(score=70, error_count=0, warning_count=0)
    first.to_dict()["fileCounts"]["python"] = 3

    second = QualityReport(score=70, error_count=0, warning_count=0)

    assert first.file_counts is None
    assert second.to_dict()["fileCounts"] == {}
