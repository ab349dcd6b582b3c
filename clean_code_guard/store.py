"""
Assessment record storage and the assessment status state machine.

The store is the only place assessment outcomes become visible to other
systems. ResultPersister guarantees that every run writes exactly one
`pending` transition and exactly one terminal transition.
"""

import asyncio
import json
import os
import re
import tempfile
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Iterator, NamedTuple

from rich.console import Console

from clean_code_guard.config import get_store_dir
from clean_code_guard.errors import AssessmentError
from clean_code_guard.report import QualityReport

console = Console(stderr=True)


class AssessmentStatus(str, Enum):
    """Durable assessment states."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not AssessmentStatus.PENDING


class AssessmentRecord(NamedTuple):
    """The persisted outcome of the latest assessment of a submission."""

    submission_id: str
    status: AssessmentStatus | None = None
    score: int | None = None
    error_count: int = 0
    warning_count: int = 0
    report: dict[str, Any] | None = None
    failure_reason: str | None = None
    last_evaluated_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the field names other subsystems read."""
        return {
            "submissionId": self.submission_id,
            "status": self.status.value if self.status else None,
            "score": self.score,
            "errorCount": self.error_count,
            "warningCount": self.warning_count,
            "report": self.report,
            "failureReason": self.failure_reason,
            "lastEvaluatedAt": (
                self.last_evaluated_at.isoformat() if self.last_evaluated_at else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AssessmentRecord":
        status = data.get("status")
        evaluated_at = data.get("lastEvaluatedAt")
        return cls(
            submission_id=str(data["submissionId"]),
            status=AssessmentStatus(status) if status else None,
            score=data.get("score"),
            error_count=data.get("errorCount", 0),
            warning_count=data.get("warningCount", 0),
            report=data.get("report"),
            failure_reason=data.get("failureReason"),
            last_evaluated_at=(
                datetime.fromisoformat(evaluated_at) if evaluated_at else None
            ),
        )


class AssessmentStore(ABC):
    """Record-update capability keyed by submission identifier."""

    @abstractmethod
    def get(self, submission_id: str) -> AssessmentRecord | None:
        """Return the current record, or None if nothing was ever written."""

    @abstractmethod
    def update(self, submission_id: str, **fields: Any) -> AssessmentRecord:
        """Apply field changes to a record (creating it if needed) and return it."""

    def _apply(
        self, current: AssessmentRecord | None, submission_id: str, fields: dict
    ) -> AssessmentRecord:
        record = current or AssessmentRecord(submission_id=submission_id)
        unknown = set(fields) - set(AssessmentRecord._fields)
        if unknown:
            raise ValueError(f"Unknown record fields: {', '.join(sorted(unknown))}")
        return record._replace(**fields)


class InMemoryAssessmentStore(AssessmentStore):
    """Dict-backed store that also keeps every written version of a record."""

    def __init__(self):
        self._records: dict[str, AssessmentRecord] = {}
        self.history: dict[str, list[AssessmentRecord]] = {}

    def get(self, submission_id: str) -> AssessmentRecord | None:
        return self._records.get(submission_id)

    def update(self, submission_id: str, **fields: Any) -> AssessmentRecord:
        record = self._apply(self._records.get(submission_id), submission_id, fields)
        self._records[submission_id] = record
        self.history.setdefault(submission_id, []).append(record)
        return record

    def statuses(self, submission_id: str) -> list[AssessmentStatus | None]:
        """Sequence of statuses written for a submission."""
        return [record.status for record in self.history.get(submission_id, [])]


_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class JsonFileAssessmentStore(AssessmentStore):
    """One JSON document per submission under a directory.

    Each submission has its own file, so concurrent runs for different
    submissions never write the same file. Writes are atomic.
    """

    def __init__(self, directory: Path | str | None = None):
        self.directory = Path(directory).expanduser() if directory else get_store_dir()

    def _path(self, submission_id: str) -> Path:
        safe_id = _UNSAFE_FILENAME_CHARS.sub("_", submission_id)
        return self.directory / f"{safe_id}.json"

    def get(self, submission_id: str) -> AssessmentRecord | None:
        path = self._path(submission_id)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return AssessmentRecord.from_dict(json.load(f))
        except (json.JSONDecodeError, KeyError, ValueError) as e:
            raise ValueError(f"Corrupted assessment record {path}: {e}") from e

    def update(self, submission_id: str, **fields: Any) -> AssessmentRecord:
        record = self._apply(self.get(submission_id), submission_id, fields)
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(submission_id)

        fd, temp_path = tempfile.mkstemp(
            prefix=f".{path.stem}-", suffix=".tmp", dir=self.directory
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(record.to_dict(), f, indent=2, ensure_ascii=False)
            os.replace(temp_path, path)
        except BaseException:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise
        return record


def _now() -> datetime:
    return datetime.now(timezone.utc)


def describe_failure(error: BaseException) -> str:
    """Human-readable failure reason for an exception."""
    if isinstance(error, AssessmentError):
        return str(error) or type(error).__name__
    return f"Unexpected error: {str(error) or type(error).__name__}"


class ResultPersister:
    """Owns the status transitions of one assessment run.

    pending --success--> success(score, report)
    pending --failure--> failed(reason)
    """

    def __init__(self, store: AssessmentStore, submission_id: str):
        self.store = store
        self.submission_id = submission_id
        self.started = False
        self.finished = False

    def mark_pending(self) -> AssessmentRecord:
        if self.started:
            raise RuntimeError(f"Assessment {self.submission_id} already started")
        self.started = True
        return self.store.update(
            self.submission_id,
            status=AssessmentStatus.PENDING,
            last_evaluated_at=_now(),
        )

    def _check_terminal(self) -> None:
        if not self.started:
            raise RuntimeError(f"Assessment {self.submission_id} was never started")
        if self.finished:
            raise RuntimeError(f"Assessment {self.submission_id} already finished")

    def mark_success(self, report: QualityReport) -> AssessmentRecord:
        self._check_terminal()
        record = self.store.update(
            self.submission_id,
            status=AssessmentStatus.SUCCESS,
            score=report.score,
            error_count=report.error_count,
            warning_count=report.warning_count,
            report=report.to_dict(),
            failure_reason=None,
            last_evaluated_at=_now(),
        )
        self.finished = True
        return record

    def mark_failed(self, reason: str) -> AssessmentRecord:
        self._check_terminal()
        record = self.store.update(
            self.submission_id,
            status=AssessmentStatus.FAILED,
            score=None,
            error_count=0,
            warning_count=0,
            report={"message": reason},
            failure_reason=reason,
            last_evaluated_at=_now(),
        )
        self.finished = True
        return record

    @contextmanager
    def guard(self) -> Iterator["ResultPersister"]:
        """
        Convert anything that escapes the body into a failed transition.

        Errors are recorded and swallowed, except cancellation, which is
        recorded and then re-raised. If the body returns without writing a
        terminal state, a failed state is written.
        """
        try:
            yield self
        except asyncio.CancelledError:
            if not self.finished:
                self.mark_failed("Assessment cancelled")
            raise
        except Exception as e:
            reason = describe_failure(e)
            console.print(f"[red]Assessment {self.submission_id} failed: {reason}[/red]")
            if not self.finished:
                self.mark_failed(reason)
        finally:
            if self.started and not self.finished:
                self.mark_failed("Assessment ended without a result")
