"""
Base interface for forge clients.
"""

from abc import ABC, abstractmethod
from typing import Any, NamedTuple


class RetryableError(NamedTuple):
    """A forge request that failed in a way a later attempt might not."""

    message: str
    status_code: int | None = None


class ForgeResult(NamedTuple):
    """Outcome of a single forge request: a value or a RetryableError."""

    value: Any = None
    error: RetryableError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ArtifactReport(NamedTuple):
    """A lint report recovered from an automation artifact."""

    payload: Any
    run_id: int | None
    artifact_name: str
    entry_name: str


class BaseForgeClient(ABC):
    """
    Abstract forge client.

    Implementations are async context managers owning their HTTP resources,
    so each assessment run opens and closes its own client.
    """

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()
        return False

    async def aclose(self) -> None:
        """Release network resources."""

    @abstractmethod
    def get_platform_name(self) -> str:
        """Return the platform identifier (e.g. 'github')."""

    @abstractmethod
    async def check_visibility(self, owner: str, name: str) -> bool:
        """
        Report whether the repository can be assessed.

        Returns False only when the forge definitively reports the repository
        as missing or private.
        """

    @abstractmethod
    async def find_artifact(self, owner: str, name: str) -> ArtifactReport | None:
        """Search recent automation runs for a lint report artifact."""

    @abstractmethod
    async def download_snapshot(self, owner: str, name: str) -> bytes:
        """
        Download a zip archive of the default branch.

        Raises:
            ForgeUnavailable: If the archive cannot be retrieved.
        """
