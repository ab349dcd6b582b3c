"""
GitHub forge client implementation for Clean Code Guard.

This module talks to the GitHub REST API to check repository visibility, look
for lint report artifacts produced by GitHub Actions, and download source
snapshots.
"""

import asyncio
import io
import json
import re
import zipfile
from typing import Any

import httpx
from rich.console import Console

from clean_code_guard.config import (
    get_github_token,
    get_timeouts,
    get_visibility_policy,
)
from clean_code_guard.errors import ForgeUnavailable
from clean_code_guard.http_client import create_async_http_client
from clean_code_guard.vcs.base import (
    ArtifactReport,
    BaseForgeClient,
    ForgeResult,
    RetryableError,
)

console = Console(stderr=True)

# GitHub REST API endpoint
GITHUB_API_BASE = "https://api.github.com"

# Number of recent workflow runs searched for a lint artifact
WORKFLOW_RUNS_PAGE_SIZE = 10

# Artifact and report naming conventions
ARTIFACT_NAME_PATTERN = re.compile(r"eslint|lint[-_]?report", re.IGNORECASE)
REPORT_ENTRY_PATTERN = re.compile(
    r"(eslint[^/]*|lint[-_]?report[^/]*)\.json$", re.IGNORECASE
)


class GitHubForgeClient(BaseForgeClient):
    """GitHub forge client using the REST API."""

    def __init__(
        self,
        token: str | None = None,
        client: httpx.AsyncClient | None = None,
        api_base: str = GITHUB_API_BASE,
    ):
        """
        Initialize the GitHub client.

        Args:
            token: GitHub token. If not provided, reads GITHUB_TOKEN from the
                   environment. Anonymous access is valid for public repos
                   (with a lower rate limit).
            client: Optional pre-built HTTP client (used by tests).
            api_base: API root URL.
        """
        self.token = token or get_github_token()
        self.api_base = api_base.rstrip("/")
        self.timeouts = get_timeouts()
        self._owns_client = client is None
        self._client = client or create_async_http_client(self.token)

    def get_platform_name(self) -> str:
        """Return 'github' as the platform identifier."""
        return "github"

    async def aclose(self) -> None:
        if self._owns_client and not self._client.is_closed:
            await self._client.aclose()

    async def _request(self, url: str, timeout: float) -> ForgeResult:
        """
        Issue a GET request bounded by a total-duration timeout.

        Never raises for transport, timeout or HTTP status errors; those are
        returned as a RetryableError so callers choose whether to continue.
        """
        try:
            response = await asyncio.wait_for(
                self._client.get(
                    url,
                    timeout=httpx.Timeout(timeout, connect=self.timeouts.connect),
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            return ForgeResult(error=RetryableError(f"Request timed out: {url}"))
        except httpx.HTTPError as e:
            return ForgeResult(error=RetryableError(f"Request failed: {e}"))

        if response.status_code >= 400:
            return ForgeResult(
                error=RetryableError(
                    f"HTTP {response.status_code} from {url}",
                    status_code=response.status_code,
                )
            )
        return ForgeResult(value=response)

    async def _request_json(self, url: str, timeout: float) -> ForgeResult:
        result = await self._request(url, timeout)
        if not result.ok:
            return result
        try:
            return ForgeResult(value=result.value.json())
        except (json.JSONDecodeError, ValueError) as e:
            return ForgeResult(error=RetryableError(f"Malformed JSON from {url}: {e}"))

    async def check_visibility(self, owner: str, name: str) -> bool:
        """
        Check whether the repository is public and reachable.

        A 404 or a response flagged private is definitive. Any other failure
        (timeout, rate limit, server error) is inconclusive and resolved by the
        configured visibility policy; the default "optimistic" policy assumes
        the repository is accessible so transient forge problems do not block
        assessment. This lets a private repository behind a rate-limited
        check proceed as if it were public.
        """
        url = f"{self.api_base}/repos/{owner}/{name}"
        result = await self._request_json(url, self.timeouts.visibility)

        if result.ok:
            data = result.value
            if isinstance(data, dict) and data.get("private"):
                return False
            return True

        if result.error.status_code == 404:
            return False

        policy = get_visibility_policy()
        console.print(
            f"[yellow]⚠️  Visibility check for {owner}/{name} inconclusive "
            f"({result.error.message}); policy '{policy}'[/yellow]"
        )
        return policy == "optimistic"

    async def find_artifact(self, owner: str, name: str) -> ArtifactReport | None:
        """
        Search the most recent workflow runs for a lint report artifact.

        Runs are visited in recency order. The first artifact whose name matches
        the lint report convention is downloaded and unpacked, and the first
        JSON entry matching the report convention is parsed. Failures on a run
        or artifact are logged and skipped.

        Returns:
            The first report found, or None.
        """
        runs_url = (
            f"{self.api_base}/repos/{owner}/{name}/actions/runs"
            f"?per_page={WORKFLOW_RUNS_PAGE_SIZE}"
        )
        runs_result = await self._request_json(runs_url, self.timeouts.artifact)
        if not runs_result.ok:
            console.print(
                f"[dim]No workflow runs for {owner}/{name}: "
                f"{runs_result.error.message}[/dim]"
            )
            return None

        runs = _as_list(runs_result.value, "workflow_runs")
        for run in runs[:WORKFLOW_RUNS_PAGE_SIZE]:
            run_id = run.get("id") if isinstance(run, dict) else None
            if run_id is None:
                continue

            report = await self._find_artifact_in_run(owner, name, run_id)
            if report is not None:
                return report

        return None

    async def _find_artifact_in_run(
        self, owner: str, name: str, run_id: int
    ) -> ArtifactReport | None:
        artifacts_url = (
            f"{self.api_base}/repos/{owner}/{name}/actions/runs/{run_id}/artifacts"
        )
        artifacts_result = await self._request_json(
            artifacts_url, self.timeouts.artifact
        )
        if not artifacts_result.ok:
            console.print(
                f"[dim]Skipping run {run_id}: {artifacts_result.error.message}[/dim]"
            )
            return None

        artifact = None
        for candidate in _as_list(artifacts_result.value, "artifacts"):
            if not isinstance(candidate, dict) or candidate.get("expired"):
                continue
            if ARTIFACT_NAME_PATTERN.search(str(candidate.get("name", ""))):
                artifact = candidate
                break

        if artifact is None:
            console.print(f"[dim]No lint artifact found in run {run_id}[/dim]")
            return None

        artifact_name = str(artifact.get("name", ""))
        download_url = artifact.get("archive_download_url")
        if not download_url:
            return None

        console.print(f"[dim]Found artifact {artifact_name}, downloading...[/dim]")
        download = await self._request(download_url, self.timeouts.artifact)
        if not download.ok:
            console.print(
                f"[yellow]⚠️  Failed to download artifact {artifact_name}: "
                f"{download.error.message}[/yellow]"
            )
            return None

        return _extract_report(download.value.content, run_id, artifact_name)

    async def download_snapshot(self, owner: str, name: str) -> bytes:
        """
        Download a zip archive of the repository's default branch.

        Raises:
            ForgeUnavailable: If the archive cannot be downloaded.
        """
        url = f"{self.api_base}/repos/{owner}/{name}/zipball"
        result = await self._request(url, self.timeouts.snapshot)
        if not result.ok:
            raise ForgeUnavailable(
                f"Failed to download repository snapshot: {result.error.message}"
            )
        return result.value.content


def _as_list(data: Any, key: str) -> list:
    if isinstance(data, dict) and isinstance(data.get(key), list):
        return data[key]
    return []


def _extract_report(
    archive: bytes, run_id: int, artifact_name: str
) -> ArtifactReport | None:
    """Find and parse the lint report inside a downloaded artifact bundle."""
    try:
        with zipfile.ZipFile(io.BytesIO(archive)) as bundle:
            entry_names = [
                info.filename for info in bundle.infolist() if not info.is_dir()
            ]
            for entry_name in entry_names:
                if not REPORT_ENTRY_PATTERN.search(entry_name):
                    continue
                try:
                    payload = json.loads(bundle.read(entry_name).decode("utf-8"))
                except (ValueError, UnicodeDecodeError) as e:
                    console.print(
                        f"[yellow]⚠️  Could not decode {entry_name}: {e}[/yellow]"
                    )
                    continue
                console.print(f"[dim]Found lint report in {entry_name}[/dim]")
                return ArtifactReport(
                    payload=payload,
                    run_id=run_id,
                    artifact_name=artifact_name,
                    entry_name=entry_name,
                )
    except zipfile.BadZipFile as e:
        console.print(
            f"[yellow]⚠️  Artifact {artifact_name} is not a valid zip: {e}[/yellow]"
        )
        return None

    console.print(
        f"[dim]Artifact {artifact_name} contains: {', '.join(entry_names)}[/dim]"
    )
    return None
