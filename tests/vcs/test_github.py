"""Tests for the GitHub forge client."""

import asyncio
import io
import json
import zipfile

import httpx
import pytest

from clean_code_guard.config import set_visibility_policy
from clean_code_guard.errors import ForgeUnavailable
from clean_code_guard.http_client import create_async_http_client
from clean_code_guard.vcs import (
    BaseForgeClient,
    GitHubForgeClient,
    get_forge_client,
    list_supported_platforms,
    register_forge_client,
)

API = "https://api.github.com"


def _zip(files: dict[str, str]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as bundle:
        for path, content in files.items():
            bundle.writestr(path, content)
    return buffer.getvalue()


def _run(handler, action):
    """Run action(forge) against a GitHubForgeClient backed by handler."""

    async def _main():
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        forge = GitHubForgeClient(token="test_token", client=client)
        try:
            return await action(forge)
        finally:
            await client.aclose()

    return asyncio.run(_main())


def _json_routes(routes: dict[str, object]):
    """Handler serving JSON or bytes by path; anything else is a 404."""

    def handler(request: httpx.Request) -> httpx.Response:
        body = routes.get(request.url.path)
        if body is None:
            return httpx.Response(404, json={"message": "Not Found"})
        if isinstance(body, httpx.Response):
            return body
        if isinstance(body, bytes):
            return httpx.Response(200, content=body)
        return httpx.Response(200, json=body)

    return handler


def _find_artifact(routes):
    return _run(_json_routes(routes), lambda f: f.find_artifact("acme", "demo"))


def test_platform_name():
    """Test the platform identifier."""
    forge = GitHubForgeClient(token="t", client=httpx.AsyncClient())
    assert forge.get_platform_name() == "github"


class TestCheckVisibility:
    def test_public_repository(self):
        """Test that a public repository is accessible."""
        handler = _json_routes({"/repos/acme/demo": {"private": False}})
        assert _run(handler, lambda f: f.check_visibility("acme", "demo")) is True

    def test_private_flag_means_inaccessible(self):
        """Test that a successful response flagged private is inaccessible."""
        handler = _json_routes({"/repos/acme/demo": {"private": True}})
        assert _run(handler, lambda f: f.check_visibility("acme", "demo")) is False

    def test_not_found_means_inaccessible(self):
        """Test that 404 is definitive."""
        handler = _json_routes({})
        assert _run(handler, lambda f: f.check_visibility("acme", "demo")) is False

    def test_server_error_is_optimistic_by_default(self):
        """Test that inconclusive checks assume the repository is accessible."""
        handler = _json_routes(
            {"/repos/acme/demo": httpx.Response(503, text="unavailable")}
        )
        assert _run(handler, lambda f: f.check_visibility("acme", "demo")) is True

    def test_rate_limit_is_optimistic_by_default(self):
        """Test that a 403 rate limit response is inconclusive."""
        handler = _json_routes(
            {"/repos/acme/demo": httpx.Response(403, json={"message": "rate limit"})}
        )
        assert _run(handler, lambda f: f.check_visibility("acme", "demo")) is True

    def test_transport_error_is_optimistic(self):
        """Test that connection failures are inconclusive."""

        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        assert _run(handler, lambda f: f.check_visibility("acme", "demo")) is True

    def test_strict_policy_denies_inconclusive_checks(self):
        """Test the strict visibility policy."""
        set_visibility_policy("strict")
        handler = _json_routes({"/repos/acme/demo": httpx.Response(500)})
        assert _run(handler, lambda f: f.check_visibility("acme", "demo")) is False


class TestFindArtifact:
    def test_finds_report_in_recent_run(self):
        """Test locating and decoding an ESLint report artifact."""
        report = [{"filePath": "a.js", "errorCount": 1, "warningCount": 2}]
        seen_queries = []

        routes = {
            "/repos/acme/demo/actions/runs": {
                "workflow_runs": [{"id": 2}, {"id": 1}],
            },
            "/repos/acme/demo/actions/runs/2/artifacts": {
                "artifacts": [{"name": "coverage", "archive_download_url": "x"}],
            },
            "/repos/acme/demo/actions/runs/1/artifacts": {
                "artifacts": [
                    {
                        "name": "ESLint-Report",
                        "archive_download_url": f"{API}/download/77",
                    }
                ],
            },
            "/download/77": _zip(
                {"README.txt": "ignore", "out/eslint-report.json": json.dumps(report)}
            ),
        }
        serve = _json_routes(routes)

        def handler(request):
            seen_queries.append((request.url.path, dict(request.url.params)))
            return serve(request)

        found = _run(handler, lambda f: f.find_artifact("acme", "demo"))

        assert found is not None
        assert found.payload == report
        assert found.run_id == 1
        assert found.artifact_name == "ESLint-Report"
        assert found.entry_name == "out/eslint-report.json"
        assert ("/repos/acme/demo/actions/runs", {"per_page": "10"}) in seen_queries

    def test_expired_artifacts_are_skipped(self):
        """Test that expired artifacts are never downloaded."""
        routes = {
            "/repos/acme/demo/actions/runs": {"workflow_runs": [{"id": 1}]},
            "/repos/acme/demo/actions/runs/1/artifacts": {
                "artifacts": [
                    {
                        "name": "eslint",
                        "expired": True,
                        "archive_download_url": f"{API}/download/1",
                    }
                ],
            },
        }
        assert _find_artifact(routes) is None

    def test_no_runs(self):
        """Test a repository without workflow runs."""
        routes = {"/repos/acme/demo/actions/runs": {"workflow_runs": []}}
        assert _find_artifact(routes) is None

    def test_runs_request_failure_returns_none(self):
        """Test that a failing runs listing is not fatal."""
        assert _find_artifact({}) is None

    def test_invalid_artifact_bundle_returns_none(self):
        """Test that an undecodable artifact bundle is skipped."""
        routes = {
            "/repos/acme/demo/actions/runs": {"workflow_runs": [{"id": 1}]},
            "/repos/acme/demo/actions/runs/1/artifacts": {
                "artifacts": [
                    {"name": "eslint", "archive_download_url": f"{API}/download/1"}
                ],
            },
            "/download/1": b"not a zip",
        }
        assert _find_artifact(routes) is None

    def test_malformed_report_entry_returns_none(self):
        """Test that a report entry with invalid JSON is skipped."""
        routes = {
            "/repos/acme/demo/actions/runs": {"workflow_runs": [{"id": 1}]},
            "/repos/acme/demo/actions/runs/1/artifacts": {
                "artifacts": [
                    {"name": "eslint", "archive_download_url": f"{API}/download/1"}
                ],
            },
            "/download/1": _zip({"eslint.json": "{broken"}),
        }
        assert _find_artifact(routes) is None


class TestDownloadSnapshot:
    def test_returns_archive_bytes(self):
        """Test downloading the default branch archive."""
        archive = _zip({"acme-demo-1/index.html": "<html></html>"})
        routes = {"/repos/acme/demo/zipball": archive}
        data = _run(_json_routes(routes), lambda f: f.download_snapshot("acme", "demo"))
        assert data == archive

    def test_failure_raises_forge_unavailable(self):
        """Test that a failed download raises ForgeUnavailable."""
        with pytest.raises(ForgeUnavailable, match="Failed to download"):
            _run(_json_routes({}), lambda f: f.download_snapshot("acme", "demo"))


def test_http_client_sends_bearer_token():
    """Test that the shared client authenticates with the forge credential."""
    captured = {}

    def handler(request):
        captured.update(request.headers)
        return httpx.Response(200, json={"private": False})

    async def _main():
        client = create_async_http_client(
            "ghp_secret", transport=httpx.MockTransport(handler)
        )
        async with GitHubForgeClient(client=client) as forge:
            await forge.check_visibility("acme", "demo")
        await client.aclose()

    asyncio.run(_main())

    assert captured["authorization"] == "Bearer ghp_secret"
    assert captured["user-agent"] == "clean-code-guard"


def test_owned_client_is_closed():
    """Test that a client created by the forge is closed on exit."""

    async def _main():
        async with GitHubForgeClient(token="t") as forge:
            client = forge._client
        return client.is_closed

    assert asyncio.run(_main()) is True


class TestRegistry:
    def test_get_forge_client_by_platform_and_host(self):
        """Test looking up the GitHub client."""
        assert isinstance(get_forge_client("github", token="t"), GitHubForgeClient)
        assert isinstance(get_forge_client("GitHub.com", token="t"), GitHubForgeClient)

    def test_unsupported_platform(self):
        """Test that unknown platforms are rejected."""
        with pytest.raises(ValueError, match="Unsupported forge platform"):
            get_forge_client("bitbucket.org")

    def test_register_requires_base_class(self):
        """Test that only BaseForgeClient subclasses can be registered."""
        with pytest.raises(TypeError):
            register_forge_client("custom", object)

    def test_register_custom_client(self):
        """Test registering an additional forge client."""

        class CustomForge(GitHubForgeClient):
            pass

        register_forge_client("forge.example.com", CustomForge)
        try:
            assert "forge.example.com" in list_supported_platforms()
            assert issubclass(CustomForge, BaseForgeClient)
        finally:
            from clean_code_guard.vcs import _CLIENTS

            _CLIENTS.pop("forge.example.com", None)
