"""
Shared fixtures for Clean Code Guard tests.
"""

import io
import zipfile

import pytest

import clean_code_guard.config
from clean_code_guard.analyzers import Analyzer


@pytest.fixture(autouse=True)
def reset_config_overrides():
    """Undo set_* calls made by a test."""
    clean_code_guard.config.reset_overrides()
    yield
    clean_code_guard.config.reset_overrides()


@pytest.fixture
def make_zip():
    """Build an in-memory zip archive from a {path: content} mapping."""

    def _make_zip(files: dict[str, str]) -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as bundle:
            for path, content in files.items():
                bundle.writestr(path, content)
        return buffer.getvalue()

    return _make_zip


class FakeAnalyzer(Analyzer):
    """Analyzer returning a canned payload instead of spawning a tool."""

    def __init__(self, label, payload=None, error=None, name=None):
        self._label = label
        self._name = name or f"fake-{label}"
        self.payload = [] if payload is None else payload
        self.error = error
        self.calls = []

    @property
    def name(self):
        return self._name

    @property
    def label(self):
        return self._label

    @property
    def baseline_config(self):
        return {"rules": {}}

    def build_command(self, files, config, baseline_path):
        return list(files)

    async def run(
        self, files, root, config, *, scratch_dir, timeout, cancel_event=None
    ):
        self.calls.append(
            {
                "files": list(files),
                "root": root,
                "config": config,
                "scratch": scratch_dir,
            }
        )
        if self.error is not None:
            raise self.error
        return self.payload


@pytest.fixture
def make_analyzer():
    """Create FakeAnalyzer instances."""
    return FakeAnalyzer
