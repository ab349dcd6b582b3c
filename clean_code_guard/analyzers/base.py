"""Base class for external static-analysis tools."""

import asyncio
import json
import os
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, NamedTuple

from clean_code_guard.errors import AnalyzerFailure, AssessmentCancelled

# Version of the built-in baseline rule sets. Bump whenever a baseline changes
# so scores stay comparable within one version.
BASELINE_VERSION = "2024.1"

# Maximum number of files passed to one analyzer invocation
FILES_PER_INVOCATION = 200

# Seconds to wait for a killed analyzer process to exit
KILL_GRACE_PERIOD = 5.0


class ConfigResolution(NamedTuple):
    """Which configuration an analyzer runs under."""

    kind: str  # "project" or "baseline"
    source: str | None = None

    @property
    def is_baseline(self) -> bool:
        return self.kind == "baseline"

    def describe(self) -> str:
        if self.is_baseline:
            return "baseline"
        return f"project:{self.source}"


BASELINE = ConfigResolution(kind="baseline")


def project_config(source: str) -> ConfigResolution:
    return ConfigResolution(kind="project", source=source)


def path_arguments(files: list[str]) -> list[str]:
    """Relative paths safe to pass after options (no leading dash)."""
    return [f"./{path}" if path.startswith("-") else path for path in files]


class Analyzer(ABC):
    """A language-specific analyzer invoked as an external process.

    Subclasses declare the executable, the config files and package.json key
    that signal a project-supplied configuration, the baseline rule set, and
    how to build the command line.
    """

    #: Config filenames recognized at the project root
    config_files: tuple[str, ...] = ()
    #: package.json key holding an inline configuration
    manifest_key: str | None = None
    #: Filename the baseline config is written to
    baseline_filename: str = "baseline.json"

    @property
    @abstractmethod
    def name(self) -> str:
        """Executable name (e.g. 'eslint')."""

    @property
    @abstractmethod
    def label(self) -> str:
        """Bucket label this analyzer handles (e.g. 'javascript')."""

    @property
    @abstractmethod
    def baseline_config(self) -> dict[str, Any]:
        """Built-in rule set used when the project supplies none."""

    @abstractmethod
    def build_command(
        self, files: list[str], config: ConfigResolution, baseline_path: Path | None
    ) -> list[str]:
        """Arguments following the executable for one invocation."""

    def environment(self, config: ConfigResolution) -> dict[str, str] | None:
        """Extra environment variables for the analyzer process."""
        return None

    def is_available(self) -> bool:
        """Check if the analyzer (or npx to fetch it) is installed."""
        return self.executable() is not None

    def executable(self) -> list[str] | None:
        """Resolve how to launch the tool: direct binary first, then npx."""
        if shutil.which(self.name) is not None:
            return [self.name]
        if shutil.which("npx") is not None:
            return ["npx", "--no-install", self.name]
        return None

    def resolve_config(self, root: Path) -> ConfigResolution:
        """
        Detect a project-supplied configuration.

        Checks the recognized config filenames at the root, then the
        manifest key inside package.json.
        """
        for filename in self.config_files:
            if (root / filename).is_file():
                return project_config(filename)

        if self.manifest_key:
            manifest_path = root / "package.json"
            if manifest_path.is_file():
                try:
                    manifest = json.loads(manifest_path.read_text(encoding="utf-8"))
                except (ValueError, OSError, UnicodeDecodeError):
                    return BASELINE
                if isinstance(manifest, dict) and self.manifest_key in manifest:
                    return project_config(f"package.json#{self.manifest_key}")

        return BASELINE

    def write_baseline(self, scratch_dir: Path) -> Path:
        """Write the baseline config to the run's scratch directory."""
        scratch_dir.mkdir(parents=True, exist_ok=True)
        path = scratch_dir / f"{self.label}-{self.baseline_filename}"
        path.write_text(json.dumps(self.baseline_config, indent=2), encoding="utf-8")
        return path

    def parse_output(self, stdout: str, stderr: str, returncode: int) -> Any:
        """
        Parse the JSON report printed on stdout.

        Non-zero exit codes are expected when findings exist, so only
        unparseable output counts as a failure.
        """
        text = stdout.strip()
        if not text:
            detail = stderr.strip() or f"exit code {returncode}"
            raise AnalyzerFailure(self.label, f"{self.name} produced no report: {detail}")
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            detail = stderr.strip()[:500] or str(e)
            raise AnalyzerFailure(
                self.label, f"{self.name} produced malformed output: {detail}"
            ) from e

    async def run(
        self,
        files: list[str],
        root: Path,
        config: ConfigResolution,
        *,
        scratch_dir: Path,
        timeout: float,
        cancel_event: asyncio.Event | None = None,
    ) -> Any:
        """Run the analyzer on exactly the given files.

        Args:
            files: Paths relative to root.
            root: Working directory, so the tool discovers project config.
            config: Result of resolve_config().
            scratch_dir: Directory for the baseline config file.
            timeout: Time bound per invocation in seconds.
            cancel_event: When set, the running process is killed.

        Returns:
            The parsed report. List reports from several invocations are
            concatenated.

        Raises:
            AnalyzerFailure: If the tool is missing, times out, or crashes.
            AssessmentCancelled: If cancel_event is set.
        """
        launcher = self.executable()
        if launcher is None:
            raise AnalyzerFailure(self.label, f"{self.name} is not installed")

        baseline_path = self.write_baseline(scratch_dir) if config.is_baseline else None

        payloads = []
        for start in range(0, len(files), FILES_PER_INVOCATION):
            chunk = files[start : start + FILES_PER_INVOCATION]
            command = launcher + self.build_command(chunk, config, baseline_path)
            stdout, stderr, returncode = await self._execute(
                command, root, config, timeout, cancel_event
            )
            payloads.append(self.parse_output(stdout, stderr, returncode))

        if len(payloads) == 1:
            return payloads[0]
        if all(isinstance(payload, list) for payload in payloads):
            return [record for payload in payloads for record in payload]
        raise AnalyzerFailure(
            self.label, f"{self.name} returned reports that cannot be combined"
        )

    async def _execute(
        self,
        command: list[str],
        root: Path,
        config: ConfigResolution,
        timeout: float,
        cancel_event: asyncio.Event | None,
    ) -> tuple[str, str, int]:
        env = self.environment(config)
        if env is not None:
            env = {**os.environ, **env}

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                cwd=str(root),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
            )
        except OSError as e:
            raise AnalyzerFailure(self.label, f"Failed to start {self.name}: {e}") from e

        communicate = asyncio.ensure_future(process.communicate())
        waiters = {communicate}
        cancel_waiter = None
        if cancel_event is not None:
            cancel_waiter = asyncio.ensure_future(cancel_event.wait())
            waiters.add(cancel_waiter)

        try:
            done, _ = await asyncio.wait(
                waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            _kill(process)
            communicate.cancel()
            await _reap(process)
            raise
        finally:
            if cancel_waiter is not None:
                cancel_waiter.cancel()

        if communicate not in done:
            _kill(process)
            communicate.cancel()
            await _reap(process)
            if cancel_waiter is not None and cancel_waiter in done:
                raise AssessmentCancelled()
            raise AnalyzerFailure(
                self.label, f"{self.name} timed out after {timeout:g}s"
            )

        stdout, stderr = communicate.result()
        return (
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
            process.returncode,
        )


def _kill(process: asyncio.subprocess.Process) -> None:
    if process.returncode is None:
        try:
            process.kill()
        except ProcessLookupError:
            pass


async def _reap(process: asyncio.subprocess.Process) -> None:
    """Wait briefly for a killed process so its transport is closed."""
    try:
        await asyncio.wait_for(process.wait(), timeout=KILL_GRACE_PERIOD)
    except asyncio.TimeoutError:
        # Stuck in uninterruptible sleep
        pass
