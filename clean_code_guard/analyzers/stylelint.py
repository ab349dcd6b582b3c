"""Stylelint wrapper for the CSS bucket."""

import json
from pathlib import Path
from typing import Any

from clean_code_guard.analyzers.base import Analyzer, ConfigResolution, path_arguments
from clean_code_guard.errors import AnalyzerFailure

STYLELINT_CONFIG_FILES = (
    ".stylelintrc",
    ".stylelintrc.json",
    ".stylelintrc.yaml",
    ".stylelintrc.yml",
    ".stylelintrc.js",
    ".stylelintrc.cjs",
    ".stylelintrc.mjs",
    "stylelint.config.js",
    "stylelint.config.cjs",
    "stylelint.config.mjs",
)

STYLELINT_BASELINE = {
    "rules": {
        "color-no-invalid-hex": True,
        "block-no-empty": True,
        "declaration-block-no-duplicate-properties": True,
        "unit-no-unknown": [True, {"severity": "warning"}],
    }
}


class StylelintAnalyzer(Analyzer):
    """Run Stylelint with its JSON formatter.

    Output is a list of {source, warnings: [{severity: "error" | "warning"}]}.
    Newer releases print the report on stderr, so both streams are tried.
    """

    config_files = STYLELINT_CONFIG_FILES
    manifest_key = "stylelint"
    baseline_filename = "stylelintrc.json"

    @property
    def name(self) -> str:
        return "stylelint"

    @property
    def label(self) -> str:
        return "css"

    @property
    def baseline_config(self) -> dict[str, Any]:
        return STYLELINT_BASELINE

    def build_command(
        self, files: list[str], config: ConfigResolution, baseline_path: Path | None
    ) -> list[str]:
        args = ["--formatter", "json", "--allow-empty-input"]
        if config.is_baseline and baseline_path is not None:
            args += ["--config", str(baseline_path)]
        return args + path_arguments(files)

    def parse_output(self, stdout: str, stderr: str, returncode: int) -> Any:
        if stdout.strip():
            return super().parse_output(stdout, stderr, returncode)
        try:
            return json.loads(stderr.strip())
        except json.JSONDecodeError as e:
            detail = stderr.strip()[:500] or f"exit code {returncode}"
            raise AnalyzerFailure(
                self.label, f"{self.name} produced no report: {detail}"
            ) from e
