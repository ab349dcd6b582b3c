"""ESLint wrapper for the JavaScript bucket."""

from pathlib import Path
from typing import Any

from clean_code_guard.analyzers.base import Analyzer, ConfigResolution, path_arguments

ESLINTRC_FILES = (
    ".eslintrc",
    ".eslintrc.json",
    ".eslintrc.js",
    ".eslintrc.cjs",
    ".eslintrc.yaml",
    ".eslintrc.yml",
)

FLAT_CONFIG_FILES = (
    "eslint.config.js",
    "eslint.config.mjs",
    "eslint.config.cjs",
)

ESLINT_BASELINE = {
    "root": True,
    "env": {"browser": True, "node": True, "es2021": True},
    "extends": ["eslint:recommended"],
    "parserOptions": {"ecmaVersion": 12, "sourceType": "module"},
    "rules": {
        "no-unused-vars": "error",
        "no-console": "warn",
        "semi": ["error", "always"],
        "quotes": ["warn", "single"],
    },
}


class EslintAnalyzer(Analyzer):
    """Run ESLint with its JSON formatter.

    The JSON formatter emits one record per file with errorCount and
    warningCount, which the findings normalizer sums directly.
    """

    config_files = ESLINTRC_FILES + FLAT_CONFIG_FILES
    manifest_key = "eslintConfig"
    baseline_filename = "eslintrc.json"

    @property
    def name(self) -> str:
        return "eslint"

    @property
    def label(self) -> str:
        return "javascript"

    @property
    def baseline_config(self) -> dict[str, Any]:
        return ESLINT_BASELINE

    def environment(self, config: ConfigResolution) -> dict[str, str] | None:
        # Baseline and legacy project configs use the eslintrc format
        if config.is_baseline or config.source not in FLAT_CONFIG_FILES:
            return {"ESLINT_USE_FLAT_CONFIG": "false"}
        return None

    def build_command(
        self, files: list[str], config: ConfigResolution, baseline_path: Path | None
    ) -> list[str]:
        args = ["--format", "json", "--no-error-on-unmatched-pattern"]
        if config.is_baseline and baseline_path is not None:
            args += ["--no-eslintrc", "--config", str(baseline_path)]
        return args + path_arguments(files)
