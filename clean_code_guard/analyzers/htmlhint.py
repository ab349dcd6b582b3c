"""HTMLHint wrapper for the HTML bucket."""

from pathlib import Path
from typing import Any

from clean_code_guard.analyzers.base import Analyzer, ConfigResolution, path_arguments

HTMLHINT_BASELINE = {
    "tagname-lowercase": True,
    "attr-lowercase": True,
    "attr-value-double-quotes": True,
    "attr-no-duplication": True,
    "tag-pair": True,
    "id-unique": True,
    "src-not-empty": True,
}


class HtmlhintAnalyzer(Analyzer):
    """Run HTMLHint with its JSON formatter.

    Output is a list of {file, messages: [{type: "error" | "warning"}]}.
    """

    config_files = (".htmlhintrc",)
    baseline_filename = "htmlhintrc.json"

    @property
    def name(self) -> str:
        return "htmlhint"

    @property
    def label(self) -> str:
        return "html"

    @property
    def baseline_config(self) -> dict[str, Any]:
        return HTMLHINT_BASELINE

    def build_command(
        self, files: list[str], config: ConfigResolution, baseline_path: Path | None
    ) -> list[str]:
        args = ["--format", "json"]
        if config.is_baseline and baseline_path is not None:
            args += ["--config", str(baseline_path)]
        return args + path_arguments(files)
