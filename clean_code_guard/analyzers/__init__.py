"""External static-analysis tools, one per analyzable language bucket.

Each bucket is covered by one analyzer:
- JavaScript: eslint
- HTML: htmlhint
- CSS: stylelint
"""

from clean_code_guard.analyzers.base import (
    BASELINE,
    BASELINE_VERSION,
    Analyzer,
    ConfigResolution,
)
from clean_code_guard.analyzers.eslint import EslintAnalyzer
from clean_code_guard.analyzers.htmlhint import HtmlhintAnalyzer
from clean_code_guard.analyzers.stylelint import StylelintAnalyzer


def get_default_analyzers() -> dict[str, Analyzer]:
    """Return a fresh mapping of bucket label to analyzer."""
    analyzers: list[Analyzer] = [
        EslintAnalyzer(),
        HtmlhintAnalyzer(),
        StylelintAnalyzer(),
    ]
    return {analyzer.label: analyzer for analyzer in analyzers}


__all__ = [
    "Analyzer",
    "BASELINE",
    "BASELINE_VERSION",
    "ConfigResolution",
    "EslintAnalyzer",
    "HtmlhintAnalyzer",
    "StylelintAnalyzer",
    "get_default_analyzers",
]
