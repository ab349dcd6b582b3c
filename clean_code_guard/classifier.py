"""
File classification of materialized source trees by language family.
"""

import os
from pathlib import Path
from typing import NamedTuple

# Directories never descended into (dependency caches, VCS metadata, build output)
EXCLUDED_DIRECTORIES = frozenset(
    {
        "node_modules",
        "bower_components",
        "jspm_packages",
        ".git",
        ".hg",
        ".svn",
        "dist",
        "build",
        "out",
        "coverage",
        ".next",
        ".nuxt",
        ".cache",
        "vendor",
        "__pycache__",
        ".venv",
        "venv",
    }
)

# Analyzable buckets
SCRIPT_EXTENSIONS = frozenset({".js", ".jsx", ".mjs", ".cjs"})
MARKUP_EXTENSIONS = frozenset({".html", ".htm"})
STYLESHEET_EXTENSIONS = frozenset({".css"})

BUCKET_EXTENSIONS = {
    "javascript": SCRIPT_EXTENSIONS,
    "html": MARKUP_EXTENSIONS,
    "css": STYLESHEET_EXTENSIONS,
}

# Languages observed for reporting only
OTHER_LANGUAGE_EXTENSIONS = {
    ".ts": "typescript",
    ".tsx": "typescript",
    ".py": "python",
    ".java": "java",
    ".go": "go",
    ".rb": "ruby",
    ".php": "php",
    ".cs": "csharp",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".hpp": "cpp",
    ".rs": "rust",
    ".kt": "kotlin",
    ".swift": "swift",
    ".scss": "scss",
    ".sass": "scss",
    ".less": "less",
    ".vue": "vue",
    ".svelte": "svelte",
    ".dart": "dart",
    ".sh": "shell",
}

MINIFIED_SUFFIXES = (".min.js", ".min.css")


class FileBuckets(NamedTuple):
    """Files of a source tree grouped by language family.

    Paths are POSIX-style and relative to the analyzed root.
    """

    javascript: tuple[str, ...] = ()
    html: tuple[str, ...] = ()
    css: tuple[str, ...] = ()
    other: dict[str, int] | None = None

    def analyzable(self) -> dict[str, tuple[str, ...]]:
        """Non-empty analyzable buckets, in a fixed order."""
        buckets = {
            "javascript": self.javascript,
            "html": self.html,
            "css": self.css,
        }
        return {label: files for label, files in buckets.items() if files}

    def file_counts(self) -> dict[str, int]:
        """Count of files per observed language."""
        counts = {label: len(files) for label, files in self.analyzable().items()}
        counts.update(self.other or {})
        return counts

    @property
    def is_empty(self) -> bool:
        return not self.analyzable()


def classify_path(path: str) -> str | None:
    """
    Return the bucket label for a file path, if any.

    Returns "other:<language>" for recognized unanalyzed languages and None for
    files that are neither (documentation, images, minified bundles).
    """
    lower = path.lower()
    if lower.endswith(MINIFIED_SUFFIXES):
        return None

    extension = os.path.splitext(lower)[1]
    for label, extensions in BUCKET_EXTENSIONS.items():
        if extension in extensions:
            return label

    language = OTHER_LANGUAGE_EXTENSIONS.get(extension)
    if language:
        return f"other:{language}"
    return None


def classify_files(root: Path) -> FileBuckets:
    """
    Walk a source tree and bucket its files by extension.

    Excluded directories are pruned, so nothing beneath them is visited.
    Symbolic links to directories are not followed.

    Args:
        root: Root of the materialized source tree.

    Returns:
        FileBuckets with sorted relative paths.
    """
    buckets: dict[str, list[str]] = {label: [] for label in BUCKET_EXTENSIONS}
    other: dict[str, int] = {}

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in EXCLUDED_DIRECTORIES)
        for filename in filenames:
            label = classify_path(filename)
            if label is None:
                continue
            relative = Path(dirpath, filename).relative_to(root).as_posix()
            if label.startswith("other:"):
                language = label.split(":", 1)[1]
                other[language] = other.get(language, 0) + 1
            else:
                buckets[label].append(relative)

    return FileBuckets(
        javascript=tuple(sorted(buckets["javascript"])),
        html=tuple(sorted(buckets["html"])),
        css=tuple(sorted(buckets["css"])),
        other=dict(sorted(other.items())),
    )
