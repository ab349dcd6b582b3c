"""
Tests for source tree classification.
"""

import pytest

from clean_code_guard.classifier import FileBuckets, classify_files, classify_path


def _write(root, relative, content=""):
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)


@pytest.mark.parametrize(
    "path, expected",
    [
        ("app.js", "javascript"),
        ("component.JSX", "javascript"),
        ("module.mjs", "javascript"),
        ("config.cjs", "javascript"),
        ("index.html", "html"),
        ("page.htm", "html"),
        ("style.css", "css"),
        ("main.py", "other:python"),
        ("types.ts", "other:typescript"),
        ("theme.scss", "other:scss"),
        ("README.md", None),
        ("logo.png", None),
        ("bundle.min.js", None),
        ("reset.min.css", None),
        ("Makefile", None),
    ],
)
def test_classify_path(path, expected):
    """Test bucket assignment by extension."""
    assert classify_path(path) == expected


def test_classify_files_groups_by_bucket(tmp_path):
    """Test walking a tree into sorted relative buckets."""
    _write(tmp_path, "src/b.js")
    _write(tmp_path, "src/a.js")
    _write(tmp_path, "index.html")
    _write(tmp_path, "styles/site.css")
    _write(tmp_path, "scripts/build.py")
    _write(tmp_path, "README.md")

    buckets = classify_files(tmp_path)

    assert buckets.javascript == ("src/a.js", "src/b.js")
    assert buckets.html == ("index.html",)
    assert buckets.css == ("styles/site.css",)
    assert buckets.other == {"python": 1}
    assert buckets.file_counts() == {
        "javascript": 2,
        "html": 1,
        "css": 1,
        "python": 1,
    }


def test_classify_files_prunes_excluded_directories(tmp_path):
    """Test that dependency caches and build output are never visited."""
    _write(tmp_path, "app.js")
    _write(tmp_path, "node_modules/lib/index.js")
    _write(tmp_path, "packages/ui/node_modules/dep/index.js")
    _write(tmp_path, "dist/app.js")
    _write(tmp_path, ".git/hooks/pre-commit.js")
    _write(tmp_path, "vendor/jquery.js")

    buckets = classify_files(tmp_path)

    assert buckets.javascript == ("app.js",)


def test_classify_files_markdown_only_is_empty(tmp_path):
    """Test that a documentation-only tree has nothing to analyze."""
    _write(tmp_path, "README.md")
    _write(tmp_path, "docs/guide.md")

    buckets = classify_files(tmp_path)

    assert buckets.is_empty
    assert buckets.analyzable() == {}
    assert buckets.file_counts() == {}


def test_analyzable_skips_empty_buckets():
    """Test that only non-empty buckets are analyzable, in fixed order."""
    buckets = FileBuckets(javascript=(), html=("a.html",), css=("a.css",))
    assert list(buckets.analyzable()) == ["html", "css"]
    assert not buckets.is_empty


def test_default_buckets_do_not_share_state():
    """Test that default-constructed buckets each report empty counts."""
    first = FileBuckets()
    second = FileBuckets(javascript=("a.js",))

    assert first.other is None
    assert first.file_counts() == {}
    assert second.file_counts() == {"javascript": 1}
    assert FileBuckets().file_counts() == {}
