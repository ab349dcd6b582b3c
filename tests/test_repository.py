"""
Tests for repository reference parsing.
"""

import pytest

from clean_code_guard.errors import InvalidReference
from clean_code_guard.repository import RepositoryReference, parse_repository_url


def test_parse_basic_url():
    """Test parsing a plain GitHub repository URL."""
    reference = parse_repository_url("https://github.com/acme/demo")
    assert reference == RepositoryReference("acme", "demo", "github.com")
    assert reference.slug == "acme/demo"
    assert reference.url == "https://github.com/acme/demo"


@pytest.mark.parametrize(
    "url",
    [
        "https://github.com/acme/demo/tree/main/src",
        "https://github.com/acme/demo?tab=readme",
        "https://github.com/acme/demo#readme",
        "https://github.com/acme/demo/",
        "  https://github.com/acme/demo  ",
    ],
)
def test_parse_ignores_trailing_path_query_and_fragment(url):
    """Test that only the first two path segments matter."""
    reference = parse_repository_url(url)
    assert (reference.owner, reference.name) == ("acme", "demo")


def test_parse_strips_git_suffix():
    """Test that a trailing .git is removed from the repository name."""
    reference = parse_repository_url("https://github.com/acme/demo.git")
    assert reference.name == "demo"


def test_parse_normalizes_www_host():
    """Test that a www. prefixed host names the same forge."""
    reference = parse_repository_url("https://www.github.com/acme/demo")
    assert reference == RepositoryReference("acme", "demo", "github.com")
    assert reference.url == "https://github.com/acme/demo"


@pytest.mark.parametrize(
    "url",
    [
        "",
        "   ",
        "not a url",
        "github.com/acme/demo",
        "https://github.com/",
        "https://github.com/acme",
        "https://github.com//demo",
        "https://github.com/acme/.git",
    ],
)
def test_parse_rejects_malformed_references(url):
    """Test that unusable references raise InvalidReference."""
    with pytest.raises(InvalidReference):
        parse_repository_url(url)


def test_invalid_reference_is_value_error():
    """Test that InvalidReference can be caught as ValueError."""
    with pytest.raises(ValueError):
        parse_repository_url("https://github.com/only-owner")
