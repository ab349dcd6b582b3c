"""
Repository reference parsing.
"""

from typing import NamedTuple
from urllib.parse import urlsplit

from clean_code_guard.errors import InvalidReference


class RepositoryReference(NamedTuple):
    """Owner/name identity of a forge repository."""

    owner: str
    name: str
    host: str = "github.com"

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def url(self) -> str:
        return f"https://{self.host}/{self.owner}/{self.name}"


def parse_repository_url(raw: str) -> RepositoryReference:
    """
    Parse a forge URL into a RepositoryReference.

    Only the first two path segments are used, so subpaths such as
    ``/tree/main/src``, query strings and fragments are ignored.

    Args:
        raw: Repository URL, e.g. ``https://github.com/owner/name``.

    Returns:
        The parsed reference.

    Raises:
        InvalidReference: If the input is not a URL or its path has fewer than
            two non-empty segments.
    """
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidReference("Invalid repository URL: empty reference")

    candidate = raw.strip()
    try:
        parts = urlsplit(candidate)
        host = parts.hostname
    except ValueError as e:
        raise InvalidReference(f"Invalid repository URL: {candidate}") from e

    if not parts.scheme or not host:
        raise InvalidReference(f"Invalid repository URL: {candidate}")

    segments = parts.path.lstrip("/").split("/")
    if len(segments) < 2 or not segments[0] or not segments[1]:
        raise InvalidReference(
            f"Invalid repository URL: {candidate} (expected /owner/name)"
        )

    owner, name = segments[0], segments[1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    if not name:
        raise InvalidReference(f"Invalid repository URL: {candidate}")

    # www.github.com and github.com name the same forge
    host = host.removeprefix("www.")

    return RepositoryReference(owner=owner, name=name, host=host)
