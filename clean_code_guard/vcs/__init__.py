"""
Forge abstraction layer for Clean Code Guard.

This module provides a unified interface for talking to hosted git forges
(GitHub today) to check visibility, fetch lint artifacts and download source
snapshots.
"""

from clean_code_guard.vcs.base import (
    ArtifactReport,
    BaseForgeClient,
    ForgeResult,
    RetryableError,
)
from clean_code_guard.vcs.github import GitHubForgeClient

__all__ = [
    "ArtifactReport",
    "BaseForgeClient",
    "ForgeResult",
    "RetryableError",
    "GitHubForgeClient",
    "get_forge_client",
    "register_forge_client",
    "list_supported_platforms",
]

# Registry of supported forge clients, keyed by platform and by host
_CLIENTS: dict[str, type[BaseForgeClient]] = {
    "github": GitHubForgeClient,
    "github.com": GitHubForgeClient,
}


def get_forge_client(platform: str = "github", **kwargs) -> BaseForgeClient:
    """
    Factory function to get a forge client instance.

    Args:
        platform: Platform name or host ('github', 'github.com'). Default: 'github'
        **kwargs: Client-specific configuration (e.g., token)

    Returns:
        Initialized forge client

    Raises:
        ValueError: If platform is not supported

    Example:
        >>> async with get_forge_client("github", token="ghp_xxx") as forge:
        ...     await forge.check_visibility("owner", "repo")
    """
    platform_lower = platform.lower()

    if platform_lower not in _CLIENTS:
        supported = ", ".join(list_supported_platforms())
        raise ValueError(
            f"Unsupported forge platform: {platform}. Supported platforms: {supported}"
        )

    client_class = _CLIENTS[platform_lower]
    return client_class(**kwargs)


def register_forge_client(platform: str, client_class: type[BaseForgeClient]) -> None:
    """
    Register a custom forge client.

    Raises:
        TypeError: If client_class doesn't inherit from BaseForgeClient
    """
    if not issubclass(client_class, BaseForgeClient):
        raise TypeError(
            f"Forge client must inherit from BaseForgeClient, got {type(client_class)}"
        )

    _CLIENTS[platform.lower()] = client_class


def list_supported_platforms() -> list[str]:
    """
    List all supported forge platforms and hosts.

    Example:
        >>> list_supported_platforms()
        ['github', 'github.com']
    """
    return sorted(_CLIENTS.keys())
