"""
Configuration management for Clean Code Guard.

Loads settings from:
1. Environment variables (and a local .env file)
2. .clean-code-guard.toml (local config)
3. pyproject.toml (project-level config, [tool.clean-code-guard])
"""

import os
import tomllib
from pathlib import Path
from typing import Any, NamedTuple

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# project_root is the parent directory of clean_code_guard/
PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Global configuration for SSL verification
# Default: True (verify SSL certificates)
# Can be set to False by CLI --insecure flag
VERIFY_SSL = True

# Default store directory: ~/.cache/clean-code-guard/assessments
DEFAULT_STORE_DIR = Path.home() / ".cache" / "clean-code-guard" / "assessments"

# Network and analyzer time bounds (seconds)
DEFAULT_TIMEOUTS = {
    "connect": 5.0,
    "visibility": 5.0,
    "artifact": 10.0,
    "snapshot": 20.0,
    "analyzer": 300.0,
}

DEFAULT_MAX_CONCURRENCY = 4

# "optimistic": treat inconclusive visibility checks as public
# "strict": treat inconclusive visibility checks as inaccessible
VISIBILITY_POLICIES = ("optimistic", "strict")
DEFAULT_VISIBILITY_POLICY = "optimistic"

# Global settings (can be overridden)
_STORE_DIR: Path | None = None
_MAX_CONCURRENCY: int | None = None
_VISIBILITY_POLICY: str | None = None
_TIMEOUT_OVERRIDES: dict[str, float] = {}


class Timeouts(NamedTuple):
    """Time bounds applied to forge requests and analyzer runs."""

    connect: float
    visibility: float
    artifact: float
    snapshot: float
    analyzer: float


def load_config_file(config_path: Path) -> dict:
    """Load a TOML configuration file."""
    if not config_path.exists():
        return {}
    try:
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    except Exception as e:
        raise ValueError(f"Failed to load config from {config_path}: {e}") from e


def get_tool_config() -> dict[str, Any]:
    """
    Load the [tool.clean-code-guard] table.

    Priority:
    1. .clean-code-guard.toml (local config, highest priority)
    2. pyproject.toml (project-level config, fallback)

    Returns:
        The tool configuration table, or an empty dict.
    """
    local_config_path = PROJECT_ROOT / ".clean-code-guard.toml"
    if local_config_path.exists():
        config = load_config_file(local_config_path)
        tool_config = config.get("tool", {}).get("clean-code-guard", {})
        if tool_config:
            return tool_config

    pyproject_path = PROJECT_ROOT / "pyproject.toml"
    if pyproject_path.exists():
        config = load_config_file(pyproject_path)
        return config.get("tool", {}).get("clean-code-guard", {})

    return {}


def get_github_token() -> str | None:
    """Return the forge credential from GITHUB_TOKEN, if any."""
    token = os.getenv("GITHUB_TOKEN")
    return token or None


def set_verify_ssl(verify: bool) -> None:
    """
    Set the SSL verification setting globally.

    Args:
        verify: Whether to verify SSL certificates.
    """
    global VERIFY_SSL
    VERIFY_SSL = verify


def get_verify_ssl() -> bool:
    """
    Get the current SSL verification setting.

    Returns:
        Whether SSL verification is enabled.
    """
    return VERIFY_SSL


def get_store_dir() -> Path:
    """
    Get the assessment store directory.

    Priority:
    1. Explicitly set value via set_store_dir()
    2. CLEAN_CODE_GUARD_STORE_DIR environment variable
    3. store.directory in the tool config
    4. Default: ~/.cache/clean-code-guard/assessments

    Returns:
        Path to the store directory.
    """
    if _STORE_DIR is not None:
        return _STORE_DIR

    env_store_dir = os.getenv("CLEAN_CODE_GUARD_STORE_DIR")
    if env_store_dir:
        return Path(env_store_dir).expanduser()

    store_config = get_tool_config().get("store", {})
    if "directory" in store_config:
        return Path(store_config["directory"]).expanduser()

    return DEFAULT_STORE_DIR


def set_store_dir(path: Path | str) -> None:
    """
    Set the assessment store directory explicitly.

    Args:
        path: Path to the store directory.
    """
    global _STORE_DIR
    _STORE_DIR = Path(path).expanduser()


def get_timeouts() -> Timeouts:
    """
    Get the time bounds for forge requests and analyzer runs.

    Each value is resolved independently:
    1. Explicitly set value via set_timeout()
    2. CLEAN_CODE_GUARD_<NAME>_TIMEOUT environment variable
    3. timeouts.<name> in the tool config
    4. Default from DEFAULT_TIMEOUTS

    Returns:
        Timeouts in seconds.
    """
    timeout_config = get_tool_config().get("timeouts", {})
    values = {}
    for name, default in DEFAULT_TIMEOUTS.items():
        if name in _TIMEOUT_OVERRIDES:
            values[name] = _TIMEOUT_OVERRIDES[name]
            continue

        env_value = os.getenv(f"CLEAN_CODE_GUARD_{name.upper()}_TIMEOUT")
        if env_value:
            try:
                values[name] = float(env_value)
                continue
            except ValueError:
                pass

        if name in timeout_config:
            values[name] = float(timeout_config[name])
        else:
            values[name] = default

    return Timeouts(**values)


def set_timeout(name: str, seconds: float) -> None:
    """
    Override a single timeout.

    Raises:
        ValueError: If the timeout name is unknown or the value is not positive.
    """
    if name not in DEFAULT_TIMEOUTS:
        raise ValueError(
            f"Unknown timeout '{name}'. Available: {', '.join(DEFAULT_TIMEOUTS)}"
        )
    if seconds <= 0:
        raise ValueError(f"Timeout '{name}' must be positive, got {seconds}")
    _TIMEOUT_OVERRIDES[name] = float(seconds)


def get_max_concurrency() -> int:
    """
    Get the maximum number of assessments run at once.

    Priority:
    1. Explicitly set value via set_max_concurrency()
    2. CLEAN_CODE_GUARD_MAX_CONCURRENCY environment variable
    3. max_concurrency in the tool config
    4. Default: 4
    """
    if _MAX_CONCURRENCY is not None:
        return _MAX_CONCURRENCY

    env_value = os.getenv("CLEAN_CODE_GUARD_MAX_CONCURRENCY")
    if env_value:
        try:
            return max(1, int(env_value))
        except ValueError:
            pass

    tool_config = get_tool_config()
    if "max_concurrency" in tool_config:
        return max(1, int(tool_config["max_concurrency"]))

    return DEFAULT_MAX_CONCURRENCY


def set_max_concurrency(limit: int) -> None:
    """Set the maximum number of concurrent assessments."""
    global _MAX_CONCURRENCY
    _MAX_CONCURRENCY = max(1, limit)


def get_visibility_policy() -> str:
    """
    Get the policy applied when a visibility check is inconclusive.

    Priority:
    1. Explicitly set value via set_visibility_policy()
    2. CLEAN_CODE_GUARD_VISIBILITY_POLICY environment variable
    3. visibility_policy in the tool config
    4. Default: "optimistic"
    """
    if _VISIBILITY_POLICY is not None:
        return _VISIBILITY_POLICY

    env_value = os.getenv("CLEAN_CODE_GUARD_VISIBILITY_POLICY")
    if env_value and env_value.lower() in VISIBILITY_POLICIES:
        return env_value.lower()

    policy = str(get_tool_config().get("visibility_policy", "")).lower()
    if policy in VISIBILITY_POLICIES:
        return policy

    return DEFAULT_VISIBILITY_POLICY


def set_visibility_policy(policy: str) -> None:
    """
    Set the visibility policy explicitly.

    Raises:
        ValueError: If the policy is not recognized.
    """
    global _VISIBILITY_POLICY
    policy_lower = policy.lower()
    if policy_lower not in VISIBILITY_POLICIES:
        raise ValueError(
            f"Unknown visibility policy '{policy}'. "
            f"Available: {', '.join(VISIBILITY_POLICIES)}"
        )
    _VISIBILITY_POLICY = policy_lower


def reset_overrides() -> None:
    """Clear every value set through the set_* functions."""
    global _STORE_DIR, _MAX_CONCURRENCY, _VISIBILITY_POLICY, VERIFY_SSL
    _STORE_DIR = None
    _MAX_CONCURRENCY = None
    _VISIBILITY_POLICY = None
    VERIFY_SSL = True
    _TIMEOUT_OVERRIDES.clear()
