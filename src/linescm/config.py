"""Configuration loading and management for linescm.

Configuration sources are merged in priority order:
    1. Defaults (defined in ScmConfig)
    2. Global config (~/.linescm.toml)
    3. Project config (./linescm.toml)
    4. Explicit config file
    5. Environment variables (LINESCM_* prefix)
    6. CLI overrides (passed as kwargs)

Example:
    >>> config = load_config(verbose=True, cache_enabled=False)
    >>> config.verbosity
    'verbose'
    >>> config.cache_enabled
    False
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import ConfigurationError, InvalidConfigError

Verbosity = Literal["quiet", "normal", "verbose"]

_VERBOSITIES = ("quiet", "normal", "verbose")


@dataclass(frozen=True)
class ScmConfig:
    """Settings for blame extraction and the previous-analysis cache.

    Attributes:
        git_timeout_seconds: Timeout for a single git blame invocation
        max_blame_output_mb: Blame output above this size is discarded
        cache_enabled: Record blame data for reuse by later runs
        cache_dir: Directory holding blame_cache.db (relative to the repo)
        fallback_to_previous_analysis: Reuse cached blame of unchanged files
            when git cannot provide it
        verbosity: Logging verbosity level
    """

    git_timeout_seconds: int = 30
    max_blame_output_mb: float = 50.0

    cache_enabled: bool = True
    cache_dir: str = ".linescm"

    fallback_to_previous_analysis: bool = True

    verbosity: Verbosity = "normal"

    def __post_init__(self) -> None:
        if self.git_timeout_seconds < 1:
            raise InvalidConfigError(
                "git_timeout_seconds", self.git_timeout_seconds, "must be at least 1"
            )
        if self.max_blame_output_mb <= 0:
            raise InvalidConfigError(
                "max_blame_output_mb", self.max_blame_output_mb, "must be positive"
            )
        if not self.cache_dir:
            raise InvalidConfigError("cache_dir", self.cache_dir, "must not be empty")
        if self.verbosity not in _VERBOSITIES:
            raise InvalidConfigError(
                "verbosity", self.verbosity, f"expected one of {', '.join(_VERBOSITIES)}"
            )

    def cache_path(self, repo_path: Path) -> Path:
        """Resolve cache_dir against the repository root."""
        path = Path(self.cache_dir).expanduser()
        return path if path.is_absolute() else repo_path / path


def load_config(config_file: Optional[Path] = None, **overrides) -> ScmConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags)

    Returns:
        Validated ScmConfig instance

    Raises:
        ConfigurationError: If a config file is invalid or missing
        InvalidConfigError: If a value fails validation
    """
    merged: dict = {}

    global_config = Path.home() / ".linescm.toml"
    if global_config.exists():
        merged.update(_load_toml_section(global_config))

    project_config = Path.cwd() / "linescm.toml"
    if project_config.exists():
        merged.update(_load_toml_section(project_config))

    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        merged.update(_load_toml_section(config_file))

    merged.update(_load_env_vars())

    # verbose/quiet flags map onto verbosity
    overrides = dict(overrides)
    if overrides.pop("verbose", False):
        overrides["verbosity"] = "verbose"
    if overrides.pop("quiet", False):
        overrides["verbosity"] = "quiet"

    merged.update(overrides)

    try:
        return ScmConfig(**merged)
    except TypeError as e:
        # Unknown field in config
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from LINESCM_* environment variables.

    Returns:
        Dict of field_name -> parsed_value for any LINESCM_* vars found.
    """
    type_hints = get_type_hints(ScmConfig)

    result: dict[str, Any] = {}

    for field_name in ScmConfig.__dataclass_fields__:
        env_key = f"LINESCM_{field_name.upper()}"
        env_value = os.environ.get(env_key)
        if env_value is None:
            continue

        try:
            result[field_name] = _parse_env_value(env_value, type_hints[field_name])
        except ValueError as e:
            raise InvalidConfigError(field_name, env_value, f"{env_key}: {e}") from e

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse an environment variable string to the field's type."""
    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        if lower in ("false", "0", "no", "off"):
            return False
        raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    # str and Literal (verbosity) are validated by ScmConfig itself
    return value


def _load_toml_section(path: Path) -> dict:
    """Load a TOML file, returning its [linescm] table or the whole document."""
    try:
        data = _load_toml_file(path)
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Invalid config file '{path}': {e}") from e

    section = data.get("linescm", data)
    if not isinstance(section, dict):
        raise ConfigurationError(f"Invalid config file '{path}': [linescm] must be a table")
    return section


def _load_toml_file(path: Path) -> dict:
    try:
        # Python 3.11+ has tomllib in stdlib
        import tomllib
    except ModuleNotFoundError:
        # Fallback to tomli for Python 3.9-3.10
        import tomli as tomllib  # type: ignore

    with open(path, "rb") as f:
        return tomllib.load(f)
