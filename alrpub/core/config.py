"""Typed configuration loading and access.

Configuration is optional. When present it is a TOML file, ``alrpub.toml`` in
the working directory or the file named by ``ALRPUB_CONFIG``:

    [monitor]
    backoff_seconds = 30
    timeout_seconds = 1800
    log_file = "alire/publish.log"

    [index]
    repo_slug = "alire-project/alire-index"
    local_dir = "alire-index"
    sentinel = "aa"
    url = "https://github.com/alire-project/alire-index.git"  # optional mirror
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_str, get_table

__all__ = [
    "Config",
    "ConfigError",
    "IndexConfig",
    "MonitorConfig",
    "CONFIG_ENV_VAR",
    "CONFIG_FILE_NAME",
    "DEFAULT_BACKOFF_SECONDS",
    "DEFAULT_TIMEOUT_SECONDS",
    "find_config_path",
    "load_config",
    "load_config_or_default",
]

CONFIG_ENV_VAR = "ALRPUB_CONFIG"
CONFIG_FILE_NAME = "alrpub.toml"

# PR check polling
DEFAULT_BACKOFF_SECONDS = 30.0
DEFAULT_TIMEOUT_SECONDS = 1800.0
DEFAULT_LOG_FILE = "alire/publish.log"

# Community index
DEFAULT_INDEX_SLUG = "alire-project/alire-index"
DEFAULT_INDEX_DIR = "alire-index"
DEFAULT_SENTINEL = "aa"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class MonitorConfig:
    """Polling policy for PR checks and the publish log location."""

    backoff_seconds: float = DEFAULT_BACKOFF_SECONDS
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    # Relative to the crate root.
    log_file: str = DEFAULT_LOG_FILE


@dataclass(frozen=True, slots=True)
class IndexConfig:
    """Where the community index lives, upstream and locally."""

    repo_slug: str = DEFAULT_INDEX_SLUG
    local_dir: str = DEFAULT_INDEX_DIR
    sentinel: str = DEFAULT_SENTINEL
    # Clone from a mirror instead of GitHub.
    url: str | None = None

    @property
    def clone_url(self) -> str:
        return self.url or f"https://github.com/{self.repo_slug}.git"

    @property
    def repo_name(self) -> str:
        return self.repo_slug.rsplit("/", 1)[-1]


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    index: IndexConfig = field(default_factory=IndexConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML).

        Raises:
            ValueError: If a timing value is not a positive number.
        """
        monitor: StrDict = get_table(data, "monitor") or {}
        index: StrDict = get_table(data, "index") or {}

        return cls(
            monitor=MonitorConfig(
                backoff_seconds=_get_seconds(monitor, "backoff_seconds", DEFAULT_BACKOFF_SECONDS),
                timeout_seconds=_get_seconds(monitor, "timeout_seconds", DEFAULT_TIMEOUT_SECONDS),
                log_file=get_str(monitor, "log_file") or DEFAULT_LOG_FILE,
            ),
            index=IndexConfig(
                repo_slug=get_str(index, "repo_slug") or DEFAULT_INDEX_SLUG,
                local_dir=get_str(index, "local_dir") or DEFAULT_INDEX_DIR,
                sentinel=get_str(index, "sentinel") or DEFAULT_SENTINEL,
                url=get_str(index, "url"),
            ),
        )


def _get_seconds(table: Mapping[str, object], key: str, default: float) -> float:
    value = table.get(key)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ValueError(f"{key} must be a number")
    if value <= 0:
        raise ValueError(f"{key} must be positive")
    return float(value)


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to the TOML file

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def find_config_path(cwd: Path) -> Path | None:
    """Locate the config file: ``$ALRPUB_CONFIG`` first, then ``cwd/alrpub.toml``."""
    env = os.environ.get(CONFIG_ENV_VAR)
    if env:
        return Path(env).expanduser()
    candidate = cwd / CONFIG_FILE_NAME
    if candidate.is_file():
        return candidate
    return None


def load_config_or_default(cwd: Path) -> Result[Config, ConfigError]:
    """Load the discovered config, or defaults when there is none."""
    path = find_config_path(cwd)
    if path is None:
        return Ok(Config())
    return load_config(path)
