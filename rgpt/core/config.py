"""Typed configuration loading and access.

This module provides dataclasses for the ``config.toml`` stored in the data
home. Every key is optional; missing keys fall back to the defaults below.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_int, get_str, get_table

__all__ = [
    "Config",
    "ConfigError",
    "ExportConfig",
    "FixturesConfig",
    "RenderConfig",
    "load_config",
    "DEFAULT_TEMPLATE_ID",
    "DEFAULT_EXPORT_DIR",
    "DEFAULT_SYNC_LIMIT",
]

DEFAULT_TEMPLATE_ID = "classic"
DEFAULT_EXPORT_DIR = "exports"
DEFAULT_SYNC_LIMIT = 200


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class RenderConfig:
    default_template: str = DEFAULT_TEMPLATE_ID


@dataclass(frozen=True, slots=True)
class ExportConfig:
    """Where exported notes are written (relative paths resolve against the data home)."""

    out_dir: str = DEFAULT_EXPORT_DIR


@dataclass(frozen=True, slots=True)
class FixturesConfig:
    """Optional overrides for the bundled sync fixtures."""

    tickets: str | None = None
    commits: str | None = None
    limit: int = DEFAULT_SYNC_LIMIT


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    render: RenderConfig = field(default_factory=RenderConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    fixtures: FixturesConfig = field(default_factory=FixturesConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML)."""
        render: StrDict = get_table(data, "render") or {}
        export: StrDict = get_table(data, "export") or {}
        fixtures: StrDict = get_table(data, "fixtures") or {}

        limit = get_int(fixtures, "limit")
        if limit is not None and limit <= 0:
            raise ValueError(f"fixtures.limit must be positive, got {limit}")

        return cls(
            render=RenderConfig(
                default_template=get_str(render, "default_template") or DEFAULT_TEMPLATE_ID,
            ),
            export=ExportConfig(
                out_dir=get_str(export, "out_dir") or DEFAULT_EXPORT_DIR,
            ),
            fixtures=FixturesConfig(
                tickets=get_str(fixtures, "tickets"),
                commits=get_str(fixtures, "commits"),
                limit=limit or DEFAULT_SYNC_LIMIT,
            ),
        )


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
        path: Path to config.toml file

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
