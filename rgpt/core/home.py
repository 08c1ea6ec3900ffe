"""Data home detection and paths.

The data home is the directory holding everything ``rgpt`` persists:
templates, projects, per-project selections, config and exports.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from .result import Err, Ok, Result

__all__ = [
    "DataHome",
    "HomeError",
    "HomeInfo",
    "HomeSource",
    "HOME_DIR_NAME",
    "HOME_ENV_VAR",
    "detect_home",
    "detect_home_info",
    "find_home_upward",
]

HOME_ENV_VAR = "RGPT_HOME"
HOME_DIR_NAME = ".releasegpt"


@dataclass(frozen=True, slots=True)
class HomeError:
    """Error when the data home cannot be detected."""

    message: str
    searched_from: Path | None = None


@dataclass(frozen=True, slots=True)
class DataHome:
    """A directory holding persisted ReleaseGPT state.

    Layout:
    - config.toml (optional)
    - templates.json
    - projects.json
    - selections/<project-id>.json
    - connections.json (connected accounts, mappings, audit log)
    - exports/ (default export directory)
    """

    root: Path

    @property
    def config_path(self) -> Path:
        return self.root / "config.toml"

    @property
    def templates_path(self) -> Path:
        return self.root / "templates.json"

    @property
    def projects_path(self) -> Path:
        return self.root / "projects.json"

    @property
    def selections_dir(self) -> Path:
        return self.root / "selections"

    @property
    def connections_path(self) -> Path:
        return self.root / "connections.json"

    def resolve(self, path: str | Path) -> Path:
        """Resolve a user-supplied path against the home (absolute paths pass through)."""
        p = Path(path).expanduser()
        if p.is_absolute():
            return p
        return self.root / p

    def __str__(self) -> str:
        return str(self.root)


HomeSource = Literal["env", "cwd", "user"]


@dataclass(frozen=True, slots=True)
class HomeInfo:
    home: DataHome
    source: HomeSource


def find_home_upward(start: Path) -> Path | None:
    """Search upward from start for a directory containing ``.releasegpt/``."""
    for parent in (start, *start.parents):
        candidate = parent / HOME_DIR_NAME
        if candidate.is_dir():
            return candidate
    return None


def detect_home(
    *,
    start_dir: Path | None = None,
    env_var: str = HOME_ENV_VAR,
    user_home: Path | None = None,
) -> Result[DataHome, HomeError]:
    info = detect_home_info(start_dir=start_dir, env_var=env_var, user_home=user_home)
    if isinstance(info, Err):
        return info
    return Ok(info.value.home)


def detect_home_info(
    *,
    start_dir: Path | None = None,
    env_var: str = HOME_ENV_VAR,
    user_home: Path | None = None,
) -> Result[HomeInfo, HomeError]:
    """Detect the data home, with source metadata.

    Detection order:
    1. RGPT_HOME environment variable (must be an existing directory)
    2. Search upward from start_dir (or cwd) for a ``.releasegpt/`` directory
    3. ``~/.releasegpt`` (created lazily on first write)
    """
    env_value = os.environ.get(env_var)
    if env_value:
        path = Path(env_value).expanduser()
        if not path.is_dir():
            return Err(
                HomeError(
                    f"{env_var} is set but is not a directory: {env_value}",
                    searched_from=path,
                )
            )
        return Ok(HomeInfo(home=DataHome(root=path.resolve()), source="env"))

    try:
        start = (start_dir or Path.cwd()).resolve()
    except OSError as e:
        return Err(HomeError(f"Cannot resolve current directory: {e}"))

    found = find_home_upward(start)
    if found is not None:
        return Ok(HomeInfo(home=DataHome(root=found), source="cwd"))

    base = user_home if user_home is not None else Path.home()
    return Ok(HomeInfo(home=DataHome(root=base / HOME_DIR_NAME), source="user"))
