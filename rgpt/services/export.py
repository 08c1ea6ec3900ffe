from __future__ import annotations

from pathlib import Path

from rgpt.core.result import Err, Ok, Result
from rgpt.platform.files import atomic_write_text

from .errors import StoreError
from .projects import Project

__all__ = ["DEFAULT_EXPORT_NAME", "EXPORT_MIME_TYPE", "export_filename", "write_export"]

EXPORT_MIME_TYPE = "text/markdown;charset=utf-8"
DEFAULT_EXPORT_NAME = "release-notes.md"


def export_filename(project: Project | None) -> str:
    """``<jira key>-notes.md`` in lower case, or ``release-notes.md`` without a key."""
    if project is None or not project.jira_key.strip():
        return DEFAULT_EXPORT_NAME
    return f"{project.jira_key.strip().lower()}-notes.md"


def write_export(out_dir: Path, filename: str, text: str) -> Result[Path, StoreError]:
    path = out_dir / filename
    try:
        atomic_write_text(path, text)
    except OSError as e:
        return Err(
            StoreError(
                kind="storage_failed",
                message=f"failed to write release notes: {e}",
                hint=str(path),
            )
        )
    return Ok(path)
