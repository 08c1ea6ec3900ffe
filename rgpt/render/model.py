"""Data handed to the renderer.

Everything here is immutable: a ReleaseContext is built once per render
request and sequences are stored as tuples.
"""

from __future__ import annotations

from dataclasses import dataclass, field

__all__ = [
    "GeneratedRelease",
    "ProjectInfo",
    "ReleaseContext",
    "ReleaseExtras",
    "Section",
    "Template",
]


@dataclass(frozen=True, slots=True)
class ProjectInfo:
    name: str = ""
    jira_key: str = ""
    repo: str = ""
    branch: str = ""


@dataclass(frozen=True, slots=True)
class ReleaseContext:
    """All data available to satisfy one render request."""

    title: str = ""
    date: str = ""
    project: ProjectInfo = field(default_factory=ProjectInfo)
    narrative: tuple[str, ...] = ()
    highlights: tuple[str, ...] = ()
    features: tuple[str, ...] = ()
    fixes: tuple[str, ...] = ()
    improvements: tuple[str, ...] = ()
    known_issues: tuple[str, ...] = ()
    upgrade_notes: tuple[str, ...] = ()
    credits: tuple[str, ...] = ()
    changelog: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ReleaseExtras:
    """Hand-written section content that tickets and commits can't provide."""

    technical_notes: tuple[str, ...] = ()
    breaking_changes: tuple[str, ...] = ()
    known_issues: tuple[str, ...] = ()
    upgrade_notes: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Section:
    """A heading with an ordered list of short items."""

    heading: str
    items: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class GeneratedRelease:
    """Payload produced by the generator: free-form sections keyed by heading."""

    title: str
    date: str
    narrative: tuple[str, ...]
    sections: tuple[Section, ...]
    markdown: str = ""


@dataclass(frozen=True, slots=True)
class Template:
    """A user-editable release notes template.

    Only ``content`` matters for rendering; the other fields belong to the
    template store.
    """

    id: str
    name: str
    content: str
    description: str = ""
    updated_at: str = ""
    is_default: bool = False
