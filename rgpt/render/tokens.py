"""Token catalog.

Each token is written in a template as ``{{NAME}}``. Substitution replaces
markers one after another, so the result only stays independent of the order
as long as no marker is a substring of another one. ``validate_catalog`` checks
this when the module is imported; extending ``TOKENS`` with a colliding name
fails at startup instead of corrupting output.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Literal

from .model import ReleaseContext

__all__ = [
    "TOKENS",
    "TokenRule",
    "TokenSpec",
    "bullet_tokens",
    "marker",
    "validate_catalog",
]

TokenRule = Literal["text", "paragraphs", "bullets"]

MARKER_OPEN = "{{"
MARKER_CLOSE = "}}"


def marker(name: str) -> str:
    return f"{MARKER_OPEN}{name}{MARKER_CLOSE}"


@dataclass(frozen=True, slots=True)
class TokenSpec:
    """One placeholder the renderer knows how to fill.

    Attributes:
        name: Token name as written between the braces.
        source: Human-readable context field (shown by ``rgpt tokens``).
        rule: How the value is rendered.
        read: Accessor pulling the raw value from a ReleaseContext.
        heading: Canonical section heading for bullet tokens, used when a
            context is assembled from generated ``{heading, items}`` sections.
    """

    name: str
    source: str
    rule: TokenRule
    read: Callable[[ReleaseContext], str | tuple[str, ...]]
    heading: str | None = None

    @property
    def marker(self) -> str:
        return marker(self.name)


TOKENS: tuple[TokenSpec, ...] = (
    TokenSpec("TITLE", "title", "text", lambda c: c.title),
    TokenSpec("DATE", "date", "text", lambda c: c.date),
    TokenSpec("PROJECT_NAME", "project.name", "text", lambda c: c.project.name),
    TokenSpec("JIRA_KEY", "project.jira_key", "text", lambda c: c.project.jira_key),
    TokenSpec("REPO", "project.repo", "text", lambda c: c.project.repo),
    TokenSpec("BRANCH", "project.branch", "text", lambda c: c.project.branch),
    TokenSpec("NARRATIVE", "narrative", "paragraphs", lambda c: c.narrative),
    TokenSpec("HIGHLIGHTS", "highlights", "bullets", lambda c: c.highlights, "Highlights"),
    TokenSpec("FEATURES", "features", "bullets", lambda c: c.features, "New Features"),
    TokenSpec("FIXES", "fixes", "bullets", lambda c: c.fixes, "Bug Fixes"),
    TokenSpec("IMPROVEMENTS", "improvements", "bullets", lambda c: c.improvements, "Improvements"),
    TokenSpec("KNOWN_ISSUES", "known_issues", "bullets", lambda c: c.known_issues, "Known Issues"),
    TokenSpec(
        "UPGRADE_NOTES", "upgrade_notes", "bullets", lambda c: c.upgrade_notes, "Upgrade Notes"
    ),
    TokenSpec("CREDITS", "credits", "bullets", lambda c: c.credits, "Credits"),
    TokenSpec("CHANGELOG", "changelog", "bullets", lambda c: c.changelog, "Changelog"),
)


def validate_catalog(catalog: Sequence[TokenSpec]) -> None:
    """Raise ValueError if names repeat or a marker contains another marker."""
    seen: set[str] = set()
    for spec in catalog:
        if spec.name in seen:
            raise ValueError(f"duplicate token name: {spec.name}")
        seen.add(spec.name)
        if spec.rule == "bullets" and not spec.heading:
            raise ValueError(f"bullet token {spec.name} has no canonical heading")

    for outer in catalog:
        for inner in catalog:
            if outer is inner:
                continue
            if inner.marker in outer.marker:
                raise ValueError(
                    f"token marker {inner.marker} is a substring of {outer.marker}; "
                    "replacement order would corrupt output"
                )


def bullet_tokens() -> tuple[TokenSpec, ...]:
    return tuple(spec for spec in TOKENS if spec.rule == "bullets")


validate_catalog(TOKENS)
