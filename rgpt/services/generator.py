"""Deterministic release generation.

Turns the selected tickets and commits of a project into a GeneratedRelease:
a title, a short narrative and a list of ``{heading, items}`` sections, plus a
ready-to-copy Markdown rendering of all sections.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from rgpt.render.model import GeneratedRelease, ReleaseContext, ReleaseExtras, Section
from rgpt.render.renderer import bullets, context_from_sections, paragraphs

from .projects import Project
from .sync import Commit, Ticket

__all__ = [
    "IMPROVEMENT_PREFIXES",
    "NO_CREDITS",
    "SECTION_HEADINGS",
    "ReleaseExtras",
    "build_markdown",
    "generate_release",
    "to_context",
]

SECTION_HEADINGS: tuple[str, ...] = (
    "Highlights",
    "New Features",
    "Bug Fixes",
    "Improvements",
    "Technical Notes",
    "Breaking Changes",
    "Known Issues",
    "Upgrade Notes",
    "Credits",
    "Changelog",
)

IMPROVEMENT_PREFIXES = ("perf:", "ui:")
NO_CREDITS = "—"
MAX_HIGHLIGHTS = 3


def _type_has(ticket: Ticket, *needles: str) -> bool:
    kind = ticket.type.lower()
    return any(n in kind for n in needles)


def _ticket_line(ticket: Ticket) -> str:
    return f"{ticket.key}: {ticket.title}"


def _changelog_line(commit: Commit) -> str:
    line = f"{commit.message} ({commit.short_hash})"
    if commit.author:
        line += f" — {commit.author}"
    if commit.date:
        line += f" on {commit.date}"
    return line


def _contributors(commits: Sequence[Commit]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(c.author for c in commits if c.author))


def _narrative(
    project: Project, *, features: int, fixes: int, improvements: int, commits: int
) -> tuple[str, ...]:
    short_name = project.name.split(" ")[0] if project.name else "This project"

    def count(n: int, noun: str, plural: str = "") -> str:
        return f"{n} {noun}" if n == 1 else f"{n} {plural or noun + 's'}"

    return (
        f"This release moves {short_name} forward with {count(features, 'new feature')} "
        f"and {count(fixes, 'bug fix', 'bug fixes')}, "
        f"drawn from the {project.jira_key} backlog.",
        f"Across {count(commits, 'commit')} on {project.repo} ({project.branch}), "
        f"the team also shipped {count(improvements, 'performance or UI improvement')}.",
    )


def build_markdown(title: str, narrative: Sequence[str], sections: Sequence[Section]) -> str:
    """Markdown with every section under a ``##`` heading; empty sections show ``- None``."""
    blocks = [f"# {title}"]
    if narrative:
        blocks.append(paragraphs(narrative))
    blocks.extend(f"## {s.heading}\n{bullets(s.items)}" for s in sections)
    return "\n\n".join(blocks) + "\n"


def generate_release(
    project: Project,
    tickets: Sequence[Ticket],
    commits: Sequence[Commit],
    *,
    today: date | None = None,
    extras: ReleaseExtras | None = None,
) -> GeneratedRelease:
    extras = extras or ReleaseExtras()
    day = (today or date.today()).isoformat()
    title = f"{project.name} — Release Notes ({day})"

    features = tuple(
        [_ticket_line(t) for t in tickets if _type_has(t, "story", "feature")]
        + [_ticket_line(t) for t in tickets if _type_has(t, "epic")]
    )
    fixes = tuple(_ticket_line(t) for t in tickets if _type_has(t, "bug"))
    improvements = tuple(
        f"{c.message} ({c.short_hash})"
        for c in commits
        if c.message.startswith(IMPROVEMENT_PREFIXES)
    )
    highlights = (features or fixes)[:MAX_HIGHLIGHTS]
    credits = _contributors(commits) or (NO_CREDITS,)
    changelog = tuple(_changelog_line(c) for c in commits)

    content: dict[str, tuple[str, ...]] = {
        "Highlights": highlights,
        "New Features": features,
        "Bug Fixes": fixes,
        "Improvements": improvements,
        "Technical Notes": extras.technical_notes,
        "Breaking Changes": extras.breaking_changes,
        "Known Issues": extras.known_issues,
        "Upgrade Notes": extras.upgrade_notes,
        "Credits": credits,
        "Changelog": changelog,
    }
    sections = tuple(Section(heading=h, items=content[h]) for h in SECTION_HEADINGS)
    narrative = _narrative(
        project,
        features=len(features),
        fixes=len(fixes),
        improvements=len(improvements),
        commits=len(commits),
    )

    return GeneratedRelease(
        title=title,
        date=day,
        narrative=narrative,
        sections=sections,
        markdown=build_markdown(title, narrative, sections),
    )


def to_context(release: GeneratedRelease, project: Project) -> ReleaseContext:
    """Context for rendering a generated release into a user template."""
    return context_from_sections(
        title=release.title,
        date=release.date,
        project=project.info(),
        narrative=release.narrative,
        sections=release.sections,
    )
