"""Template renderer.

``render`` is a pure function: it substitutes every ``{{TOKEN}}`` marker from
the catalog with the value computed from a ReleaseContext and leaves any other
text, unknown markers included, untouched.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from .model import ProjectInfo, ReleaseContext, Section, Template
from .tokens import TOKENS, TokenSpec, bullet_tokens

__all__ = [
    "EMPTY_SECTION",
    "bullets",
    "context_from_sections",
    "find_section_items",
    "paragraphs",
    "render",
    "render_sections",
    "token_values",
]

EMPTY_SECTION = "- None"


def bullets(items: Sequence[str]) -> str:
    """Render items as ``- item`` lines; an empty list renders ``- None``."""
    if not items:
        return EMPTY_SECTION
    return "\n".join(f"- {item}" for item in items)


def paragraphs(items: Sequence[str]) -> str:
    """Join paragraphs with one blank line; no paragraphs render as ''."""
    return "\n\n".join(items)


def _value_for(spec: TokenSpec, context: ReleaseContext) -> str:
    raw = spec.read(context)
    if spec.rule == "text":
        return raw if isinstance(raw, str) else ""
    seq: tuple[str, ...] = raw if isinstance(raw, tuple) else ()
    if spec.rule == "paragraphs":
        return paragraphs(seq)
    return bullets(seq)


def token_values(context: ReleaseContext) -> tuple[tuple[str, str], ...]:
    """Ordered (marker, rendered value) pairs for the whole catalog."""
    return tuple((spec.marker, _value_for(spec, context)) for spec in TOKENS)


def render(template: Template | str, context: ReleaseContext) -> str:
    content = template if isinstance(template, str) else template.content
    if not content:
        return ""
    for token_marker, value in token_values(context):
        content = content.replace(token_marker, value)
    return content


def find_section_items(sections: Iterable[Section], heading: str) -> tuple[str, ...]:
    """Items of the first section whose heading matches, ignoring case.

    Returns an empty tuple when nothing matches.
    """
    wanted = heading.lower()
    for section in sections:
        if section.heading.lower() == wanted:
            return section.items
    return ()


def context_from_sections(
    *,
    title: str,
    date: str,
    project: ProjectInfo,
    narrative: Sequence[str],
    sections: Sequence[Section],
) -> ReleaseContext:
    """Build a ReleaseContext from free-form ``{heading, items}`` sections.

    Each bullet token pulls the section named by its canonical heading.
    """
    by_field = {
        spec.source: find_section_items(sections, spec.heading or spec.name)
        for spec in bullet_tokens()
    }
    return ReleaseContext(
        title=title,
        date=date,
        project=project,
        narrative=tuple(narrative),
        **by_field,
    )


def render_sections(
    template: Template | str,
    *,
    title: str,
    date: str,
    project: ProjectInfo,
    narrative: Sequence[str],
    sections: Sequence[Section],
) -> str:
    context = context_from_sections(
        title=title,
        date=date,
        project=project,
        narrative=narrative,
        sections=sections,
    )
    return render(template, context)
