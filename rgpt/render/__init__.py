"""Template rendering: token catalog, release context and renderer."""

from .model import (
    GeneratedRelease,
    ProjectInfo,
    ReleaseContext,
    ReleaseExtras,
    Section,
    Template,
)
from .renderer import (
    EMPTY_SECTION,
    bullets,
    context_from_sections,
    find_section_items,
    paragraphs,
    render,
    render_sections,
    token_values,
)
from .tokens import TOKENS, TokenSpec, marker, validate_catalog

__all__ = [
    # model
    "GeneratedRelease",
    "ProjectInfo",
    "ReleaseContext",
    "ReleaseExtras",
    "Section",
    "Template",
    # renderer
    "EMPTY_SECTION",
    "bullets",
    "context_from_sections",
    "find_section_items",
    "paragraphs",
    "render",
    "render_sections",
    "token_values",
    # tokens
    "TOKENS",
    "TokenSpec",
    "marker",
    "validate_catalog",
]
