from __future__ import annotations

import pytest

from rgpt.render.model import ReleaseContext
from rgpt.render.tokens import TOKENS, TokenSpec, bullet_tokens, marker, validate_catalog


def test_marker_format() -> None:
    assert marker("TITLE") == "{{TITLE}}"


def test_catalog_names_are_the_documented_set() -> None:
    assert [spec.name for spec in TOKENS] == [
        "TITLE",
        "DATE",
        "PROJECT_NAME",
        "JIRA_KEY",
        "REPO",
        "BRANCH",
        "NARRATIVE",
        "HIGHLIGHTS",
        "FEATURES",
        "FIXES",
        "IMPROVEMENTS",
        "KNOWN_ISSUES",
        "UPGRADE_NOTES",
        "CREDITS",
        "CHANGELOG",
    ]


def test_bullet_tokens_map_to_context_fields() -> None:
    fields = set(ReleaseContext.__dataclass_fields__)
    for spec in bullet_tokens():
        assert spec.source in fields
        assert spec.heading


def test_canonical_headings() -> None:
    headings = {spec.name: spec.heading for spec in bullet_tokens()}
    assert headings["FEATURES"] == "New Features"
    assert headings["FIXES"] == "Bug Fixes"
    assert headings["CHANGELOG"] == "Changelog"


def test_shipped_catalog_is_valid() -> None:
    validate_catalog(TOKENS)


def test_duplicate_name_rejected() -> None:
    spec = TokenSpec("TITLE", "title", "text", lambda c: c.title)
    with pytest.raises(ValueError, match="duplicate"):
        validate_catalog((spec, spec))


def test_substring_marker_rejected() -> None:
    outer = TokenSpec("X{{A}}Y", "x", "text", lambda c: c.title)
    inner = TokenSpec("A", "a", "text", lambda c: c.date)
    with pytest.raises(ValueError, match="substring"):
        validate_catalog((outer, inner))


def test_bullet_token_without_heading_rejected() -> None:
    spec = TokenSpec("EXTRA", "extra", "bullets", lambda c: c.fixes)
    with pytest.raises(ValueError, match="heading"):
        validate_catalog((spec,))
