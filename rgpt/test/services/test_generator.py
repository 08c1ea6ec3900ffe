from __future__ import annotations

from datetime import date

import pytest

from rgpt.render.model import GeneratedRelease, Section
from rgpt.render.renderer import render
from rgpt.services.generator import (
    SECTION_HEADINGS,
    ReleaseExtras,
    build_markdown,
    generate_release,
    to_context,
)
from rgpt.services.projects import Project
from rgpt.services.sync import Commit, FixtureSyncProvider, Ticket

PROJECT = Project(
    id="p0", name="SkyRoute Ops", jira_key="SR", repo="team/skyroute-service", branch="main"
)
TODAY = date(2025, 8, 20)


@pytest.fixture()
def release() -> GeneratedRelease:
    provider = FixtureSyncProvider()
    tickets = provider.fetch_tickets(PROJECT).unwrap()
    commits = provider.fetch_commits(PROJECT).unwrap()
    return generate_release(PROJECT, tickets, commits, today=TODAY)


def _items(release: GeneratedRelease, heading: str) -> tuple[str, ...]:
    for section in release.sections:
        if section.heading == heading:
            return section.items
    raise AssertionError(f"missing section {heading}")


def test_title_and_date(release: GeneratedRelease) -> None:
    assert release.title == "SkyRoute Ops — Release Notes (2025-08-20)"
    assert release.date == "2025-08-20"


def test_all_headings_in_order(release: GeneratedRelease) -> None:
    assert tuple(s.heading for s in release.sections) == SECTION_HEADINGS


def test_features_list_stories_before_epics(release: GeneratedRelease) -> None:
    assert _items(release, "New Features") == (
        "SR-101: Optimize drone routing for heavy winds",
        "SR-103: Add dashboard for live fleet monitoring",
        "SR-104: Autonomous mission planning",
    )


def test_fixes_and_improvements(release: GeneratedRelease) -> None:
    assert _items(release, "Bug Fixes") == (
        "SR-102: Fix battery overheating alert issue",
        "SR-105: Telemetry gaps after reconnect",
    )
    assert _items(release, "Improvements") == (
        "ui: new dashboard for fleet live tracking (c81d5a7)",
        "perf: optimize LIDAR data processing (f51c8d9)",
    )


def test_highlights_credits_changelog(release: GeneratedRelease) -> None:
    assert _items(release, "Highlights") == _items(release, "New Features")[:3]
    assert _items(release, "Credits") == ("Alice", "Bob", "Chathumi", "Chanuka", "Supun")
    changelog = _items(release, "Changelog")
    assert changelog[0] == (
        "feat: add wind compensation to route planner (d91a2b3) — Alice on 2025-08-15"
    )
    assert not changelog[0].startswith("- ")


def test_narrative_counts(release: GeneratedRelease) -> None:
    assert release.narrative == (
        "This release moves SkyRoute forward with 3 new features and 2 bug fixes, "
        "drawn from the SR backlog.",
        "Across 5 commits on team/skyroute-service (main), the team also shipped "
        "2 performance or UI improvements.",
    )


def test_empty_selection() -> None:
    release = generate_release(PROJECT, [], [], today=TODAY)
    assert _items(release, "Highlights") == ()
    assert _items(release, "Credits") == ("—",)
    assert "0 bug fixes" in release.narrative[0]


def test_highlights_fall_back_to_fixes() -> None:
    tickets = [Ticket("t-1", "SR-1", "Crash", "Bug")]
    release = generate_release(PROJECT, tickets, [], today=TODAY)
    assert _items(release, "Highlights") == ("SR-1: Crash",)
    assert "1 bug fix," in release.narrative[0]


def test_extras_fill_manual_sections() -> None:
    extras = ReleaseExtras(known_issues=("Jitter",), breaking_changes=("API v1 removed",))
    release = generate_release(PROJECT, [], [], today=TODAY, extras=extras)
    assert _items(release, "Known Issues") == ("Jitter",)
    assert _items(release, "Breaking Changes") == ("API v1 removed",)


def test_build_markdown() -> None:
    text = build_markdown("T", ["P1"], [Section("A", ("x",)), Section("B")])
    assert text == "# T\n\nP1\n\n## A\n- x\n\n## B\n- None\n"


def test_markdown_contains_every_section(release: GeneratedRelease) -> None:
    for heading in SECTION_HEADINGS:
        assert f"## {heading}\n" in release.markdown
    assert release.markdown.endswith("\n")


def test_to_context_renders_into_template(release: GeneratedRelease) -> None:
    context = to_context(release, PROJECT)
    out = render("{{JIRA_KEY}}\n{{FIXES}}\n{{UPGRADE_NOTES}}", context)
    assert out == (
        "SR\n- SR-102: Fix battery overheating alert issue\n"
        "- SR-105: Telemetry gaps after reconnect\n- None"
    )


def test_changelog_without_author() -> None:
    release = generate_release(
        PROJECT, [], [Commit("c-9", "1234567890", "docs: readme")], today=TODAY
    )
    assert _items(release, "Changelog") == ("docs: readme (1234567)",)
    assert _items(release, "Credits") == ("—",)
