from __future__ import annotations

import json
from pathlib import Path

from rgpt.core.result import Err
from rgpt.services.projects import Project
from rgpt.services.sync import (
    Commit,
    FixtureSyncProvider,
    Ticket,
    filter_commits,
    filter_tickets,
    select_items,
)

PROJECT = Project(id="p0", name="SkyRoute", jira_key="SR", repo="team/skyroute-service")


class TestBundledFixtures:
    def test_tickets(self) -> None:
        tickets = FixtureSyncProvider().fetch_tickets(PROJECT).unwrap()
        assert len(tickets) == 7
        assert tickets[0] == Ticket(
            id="t-101", key="SR-101", title="Optimize drone routing for heavy winds", type="Story"
        )

    def test_commits(self) -> None:
        commits = FixtureSyncProvider().fetch_commits(PROJECT).unwrap()
        assert [c.id for c in commits] == ["c-1", "c-2", "c-3", "c-4", "c-5"]
        assert commits[0].short_hash == "d91a2b3"
        assert commits[0].author == "Alice"

    def test_limit(self) -> None:
        provider = FixtureSyncProvider(limit=2)
        assert len(provider.fetch_tickets(PROJECT).unwrap()) == 2
        assert len(provider.fetch_commits(PROJECT).unwrap()) == 2


class TestFixtureErrors:
    def test_missing_file(self, tmp_path: Path) -> None:
        result = FixtureSyncProvider(tickets_path=tmp_path / "nope.json").fetch_tickets(PROJECT)
        assert isinstance(result, Err)
        assert result.error.kind == "sync_failed"

    def test_wrong_shape(self, tmp_path: Path) -> None:
        path = tmp_path / "commits.json"
        path.write_text(json.dumps([{"id": "c"}]), encoding="utf-8")
        result = FixtureSyncProvider(commits_path=path).fetch_commits(PROJECT)
        assert isinstance(result, Err)
        assert "'commits' list" in result.error.message

    def test_incomplete_record(self, tmp_path: Path) -> None:
        path = tmp_path / "tickets.json"
        path.write_text(json.dumps({"tickets": [{"id": "t-1", "key": "X-1"}]}), encoding="utf-8")
        result = FixtureSyncProvider(tickets_path=path).fetch_tickets(PROJECT)
        assert isinstance(result, Err)
        assert "tickets[0]" in result.error.message


def test_filter_tickets() -> None:
    tickets = [
        Ticket("t-1", "SR-1", "Routing", "Story"),
        Ticket("t-2", "SR-2", "Overheat alert", "Bug"),
    ]
    assert [t.id for t in filter_tickets(tickets, "bug")] == ["t-2"]
    assert [t.id for t in filter_tickets(tickets, "sr-1")] == ["t-1"]
    assert len(filter_tickets(tickets, "")) == 2


def test_filter_commits() -> None:
    commits = [
        Commit("c-1", "abc1234", "feat: route", "Alice"),
        Commit("c-2", "def5678", "fix: alert", "Bob"),
    ]
    assert [c.id for c in filter_commits(commits, "bob")] == ["c-2"]
    assert [c.id for c in filter_commits(commits, "ABC")] == ["c-1"]


def test_select_items_keeps_source_order() -> None:
    tickets = [Ticket("t-1", "A-1", "a"), Ticket("t-2", "A-2", "b"), Ticket("t-3", "A-3", "c")]
    picked = select_items(tickets, ["t-3", "t-1", "missing"])
    assert [t.id for t in picked] == ["t-1", "t-3"]
