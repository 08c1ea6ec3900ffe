"""Ticket and commit sources.

Callers depend on the SyncProvider protocol only. The shipped implementation
reads canned JSON fixtures; a real tracker or VCS integration would implement
the same two methods.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, TypeVar

from rgpt.core.config import DEFAULT_SYNC_LIMIT
from rgpt.core.result import Err, Ok, Result
from rgpt.core.structured import as_str_dict, get_list
from rgpt.render.schema import load_json_file

from .errors import StoreError
from .projects import Project

__all__ = [
    "BUNDLED_COMMITS",
    "BUNDLED_TICKETS",
    "Commit",
    "FixtureSyncProvider",
    "SyncProvider",
    "Ticket",
    "filter_commits",
    "filter_tickets",
    "select_items",
]

_DATA_DIR = Path(__file__).resolve().parent.parent / "data"
BUNDLED_TICKETS = _DATA_DIR / "jira_tickets.json"
BUNDLED_COMMITS = _DATA_DIR / "devops_commits.json"


@dataclass(frozen=True, slots=True)
class Ticket:
    id: str
    key: str
    title: str
    type: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Ticket | None:
        id_, key, title = data.get("id"), data.get("key"), data.get("title")
        if not isinstance(id_, str) or not isinstance(key, str) or not isinstance(title, str):
            return None
        kind = data.get("type")
        return cls(id=id_, key=key, title=title, type=kind if isinstance(kind, str) else "")


@dataclass(frozen=True, slots=True)
class Commit:
    id: str
    hash: str
    message: str
    author: str = ""
    date: str = ""

    @property
    def short_hash(self) -> str:
        return self.hash[:7]

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Commit | None:
        id_, hash_, message = data.get("id"), data.get("hash"), data.get("message")
        if not isinstance(id_, str) or not isinstance(hash_, str) or not isinstance(message, str):
            return None
        author, date = data.get("author"), data.get("date")
        return cls(
            id=id_,
            hash=hash_,
            message=message,
            author=author if isinstance(author, str) else "",
            date=date if isinstance(date, str) else "",
        )


class SyncProvider(Protocol):
    @property
    def name(self) -> str: ...

    def fetch_tickets(self, project: Project) -> Result[tuple[Ticket, ...], StoreError]: ...

    def fetch_commits(self, project: Project) -> Result[tuple[Commit, ...], StoreError]: ...


class FixtureSyncProvider:
    """Serves tickets and commits from ``{"tickets": [...]}`` / ``{"commits": [...]}`` files.

    The project argument is ignored: fixtures hold one demo data set.
    """

    def __init__(
        self,
        tickets_path: Path | None = None,
        commits_path: Path | None = None,
        *,
        limit: int = DEFAULT_SYNC_LIMIT,
    ) -> None:
        self._tickets_path = tickets_path or BUNDLED_TICKETS
        self._commits_path = commits_path or BUNDLED_COMMITS
        self._limit = limit

    @property
    def name(self) -> str:
        return "fixtures"

    def _records(self, path: Path, key: str) -> Result[list[Mapping[str, object]], StoreError]:
        data = load_json_file(path)
        if isinstance(data, Err):
            return Err(StoreError(kind="sync_failed", message=data.error.message, hint=str(path)))

        root = as_str_dict(data.value)
        items = get_list(root, key) if root is not None else None
        if items is None:
            return Err(
                StoreError(
                    kind="sync_failed",
                    message=f"{path}: expected an object with a '{key}' list",
                )
            )

        records: list[Mapping[str, object]] = []
        for i, item in enumerate(items[: self._limit]):
            table = as_str_dict(item)
            if table is None:
                return Err(
                    StoreError(kind="sync_failed", message=f"{path}: {key}[{i}] is not an object")
                )
            records.append(table)
        return Ok(records)

    def fetch_tickets(self, project: Project) -> Result[tuple[Ticket, ...], StoreError]:
        del project
        records = self._records(self._tickets_path, "tickets")
        if isinstance(records, Err):
            return records

        tickets: list[Ticket] = []
        for i, record in enumerate(records.value):
            ticket = Ticket.from_dict(record)
            if ticket is None:
                return Err(
                    StoreError(
                        kind="sync_failed",
                        message=f"{self._tickets_path}: tickets[{i}] needs id, key and title",
                    )
                )
            tickets.append(ticket)
        return Ok(tuple(tickets))

    def fetch_commits(self, project: Project) -> Result[tuple[Commit, ...], StoreError]:
        del project
        records = self._records(self._commits_path, "commits")
        if isinstance(records, Err):
            return records

        commits: list[Commit] = []
        for i, record in enumerate(records.value):
            commit = Commit.from_dict(record)
            if commit is None:
                return Err(
                    StoreError(
                        kind="sync_failed",
                        message=f"{self._commits_path}: commits[{i}] needs id, hash and message",
                    )
                )
            commits.append(commit)
        return Ok(tuple(commits))


def filter_tickets(tickets: Iterable[Ticket], query: str) -> list[Ticket]:
    q = query.strip().lower()
    if not q:
        return list(tickets)
    return [
        t for t in tickets if q in t.key.lower() or q in t.title.lower() or q in t.type.lower()
    ]


def filter_commits(commits: Iterable[Commit], query: str) -> list[Commit]:
    q = query.strip().lower()
    if not q:
        return list(commits)
    return [
        c
        for c in commits
        if q in c.message.lower() or q in c.author.lower() or q in c.hash.lower()
    ]


class _HasId(Protocol):
    @property
    def id(self) -> str: ...


ItemT = TypeVar("ItemT", bound=_HasId)


def select_items(items: Sequence[ItemT], ids: Iterable[str]) -> list[ItemT]:
    """Items whose id is in ids, in source order."""
    wanted = set(ids)
    return [item for item in items if item.id in wanted]
