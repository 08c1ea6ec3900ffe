"""Projects and per-project item selections.

``projects.json`` holds a list of project records; the tickets and commits a
user picked for a project live in ``selections/<project-id>.json``.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from pathlib import Path

from rgpt.core.result import Err, Ok, Result
from rgpt.core.structured import as_obj_list, as_str_dict, get_int, is_str_list
from rgpt.platform.files import atomic_write_json
from rgpt.render.model import ProjectInfo
from rgpt.render.schema import load_json_file

from .errors import StoreError
from .templates import utc_now

__all__ = [
    "DEFAULT_BRANCH",
    "MIN_PROJECT_NAME_LENGTH",
    "Project",
    "ProjectStore",
    "Selection",
]

DEFAULT_BRANCH = "main"
MIN_PROJECT_NAME_LENGTH = 3


@dataclass(frozen=True, slots=True)
class Project:
    id: str
    name: str
    jira_key: str
    repo: str
    branch: str = DEFAULT_BRANCH
    last_synced: str | None = None
    ticket_count: int | None = None
    commit_count: int | None = None

    def info(self) -> ProjectInfo:
        """Project metadata as seen by the renderer."""
        return ProjectInfo(
            name=self.name,
            jira_key=self.jira_key,
            repo=self.repo,
            branch=self.branch,
        )

    def to_dict(self) -> dict[str, object]:
        out: dict[str, object] = {
            "id": self.id,
            "name": self.name,
            "jiraKey": self.jira_key,
            "devopsRepo": self.repo,
            "branch": self.branch,
        }
        if self.last_synced is not None:
            out["lastSynced"] = self.last_synced
        if self.ticket_count is not None:
            out["ticketCount"] = self.ticket_count
        if self.commit_count is not None:
            out["commitCount"] = self.commit_count
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Project | None:
        """Parse a stored record; returns None when required fields are missing."""
        fields: dict[str, str] = {}
        for key in ("id", "name", "jiraKey", "devopsRepo"):
            value = data.get(key)
            if not isinstance(value, str) or not value:
                return None
            fields[key] = value

        branch = data.get("branch")
        last_synced = data.get("lastSynced")
        return cls(
            id=fields["id"],
            name=fields["name"],
            jira_key=fields["jiraKey"],
            repo=fields["devopsRepo"],
            branch=branch if isinstance(branch, str) and branch else DEFAULT_BRANCH,
            last_synced=last_synced if isinstance(last_synced, str) else None,
            ticket_count=get_int(data, "ticketCount"),
            commit_count=get_int(data, "commitCount"),
        )


def _dedupe(ids: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(ids))


def _toggle(ids: tuple[str, ...], item_id: str) -> tuple[str, ...]:
    if item_id in ids:
        return tuple(i for i in ids if i != item_id)
    return (*ids, item_id)


@dataclass(frozen=True, slots=True)
class Selection:
    """Ticket and commit ids chosen for one project, in pick order."""

    tickets: tuple[str, ...] = ()
    commits: tuple[str, ...] = ()

    def is_empty(self) -> bool:
        return not self.tickets and not self.commits

    def toggle_ticket(self, ticket_id: str) -> Selection:
        return replace(self, tickets=_toggle(self.tickets, ticket_id))

    def toggle_commit(self, commit_id: str) -> Selection:
        return replace(self, commits=_toggle(self.commits, commit_id))

    def cleared(self) -> Selection:
        return Selection()

    def to_dict(self) -> dict[str, object]:
        return {"tickets": list(self.tickets), "commits": list(self.commits)}


class ProjectStore:
    def __init__(
        self,
        path: Path,
        selections_dir: Path,
        *,
        clock: Callable[[], str] = utc_now,
        new_id: Callable[[], str] = lambda: uuid.uuid4().hex,
    ) -> None:
        self._path = path
        self._selections_dir = selections_dir
        self._clock = clock
        self._new_id = new_id

    # -- projects ---------------------------------------------------------

    def list_projects(self) -> Result[list[Project], StoreError]:
        if not self._path.exists():
            return Ok([])

        data = load_json_file(self._path)
        if isinstance(data, Err):
            return Err(self._corrupt(data.error.message))

        records = as_obj_list(data.value)
        if records is None:
            return Err(self._corrupt("expected a JSON list of projects"))

        projects: list[Project] = []
        for i, record in enumerate(records):
            table = as_str_dict(record)
            project = Project.from_dict(table) if table is not None else None
            if project is None:
                return Err(self._corrupt(f"[{i}]: expected id, name, jiraKey and devopsRepo"))
            projects.append(project)
        return Ok(projects)

    def _corrupt(self, detail: str) -> StoreError:
        return StoreError(
            kind="invalid_data",
            message=f"invalid projects file {self._path}: {detail}",
            hint="fix or delete the file",
        )

    def _save(self, projects: list[Project]) -> Result[None, StoreError]:
        try:
            atomic_write_json(self._path, [p.to_dict() for p in projects])
        except OSError as e:
            return Err(
                StoreError(
                    kind="storage_failed",
                    message=f"failed to write projects: {e}",
                    hint=str(self._path),
                )
            )
        return Ok(None)

    def get(self, project_id: str) -> Result[Project, StoreError]:
        listed = self.list_projects()
        if isinstance(listed, Err):
            return listed
        for project in listed.value:
            if project.id == project_id:
                return Ok(project)
        return Err(
            StoreError(
                kind="not_found",
                message=f"unknown project: {project_id}",
                hint="list projects with `rgpt projects list`",
            )
        )

    def add(
        self, *, name: str, jira_key: str, repo: str, branch: str = ""
    ) -> Result[Project, StoreError]:
        clean_name = name.strip()
        if len(clean_name) < MIN_PROJECT_NAME_LENGTH:
            return Err(
                StoreError(
                    kind="invalid_input",
                    message="project name too short",
                    hint=f"use at least {MIN_PROJECT_NAME_LENGTH} characters",
                )
            )
        if not jira_key.strip():
            return Err(StoreError(kind="invalid_input", message="jira key is required"))
        if not repo.strip():
            return Err(StoreError(kind="invalid_input", message="repository is required"))

        listed = self.list_projects()
        if isinstance(listed, Err):
            return listed

        project = Project(
            id=self._new_id(),
            name=clean_name,
            jira_key=jira_key.strip().upper(),
            repo=repo.strip(),
            branch=branch.strip() or DEFAULT_BRANCH,
        )
        saved = self._save([project, *listed.value])
        if isinstance(saved, Err):
            return saved
        return Ok(project)

    def remove(self, project_id: str) -> Result[Project, StoreError]:
        found = self.get(project_id)
        if isinstance(found, Err):
            return found

        listed = self.list_projects()
        if isinstance(listed, Err):
            return listed
        saved = self._save([p for p in listed.value if p.id != project_id])
        if isinstance(saved, Err):
            return saved

        try:
            self._selection_path(project_id).unlink(missing_ok=True)
        except OSError as e:
            return Err(
                StoreError(
                    kind="storage_failed",
                    message=f"failed to remove selection for {project_id}: {e}",
                )
            )
        return Ok(found.value)

    def mark_synced(
        self, project_id: str, *, ticket_count: int, commit_count: int
    ) -> Result[Project, StoreError]:
        listed = self.list_projects()
        if isinstance(listed, Err):
            return listed

        projects = listed.value
        for i, project in enumerate(projects):
            if project.id == project_id:
                updated = replace(
                    project,
                    last_synced=self._clock(),
                    ticket_count=ticket_count,
                    commit_count=commit_count,
                )
                projects[i] = updated
                saved = self._save(projects)
                if isinstance(saved, Err):
                    return saved
                return Ok(updated)
        return self.get(project_id)

    # -- selections -------------------------------------------------------

    def _selection_path(self, project_id: str) -> Path:
        return self._selections_dir / f"{project_id}.json"

    def read_selection(self, project_id: str) -> Result[Selection, StoreError]:
        path = self._selection_path(project_id)
        if not path.exists():
            return Ok(Selection())

        data = load_json_file(path)
        if isinstance(data, Err):
            return Err(StoreError(kind="invalid_data", message=data.error.message, hint=str(path)))

        table = as_str_dict(data.value)
        tickets = table.get("tickets", []) if table is not None else None
        commits = table.get("commits", []) if table is not None else None
        if not is_str_list(tickets) or not is_str_list(commits):
            return Err(
                StoreError(
                    kind="invalid_data",
                    message=f"invalid selection file {path}",
                    hint="clear it with `rgpt projects select --clear`",
                )
            )
        return Ok(Selection(tickets=_dedupe(tuple(tickets)), commits=_dedupe(tuple(commits))))

    def write_selection(
        self, project_id: str, selection: Selection
    ) -> Result[Selection, StoreError]:
        path = self._selection_path(project_id)
        try:
            atomic_write_json(path, selection.to_dict())
        except OSError as e:
            return Err(
                StoreError(
                    kind="storage_failed",
                    message=f"failed to write selection: {e}",
                    hint=str(path),
                )
            )
        return Ok(selection)
