"""Connected accounts backed by ``connections.json`` in the data home.

The file holds ``{providers, mappings, audit}``:

- ``providers``: one record per integration (Jira, Azure DevOps) with its
  status, linked account, sync schedule, scopes, counters and open issues
- ``mappings``: links from an external project or repository to a local
  project id
- ``audit``: newest-first log of provider actions, capped at
  ``MAX_AUDIT_ROWS``

Which actions a provider accepts depends on its status (see
``ALLOWED_ACTIONS``). Every accepted action appends an audit row.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Literal

from rgpt.core.result import Err, Ok, Result
from rgpt.core.structured import as_obj_list, as_str_dict, get_str, is_str_list
from rgpt.platform.files import atomic_write_json
from rgpt.render.schema import load_json_file

from .errors import StoreError
from .projects import Project
from .sync import SyncProvider, filter_commits, filter_tickets

__all__ = [
    "ALLOWED_ACTIONS",
    "DEFAULT_PROVIDERS",
    "DEFAULT_SCOPES",
    "MAX_AUDIT_ROWS",
    "SYNC_MODES",
    "Account",
    "Action",
    "AuditEntry",
    "ConnectionStore",
    "Connections",
    "ProjectMapping",
    "Provider",
    "ProviderStatus",
    "SyncMode",
    "collect_stats",
    "mapped_projects",
    "next_sync_after",
]

ProviderStatus = Literal["connected", "attention", "disconnected", "error"]
SyncMode = Literal["manual", "hourly", "daily"]
Action = Literal["connect", "disconnect", "reconnect", "test", "configure", "sync"]

PROVIDER_STATUSES: tuple[ProviderStatus, ...] = ("connected", "attention", "disconnected", "error")
SYNC_MODES: tuple[SyncMode, ...] = ("manual", "hourly", "daily")

ALLOWED_ACTIONS: dict[ProviderStatus, tuple[Action, ...]] = {
    "connected": ("sync", "configure", "test", "reconnect", "disconnect"),
    "attention": ("reconnect", "configure"),
    "error": ("reconnect", "test"),
    "disconnected": ("connect",),
}

MAX_AUDIT_ROWS = 200
DEFAULT_SCOPES = ("read:project", "read:issue", "repo:read")

# Issues a successful sync clears (stale credentials).
_RESOLVED_BY_SYNC = re.compile(r"expired|token", re.IGNORECASE)


def _iso(moment: datetime) -> str:
    return moment.astimezone(UTC).isoformat(timespec="seconds").replace("+00:00", "Z")


def _utc_now() -> datetime:
    return datetime.now(UTC)


def next_sync_after(mode: SyncMode | None, moment: datetime) -> str | None:
    """When a scheduled sync is next due; manual mode has no schedule."""
    match mode:
        case "hourly":
            return _iso(moment + timedelta(hours=1))
        case "daily":
            return _iso(moment + timedelta(hours=24))
        case _:
            return None


def _opt_str(data: Mapping[str, object], key: str) -> str | None:
    value = data.get(key)
    return value if isinstance(value, str) else None


def _as_status(value: object) -> ProviderStatus | None:
    for status in PROVIDER_STATUSES:
        if value == status:
            return status
    return None


def _as_mode(value: object) -> SyncMode | None:
    for mode in SYNC_MODES:
        if value == mode:
            return mode
    return None


def _str_tuple(data: Mapping[str, object], key: str) -> tuple[str, ...] | None:
    value = data.get(key, [])
    return tuple(value) if is_str_list(value) else None


@dataclass(frozen=True, slots=True)
class Account:
    site: str | None = None
    user: str | None = None
    org: str | None = None

    def label(self) -> str:
        return f"{self.site or self.org or '-'} / {self.user or '-'}"

    def to_dict(self) -> dict[str, object]:
        out: dict[str, object] = {}
        for key in ("site", "user", "org"):
            value = getattr(self, key)
            if value is not None:
                out[key] = value
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Account:
        return cls(
            site=_opt_str(data, "site"),
            user=_opt_str(data, "user"),
            org=_opt_str(data, "org"),
        )


def _empty_stats() -> dict[str, int]:
    return {}


@dataclass(frozen=True, slots=True)
class Provider:
    """One integration and its sync state."""

    id: str
    name: str
    status: ProviderStatus = "disconnected"
    account: Account | None = None
    last_sync: str | None = None
    next_sync: str | None = None
    scopes: tuple[str, ...] = ()
    stats: dict[str, int] = field(default_factory=_empty_stats)
    issues: tuple[str, ...] = ()
    sync_mode: SyncMode | None = None
    sync_filter: str | None = None

    def allows(self, action: Action) -> bool:
        return action in ALLOWED_ACTIONS[self.status]

    def requested_scopes(self) -> tuple[str, ...]:
        return self.scopes or DEFAULT_SCOPES

    def to_dict(self) -> dict[str, object]:
        out: dict[str, object] = {
            "id": self.id,
            "name": self.name,
            "status": self.status,
            "account": self.account.to_dict() if self.account is not None else None,
            "lastSync": self.last_sync,
            "nextSync": self.next_sync,
            "scopes": list(self.scopes),
            "stats": dict(self.stats),
            "issues": list(self.issues),
            "syncMode": self.sync_mode,
        }
        if self.sync_filter is not None:
            out["syncFilter"] = self.sync_filter
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Provider | None:
        """Parse a stored record; returns None when it is malformed."""
        provider_id = get_str(data, "id")
        name = get_str(data, "name")
        status = _as_status(data.get("status", "disconnected"))
        raw_mode = data.get("syncMode")
        mode = _as_mode(raw_mode)
        scopes = _str_tuple(data, "scopes")
        issues = _str_tuple(data, "issues")
        if not provider_id or not name or scopes is None or issues is None:
            return None
        if status is None or (raw_mode is not None and mode is None):
            return None

        account_table = as_str_dict(data.get("account"))
        stats_table = as_str_dict(data.get("stats", {}))
        if stats_table is None:
            return None
        stats: dict[str, int] = {}
        for key, value in stats_table.items():
            if not isinstance(value, int) or isinstance(value, bool):
                return None
            stats[key] = value

        return cls(
            id=provider_id,
            name=name,
            status=status,
            account=Account.from_dict(account_table) if account_table is not None else None,
            last_sync=_opt_str(data, "lastSync"),
            next_sync=_opt_str(data, "nextSync"),
            scopes=scopes,
            stats=stats,
            issues=issues,
            sync_mode=mode,
            sync_filter=_opt_str(data, "syncFilter"),
        )


@dataclass(frozen=True, slots=True)
class ProjectMapping:
    """An external project key or repository linked to a local project."""

    provider: str
    external: str
    project_id: str

    def to_dict(self) -> dict[str, object]:
        return {
            "provider": self.provider,
            "external": self.external,
            "internalProjectId": self.project_id,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> ProjectMapping | None:
        provider = get_str(data, "provider")
        external = get_str(data, "external")
        project_id = get_str(data, "internalProjectId")
        if not provider or not external or not project_id:
            return None
        return cls(provider=provider, external=external, project_id=project_id)


@dataclass(frozen=True, slots=True)
class AuditEntry:
    at: str
    event: str
    provider: str
    details: str

    def to_dict(self) -> dict[str, object]:
        return {
            "at": self.at,
            "event": self.event,
            "provider": self.provider,
            "details": self.details,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> AuditEntry | None:
        at = get_str(data, "at")
        event = get_str(data, "event")
        provider = get_str(data, "provider")
        details = _opt_str(data, "details")
        if at is None or event is None or provider is None or details is None:
            return None
        return cls(at=at, event=event, provider=provider, details=details)


DEFAULT_PROVIDERS: tuple[Provider, ...] = (
    Provider(id="jira", name="Jira"),
    Provider(id="devops", name="Azure DevOps"),
)


@dataclass(frozen=True, slots=True)
class Connections:
    providers: tuple[Provider, ...] = DEFAULT_PROVIDERS
    mappings: tuple[ProjectMapping, ...] = ()
    audit: tuple[AuditEntry, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "providers": [p.to_dict() for p in self.providers],
            "mappings": [m.to_dict() for m in self.mappings],
            "audit": [a.to_dict() for a in self.audit],
        }

    def mappings_for(self, provider_id: str) -> tuple[ProjectMapping, ...]:
        return tuple(m for m in self.mappings if m.provider == provider_id)


def mapped_projects(
    connections: Connections, provider_id: str, projects: Sequence[Project]
) -> list[Project]:
    """Projects a provider syncs: the mapped ones, or every project when none are mapped."""
    mapped = {m.project_id for m in connections.mappings_for(provider_id)}
    if not mapped:
        return list(projects)
    return [p for p in projects if p.id in mapped]


def collect_stats(
    provider: Provider, projects: Sequence[Project], source: SyncProvider
) -> Result[dict[str, int], StoreError]:
    """Counters for a provider card, honouring its configured filter.

    Jira counts projects and tickets; Azure DevOps counts repositories and
    commits. Unknown providers report nothing.
    """
    query = provider.sync_filter or ""
    if provider.id == "jira":
        tickets = 0
        for project in projects:
            fetched = source.fetch_tickets(project)
            if isinstance(fetched, Err):
                return fetched
            tickets += len(filter_tickets(fetched.value, query))
        return Ok({"projects": len(projects), "tickets": tickets})

    if provider.id == "devops":
        commits = 0
        for project in projects:
            fetched = source.fetch_commits(project)
            if isinstance(fetched, Err):
                return fetched
            commits += len(filter_commits(fetched.value, query))
        return Ok({"repos": len({p.repo for p in projects}), "commits": commits})

    return Ok({})


def _refused(provider: Provider, action: Action) -> StoreError:
    allowed = ", ".join(ALLOWED_ACTIONS[provider.status])
    return StoreError(
        kind="invalid_input",
        message=f"cannot {action} {provider.name} while it is {provider.status}",
        hint=f"available: {allowed}",
    )


class ConnectionStore:
    def __init__(self, path: Path, *, clock: Callable[[], datetime] = _utc_now) -> None:
        self._path = path
        self._clock = clock

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Result[Connections, StoreError]:
        if not self._path.exists():
            return Ok(Connections())

        data = load_json_file(self._path)
        if isinstance(data, Err):
            return Err(self._corrupt(data.error.message))
        root = as_str_dict(data.value)
        if root is None:
            return Err(self._corrupt("expected an object with providers, mappings and audit"))

        providers: list[Provider] = []
        for i, record in enumerate(as_obj_list(root.get("providers", [])) or []):
            table = as_str_dict(record)
            provider = Provider.from_dict(table) if table is not None else None
            if provider is None:
                return Err(self._corrupt(f"providers[{i}]: malformed provider"))
            providers.append(provider)

        mappings: list[ProjectMapping] = []
        for i, record in enumerate(as_obj_list(root.get("mappings", [])) or []):
            table = as_str_dict(record)
            mapping = ProjectMapping.from_dict(table) if table is not None else None
            if mapping is None:
                return Err(
                    self._corrupt(f"mappings[{i}]: expected provider, external, internalProjectId")
                )
            mappings.append(mapping)

        audit: list[AuditEntry] = []
        for i, record in enumerate(as_obj_list(root.get("audit", [])) or []):
            table = as_str_dict(record)
            entry = AuditEntry.from_dict(table) if table is not None else None
            if entry is None:
                return Err(self._corrupt(f"audit[{i}]: expected at, event, provider, details"))
            audit.append(entry)

        return Ok(
            Connections(
                providers=tuple(providers) or DEFAULT_PROVIDERS,
                mappings=tuple(mappings),
                audit=tuple(audit[:MAX_AUDIT_ROWS]),
            )
        )

    def _corrupt(self, detail: str) -> StoreError:
        return StoreError(
            kind="invalid_data",
            message=f"invalid connections file {self._path}: {detail}",
            hint="fix or delete the file",
        )

    def _save(self, connections: Connections) -> Result[None, StoreError]:
        try:
            atomic_write_json(self._path, connections.to_dict())
        except OSError as e:
            return Err(
                StoreError(
                    kind="storage_failed",
                    message=f"failed to write connections: {e}",
                    hint=str(self._path),
                )
            )
        return Ok(None)

    def get(self, provider_id: str) -> Result[Provider, StoreError]:
        loaded = self.load()
        if isinstance(loaded, Err):
            return loaded
        return self._find(loaded.value, provider_id)

    def _find(self, connections: Connections, provider_id: str) -> Result[Provider, StoreError]:
        for provider in connections.providers:
            if provider.id == provider_id:
                return Ok(provider)
        known = ", ".join(p.id for p in connections.providers)
        return Err(
            StoreError(
                kind="not_found",
                message=f"unknown provider: {provider_id}",
                hint=f"known providers: {known}",
            )
        )

    def audit(self, limit: int | None = None) -> Result[list[AuditEntry], StoreError]:
        loaded = self.load()
        if isinstance(loaded, Err):
            return loaded
        rows = list(loaded.value.audit)
        return Ok(rows if limit is None else rows[: max(limit, 0)])

    # -- provider actions ---------------------------------------------------

    def _act(
        self,
        provider_id: str,
        action: Action,
        change: Callable[[Provider, datetime], Provider],
        event: str,
        details: str,
    ) -> Result[Provider, StoreError]:
        loaded = self.load()
        if isinstance(loaded, Err):
            return loaded
        connections = loaded.value

        found = self._find(connections, provider_id)
        if isinstance(found, Err):
            return found
        provider = found.value
        if not provider.allows(action):
            return Err(_refused(provider, action))

        now = self._clock()
        updated = change(provider, now)
        saved = self._save(self._with(connections, updated, event, details, now))
        if isinstance(saved, Err):
            return saved
        return Ok(updated)

    def _with(
        self,
        connections: Connections,
        provider: Provider,
        event: str,
        details: str,
        now: datetime,
    ) -> Connections:
        row = AuditEntry(at=_iso(now), event=event, provider=provider.id, details=details)
        return replace(
            connections,
            providers=tuple(provider if p.id == provider.id else p for p in connections.providers),
            audit=(row, *connections.audit)[:MAX_AUDIT_ROWS],
        )

    def connect(self, provider_id: str) -> Result[Provider, StoreError]:
        """Link an account after the user accepted the requested scopes."""

        def change(p: Provider, now: datetime) -> Provider:
            return replace(
                p,
                status="connected",
                account=p.account or Account(user="demo-user", org="demo-org"),
                last_sync=_iso(now),
                next_sync=next_sync_after("daily", now),
                sync_mode="daily",
                scopes=p.requested_scopes(),
            )

        return self._act(provider_id, "connect", change, "connected", "OAuth completed (mock)")

    def disconnect(self, provider_id: str) -> Result[Provider, StoreError]:
        def change(p: Provider, now: datetime) -> Provider:
            return replace(
                p,
                status="disconnected",
                account=None,
                last_sync=None,
                next_sync=None,
                scopes=(),
                issues=(),
                sync_mode=None,
            )

        return self._act(
            provider_id, "disconnect", change, "disconnected", "User disconnected provider"
        )

    def reconnect(self, provider_id: str) -> Result[Provider, StoreError]:
        """Refresh credentials; keeps the account and any existing schedule."""

        def change(p: Provider, now: datetime) -> Provider:
            return replace(
                p,
                status="connected",
                last_sync=p.last_sync or _iso(now),
                next_sync=p.next_sync or next_sync_after("daily", now),
                issues=(),
                sync_mode=p.sync_mode or "daily",
            )

        return self._act(
            provider_id, "reconnect", change, "reconnected", "Token refreshed / re-auth"
        )

    def test(self, provider_id: str) -> Result[bool, StoreError]:
        """Check connectivity. Providers in the error state fail the check."""
        found = self.get(provider_id)
        if isinstance(found, Err):
            return found
        ok = found.value.status != "error"
        acted = self._act(
            provider_id,
            "test",
            lambda p, now: p,
            "test_ok" if ok else "test_failed",
            "Connectivity verified" if ok else "Could not reach provider",
        )
        if isinstance(acted, Err):
            return acted
        return Ok(ok)

    def configure(
        self, provider_id: str, mode: str, sync_filter: str | None = None
    ) -> Result[Provider, StoreError]:
        sync_mode = _as_mode(mode)
        if sync_mode is None:
            return Err(
                StoreError(
                    kind="invalid_input",
                    message=f"unknown sync mode: {mode}",
                    hint=f"use one of: {', '.join(SYNC_MODES)}",
                )
            )
        query = (sync_filter or "").strip() or None

        def change(p: Provider, now: datetime) -> Provider:
            return replace(
                p,
                sync_mode=sync_mode,
                sync_filter=query,
                next_sync=next_sync_after(sync_mode, now),
            )

        suffix = " with filter" if query else ""
        return self._act(
            provider_id, "configure", change, "configured", f"Sync mode set to {mode}{suffix}"
        )

    def sync_now(
        self,
        provider_id: str,
        fetch: Callable[[Provider], Result[dict[str, int], StoreError]],
    ) -> Result[Provider, StoreError]:
        """Refresh a connected provider's counters.

        A failing ``fetch`` puts the provider in the error state with the
        failure recorded as an issue, then returns that failure.
        """
        found = self.get(provider_id)
        if isinstance(found, Err):
            return found
        if not found.value.allows("sync"):
            return Err(_refused(found.value, "sync"))

        fetched = fetch(found.value)
        if isinstance(fetched, Err):
            failure = fetched.error

            def broken(p: Provider, now: datetime) -> Provider:
                return replace(p, status="error", issues=(failure.message, *p.issues))

            marked = self._act(provider_id, "sync", broken, "sync_failed", failure.message)
            if isinstance(marked, Err):
                return marked
            return Err(failure)

        stats = fetched.value

        def refreshed(p: Provider, now: datetime) -> Provider:
            return replace(
                p,
                last_sync=_iso(now),
                next_sync=next_sync_after(p.sync_mode, now),
                stats={**p.stats, **stats},
                issues=tuple(i for i in p.issues if not _RESOLVED_BY_SYNC.search(i)),
            )

        return self._act(provider_id, "sync", refreshed, "sync_completed", "Data refreshed")

    # -- mappings -------------------------------------------------------------

    def map_project(
        self, provider_id: str, external: str, project_id: str
    ) -> Result[ProjectMapping, StoreError]:
        """Link an external key or repository to a project, replacing an older link."""
        key = external.strip()
        if not key:
            return Err(StoreError(kind="invalid_input", message="external name is required"))

        loaded = self.load()
        if isinstance(loaded, Err):
            return loaded
        connections = loaded.value
        found = self._find(connections, provider_id)
        if isinstance(found, Err):
            return found

        mapping = ProjectMapping(provider=provider_id, external=key, project_id=project_id)
        kept = tuple(
            m for m in connections.mappings if (m.provider, m.external) != (provider_id, key)
        )
        now = self._clock()
        updated = self._with(
            replace(connections, mappings=(*kept, mapping)),
            found.value,
            "mapped",
            f"{key} -> {project_id}",
            now,
        )
        saved = self._save(updated)
        if isinstance(saved, Err):
            return saved
        return Ok(mapping)

    def unmap_project(self, provider_id: str, external: str) -> Result[ProjectMapping, StoreError]:
        loaded = self.load()
        if isinstance(loaded, Err):
            return loaded
        connections = loaded.value
        found = self._find(connections, provider_id)
        if isinstance(found, Err):
            return found

        key = external.strip()
        for mapping in connections.mappings:
            if (mapping.provider, mapping.external) == (provider_id, key):
                kept = tuple(m for m in connections.mappings if m != mapping)
                updated = self._with(
                    replace(connections, mappings=kept),
                    found.value,
                    "unmapped",
                    key,
                    self._clock(),
                )
                saved = self._save(updated)
                if isinstance(saved, Err):
                    return saved
                return Ok(mapping)
        return Err(
            StoreError(
                kind="not_found",
                message=f"no mapping for {key} on {found.value.name}",
                hint="list mappings with `rgpt connections mappings`",
            )
        )
