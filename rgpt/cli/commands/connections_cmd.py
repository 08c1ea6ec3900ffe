from __future__ import annotations

import typer

from rgpt.cli.commands._helpers import exit_on_error, exit_with_code
from rgpt.cli.context import CLIContext, build_context
from rgpt.core.errors import ErrorCode
from rgpt.output.console import Style
from rgpt.services.connections import (
    ALLOWED_ACTIONS,
    SYNC_MODES,
    Provider,
    collect_stats,
    mapped_projects,
)

connections_app = typer.Typer(add_completion=False, no_args_is_help=True)

DEFAULT_AUDIT_ROWS = 15

_STATUS_LABELS = {
    "connected": "Connected",
    "attention": "Needs attention",
    "error": "Error",
    "disconnected": "Not connected",
}


def _account(provider: Provider) -> str:
    return provider.account.label() if provider.account is not None else "no account linked"


@connections_app.command("list")
def list_cmd() -> None:
    """List providers and their sync state."""
    ctx = build_context()
    connections = exit_on_error(ctx.connections.load(), ctx)
    ctx.console.table(
        ("Id", "Provider", "Status", "Account", "Mode", "Last sync", "Next sync"),
        [
            (
                p.id,
                p.name,
                _STATUS_LABELS[p.status],
                _account(p),
                p.sync_mode or "manual",
                p.last_sync or "-",
                p.next_sync or "-",
            )
            for p in connections.providers
        ],
    )


@connections_app.command("show")
def show_cmd(provider_id: str = typer.Argument(..., help="Provider id (jira, devops)")) -> None:
    """Show one provider: account, schedule, counters, issues and available actions."""
    ctx = build_context()
    connections = exit_on_error(ctx.connections.load(), ctx)
    provider = exit_on_error(ctx.connections.get(provider_id), ctx)

    ctx.console.header(f"{provider.name} ({_STATUS_LABELS[provider.status]})")
    ctx.console.print(f"account: {_account(provider)}")
    ctx.console.print(f"mode: {provider.sync_mode or 'manual'}")
    if provider.sync_filter:
        ctx.console.print(f"filter: {provider.sync_filter}")
    ctx.console.print(f"last sync: {provider.last_sync or '-'}")
    ctx.console.print(f"next sync: {provider.next_sync or '-'}")
    if provider.scopes:
        ctx.console.print(f"scopes: {', '.join(provider.scopes)}")
    for key, value in provider.stats.items():
        ctx.console.print(f"{key}: {value}")
    for issue in provider.issues:
        ctx.console.warning(issue)
    for mapping in connections.mappings_for(provider.id):
        ctx.console.print(f"mapped: {mapping.external} -> {mapping.project_id}", Style.DIM)
    ctx.console.print(f"actions: {', '.join(ALLOWED_ACTIONS[provider.status])}", Style.DIM)


@connections_app.command("connect")
def connect_cmd(
    provider_id: str = typer.Argument(..., help="Provider id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Accept the requested scopes"),
) -> None:
    """Connect a provider after accepting its requested scopes."""
    ctx = build_context()
    provider = exit_on_error(ctx.connections.get(provider_id), ctx)
    ctx.console.print(f"requested scopes: {', '.join(provider.requested_scopes())}")
    if not yes and not typer.confirm(f"Grant these scopes to {provider.name}?", default=False):
        ctx.console.print("cancelled", Style.DIM)
        exit_with_code(int(ErrorCode.USER_ERROR))
    connected = exit_on_error(ctx.connections.connect(provider.id), ctx)
    ctx.console.success(f"{connected.name} connected ({_account(connected)})")


@connections_app.command("disconnect")
def disconnect_cmd(provider_id: str = typer.Argument(..., help="Provider id")) -> None:
    """Disconnect a provider and forget its account and schedule."""
    ctx = build_context()
    provider = exit_on_error(ctx.connections.disconnect(provider_id), ctx)
    ctx.console.success(f"disconnected {provider.name}")


@connections_app.command("reconnect")
def reconnect_cmd(provider_id: str = typer.Argument(..., help="Provider id")) -> None:
    """Refresh a provider's credentials and clear its issues."""
    ctx = build_context()
    provider = exit_on_error(ctx.connections.reconnect(provider_id), ctx)
    ctx.console.success(f"reconnected {provider.name}")


@connections_app.command("test")
def test_cmd(provider_id: str = typer.Argument(..., help="Provider id")) -> None:
    """Check that a provider is reachable."""
    ctx = build_context()
    ok = exit_on_error(ctx.connections.test(provider_id), ctx)
    if not ok:
        ctx.console.error(f"test failed: could not reach {provider_id}")
        ctx.console.print(f"hint: run `rgpt connections reconnect {provider_id}`", Style.DIM)
        exit_with_code(int(ErrorCode.ENV_ERROR))
    ctx.console.success("connection looks good")


@connections_app.command("configure")
def configure_cmd(
    provider_id: str = typer.Argument(..., help="Provider id"),
    mode: str = typer.Option(..., "--mode", "-m", help=f"Sync mode: {', '.join(SYNC_MODES)}"),
    filter_: str = typer.Option("", "--filter", help="Only count items matching this text"),
) -> None:
    """Set a provider's sync schedule and optional item filter."""
    ctx = build_context()
    provider = exit_on_error(ctx.connections.configure(provider_id, mode, filter_), ctx)
    ctx.console.success(f"{provider.name}: sync mode {provider.sync_mode}")
    if provider.next_sync:
        ctx.console.print(f"next sync: {provider.next_sync}", Style.DIM)


def _sync(ctx: CLIContext, provider_id: str) -> Provider:
    connections = exit_on_error(ctx.connections.load(), ctx)
    projects = exit_on_error(ctx.projects.list_projects(), ctx)
    scope = mapped_projects(connections, provider_id, projects)
    return exit_on_error(
        ctx.connections.sync_now(provider_id, lambda p: collect_stats(p, scope, ctx.provider)),
        ctx,
    )


@connections_app.command("sync")
def sync_cmd(provider_id: str = typer.Argument(..., help="Provider id")) -> None:
    """Refresh a connected provider's counters now."""
    ctx = build_context()
    provider = _sync(ctx, provider_id)
    counters = ", ".join(f"{k} {v}" for k, v in provider.stats.items()) or "no counters"
    ctx.console.success(f"synced {provider.name}: {counters}")


@connections_app.command("mappings")
def mappings_cmd() -> None:
    """List links between external projects or repositories and local projects."""
    ctx = build_context()
    connections = exit_on_error(ctx.connections.load(), ctx)
    if not connections.mappings:
        ctx.console.print("no mappings yet; add one with `rgpt connections map`", Style.DIM)
        return
    ctx.console.table(
        ("Provider", "External", "Project"),
        [(m.provider, m.external, m.project_id) for m in connections.mappings],
    )


@connections_app.command("map")
def map_cmd(
    provider_id: str = typer.Argument(..., help="Provider id"),
    external: str = typer.Argument(..., help="External project key or repository"),
    project_id: str = typer.Argument(..., help="Local project id"),
) -> None:
    """Link an external project or repository to a local project."""
    ctx = build_context()
    project = exit_on_error(ctx.projects.get(project_id), ctx)
    mapping = exit_on_error(ctx.connections.map_project(provider_id, external, project.id), ctx)
    ctx.console.success(f"mapped {mapping.external} to {project.name}")


@connections_app.command("unmap")
def unmap_cmd(
    provider_id: str = typer.Argument(..., help="Provider id"),
    external: str = typer.Argument(..., help="External project key or repository"),
) -> None:
    """Remove a project link."""
    ctx = build_context()
    mapping = exit_on_error(ctx.connections.unmap_project(provider_id, external), ctx)
    ctx.console.success(f"unmapped {mapping.external}")


@connections_app.command("audit")
def audit_cmd(
    limit: int = typer.Option(DEFAULT_AUDIT_ROWS, "--limit", "-n", help="Rows to show"),
) -> None:
    """Show recent provider activity, newest first."""
    ctx = build_context()
    rows = exit_on_error(ctx.connections.audit(limit), ctx)
    if not rows:
        ctx.console.print("no activity yet", Style.DIM)
        return
    ctx.console.table(
        ("When", "Event", "Provider", "Details"),
        [(r.at, r.event, r.provider, r.details) for r in rows],
    )
