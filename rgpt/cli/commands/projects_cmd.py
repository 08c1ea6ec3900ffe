from __future__ import annotations

import typer

from rgpt.cli.commands._helpers import exit_on_error
from rgpt.cli.context import build_context
from rgpt.output.console import Style
from rgpt.services.sync import filter_commits, filter_tickets

projects_app = typer.Typer(add_completion=False, no_args_is_help=True)


@projects_app.command("list")
def list_cmd() -> None:
    """List projects."""
    ctx = build_context()
    projects = exit_on_error(ctx.projects.list_projects(), ctx)
    if not projects:
        ctx.console.print("no projects yet; add one with `rgpt projects add`", Style.DIM)
        return
    ctx.console.table(
        ("Id", "Name", "Jira", "Repo", "Branch", "Last synced"),
        [
            (p.id, p.name, p.jira_key, p.repo, p.branch, p.last_synced or "never")
            for p in projects
        ],
    )


@projects_app.command("add")
def add_cmd(
    name: str = typer.Option(..., "--name", help="Project name (3+ characters)"),
    jira_key: str = typer.Option(..., "--jira-key", help="Tracker project key, e.g. SR"),
    repo: str = typer.Option(..., "--repo", help="Repository, e.g. team/service"),
    branch: str = typer.Option("", "--branch", help="Branch (default: main)"),
) -> None:
    """Add a project."""
    ctx = build_context()
    project = exit_on_error(
        ctx.projects.add(name=name, jira_key=jira_key, repo=repo, branch=branch), ctx
    )
    ctx.console.success(f"added {project.name} ({project.id})")


@projects_app.command("remove")
def remove_cmd(project_id: str = typer.Argument(..., help="Project id")) -> None:
    """Remove a project and its selection."""
    ctx = build_context()
    project = exit_on_error(ctx.projects.remove(project_id), ctx)
    ctx.console.success(f"removed {project.name}")


@projects_app.command("sync")
def sync_cmd(project_id: str = typer.Argument(..., help="Project id")) -> None:
    """Fetch tickets and commits and record the sync."""
    ctx = build_context()
    project = exit_on_error(ctx.projects.get(project_id), ctx)
    tickets = exit_on_error(ctx.provider.fetch_tickets(project), ctx)
    commits = exit_on_error(ctx.provider.fetch_commits(project), ctx)
    updated = exit_on_error(
        ctx.projects.mark_synced(project.id, ticket_count=len(tickets), commit_count=len(commits)),
        ctx,
    )
    ctx.console.success(
        f"synced {updated.name} from {ctx.provider.name}: "
        f"{len(tickets)} tickets, {len(commits)} commits"
    )


@projects_app.command("items")
def items_cmd(
    project_id: str = typer.Argument(..., help="Project id"),
    filter_: str = typer.Option("", "--filter", help="Case-insensitive text filter"),
) -> None:
    """Show tickets and commits available for a project, marking selected ones."""
    ctx = build_context()
    project = exit_on_error(ctx.projects.get(project_id), ctx)
    selection = exit_on_error(ctx.projects.read_selection(project.id), ctx)
    tickets = filter_tickets(exit_on_error(ctx.provider.fetch_tickets(project), ctx), filter_)
    commits = filter_commits(exit_on_error(ctx.provider.fetch_commits(project), ctx), filter_)

    def mark(item_id: str, chosen: tuple[str, ...]) -> str:
        return "x" if item_id in chosen else ""

    ctx.console.header("Tickets")
    ctx.console.table(
        ("", "Id", "Key", "Type", "Title"),
        [(mark(t.id, selection.tickets), t.id, t.key, t.type, t.title) for t in tickets],
    )
    ctx.console.header("Commits")
    ctx.console.table(
        ("", "Id", "Hash", "Author", "Message"),
        [
            (mark(c.id, selection.commits), c.id, c.short_hash, c.author, c.message)
            for c in commits
        ],
    )


@projects_app.command("select")
def select_cmd(
    project_id: str = typer.Argument(..., help="Project id"),
    ticket: list[str] = typer.Option([], "--ticket", help="Ticket id to toggle (repeatable)"),
    commit: list[str] = typer.Option([], "--commit", help="Commit id to toggle (repeatable)"),
    clear: bool = typer.Option(False, "--clear", help="Clear the selection first"),
) -> None:
    """Toggle tickets and commits in a project's selection."""
    ctx = build_context()
    project = exit_on_error(ctx.projects.get(project_id), ctx)
    selection = exit_on_error(ctx.projects.read_selection(project.id), ctx)
    if clear:
        selection = selection.cleared()
    for ticket_id in ticket:
        selection = selection.toggle_ticket(ticket_id)
    for commit_id in commit:
        selection = selection.toggle_commit(commit_id)

    saved = exit_on_error(ctx.projects.write_selection(project.id, selection), ctx)
    ctx.console.success(
        f"{project.name}: {len(saved.tickets)} tickets, {len(saved.commits)} commits selected"
    )
