from __future__ import annotations

import json
from pathlib import Path

import typer

from rgpt.cli.commands._helpers import exit_on_error, exit_with_code, resolve_template
from rgpt.cli.context import build_context
from rgpt.core.errors import ErrorCode
from rgpt.output.console import Style
from rgpt.render.renderer import render
from rgpt.render.schema import load_json_file, parse_release_extras, release_to_dict
from rgpt.services.export import export_filename, write_export
from rgpt.services.generator import generate_release, to_context
from rgpt.services.sync import select_items


def generate(
    project_id: str = typer.Argument(..., help="Project id (see `rgpt projects list`)"),
    template: str | None = typer.Option(None, "--template", "-t", help="Template id"),
    file: Path | None = typer.Option(None, "--file", "-f", help="Template file"),
    out_dir: Path | None = typer.Option(
        None, "--out-dir", help="Export directory (default: config export.out_dir)"
    ),
    stdout: bool = typer.Option(False, "--stdout", help="Print instead of writing a file"),
    all_items: bool = typer.Option(
        False, "--all", help="Use every synced ticket and commit, ignoring the selection"
    ),
    extras: Path | None = typer.Option(
        None,
        "--extras",
        help="JSON file with technicalNotes, breakingChanges, knownIssues, upgradeNotes",
    ),
    as_json: bool = typer.Option(
        False, "--json", help="Print the generated release as JSON (input for `render --release`)"
    ),
) -> None:
    """Generate release notes for a project and render them into a template."""
    ctx = build_context()
    project = exit_on_error(ctx.projects.get(project_id), ctx)
    chosen = None if as_json else resolve_template(ctx, template_id=template, template_file=file)

    release_extras = None
    if extras is not None:
        data = exit_on_error(load_json_file(extras), ctx)
        release_extras = exit_on_error(parse_release_extras(data), ctx)

    tickets = exit_on_error(ctx.provider.fetch_tickets(project), ctx)
    commits = exit_on_error(ctx.provider.fetch_commits(project), ctx)

    if not all_items:
        selection = exit_on_error(ctx.projects.read_selection(project.id), ctx)
        if selection.is_empty():
            ctx.console.error(f"nothing selected for {project.name}")
            ctx.console.print(
                f"hint: pick items with `rgpt projects select {project.id}` or pass --all",
                Style.DIM,
            )
            exit_with_code(int(ErrorCode.USER_ERROR))
        tickets = tuple(select_items(tickets, selection.tickets))
        commits = tuple(select_items(commits, selection.commits))

    release = generate_release(project, tickets, commits, extras=release_extras)
    if chosen is None:
        ctx.console.document(json.dumps(release_to_dict(release), indent=2, ensure_ascii=False))
        return

    text = render(chosen, to_context(release, project))

    if stdout:
        ctx.console.document(text)
        return

    target_dir = out_dir if out_dir is not None else ctx.export_dir
    path = exit_on_error(write_export(target_dir, export_filename(project), text), ctx)
    ctx.console.print(
        f"{len(tickets)} tickets, {len(commits)} commits, template '{chosen.name}'", Style.DIM
    )
    ctx.console.success(f"wrote {path}")
