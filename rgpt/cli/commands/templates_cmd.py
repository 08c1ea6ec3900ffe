from __future__ import annotations

from pathlib import Path

import typer

from rgpt.cli.commands._helpers import exit_on_error, exit_with_code
from rgpt.cli.context import build_context
from rgpt.core.errors import ErrorCode
from rgpt.output.console import Style

templates_app = typer.Typer(add_completion=False, no_args_is_help=True)


@templates_app.command("list")
def list_cmd(
    search: str = typer.Option("", "--search", "-s", help="Filter by name or description"),
) -> None:
    """List templates."""
    ctx = build_context()
    templates = exit_on_error(ctx.templates.search(search), ctx)
    if not templates:
        ctx.console.print("no templates match", Style.DIM)
        return
    ctx.console.table(
        ("Id", "Name", "Description", "Updated"),
        [
            (t.id, f"{t.name} (default)" if t.is_default else t.name, t.description, t.updated_at)
            for t in templates
        ],
    )


@templates_app.command("show")
def show_cmd(template_id: str = typer.Argument(..., help="Template id")) -> None:
    """Print a template's raw content."""
    ctx = build_context()
    template = exit_on_error(ctx.templates.get(template_id), ctx)
    ctx.console.document(template.content)


@templates_app.command("new")
def new_cmd(name: str = typer.Option("New Template", "--name", help="Template name")) -> None:
    """Create a template from the starter layout."""
    ctx = build_context()
    template = exit_on_error(ctx.templates.create(name), ctx)
    ctx.console.success(f"created {template.id} ({template.name})")


@templates_app.command("duplicate")
def duplicate_cmd(template_id: str = typer.Argument(..., help="Template id")) -> None:
    """Copy a template."""
    ctx = build_context()
    template = exit_on_error(ctx.templates.duplicate(template_id), ctx)
    ctx.console.success(f"Template duplicated: {template.id} ({template.name})")


@templates_app.command("rename")
def rename_cmd(
    template_id: str = typer.Argument(..., help="Template id"),
    name: str = typer.Argument(..., help="New name"),
) -> None:
    """Rename a template."""
    ctx = build_context()
    template = exit_on_error(ctx.templates.rename(template_id, name), ctx)
    ctx.console.success(f"Renamed: {template.name}")


@templates_app.command("edit")
def edit_cmd(
    template_id: str = typer.Argument(..., help="Template id"),
    file: Path = typer.Option(..., "--file", "-f", help="File with the new content"),
) -> None:
    """Replace a template's content with the content of a file."""
    ctx = build_context()
    try:
        content = file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        ctx.console.error(f"cannot read {file}: {e}")
        exit_with_code(int(ErrorCode.IO_ERROR))
    template = exit_on_error(ctx.templates.update_content(template_id, content), ctx)
    ctx.console.success(f"Saved {template.id}")


@templates_app.command("delete")
def delete_cmd(template_id: str = typer.Argument(..., help="Template id")) -> None:
    """Delete a template (the built-in ones come back when none remain)."""
    ctx = build_context()
    remaining = exit_on_error(ctx.templates.delete(template_id), ctx)
    ctx.console.success(f"Template deleted ({len(remaining)} left)")


@templates_app.command("reset")
def reset_cmd(template_id: str = typer.Argument(..., help="Built-in template id")) -> None:
    """Restore a built-in template's shipped name and content."""
    ctx = build_context()
    template = exit_on_error(ctx.templates.reset(template_id), ctx)
    ctx.console.success(f"Reset to default: {template.name}")


@templates_app.command("restore")
def restore_cmd(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Replace all templates with the built-in ones."""
    ctx = build_context()
    if not yes and not typer.confirm("Discard all custom templates?", default=False):
        exit_with_code(int(ErrorCode.USER_ERROR))
    restored = exit_on_error(ctx.templates.restore(), ctx)
    ctx.console.success(f"restored {len(restored)} built-in templates")
