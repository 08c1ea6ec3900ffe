from __future__ import annotations

from pathlib import Path

import typer

from rgpt.cli.commands._helpers import exit_on_error, exit_with_code, resolve_template
from rgpt.cli.context import build_context
from rgpt.core.errors import ErrorCode
from rgpt.render.model import ProjectInfo
from rgpt.render.renderer import render, render_sections
from rgpt.render.schema import load_json_file, parse_generated_release, parse_release_context
from rgpt.render.tokens import TOKENS
from rgpt.services.export import write_export
from rgpt.services.sample import sample_context


def tokens() -> None:
    """List the placeholders a template can use."""
    ctx = build_context()
    rules = {
        "text": "literal text",
        "paragraphs": "paragraphs separated by a blank line",
        "bullets": "'- item' lines, '- None' when empty",
    }
    ctx.console.table(
        ("Token", "Source", "Rendering"),
        [(spec.marker, spec.source, rules[spec.rule]) for spec in TOKENS],
    )


def preview(
    template: str | None = typer.Option(None, "--template", "-t", help="Template id"),
    file: Path | None = typer.Option(None, "--file", "-f", help="Render a template file instead"),
) -> None:
    """Render a template against the built-in sample release."""
    ctx = build_context()
    chosen = resolve_template(ctx, template_id=template, template_file=file)
    ctx.console.document(render(chosen, sample_context()))


def render_cmd(
    context: Path | None = typer.Option(None, "--context", "-c", help="Release context JSON file"),
    release: Path | None = typer.Option(
        None, "--release", "-r", help="Generated release JSON file (`rgpt generate --json`)"
    ),
    project_id: str | None = typer.Option(
        None, "--project", "-p", help="Project supplying name, key and repo for --release"
    ),
    template: str | None = typer.Option(None, "--template", "-t", help="Template id"),
    file: Path | None = typer.Option(None, "--file", "-f", help="Template file"),
    out: Path | None = typer.Option(None, "--out", "-o", help="Write to a file instead of stdout"),
) -> None:
    """Render a template against a release context or a generated release."""
    ctx = build_context()
    if context is not None and release is not None:
        ctx.console.error("use either --context or --release, not both")
        exit_with_code(int(ErrorCode.USER_ERROR))
    if project_id is not None and release is None:
        ctx.console.error("--project only applies to --release")
        exit_with_code(int(ErrorCode.USER_ERROR))

    chosen = resolve_template(ctx, template_id=template, template_file=file)

    if context is not None:
        data = exit_on_error(load_json_file(context), ctx)
        text = render(chosen, exit_on_error(parse_release_context(data), ctx))
    elif release is not None:
        info = ProjectInfo()
        if project_id is not None:
            info = exit_on_error(ctx.projects.get(project_id), ctx).info()
        data = exit_on_error(load_json_file(release), ctx)
        generated = exit_on_error(parse_generated_release(data), ctx)
        text = render_sections(
            chosen,
            title=generated.title,
            date=generated.date,
            project=info,
            narrative=generated.narrative,
            sections=generated.sections,
        )
    else:
        ctx.console.error("pass --context or --release")
        exit_with_code(int(ErrorCode.USER_ERROR))

    if out is None:
        ctx.console.document(text)
        return

    path = exit_on_error(write_export(out.parent, out.name, text), ctx)
    ctx.console.success(f"wrote {path}")
