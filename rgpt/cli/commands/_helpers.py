"""Shared helpers for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, NoReturn, TypeVar

import typer

from rgpt.core.errors import ErrorCode
from rgpt.core.result import Err, Result
from rgpt.output.console import Style
from rgpt.render.model import Template
from rgpt.services.errors import StoreError

if TYPE_CHECKING:
    from rgpt.cli.context import CLIContext


T = TypeVar("T")
E = TypeVar("E")


def error_code_for(error: object) -> ErrorCode:
    """Exit code for an error payload (StoreError kinds, otherwise a data error)."""
    if isinstance(error, StoreError):
        match error.kind:
            case "invalid_input" | "not_found":
                return ErrorCode.USER_ERROR
            case "storage_failed":
                return ErrorCode.IO_ERROR
            case "invalid_data" | "sync_failed":
                return ErrorCode.DATA_ERROR
    return ErrorCode.DATA_ERROR


def exit_on_error(
    result: Result[T, E],
    ctx: CLIContext,
    error_code: ErrorCode | None = None,
) -> T:
    """Return the Ok value, or report the error and exit.

    Expects error objects to have 'message' and optional 'hint' attributes.
    Without an explicit code, the code is derived from the error payload.
    """
    if isinstance(result, Err):
        error = result.error
        message: str = getattr(error, "message", str(error))
        path: str | None = getattr(error, "path", None)
        hint: str | None = getattr(error, "hint", None)
        if isinstance(path, str) and path != "$":
            message = f"{path}: {message}"
        ctx.console.error(message)
        if hint:
            ctx.console.print(f"hint: {hint}", Style.DIM)
        code = error_code if error_code is not None else error_code_for(error)
        raise typer.Exit(code=int(code))
    return result.value


def exit_with_code(code: int) -> NoReturn:
    raise typer.Exit(code=code)


def resolve_template(
    ctx: CLIContext,
    *,
    template_id: str | None,
    template_file: Path | None,
) -> Template:
    """Template from ``--file`` or the store (``--template`` or the configured default)."""
    if template_id is not None and template_file is not None:
        ctx.console.error("use either --template or --file, not both")
        exit_with_code(int(ErrorCode.USER_ERROR))

    if template_file is not None:
        try:
            content = template_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            ctx.console.error(f"cannot read template file: {e}")
            exit_with_code(int(ErrorCode.IO_ERROR))
        return Template(id=template_file.stem, name=template_file.name, content=content)

    wanted = template_id or ctx.config.render.default_template
    return exit_on_error(ctx.templates.get(wanted), ctx)
