from __future__ import annotations

import os
from pathlib import Path

import typer

from rgpt import __version__
from rgpt.cli.commands.connections_cmd import connections_app
from rgpt.cli.commands.generate_cmd import generate
from rgpt.cli.commands.home_cmd import where
from rgpt.cli.commands.projects_cmd import projects_app
from rgpt.cli.commands.render_cmd import preview, render_cmd, tokens
from rgpt.cli.commands.templates_cmd import templates_app
from rgpt.core.errors import ErrorCode
from rgpt.core.home import HOME_ENV_VAR


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    invoke_without_command=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(tokens)
app.command()(preview)
app.command("render")(render_cmd)
app.command()(generate)
app.command("home")(where)

# Sub-apps
app.add_typer(templates_app, name="templates", help="Manage release note templates.")
app.add_typer(projects_app, name="projects", help="Manage projects and item selections.")
app.add_typer(
    connections_app, name="connections", help="Manage connected accounts and sync schedules."
)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    home: Path | None = typer.Option(
        None,
        "--home",
        help=f"Data directory (overrides {HOME_ENV_VAR} and auto detection)",
    ),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if home is not None:
        try:
            root = home.expanduser().resolve()
            root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            typer.echo(f"error: invalid --home: {e}", err=True)
            raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

        os.environ[HOME_ENV_VAR] = str(root)


def main() -> None:
    app()
