from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer

from rgpt.core.config import Config, load_config
from rgpt.core.errors import ErrorCode
from rgpt.core.home import DataHome, detect_home
from rgpt.core.result import Err
from rgpt.output.console import ConsoleProtocol, RichConsole
from rgpt.services.connections import ConnectionStore
from rgpt.services.projects import ProjectStore
from rgpt.services.sync import FixtureSyncProvider, SyncProvider
from rgpt.services.templates import TemplateStore


@dataclass(frozen=True, slots=True)
class CLIContext:
    home: DataHome
    config: Config
    console: ConsoleProtocol
    templates: TemplateStore
    projects: ProjectStore
    provider: SyncProvider
    connections: ConnectionStore

    @property
    def export_dir(self) -> Path:
        return self.home.resolve(self.config.export.out_dir)


def context_for_home(home: DataHome, config: Config, console: ConsoleProtocol) -> CLIContext:
    """Wire stores, connections and the sync provider for a data home."""
    fixtures = config.fixtures
    provider = FixtureSyncProvider(
        tickets_path=home.resolve(fixtures.tickets) if fixtures.tickets else None,
        commits_path=home.resolve(fixtures.commits) if fixtures.commits else None,
        limit=fixtures.limit,
    )
    return CLIContext(
        home=home,
        config=config,
        console=console,
        templates=TemplateStore(home.templates_path),
        projects=ProjectStore(home.projects_path, home.selections_dir),
        provider=provider,
        connections=ConnectionStore(home.connections_path),
    )


def build_context() -> CLIContext:
    home_result = detect_home()
    if isinstance(home_result, Err):
        typer.echo(f"error: {home_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    home = home_result.value
    console = RichConsole()

    config = Config()
    if home.config_path.exists():
        config_result = load_config(home.config_path)
        if isinstance(config_result, Err):
            console.warning(f"{config_result.error.message}; using defaults")
        else:
            config = config_result.value

    return context_for_home(home, config, console)
