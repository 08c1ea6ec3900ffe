from __future__ import annotations

import json
from pathlib import Path

import pytest
import typer

from rgpt.cli.context import CLIContext, context_for_home
from rgpt.core.config import Config, FixturesConfig
from rgpt.core.errors import ErrorCode
from rgpt.core.home import DataHome
from rgpt.output.console import MockConsole
from rgpt.services.connections import Connections, Provider


def _patch(monkeypatch: pytest.MonkeyPatch, context: CLIContext) -> None:
    import rgpt.cli.commands.connections_cmd as connections_cmd

    monkeypatch.setattr(connections_cmd, "build_context", lambda: context)


@pytest.fixture()
def ctx(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> CLIContext:
    context = context_for_home(DataHome(root=tmp_path), Config(), MockConsole())
    _patch(monkeypatch, context)
    return context


def _console(ctx: CLIContext) -> MockConsole:
    assert isinstance(ctx.console, MockConsole)
    return ctx.console


def test_list_shows_default_providers(ctx: CLIContext) -> None:
    import rgpt.cli.commands.connections_cmd as connections_cmd

    connections_cmd.list_cmd()

    console = _console(ctx)
    assert console.messages[0] == "Id\tProvider\tStatus\tAccount\tMode\tLast sync\tNext sync"
    assert console.messages[1].startswith("jira\tJira\tNot connected\tno account linked\tmanual")
    assert console.messages[2].startswith("devops\tAzure DevOps\tNot connected")


def test_connect_with_yes(ctx: CLIContext) -> None:
    import rgpt.cli.commands.connections_cmd as connections_cmd

    connections_cmd.connect_cmd("jira", yes=True)

    console = _console(ctx)
    assert console.find("requested scopes: read:project, read:issue, repo:read")
    assert console.find("OK Jira connected (demo-org / demo-user)")
    assert ctx.connections.get("jira").unwrap().status == "connected"


def test_connect_declined_changes_nothing(
    ctx: CLIContext, monkeypatch: pytest.MonkeyPatch
) -> None:
    import rgpt.cli.commands.connections_cmd as connections_cmd

    monkeypatch.setattr(connections_cmd.typer, "confirm", lambda *a, **k: False)

    with pytest.raises(typer.Exit) as exc:
        connections_cmd.connect_cmd("jira", yes=False)

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)
    assert _console(ctx).find("cancelled")
    assert not ctx.connections.path.exists()


def test_action_not_available_is_user_error(ctx: CLIContext) -> None:
    import rgpt.cli.commands.connections_cmd as connections_cmd

    with pytest.raises(typer.Exit) as exc:
        connections_cmd.disconnect_cmd("jira")

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)
    console = _console(ctx)
    assert console.find("cannot disconnect Jira while it is disconnected")
    assert console.find("hint: available: connect")


def test_configure_then_show(ctx: CLIContext) -> None:
    import rgpt.cli.commands.connections_cmd as connections_cmd

    connections_cmd.connect_cmd("devops", yes=True)
    connections_cmd.configure_cmd("devops", mode="hourly", filter_="fix")
    _console(ctx).clear()

    connections_cmd.show_cmd("devops")

    console = _console(ctx)
    assert console.messages[0] == "Azure DevOps (Connected)"
    assert console.find("mode: hourly")
    assert console.find("filter: fix")
    assert console.find("actions: sync, configure, test, reconnect, disconnect")


def test_configure_unknown_mode(ctx: CLIContext) -> None:
    import rgpt.cli.commands.connections_cmd as connections_cmd

    connections_cmd.connect_cmd("jira", yes=True)
    with pytest.raises(typer.Exit) as exc:
        connections_cmd.configure_cmd("jira", mode="weekly", filter_="")

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)
    assert _console(ctx).find("unknown sync mode: weekly")


def test_test_failure_is_env_error(ctx: CLIContext) -> None:
    import rgpt.cli.commands.connections_cmd as connections_cmd

    ctx.connections.path.write_text(
        json.dumps(Connections(providers=(Provider("jira", "Jira", status="error"),)).to_dict()),
        encoding="utf-8",
    )

    with pytest.raises(typer.Exit) as exc:
        connections_cmd.test_cmd("jira")

    assert exc.value.exit_code == int(ErrorCode.ENV_ERROR)
    assert _console(ctx).find("test failed: could not reach jira")


def test_sync_counts_mapped_projects(ctx: CLIContext) -> None:
    import rgpt.cli.commands.connections_cmd as connections_cmd

    first = ctx.projects.add(name="SkyRoute", jira_key="SR", repo="team/skyroute").unwrap()
    ctx.projects.add(name="Harbor", jira_key="HB", repo="team/harbor").unwrap()
    connections_cmd.connect_cmd("jira", yes=True)
    connections_cmd.map_cmd("jira", "SR", first.id)

    connections_cmd.sync_cmd("jira")

    provider = ctx.connections.get("jira").unwrap()
    assert provider.stats["projects"] == 1
    assert provider.stats["tickets"] > 0
    assert _console(ctx).find("synced Jira: projects 1, tickets")


def test_sync_failure_marks_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import rgpt.cli.commands.connections_cmd as connections_cmd

    bad = tmp_path / "tickets.json"
    bad.write_text("[]", encoding="utf-8")
    config = Config(fixtures=FixturesConfig(tickets=str(bad)))
    context = context_for_home(DataHome(root=tmp_path), config, MockConsole())
    _patch(monkeypatch, context)
    context.projects.add(name="SkyRoute", jira_key="SR", repo="team/skyroute").unwrap()
    connections_cmd.connect_cmd("jira", yes=True)

    with pytest.raises(typer.Exit) as exc:
        connections_cmd.sync_cmd("jira")

    assert exc.value.exit_code == int(ErrorCode.DATA_ERROR)
    assert context.connections.get("jira").unwrap().status == "error"


def test_map_requires_known_project(ctx: CLIContext) -> None:
    import rgpt.cli.commands.connections_cmd as connections_cmd

    with pytest.raises(typer.Exit) as exc:
        connections_cmd.map_cmd("jira", "SR", "missing")

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)
    assert _console(ctx).find("unknown project: missing")


def test_mappings_and_unmap(ctx: CLIContext) -> None:
    import rgpt.cli.commands.connections_cmd as connections_cmd

    project = ctx.projects.add(name="SkyRoute", jira_key="SR", repo="team/skyroute").unwrap()
    connections_cmd.map_cmd("devops", "team/skyroute", project.id)
    _console(ctx).clear()

    connections_cmd.mappings_cmd()
    assert _console(ctx).messages == [
        "Provider\tExternal\tProject",
        f"devops\tteam/skyroute\t{project.id}",
    ]

    connections_cmd.unmap_cmd("devops", "team/skyroute")
    _console(ctx).clear()
    connections_cmd.mappings_cmd()
    assert _console(ctx).find("no mappings yet")


def test_audit_limit(ctx: CLIContext) -> None:
    import rgpt.cli.commands.connections_cmd as connections_cmd

    connections_cmd.connect_cmd("jira", yes=True)
    connections_cmd.test_cmd("jira")
    connections_cmd.reconnect_cmd("jira")
    _console(ctx).clear()

    connections_cmd.audit_cmd(limit=2)

    console = _console(ctx)
    assert console.messages[0] == "When\tEvent\tProvider\tDetails"
    assert [m.split("\t")[1] for m in console.messages[1:]] == ["reconnected", "test_ok"]


def test_audit_empty(ctx: CLIContext) -> None:
    import rgpt.cli.commands.connections_cmd as connections_cmd

    connections_cmd.audit_cmd(limit=15)

    assert _console(ctx).find("no activity yet")
