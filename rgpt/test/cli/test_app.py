from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from rgpt import __version__
from rgpt.cli.app import app
from rgpt.core.errors import ErrorCode
from rgpt.core.home import HOME_ENV_VAR, DataHome
from rgpt.services.projects import ProjectStore

runner = CliRunner()


def test_version() -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert result.output.strip() == __version__


def test_help_lists_commands() -> None:
    result = runner.invoke(app, ["--help"])

    assert result.exit_code == 0
    for name in ("tokens", "render", "generate", "home", "templates", "projects", "connections"):
        assert name in result.output


def test_home_option_routes_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    # Restored by monkeypatch; the --home callback writes the variable.
    monkeypatch.setenv(HOME_ENV_VAR, str(tmp_path / "unused"))
    home = tmp_path / "data"

    result = runner.invoke(
        app,
        [
            "--home",
            str(home),
            "projects",
            "add",
            "--name",
            "SkyRoute",
            "--jira-key",
            "sr",
            "--repo",
            "team/skyroute-service",
        ],
    )

    assert result.exit_code == 0, result.output
    assert (home / "projects.json").is_file()


def test_preview_prints_document(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(HOME_ENV_VAR, str(tmp_path))

    result = runner.invoke(app, ["preview", "--template", "classic"])

    assert result.exit_code == 0, result.output
    assert "## Bug Fixes" in result.output
    assert "- SR-102: Fix battery overheating alert issue" in result.output


def test_render_stdout_is_verbatim(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(HOME_ENV_VAR, str(tmp_path))
    (tmp_path / "t.md").write_text("Col\tA\tB\n{{TITLE}}\n", encoding="utf-8")
    (tmp_path / "c.json").write_text('{"title": "T"}', encoding="utf-8")
    args = ["render", "--context", str(tmp_path / "c.json"), "--file", str(tmp_path / "t.md")]

    printed = runner.invoke(app, args)
    written = runner.invoke(app, [*args, "--out", str(tmp_path / "notes.md")])

    assert printed.exit_code == 0, printed.output
    assert written.exit_code == 0, written.output
    assert printed.stdout == "Col\tA\tB\nT\n"
    assert (tmp_path / "notes.md").read_text(encoding="utf-8") == printed.stdout


def test_render_stdout_adds_missing_final_newline(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv(HOME_ENV_VAR, str(tmp_path))
    (tmp_path / "t.md").write_text("[draft] {{TITLE}}", encoding="utf-8")
    (tmp_path / "c.json").write_text('{"title": "T"}', encoding="utf-8")

    result = runner.invoke(
        app, ["render", "-c", str(tmp_path / "c.json"), "-f", str(tmp_path / "t.md")]
    )

    assert result.exit_code == 0, result.output
    assert result.stdout == "[draft] T\n"


def test_generate_with_extras(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(HOME_ENV_VAR, str(tmp_path))
    home = DataHome(root=tmp_path)
    project = (
        ProjectStore(home.projects_path, home.selections_dir)
        .add(name="SkyRoute", jira_key="SR", repo="team/skyroute-service")
        .unwrap()
    )
    extras = tmp_path / "extras.json"
    extras.write_text(
        json.dumps({"knownIssues": ["Icon jitter"], "upgradeNotes": ["No migrations."]}),
        encoding="utf-8",
    )

    result = runner.invoke(
        app,
        [
            "generate",
            project.id,
            "--all",
            "--stdout",
            "--template",
            "classic",
            "--extras",
            str(extras),
        ],
    )

    assert result.exit_code == 0, result.output
    assert "## Known Issues\n- Icon jitter\n" in result.stdout
    assert "## Upgrade Notes\n- No migrations.\n" in result.stdout


def test_home_reports_env_source(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(HOME_ENV_VAR, str(tmp_path))

    result = runner.invoke(app, ["home"])

    assert result.exit_code == 0, result.output
    flat = result.output.replace("\n", "")
    assert str(tmp_path.resolve()) in flat
    assert "source: env" in result.output
    assert "config: defaults" in result.output


def test_home_reports_cwd_source(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(HOME_ENV_VAR, raising=False)
    (tmp_path / ".releasegpt").mkdir()
    (tmp_path / ".releasegpt" / "config.toml").write_text("", encoding="utf-8")
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    monkeypatch.chdir(nested)

    result = runner.invoke(app, ["home"])

    assert result.exit_code == 0, result.output
    assert "source: cwd" in result.output
    assert ".releasegpt/config.toml" in result.output.replace("\n", "")


def test_home_bad_env_is_env_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(HOME_ENV_VAR, str(tmp_path / "missing"))

    result = runner.invoke(app, ["home"])

    assert result.exit_code == int(ErrorCode.ENV_ERROR)
    assert "is set but is not a directory" in result.output
