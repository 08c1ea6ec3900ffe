"""Schema-validated parsing of JSON data into render types.

Missing fields are normalized (``""`` for strings, ``()`` for lists) so the
renderer never has to handle absent data. Present fields with the wrong type
are rejected with the JSON path of the offending value.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from rgpt.core.result import Err, Ok, Result
from rgpt.core.structured import StrDict, as_obj_list, as_str_dict

from .model import (
    GeneratedRelease,
    ProjectInfo,
    ReleaseContext,
    ReleaseExtras,
    Section,
    Template,
)

__all__ = [
    "SchemaError",
    "load_json_file",
    "parse_generated_release",
    "parse_project_info",
    "parse_release_context",
    "parse_release_extras",
    "parse_sections",
    "parse_template",
    "release_to_dict",
    "template_to_dict",
]


@dataclass(frozen=True, slots=True)
class SchemaError:
    """Validation failure at ``path`` (dotted JSON path, ``$`` is the root)."""

    message: str
    path: str = "$"

    def pretty(self) -> str:
        return f"{self.path}: {self.message}"


def _join(path: str, key: str) -> str:
    return key if path == "$" else f"{path}.{key}"


def _lookup(table: Mapping[str, object], keys: tuple[str, ...]) -> tuple[str, object | None]:
    for key in keys:
        if key in table and table[key] is not None:
            return key, table[key]
    return keys[0], None


def _opt_str(table: Mapping[str, object], path: str, *keys: str) -> Result[str, SchemaError]:
    key, value = _lookup(table, keys)
    if value is None:
        return Ok("")
    if not isinstance(value, str):
        return Err(SchemaError("expected a string", _join(path, key)))
    return Ok(value)


def _req_str(table: Mapping[str, object], path: str, key: str) -> Result[str, SchemaError]:
    value = table.get(key)
    if value is None:
        return Err(SchemaError("required field is missing", _join(path, key)))
    if not isinstance(value, str):
        return Err(SchemaError("expected a string", _join(path, key)))
    return Ok(value)


def _str_items(value: object, path: str) -> Result[tuple[str, ...], SchemaError]:
    items = as_obj_list(value)
    if items is None:
        return Err(SchemaError("expected a list of strings", path))
    out: list[str] = []
    for i, item in enumerate(items):
        if not isinstance(item, str):
            return Err(SchemaError("expected a string", f"{path}[{i}]"))
        out.append(item)
    return Ok(tuple(out))


def _opt_str_list(
    table: Mapping[str, object], path: str, *keys: str
) -> Result[tuple[str, ...], SchemaError]:
    key, value = _lookup(table, keys)
    if value is None:
        return Ok(())
    return _str_items(value, _join(path, key))


def _root(obj: object, path: str) -> Result[StrDict, SchemaError]:
    table = as_str_dict(obj)
    if table is None:
        return Err(SchemaError("expected a JSON object", path))
    return Ok(table)


def parse_project_info(obj: object, path: str = "$") -> Result[ProjectInfo, SchemaError]:
    root = _root(obj, path)
    if isinstance(root, Err):
        return root
    table = root.value

    values: dict[str, str] = {}
    for field_name, keys in (
        ("name", ("name",)),
        ("jira_key", ("jiraKey", "jira_key")),
        ("repo", ("repo", "devopsRepo")),
        ("branch", ("branch",)),
    ):
        parsed = _opt_str(table, path, *keys)
        if isinstance(parsed, Err):
            return parsed
        values[field_name] = parsed.value
    return Ok(ProjectInfo(**values))


_CONTEXT_LISTS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("narrative", ("narrative",)),
    ("highlights", ("highlights",)),
    ("features", ("features",)),
    ("fixes", ("fixes",)),
    ("improvements", ("improvements",)),
    ("known_issues", ("knownIssues", "known_issues")),
    ("upgrade_notes", ("upgradeNotes", "upgrade_notes")),
    ("credits", ("credits",)),
    ("changelog", ("changelog",)),
)


def parse_release_context(obj: object) -> Result[ReleaseContext, SchemaError]:
    """Validate a JSON object into a ReleaseContext.

    Example input (every key optional)::

        {"title": "v1.2", "date": "2025-01-01",
         "project": {"name": "Demo", "jiraKey": "DM", "repo": "org/demo", "branch": "main"},
         "narrative": ["Para one."], "fixes": ["DM-2: Crash on start"]}
    """
    root = _root(obj, "$")
    if isinstance(root, Err):
        return root
    table = root.value

    title = _opt_str(table, "$", "title")
    if isinstance(title, Err):
        return title
    date = _opt_str(table, "$", "date")
    if isinstance(date, Err):
        return date

    project = ProjectInfo()
    raw_project = table.get("project")
    if raw_project is not None:
        parsed_project = parse_project_info(raw_project, "project")
        if isinstance(parsed_project, Err):
            return parsed_project
        project = parsed_project.value

    lists: dict[str, tuple[str, ...]] = {}
    for field_name, keys in _CONTEXT_LISTS:
        parsed = _opt_str_list(table, "$", *keys)
        if isinstance(parsed, Err):
            return parsed
        lists[field_name] = parsed.value

    return Ok(ReleaseContext(title=title.value, date=date.value, project=project, **lists))


_EXTRAS_LISTS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("technical_notes", ("technicalNotes", "technical_notes")),
    ("breaking_changes", ("breakingChanges", "breaking_changes")),
    ("known_issues", ("knownIssues", "known_issues")),
    ("upgrade_notes", ("upgradeNotes", "upgrade_notes")),
)


def parse_release_extras(obj: object) -> Result[ReleaseExtras, SchemaError]:
    """Validate the hand-written sections fed to ``rgpt generate --extras``.

    Example::

        {"technicalNotes": ["Planner refactored"], "knownIssues": ["Icon jitter"],
         "upgradeNotes": ["No schema migrations."], "breakingChanges": []}
    """
    root = _root(obj, "$")
    if isinstance(root, Err):
        return root

    lists: dict[str, tuple[str, ...]] = {}
    for field_name, keys in _EXTRAS_LISTS:
        parsed = _opt_str_list(root.value, "$", *keys)
        if isinstance(parsed, Err):
            return parsed
        lists[field_name] = parsed.value
    return Ok(ReleaseExtras(**lists))


def parse_sections(obj: object, path: str = "sections") -> Result[tuple[Section, ...], SchemaError]:
    items = as_obj_list(obj)
    if items is None:
        return Err(SchemaError("expected a list of sections", path))

    sections: list[Section] = []
    for i, raw in enumerate(items):
        item_path = f"{path}[{i}]"
        root = _root(raw, item_path)
        if isinstance(root, Err):
            return root
        heading = _req_str(root.value, item_path, "heading")
        if isinstance(heading, Err):
            return heading
        entries = _opt_str_list(root.value, item_path, "items")
        if isinstance(entries, Err):
            return entries
        sections.append(Section(heading=heading.value, items=entries.value))
    return Ok(tuple(sections))


def parse_generated_release(obj: object) -> Result[GeneratedRelease, SchemaError]:
    root = _root(obj, "$")
    if isinstance(root, Err):
        return root
    table = root.value

    title = _opt_str(table, "$", "title")
    if isinstance(title, Err):
        return title
    date = _opt_str(table, "$", "date")
    if isinstance(date, Err):
        return date
    narrative = _opt_str_list(table, "$", "narrative")
    if isinstance(narrative, Err):
        return narrative
    markdown = _opt_str(table, "$", "markdown")
    if isinstance(markdown, Err):
        return markdown

    sections: tuple[Section, ...] = ()
    raw_sections = table.get("sections")
    if raw_sections is not None:
        parsed = parse_sections(raw_sections)
        if isinstance(parsed, Err):
            return parsed
        sections = parsed.value

    return Ok(
        GeneratedRelease(
            title=title.value,
            date=date.value,
            narrative=narrative.value,
            sections=sections,
            markdown=markdown.value,
        )
    )


def release_to_dict(release: GeneratedRelease) -> dict[str, object]:
    """Inverse of ``parse_generated_release`` (what `rgpt generate --json` prints)."""
    return {
        "title": release.title,
        "date": release.date,
        "narrative": list(release.narrative),
        "sections": [
            {"heading": section.heading, "items": list(section.items)}
            for section in release.sections
        ],
        "markdown": release.markdown,
    }


def parse_template(obj: object, path: str = "$") -> Result[Template, SchemaError]:
    root = _root(obj, path)
    if isinstance(root, Err):
        return root
    table = root.value

    required: dict[str, str] = {}
    for key in ("id", "name", "content"):
        parsed = _req_str(table, path, key)
        if isinstance(parsed, Err):
            return parsed
        required[key] = parsed.value

    description = _opt_str(table, path, "description")
    if isinstance(description, Err):
        return description
    updated_at = _opt_str(table, path, "updatedAt", "updated_at")
    if isinstance(updated_at, Err):
        return updated_at

    is_default = table.get("isDefault", False)
    if not isinstance(is_default, bool):
        return Err(SchemaError("expected a boolean", _join(path, "isDefault")))

    return Ok(
        Template(
            id=required["id"],
            name=required["name"],
            content=required["content"],
            description=description.value,
            updated_at=updated_at.value,
            is_default=is_default,
        )
    )


def template_to_dict(template: Template) -> dict[str, object]:
    """Inverse of ``parse_template`` (the stored JSON record)."""
    return {
        "id": template.id,
        "name": template.name,
        "description": template.description,
        "content": template.content,
        "updatedAt": template.updated_at,
        "isDefault": template.is_default,
    }


def load_json_file(path: Path) -> Result[object, SchemaError]:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return Err(SchemaError(f"file not found: {path}"))
    except (OSError, UnicodeDecodeError) as e:
        return Err(SchemaError(f"cannot read {path}: {e}"))

    try:
        data: object = json.loads(text)
    except json.JSONDecodeError as e:
        return Err(SchemaError(f"invalid JSON in {path}: {e.msg} (line {e.lineno})"))
    return Ok(data)
