"""Template store backed by ``templates.json`` in the data home.

The file holds a JSON list of ``{id, name, description, content, updatedAt,
isDefault}`` records. When it does not exist yet the built-in templates are
used; they are only written out on the first modification.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime
from pathlib import Path

from rgpt.core.config import DEFAULT_TEMPLATE_ID
from rgpt.core.result import Err, Ok, Result
from rgpt.core.structured import as_obj_list
from rgpt.platform.files import atomic_write_json
from rgpt.render.model import Template
from rgpt.render.schema import load_json_file, parse_template, template_to_dict

from .errors import StoreError

__all__ = [
    "DEFAULT_TEMPLATES",
    "DEFAULT_TEMPLATE_ID",
    "MIN_NAME_LENGTH",
    "NEW_TEMPLATE_CONTENT",
    "TemplateStore",
    "default_template",
    "utc_now",
]

MIN_NAME_LENGTH = 2

_CLASSIC = """# {{TITLE}}

{{NARRATIVE}}

## Highlights
{{HIGHLIGHTS}}

## New Features
{{FEATURES}}

## Bug Fixes
{{FIXES}}

## Improvements
{{IMPROVEMENTS}}

## Known Issues
{{KNOWN_ISSUES}}

## Upgrade Notes
{{UPGRADE_NOTES}}

## Credits
{{CREDITS}}

## Changelog
{{CHANGELOG}}
"""

_CONCISE = """**{{PROJECT_NAME}} — {{DATE}}**

{{NARRATIVE}}

**Highlights**
{{HIGHLIGHTS}}

**Changes**
- Features:
{{FEATURES}}
- Fixes:
{{FIXES}}
- Improvements:
{{IMPROVEMENTS}}
"""

_PRODUCT_MARKETING = """# What's new in {{PROJECT_NAME}} ({{DATE}})

> This release focuses on reliability and visibility for operations teams.

{{NARRATIVE}}

### Top 3 Highlights
{{HIGHLIGHTS}}

### Feature details
{{FEATURES}}

### Fixes & polish
{{FIXES}}

*Generated with ❤️ by your Release Assistant.*
"""

NEW_TEMPLATE_CONTENT = """# {{TITLE}}

{{NARRATIVE}}

## Highlights
{{HIGHLIGHTS}}

## Changes
- Features:
{{FEATURES}}
- Fixes:
{{FIXES}}
- Improvements:
{{IMPROVEMENTS}}
"""

DEFAULT_TEMPLATES: tuple[Template, ...] = (
    Template(
        id="classic",
        name="Classic Release Notes",
        description="Sections for Highlights, Features, Fixes, Improvements + narrative.",
        content=_CLASSIC,
        is_default=True,
    ),
    Template(
        id="concise",
        name="Concise (Email style)",
        description="Short intro + bullets for quick email updates.",
        content=_CONCISE,
        is_default=True,
    ),
    Template(
        id="product-marketing",
        name="Product Marketing",
        description="Narrative-first with callouts.",
        content=_PRODUCT_MARKETING,
        is_default=True,
    ),
)


def utc_now() -> str:
    return datetime.now(UTC).isoformat(timespec="seconds").replace("+00:00", "Z")


def _new_id() -> str:
    return uuid.uuid4().hex


def default_template(template_id: str) -> Template | None:
    for template in DEFAULT_TEMPLATES:
        if template.id == template_id:
            return template
    return None


class TemplateStore:
    """CRUD over the persisted template list.

    Every mutating method reads the current list, applies the change, writes
    the whole list back atomically and returns the affected template.
    """

    def __init__(
        self,
        path: Path,
        *,
        clock: Callable[[], str] = utc_now,
        new_id: Callable[[], str] = _new_id,
    ) -> None:
        self._path = path
        self._clock = clock
        self._new_id = new_id

    @property
    def path(self) -> Path:
        return self._path

    def _defaults(self) -> list[Template]:
        stamp = self._clock()
        return [replace(t, updated_at=stamp) for t in DEFAULT_TEMPLATES]

    def load(self) -> Result[list[Template], StoreError]:
        if not self._path.exists():
            return Ok(self._defaults())

        data = load_json_file(self._path)
        if isinstance(data, Err):
            return Err(self._corrupt(data.error.message))

        records = as_obj_list(data.value)
        if records is None:
            return Err(self._corrupt("expected a JSON list of templates"))

        templates: list[Template] = []
        for i, record in enumerate(records):
            parsed = parse_template(record, f"[{i}]")
            if isinstance(parsed, Err):
                return Err(self._corrupt(parsed.error.pretty()))
            templates.append(parsed.value)

        if not templates:
            return Ok(self._defaults())
        return Ok(templates)

    def _corrupt(self, detail: str) -> StoreError:
        return StoreError(
            kind="invalid_data",
            message=f"invalid templates file {self._path}: {detail}",
            hint="run `rgpt templates restore` to recreate the built-in templates",
        )

    def _save(self, templates: list[Template]) -> Result[None, StoreError]:
        try:
            atomic_write_json(self._path, [template_to_dict(t) for t in templates])
        except OSError as e:
            return Err(
                StoreError(
                    kind="storage_failed",
                    message=f"failed to write templates: {e}",
                    hint=str(self._path),
                )
            )
        return Ok(None)

    def get(self, template_id: str) -> Result[Template, StoreError]:
        loaded = self.load()
        if isinstance(loaded, Err):
            return loaded
        for template in loaded.value:
            if template.id == template_id:
                return Ok(template)
        return Err(self._not_found(template_id))

    def _not_found(self, template_id: str) -> StoreError:
        return StoreError(
            kind="not_found",
            message=f"unknown template: {template_id}",
            hint="list templates with `rgpt templates list`",
        )

    def search(self, query: str) -> Result[list[Template], StoreError]:
        """Templates whose name or description contains query (case-insensitive)."""
        loaded = self.load()
        if isinstance(loaded, Err):
            return loaded
        q = query.strip().lower()
        if not q:
            return loaded
        return Ok(
            [t for t in loaded.value if q in t.name.lower() or q in t.description.lower()]
        )

    def _update(
        self, template_id: str, change: Callable[[Template], Template]
    ) -> Result[Template, StoreError]:
        loaded = self.load()
        if isinstance(loaded, Err):
            return loaded

        templates = loaded.value
        for i, template in enumerate(templates):
            if template.id == template_id:
                updated = change(template)
                templates[i] = updated
                saved = self._save(templates)
                if isinstance(saved, Err):
                    return saved
                return Ok(updated)
        return Err(self._not_found(template_id))

    def _insert_first(self, template: Template) -> Result[Template, StoreError]:
        loaded = self.load()
        if isinstance(loaded, Err):
            return loaded
        saved = self._save([template, *loaded.value])
        if isinstance(saved, Err):
            return saved
        return Ok(template)

    def create(self, name: str = "New Template") -> Result[Template, StoreError]:
        clean = name.strip()
        if len(clean) < MIN_NAME_LENGTH:
            return Err(StoreError(kind="invalid_input", message="Name too short"))
        return self._insert_first(
            Template(
                id=self._new_id(),
                name=clean,
                description="Start customizing your release note format.",
                content=NEW_TEMPLATE_CONTENT,
                updated_at=self._clock(),
                is_default=False,
            )
        )

    def duplicate(self, template_id: str) -> Result[Template, StoreError]:
        base = self.get(template_id)
        if isinstance(base, Err):
            return base
        return self._insert_first(
            replace(
                base.value,
                id=self._new_id(),
                name=f"{base.value.name} (Copy)",
                is_default=False,
                updated_at=self._clock(),
            )
        )

    def rename(self, template_id: str, name: str) -> Result[Template, StoreError]:
        clean = name.strip()
        if len(clean) < MIN_NAME_LENGTH:
            return Err(
                StoreError(
                    kind="invalid_input",
                    message="Name too short",
                    hint=f"use at least {MIN_NAME_LENGTH} characters",
                )
            )
        return self._update(template_id, lambda t: replace(t, name=clean))

    def update_content(self, template_id: str, content: str) -> Result[Template, StoreError]:
        stamp = self._clock()
        return self._update(template_id, lambda t: replace(t, content=content, updated_at=stamp))

    def delete(self, template_id: str) -> Result[list[Template], StoreError]:
        """Remove a template and return the remaining list.

        Deleting the last template brings the built-in ones back.
        """
        loaded = self.load()
        if isinstance(loaded, Err):
            return loaded

        keep = [t for t in loaded.value if t.id != template_id]
        if len(keep) == len(loaded.value):
            return Err(self._not_found(template_id))
        if not keep:
            keep = self._defaults()

        saved = self._save(keep)
        if isinstance(saved, Err):
            return saved
        return Ok(keep)

    def reset(self, template_id: str) -> Result[Template, StoreError]:
        """Restore a built-in template's name and content."""
        builtin = default_template(template_id)
        if builtin is None:
            return Err(
                StoreError(
                    kind="invalid_input",
                    message=f"template {template_id} is not a built-in template",
                    hint="only built-in templates can be reset",
                )
            )
        stamp = self._clock()
        return self._update(template_id, lambda _t: replace(builtin, updated_at=stamp))

    def restore(self) -> Result[list[Template], StoreError]:
        """Overwrite the store with the built-in templates."""
        defaults = self._defaults()
        saved = self._save(defaults)
        if isinstance(saved, Err):
            return saved
        return Ok(defaults)
