from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

StoreErrorKind = Literal[
    "invalid_input",
    "not_found",
    "invalid_data",
    "storage_failed",
    "sync_failed",
]


@dataclass(frozen=True, slots=True)
class StoreError:
    """Error payload shared by the stores, sync providers and export.

    The CLI maps ``kind`` to an exit code and prints ``message`` plus ``hint``.
    """

    kind: StoreErrorKind
    message: str
    hint: str | None = None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message
