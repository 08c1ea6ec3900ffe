"""Application services for the ReleaseGPT CLI.

Services own persistence (templates, projects, selections), item sources and
release generation. They return Results and never print.
"""

from rgpt.services.errors import StoreError
from rgpt.services.projects import Project, ProjectStore, Selection
from rgpt.services.sync import Commit, FixtureSyncProvider, SyncProvider, Ticket
from rgpt.services.templates import TemplateStore

__all__ = [
    "Commit",
    "FixtureSyncProvider",
    "Project",
    "ProjectStore",
    "Selection",
    "StoreError",
    "SyncProvider",
    "TemplateStore",
    "Ticket",
]
