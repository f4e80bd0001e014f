"""
UserConfig — persisted user preferences and project history.

Serialized to ``config.json`` in the user config directory. Holds the
isolated installation path, the SDK base path, and a recency-ordered,
size-bounded list of projects keyed by path.
"""

from __future__ import annotations

import time
from pathlib import Path

from pydantic import BaseModel, Field

# Maximum number of projects kept in history
MAX_HISTORY = 10


def _now_ts() -> int:
    """Current time as unix seconds."""
    return int(time.time())


class ProjectRecord(BaseModel):
    """A project the user created or opened."""

    path: str
    name: str
    last_opened: int = Field(default_factory=_now_ts)
    project_type: str | None = None
    zephyr_version: str | None = None


class UserConfig(BaseModel):
    """Root user config model."""

    schema_version: int = 1

    venv_path: str | None = None
    sdk_base: str | None = None

    # Most recent first, at most MAX_HISTORY entries
    projects: list[ProjectRecord] = Field(default_factory=list)

    def set_venv_path(self, path: str | Path) -> None:
        self.venv_path = str(path)

    def set_sdk_base(self, path: str | Path) -> None:
        self.sdk_base = str(path)

    def get_project(self, path: str | Path) -> ProjectRecord | None:
        key = str(path)
        for record in self.projects:
            if record.path == key:
                return record
        return None

    def touch_project(
        self,
        path: str | Path,
        name: str | None = None,
        project_type: str | None = None,
    ) -> ProjectRecord:
        """Record a project as most recently used.

        An existing record keeps its name unless ``name`` is given; a new
        record defaults its name to the last path component. The record is
        moved to the front and the list is truncated to MAX_HISTORY.
        """
        key = str(path)
        record = self.get_project(key)
        if record is None:
            record = ProjectRecord(
                path=key,
                name=name or Path(key).name or key,
                project_type=project_type,
            )
        else:
            self.projects.remove(record)
            record.last_opened = _now_ts()
            if name:
                record.name = name
            if project_type:
                record.project_type = project_type

        self.projects.insert(0, record)
        del self.projects[MAX_HISTORY:]
        return record

    def remove_project(self, path: str | Path) -> bool:
        """Drop a project from history. Returns True if it was present."""
        key = str(path)
        before = len(self.projects)
        self.projects = [p for p in self.projects if p.path != key]
        return len(self.projects) != before
