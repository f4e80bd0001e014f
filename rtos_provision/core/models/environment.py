"""
Environment inventory models — what the host has installed.

Reports are advisory data: they are recomputed on every check and
never cached across calls.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, computed_field


class Dependency(BaseModel):
    """One required tool or library and whether it was found."""

    name: str
    installed: bool = False
    version: str | None = None
    critical: bool = True


class EnvReport(BaseModel):
    """Full dependency inventory for the host OS."""

    os: str
    distro: str | None = None
    supported: bool = True
    dependencies: list[Dependency] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_satisfied(self) -> bool:
        """True iff the OS is supported and every dependency is installed."""
        return self.supported and all(d.installed for d in self.dependencies)

    @property
    def missing(self) -> list[Dependency]:
        return [d for d in self.dependencies if not d.installed]


class EnvStatus(BaseModel):
    """Lightweight readiness indicator (distinct from the full inventory)."""

    git: bool = False
    python: bool = False
    west: bool = False
    sdk: bool = False

    @property
    def ready(self) -> bool:
        return self.git and self.python and self.west and self.sdk
