"""Persistence protocols for the deployment record and user preferences."""

from __future__ import annotations

from typing import Protocol

from secret_mapgen.models.records import DeploymentRecord


class DeploymentStore(Protocol):
    """Single source of truth for which contract instance we talk to."""

    def load(self) -> DeploymentRecord | None:
        """Return the latest record, or None if nothing was deployed yet."""
        ...

    def save(self, record: DeploymentRecord) -> None:
        """Replace any prior record wholesale."""
        ...


class PreferenceStore(Protocol):
    """Small persisted key/value flags, read at startup and written on change."""

    async def get_flag(self, name: str) -> bool:
        ...

    async def set_flag(self, name: str, value: bool) -> None:
        ...
