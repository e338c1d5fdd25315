"""Persistence: deployment record file and preference database."""

from secret_mapgen.storage.deployment import JsonDeploymentStore
from secret_mapgen.storage.sqlite import SQLitePreferenceStore

__all__ = ["JsonDeploymentStore", "SQLitePreferenceStore"]
