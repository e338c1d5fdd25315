"""JSON-file implementation of the DeploymentStore protocol."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from secret_mapgen.errors import ConfigurationError
from secret_mapgen.models.records import DeploymentRecord

log = logging.getLogger(__name__)


class JsonDeploymentStore:
    """Reads/writes ``latest-deployment.json``.

    The file holds exactly one record; ``save`` overwrites it in one rename so
    readers never observe a half-written document.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> DeploymentRecord | None:
        if not self._path.exists():
            return None
        try:
            with open(self._path) as f:
                data = json.load(f)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"{self._path} is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigurationError(f"{self._path} must contain a JSON object")
        return DeploymentRecord.from_dict(data)

    def require(self) -> DeploymentRecord:
        """Like load(), but a missing record is a configuration error."""
        record = self.load()
        if record is None:
            raise ConfigurationError(
                f"no deployment record at {self._path}; run 'secret-mapgen deploy' first"
            )
        return record

    def save(self, record: DeploymentRecord) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(
            dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(record.to_dict(), f, indent=2)
                f.write("\n")
            os.replace(tmp, self._path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        log.info("Wrote deployment record to %s", self._path)
