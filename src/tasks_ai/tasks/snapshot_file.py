# src/tasks_ai/tasks/snapshot_file.py

from __future__ import annotations

import contextlib
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


class SnapshotFile:
    """
    JSON snapshot on local disk (the default SnapshotStorage).

    Writes go through a temp file + os.replace so a crash mid-write never
    leaves a half-written snapshot behind.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> str | None:
        if not self._path.exists():
            return None
        try:
            return self._path.read_text("utf-8")
        except (OSError, UnicodeDecodeError):
            logger.exception("Failed to read task snapshot from %s", self._path)
            return None

    def save(self, blob: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(blob, "utf-8")
        os.replace(tmp, self._path)
        with contextlib.suppress(Exception):
            os.chmod(self._path, 0o600)
        logger.debug("Saved task snapshot to %s", self._path)
