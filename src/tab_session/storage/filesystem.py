"""Filesystem snapshot backend.

Persists the snapshot as a single JSON file, by default
``~/.tab-session/session.json``.  Writes go to a sibling temporary file
that is then moved over the target, so a crash mid-write never leaves a
truncated snapshot behind.

Classes
-------
- FilesystemBackend  — one JSON file on disk
"""
from __future__ import annotations

import os
from pathlib import Path
from uuid import uuid4

from tab_session.storage.base import SnapshotBackend

_DEFAULT_STORAGE_DIR: Path = Path.home() / ".tab-session"
_DEFAULT_FILENAME = "session.json"


class FilesystemBackend(SnapshotBackend):
    """Stores the snapshot in one file.

    Parameters
    ----------
    path:
        Target file.  Defaults to ``~/.tab-session/session.json``.  Parent
        directories are created on first write.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self._path: Path = (
            Path(path) if path is not None else _DEFAULT_STORAGE_DIR / _DEFAULT_FILENAME
        )

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> str | None:
        """Return the file contents, or None if the file does not exist."""
        if not self._path.exists():
            return None
        return self._path.read_text(encoding="utf-8")

    def write(self, payload: str) -> None:
        """Atomically replace the snapshot file with ``payload``."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(f".{self._path.name}.{uuid4().hex}.tmp")
        try:
            tmp_path.write_text(payload, encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise

    def delete(self) -> None:
        """Remove the snapshot file if present."""
        self._path.unlink(missing_ok=True)

    def __repr__(self) -> str:
        return f"FilesystemBackend(path={str(self._path)!r})"
