"""Persistence gateway: the engine's three-operation storage contract.

``load``, ``save`` and ``clear`` move an opaque serialized snapshot to and
from whichever backend is configured.  Every backend failure surfaces as
``PersistenceError`` so callers handle one exception type; the session
store logs and swallows it.

Classes
-------
- PersistenceError    — any backend I/O failure
- PersistenceGateway  — load / save / clear over a SnapshotBackend
"""
from __future__ import annotations

import logging

from tab_session.storage.base import SnapshotBackend

logger = logging.getLogger(__name__)


class PersistenceError(RuntimeError):
    """Raised when the backend fails to read, write or clear the snapshot."""

    def __init__(self, operation: str, cause: BaseException) -> None:
        self.operation = operation
        self.cause = cause
        super().__init__(f"Snapshot {operation} failed: {cause}")


class PersistenceGateway:
    """Load, save and clear the serialized session snapshot.

    Parameters
    ----------
    backend:
        Where the payload lives.
    """

    def __init__(self, backend: SnapshotBackend) -> None:
        self._backend = backend

    @property
    def backend(self) -> SnapshotBackend:
        return self._backend

    def load(self) -> str | None:
        """Return the stored snapshot string, or None if nothing is stored.

        Raises
        ------
        PersistenceError
            If the backend read fails.
        """
        try:
            payload = self._backend.read()
        except Exception as exc:  # noqa: BLE001
            raise PersistenceError("read", exc) from exc
        if not payload:
            return None
        logger.debug("Loaded snapshot (%d chars) from %r", len(payload), self._backend)
        return payload

    def save(self, serialized: str) -> None:
        """Replace the stored snapshot with ``serialized``.

        Raises
        ------
        PersistenceError
            If the backend write fails.
        """
        try:
            self._backend.write(serialized)
        except Exception as exc:  # noqa: BLE001
            raise PersistenceError("write", exc) from exc
        logger.debug("Saved snapshot (%d chars) to %r", len(serialized), self._backend)

    def clear(self) -> None:
        """Remove the stored snapshot.

        Raises
        ------
        PersistenceError
            If the backend delete fails.
        """
        try:
            self._backend.delete()
        except Exception as exc:  # noqa: BLE001
            raise PersistenceError("clear", exc) from exc
        logger.debug("Cleared snapshot in %r", self._backend)

    def __repr__(self) -> str:
        return f"PersistenceGateway(backend={self._backend!r})"
