"""Abstract base class for snapshot storage backends.

A backend holds exactly one opaque UTF-8 payload: the serialized session
snapshot.  Where it lives (a file, a privileged bridge, process memory) is
the backend's concern; the engine only sees these three operations.

Classes
-------
- SnapshotBackend  — abstract base for all backends
"""
from __future__ import annotations

from abc import ABC, abstractmethod


class SnapshotBackend(ABC):
    """Protocol for reading and writing the raw snapshot payload.

    Implementations may raise any exception on I/O failure; the
    ``PersistenceGateway`` wraps them in ``PersistenceError``.
    """

    @abstractmethod
    def read(self) -> str | None:
        """Return the stored payload, or None if nothing has been stored."""

    @abstractmethod
    def write(self, payload: str) -> None:
        """Store ``payload``, replacing any previous one.

        Parameters
        ----------
        payload:
            UTF-8 string to persist (a JSON snapshot).
        """

    @abstractmethod
    def delete(self) -> None:
        """Remove the stored payload.  Deleting nothing is not an error."""
