"""In-memory snapshot backend.

The in-process fallback used when no durable store is available.  The
payload is lost when the process exits.  Also the backend of choice for
tests.

Classes
-------
- InMemoryBackend  — holds the payload in an attribute
"""
from __future__ import annotations

from tab_session.storage.base import SnapshotBackend


class InMemoryBackend(SnapshotBackend):
    """Ephemeral, in-process backend.

    Parameters
    ----------
    initial_payload:
        Optional payload present before the first ``read``.
    """

    def __init__(self, initial_payload: str | None = None) -> None:
        self._payload: str | None = initial_payload
        self.write_count = 0

    def read(self) -> str | None:
        return self._payload

    def write(self, payload: str) -> None:
        self._payload = payload
        self.write_count += 1

    def delete(self) -> None:
        self._payload = None

    def __repr__(self) -> str:
        stored = "empty" if self._payload is None else f"{len(self._payload)} chars"
        return f"InMemoryBackend({stored}, writes={self.write_count})"
