"""Snapshot storage subpackage.

All backends implement the ``SnapshotBackend`` ABC; the engine talks to
them only through ``PersistenceGateway``.

Public surface
--------------
- SnapshotBackend     — abstract base class
- InMemoryBackend     — in-process fallback (useful for testing)
- FilesystemBackend   — one JSON file on disk
- PersistenceGateway  — load / save / clear contract
- PersistenceError    — wrapped backend failure
"""
from __future__ import annotations

from tab_session.storage.base import SnapshotBackend
from tab_session.storage.filesystem import FilesystemBackend
from tab_session.storage.gateway import PersistenceError, PersistenceGateway
from tab_session.storage.memory import InMemoryBackend

__all__ = [
    "FilesystemBackend",
    "InMemoryBackend",
    "PersistenceError",
    "PersistenceGateway",
    "SnapshotBackend",
]
