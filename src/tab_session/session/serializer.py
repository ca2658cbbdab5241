"""Session snapshot serialization with schema versioning.

The snapshot is the unit written to durable storage::

    {"version": 1, "savedAt": <epoch-ms>, "state": {...}}

On load the version must match ``SESSION_STATE_VERSION`` exactly; there is
no migration path, a mismatching snapshot is discarded by the caller.

Classes
-------
- SnapshotDecodeError  — payload is not a JSON object
- SchemaVersionError   — payload has an unsupported ``version``
- SnapshotSerializer   — state -> snapshot JSON / YAML, JSON -> mapping
"""
from __future__ import annotations

import json
from typing import Any

import yaml

from tab_session.session.clock import Clock, system_clock
from tab_session.session.state import SESSION_STATE_VERSION, SessionSnapshot, SessionState


class SnapshotDecodeError(ValueError):
    """Raised when a stored payload cannot be parsed into a snapshot object."""


class SchemaVersionError(ValueError):
    """Raised when a snapshot uses a schema version other than the current one."""

    def __init__(self, version: object) -> None:
        self.version = version
        super().__init__(
            f"Unsupported snapshot version {version!r}. "
            f"Supported version: {SESSION_STATE_VERSION}"
        )


class SnapshotSerializer:
    """Serialize ``SessionState`` into versioned snapshots and decode them.

    Parameters
    ----------
    clock:
        Source of ``savedAt``.
    """

    def __init__(self, clock: Clock = system_clock) -> None:
        self._clock = clock

    def to_snapshot(self, state: SessionState) -> SessionSnapshot:
        """Wrap ``state`` in a ``SessionSnapshot`` stamped with ``savedAt``."""
        return SessionSnapshot(
            version=SESSION_STATE_VERSION,
            saved_at=self._clock(),
            state=state,
        )

    def to_dict(self, state: SessionState) -> dict[str, Any]:
        """Return the snapshot as a JSON-compatible mapping (camelCase keys)."""
        return self.to_snapshot(state).model_dump(mode="json", by_alias=True)

    def to_json(self, state: SessionState, *, indent: int | None = None) -> str:
        """Serialise ``state`` to a snapshot JSON string.

        The transient ``hydrated`` flag is never included.
        """
        return json.dumps(self.to_dict(state), indent=indent)

    def to_yaml(self, state: SessionState) -> str:
        """Serialise ``state`` to a snapshot YAML string, for export."""
        return yaml.safe_dump(
            self.to_dict(state), default_flow_style=False, allow_unicode=True, sort_keys=False
        )

    def decode(self, raw: str) -> dict[str, Any]:
        """Parse and version-check a stored snapshot.

        Parameters
        ----------
        raw:
            JSON string previously produced by ``to_json``.

        Returns
        -------
        dict[str, Any]
            The decoded snapshot mapping, ready for ``Rehydrate``.

        Raises
        ------
        SnapshotDecodeError
            If ``raw`` is not valid JSON or not a JSON object.
        SchemaVersionError
            If the ``version`` field is not ``SESSION_STATE_VERSION``.
        """
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as exc:
            raise SnapshotDecodeError(f"Snapshot is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise SnapshotDecodeError(
                f"Snapshot must be a JSON object, got {type(data).__name__}"
            )
        version = data.get("version")
        if isinstance(version, bool) or version != SESSION_STATE_VERSION:
            raise SchemaVersionError(version)
        return data
