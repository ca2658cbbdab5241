"""tab-session — Browser tab session state with versioned persistence.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import tab_session
>>> tab_session.__version__
'0.1.0'
"""
from __future__ import annotations

# Session core
from tab_session.session.state import (
    BLANK_URL,
    MAX_RECENTLY_CLOSED,
    MAX_SUGGESTIONS,
    SESSION_STATE_VERSION,
    ChatMessage,
    ChatRole,
    ClosedReason,
    PermissionPolicy,
    PermissionSettings,
    RecentlyClosedEntry,
    SessionSettings,
    SessionSnapshot,
    SessionState,
    Tab,
    TabGroup,
    TabHistoryEntry,
    TabSnapshot,
    TabStatus,
)
from tab_session.session.clock import Clock, FixedClock, system_clock
from tab_session.session.factory import CreateTabOptions, TabFactory, create_tab
from tab_session.session.reducer import default_state, reduce
from tab_session.session.serializer import (
    SchemaVersionError,
    SnapshotDecodeError,
    SnapshotSerializer,
)
from tab_session.session.store import SessionStore
from tab_session.session.facade import SessionActions
from tab_session.session import selectors

# Storage backends
from tab_session.storage.base import SnapshotBackend
from tab_session.storage.memory import InMemoryBackend
from tab_session.storage.filesystem import FilesystemBackend
from tab_session.storage.gateway import PersistenceError, PersistenceGateway

# Configuration
from tab_session.config import ConfigError, EngineConfig

__version__: str = "0.1.0"

__all__ = [
    "__version__",
    # Session core
    "BLANK_URL",
    "MAX_RECENTLY_CLOSED",
    "MAX_SUGGESTIONS",
    "SESSION_STATE_VERSION",
    "ChatMessage",
    "ChatRole",
    "ClosedReason",
    "PermissionPolicy",
    "PermissionSettings",
    "RecentlyClosedEntry",
    "SessionSettings",
    "SessionSnapshot",
    "SessionState",
    "Tab",
    "TabGroup",
    "TabHistoryEntry",
    "TabSnapshot",
    "TabStatus",
    "Clock",
    "FixedClock",
    "system_clock",
    "CreateTabOptions",
    "TabFactory",
    "create_tab",
    "default_state",
    "reduce",
    "SchemaVersionError",
    "SnapshotDecodeError",
    "SnapshotSerializer",
    "SessionStore",
    "SessionActions",
    "selectors",
    # Storage
    "FilesystemBackend",
    "InMemoryBackend",
    "PersistenceError",
    "PersistenceGateway",
    "SnapshotBackend",
    # Configuration
    "ConfigError",
    "EngineConfig",
]
