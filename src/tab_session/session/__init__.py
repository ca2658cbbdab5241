"""Session engine subpackage.

Provides the immutable session model, the pure reducer that drives it, and
the store / facade that callers use to read and change it.

Public surface
--------------
- SessionState, Tab, TabSnapshot, TabGroup, ... — domain models
- TabFactory, CreateTabOptions, create_tab      — tab construction
- SessionStore                                  — state owner + persistence effect
- SessionActions                                — one method per transition
- SnapshotSerializer                            — versioned snapshot codec
- reduce, default_state, actions                — reducer and action catalog
"""
from __future__ import annotations

from tab_session.session import actions
from tab_session.session.clock import Clock, FixedClock, system_clock
from tab_session.session.facade import SessionActions
from tab_session.session.factory import CreateTabOptions, TabFactory, create_tab
from tab_session.session.normalize import normalize_settings, normalize_tab
from tab_session.session.reducer import default_state, reduce
from tab_session.session.serializer import (
    SchemaVersionError,
    SnapshotDecodeError,
    SnapshotSerializer,
)
from tab_session.session.state import (
    BLANK_URL,
    DEFAULT_TAB_TITLE,
    MAX_RECENTLY_CLOSED,
    MAX_SUGGESTIONS,
    PAGE_TEXT_LIMIT,
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
from tab_session.session.store import SessionStore

__all__ = [
    "BLANK_URL",
    "DEFAULT_TAB_TITLE",
    "MAX_RECENTLY_CLOSED",
    "MAX_SUGGESTIONS",
    "PAGE_TEXT_LIMIT",
    "SESSION_STATE_VERSION",
    "ChatMessage",
    "ChatRole",
    "Clock",
    "ClosedReason",
    "CreateTabOptions",
    "FixedClock",
    "PermissionPolicy",
    "PermissionSettings",
    "RecentlyClosedEntry",
    "SchemaVersionError",
    "SessionActions",
    "SessionSettings",
    "SessionSnapshot",
    "SessionState",
    "SessionStore",
    "SnapshotDecodeError",
    "SnapshotSerializer",
    "Tab",
    "TabFactory",
    "TabGroup",
    "TabHistoryEntry",
    "TabSnapshot",
    "TabStatus",
    "actions",
    "create_tab",
    "default_state",
    "normalize_settings",
    "normalize_tab",
    "reduce",
    "system_clock",
]
