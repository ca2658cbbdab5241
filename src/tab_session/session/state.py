"""Session state domain models.

All types are frozen Pydantic BaseModel subclasses.  A state value is never
mutated in place: transitions build new instances with ``model_copy`` and
reuse every untouched sub-object, so reference identity tells a caller
whether anything changed.

Python attributes are snake_case; the persisted wire format uses camelCase
aliases (``addressValue``, ``historyIndex``, ...).

Classes
-------
- TabStatus           — enum: NORMAL, PINNED, SLEEPING, DISCARDED
- ChatRole            — enum: USER, AI
- ClosedReason        — enum: USER, SYSTEM, CRASH
- PermissionPolicy    — enum: ALLOW, ASK, BLOCK
- ChatMessage         — one assistant-sidebar message
- TabHistoryEntry     — one navigation history entry
- TabSnapshot         — every Tab field except ``active``
- Tab                 — a live browsing tab
- TabGroup            — a named, optionally coloured group of tabs
- RecentlyClosedEntry — a closed tab held for "reopen"
- PermissionSettings  — per-capability site permission policy
- SessionSettings     — global privacy / behaviour toggles
- SessionState        — the whole session
- SessionSnapshot     — the versioned unit written to durable storage
"""
from __future__ import annotations

from enum import Enum
from typing import ClassVar

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

BLANK_URL: str = "about:blank"
DEFAULT_TAB_TITLE: str = "New Tab"
SESSION_STATE_VERSION: int = 1
MAX_RECENTLY_CLOSED: int = 15
MAX_SUGGESTIONS: int = 24
PAGE_TEXT_LIMIT: int = 4000


class TabStatus(str, Enum):
    """Lifecycle / placement status of a tab."""

    NORMAL = "normal"
    PINNED = "pinned"
    SLEEPING = "sleeping"
    DISCARDED = "discarded"


class ChatRole(str, Enum):
    """Author of a chat message in the assistant sidebar."""

    USER = "user"
    AI = "ai"


class ClosedReason(str, Enum):
    """Why a tab ended up in the recently-closed buffer."""

    USER = "user"
    SYSTEM = "system"
    CRASH = "crash"


class PermissionPolicy(str, Enum):
    """Default answer for a site permission prompt."""

    ALLOW = "allow"
    ASK = "ask"
    BLOCK = "block"


class _WireModel(BaseModel):
    """Shared configuration: immutable, camelCase on the wire."""

    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class ChatMessage(_WireModel):
    """A single message in a tab's assistant conversation.

    Parameters
    ----------
    role:
        ``"user"`` or ``"ai"``.
    content:
        Message text.
    created_at:
        Epoch milliseconds at which the message was appended.
    """

    role: ChatRole
    content: str
    created_at: int


class TabHistoryEntry(_WireModel):
    """One entry of a tab's back/forward navigation history."""

    id: str
    url: str
    title: str = ""
    timestamp: int = 0


class TabSnapshot(_WireModel):
    """Everything a tab carries except its ``active`` flag.

    This is the shape held by ``RecentlyClosedEntry``: a closed tab is not
    active by definition, so the flag is not recorded.

    Parameters
    ----------
    id:
        Stable identifier, unique within one session.
    title:
        Tab strip title.
    url:
        Committed URL.
    address_value:
        Address bar value for the committed URL.
    address_input:
        Uncommitted address bar edit buffer.
    page_title:
        Title reported by the rendered page.
    page_text:
        Extracted page text cache, bounded to ``PAGE_TEXT_LIMIT`` characters.
    chat_history:
        Ordered assistant conversation.
    assistant_open:
        Whether the assistant sidebar is open for this tab.
    status:
        See ``TabStatus``.
    incognito:
        Whether this is a private tab.
    group_id:
        Non-owning reference to a ``TabGroup``; ``None`` when ungrouped.
    history:
        Ordered navigation history, never empty for a live tab.
    history_index:
        Index of the current entry in ``history``.
    created_at:
        Creation time, epoch milliseconds.
    last_active_at:
        Last activation time, epoch milliseconds.
    """

    id: str
    title: str = ""
    url: str = BLANK_URL
    address_value: str = ""
    address_input: str = ""
    page_title: str = ""
    page_text: str = ""
    chat_history: tuple[ChatMessage, ...] = ()
    assistant_open: bool = False
    status: TabStatus = TabStatus.NORMAL
    incognito: bool = False
    group_id: str | None = None
    history: tuple[TabHistoryEntry, ...] = ()
    history_index: int = 0
    created_at: int = 0
    last_active_at: int = 0

    @property
    def is_pinned(self) -> bool:
        return self.status is TabStatus.PINNED


class Tab(TabSnapshot):
    """A live browsing tab."""

    active: bool = False

    def to_snapshot(self) -> TabSnapshot:
        """Return this tab without its ``active`` flag."""
        return TabSnapshot(**{name: getattr(self, name) for name in TabSnapshot.model_fields})

    @classmethod
    def from_snapshot(cls, snapshot: TabSnapshot, *, active: bool = False) -> "Tab":
        """Rebuild a live tab from a ``TabSnapshot``."""
        fields = {name: getattr(snapshot, name) for name in TabSnapshot.model_fields}
        return cls(**fields, active=active)


class TabGroup(_WireModel):
    """A named group of tabs.

    Groups are created, renamed and deleted only by explicit action; an
    empty group is never removed automatically.
    """

    id: str
    title: str
    color: str | None = None
    collapsed: bool = False


class RecentlyClosedEntry(_WireModel):
    """A closed tab plus the circumstances of its closing."""

    tab: TabSnapshot
    closed_at: int
    reason: ClosedReason = ClosedReason.USER


class PermissionSettings(_WireModel):
    """Default policy for each site permission capability."""

    camera: PermissionPolicy = PermissionPolicy.ASK
    microphone: PermissionPolicy = PermissionPolicy.ASK
    screen: PermissionPolicy = PermissionPolicy.ASK
    clipboard: PermissionPolicy = PermissionPolicy.ASK


class SessionSettings(_WireModel):
    """Global privacy and behaviour settings.

    Partial updates merge at the top level, except ``permission_policy``
    which merges one level deeper.
    """

    confirm_close_threshold: int = Field(default=12, ge=1)
    restore_sidebar: bool = True
    default_search_engine: str = "google"
    block_ads: bool = True
    block_trackers: bool = True
    block_third_party_cookies: bool = True
    auto_https_upgrade: bool = True
    clear_cookies_on_exit: bool = False
    send_do_not_track: bool = True
    permission_policy: PermissionSettings = Field(default_factory=PermissionSettings)


class SessionState(_WireModel):
    """Complete in-memory session.

    Parameters
    ----------
    tabs:
        Ordered tabs; the order is the UI order and is persisted.
    active_tab_id:
        Id of the single active tab.
    tab_groups:
        Groups keyed by id.
    recently_closed:
        Most-recent-first buffer of closed tabs (at most
        ``MAX_RECENTLY_CLOSED``).
    suggestion_history:
        Most-recent-first address bar inputs (at most ``MAX_SUGGESTIONS``).
    settings:
        Global settings.
    version:
        Schema version of the persisted shape.
    hydrated:
        Transient flag, never persisted: True once the startup
        load/rehydrate decision has completed.
    """

    SCHEMA_VERSION: ClassVar[int] = SESSION_STATE_VERSION

    tabs: tuple[Tab, ...]
    active_tab_id: str | None = None
    tab_groups: dict[str, TabGroup] = Field(default_factory=dict)
    recently_closed: tuple[RecentlyClosedEntry, ...] = ()
    suggestion_history: tuple[str, ...] = ()
    settings: SessionSettings = Field(default_factory=SessionSettings)
    version: int = SESSION_STATE_VERSION
    hydrated: bool = Field(default=False, exclude=True)

    def find_tab(self, tab_id: str | None) -> Tab | None:
        """Return the tab with ``tab_id`` or None."""
        for tab in self.tabs:
            if tab.id == tab_id:
                return tab
        return None

    def tab_index(self, tab_id: str) -> int:
        """Return the position of ``tab_id`` in ``tabs``, or -1."""
        for index, tab in enumerate(self.tabs):
            if tab.id == tab_id:
                return index
        return -1


class SessionSnapshot(_WireModel):
    """The versioned projection of ``SessionState`` written to storage."""

    version: int = SESSION_STATE_VERSION
    saved_at: int
    state: SessionState
