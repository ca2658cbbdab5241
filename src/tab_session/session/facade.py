"""Action facade: one method per session transition.

Callers use ``SessionActions`` instead of building action objects.  Methods
that create a tab mint its id through the store's ``TabFactory`` and return
it.  Like the reducer, the facade treats unknown ids as no-ops.

Classes
-------
- SessionActions  — ergonomic wrapper over ``SessionStore.dispatch``
"""
from __future__ import annotations

import re
from typing import Any

from tab_session.session.actions import (
    AddSuggestion,
    AddTab,
    AppendChatMessage,
    AssignGroup,
    CloseAllTabs,
    CloseTab,
    DeleteGroup,
    PatchTab,
    ReopenRecentlyClosed,
    ReorderTabs,
    SetActiveTab,
    SetAssistantOpen,
    SetStatus,
    ToggleGroupCollapse,
    UpdateSettings,
    UpsertGroup,
)
from tab_session.session.factory import CreateTabOptions
from tab_session.session.navigation import resolve_address
from tab_session.session.state import (
    PAGE_TEXT_LIMIT,
    ChatRole,
    ClosedReason,
    RecentlyClosedEntry,
    TabStatus,
)
from tab_session.session.store import SessionStore

_WHITESPACE_RE = re.compile(r"\s+")


class SessionActions:
    """Ergonomic operations over a ``SessionStore``.

    Parameters
    ----------
    store:
        The store every operation dispatches into.
    """

    def __init__(self, store: SessionStore) -> None:
        self._store = store

    def _taken_ids(self) -> set[str]:
        state = self._store.state
        taken = {tab.id for tab in state.tabs}
        taken.update(entry.tab.id for entry in state.recently_closed)
        return taken

    # ------------------------------------------------------------------
    # Tabs
    # ------------------------------------------------------------------

    def add_tab(self, options: CreateTabOptions | None = None, *, make_active: bool = True) -> str:
        """Open a new tab and return its id."""
        tab = self._store.factory.create(options, taken=self._taken_ids())
        self._store.dispatch(AddTab(tab=tab, make_active=make_active))
        return tab.id

    def close_tab(self, tab_id: str, reason: ClosedReason | str | None = None) -> None:
        self._store.dispatch(CloseTab(tab_id=tab_id, reason=reason))

    def set_active_tab(self, tab_id: str) -> None:
        self._store.dispatch(SetActiveTab(tab_id=tab_id))

    def patch_tab(self, tab_id: str, **fields: Any) -> None:
        """Merge ``fields`` (attribute names) into the tab."""
        self._store.dispatch(PatchTab(tab_id=tab_id, patch=fields))

    def set_assistant_open(self, tab_id: str, open: bool) -> None:
        self._store.dispatch(SetAssistantOpen(tab_id=tab_id, open=open))

    def append_chat_message(
        self,
        tab_id: str,
        role: ChatRole | str,
        content: str,
        created_at: int | None = None,
    ) -> None:
        """Append to the tab's chat; the append time is used when ``created_at`` is None."""
        self._store.dispatch(
            AppendChatMessage(tab_id=tab_id, role=role, content=content, created_at=created_at)
        )

    def set_tab_status(self, tab_id: str, status: TabStatus | str) -> None:
        self._store.dispatch(SetStatus(tab_id=tab_id, status=status))

    def assign_group(self, tab_id: str, group_id: str | None) -> None:
        self._store.dispatch(AssignGroup(tab_id=tab_id, group_id=group_id))

    def reorder_tabs(self, pinned_ids: list[str], regular_ids: list[str]) -> None:
        self._store.dispatch(
            ReorderTabs(pinned_ids=tuple(pinned_ids), regular_ids=tuple(regular_ids))
        )

    def toggle_pin(self, tab_id: str, pinned: bool) -> None:
        """Pin or unpin a tab, moving it to the end of its new block."""
        pinned_ids: list[str] = []
        regular_ids: list[str] = []
        for tab in self._store.state.tabs:
            if tab.id == tab_id:
                continue
            (pinned_ids if tab.is_pinned else regular_ids).append(tab.id)
        (pinned_ids if pinned else regular_ids).append(tab_id)
        self.reorder_tabs(pinned_ids, regular_ids)

    def reopen_recently_closed(self, entry: RecentlyClosedEntry | None = None) -> str | None:
        """Reopen ``entry`` or the most recently closed tab; returns its id."""
        before = self._store.state
        after = self._store.dispatch(ReopenRecentlyClosed(entry=entry))
        if after is before:
            return None
        return after.active_tab_id

    def close_all_tabs(self) -> str:
        """Replace every tab with one fresh blank tab and return its id."""
        tab = self._store.factory.create(taken=self._taken_ids())
        self._store.dispatch(CloseAllTabs(new_tab=tab))
        return tab.id

    # ------------------------------------------------------------------
    # Navigation and page cache
    # ------------------------------------------------------------------

    def navigate(self, tab_id: str, text: str) -> str | None:
        """Navigate a tab to address bar input ``text``.

        The input is recorded as a suggestion.  Anything that is not an
        absolute URL is sent to the configured search engine.  Returns the
        resolved URL, or None if the input is blank or the tab is gone.
        """
        trimmed = text.strip()
        if not trimmed:
            return None
        self.record_suggestion(trimmed)
        state = self._store.state
        tab = state.find_tab(tab_id)
        if tab is None:
            return None
        url = resolve_address(trimmed, state.settings.default_search_engine)
        self.patch_tab(
            tab_id,
            url=url,
            address_value=url,
            address_input=url,
            title=trimmed,
            page_title=trimmed,
            page_text="",
        )
        return url

    def cache_page_text(self, tab_id: str, text: str) -> None:
        """Store whitespace-compacted page text, bounded to ``PAGE_TEXT_LIMIT``."""
        compact = _WHITESPACE_RE.sub(" ", text).strip()
        if compact:
            self.patch_tab(tab_id, page_text=compact[:PAGE_TEXT_LIMIT])

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def record_suggestion(self, value: str) -> None:
        self._store.dispatch(AddSuggestion(value=value))

    def update_settings(self, **changes: Any) -> None:
        """Update settings; ``permission_policy`` may be a partial mapping."""
        self._store.dispatch(UpdateSettings(changes=changes))

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    def upsert_group(
        self,
        group_id: str,
        title: str,
        *,
        color: str | None = None,
        collapsed: bool | None = None,
    ) -> None:
        self._store.dispatch(
            UpsertGroup(group_id=group_id, title=title, color=color, collapsed=collapsed)
        )

    def delete_group(self, group_id: str) -> None:
        self._store.dispatch(DeleteGroup(group_id=group_id))

    def toggle_group_collapse(self, group_id: str) -> None:
        self._store.dispatch(ToggleGroupCollapse(group_id=group_id))
