"""Read-only views over a ``SessionState``.

Selectors are plain functions so they work equally with a state value or
through ``SessionStore.select``.
"""
from __future__ import annotations

from tab_session.session.state import SessionState, Tab, TabHistoryEntry


def active_tab(state: SessionState) -> Tab | None:
    """Return the active tab, or None when no tab is active."""
    if state.active_tab_id is None:
        return None
    return state.find_tab(state.active_tab_id)


def get_tab(state: SessionState, tab_id: str) -> Tab | None:
    return state.find_tab(tab_id)


def pinned_tabs(state: SessionState) -> list[Tab]:
    return [tab for tab in state.tabs if tab.is_pinned]


def regular_tabs(state: SessionState) -> list[Tab]:
    return [tab for tab in state.tabs if not tab.is_pinned]


def tabs_in_group(state: SessionState, group_id: str) -> list[Tab]:
    """Return the tabs assigned to ``group_id``, in tab order."""
    return [tab for tab in state.tabs if tab.group_id == group_id]


def current_history_entry(tab: Tab) -> TabHistoryEntry:
    return tab.history[tab.history_index]


def can_reopen(state: SessionState) -> bool:
    return bool(state.recently_closed)


def needs_close_confirmation(state: SessionState) -> bool:
    """Return True when closing a tab should ask the user first.

    Mirrors the browser's guard: with more open tabs than the configured
    ``confirm_close_threshold``, a close is confirmed before dispatch.
    """
    return len(state.tabs) > state.settings.confirm_close_threshold
