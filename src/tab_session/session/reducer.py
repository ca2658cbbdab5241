"""The session reducer: ``(SessionState, action) -> SessionState``.

``reduce`` is pure given its clock.  A transition that determines nothing
needs to change returns the *identical* prior state object, not an equal
copy; the store only persists when the state reference changes, so this
identity is what keeps no-op dispatches from triggering saves.

Transitions that name a tab or group id that does not exist are silent
no-ops.  Closing the last remaining tab is refused the same way.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
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
    Rehydrate,
    ReopenRecentlyClosed,
    ReorderTabs,
    SessionReady,
    SetActiveTab,
    SetAssistantOpen,
    SetStatus,
    ToggleGroupCollapse,
    UpdateSettings,
    UpsertGroup,
)
from tab_session.session.clock import Clock, system_clock
from tab_session.session.factory import create_tab
from tab_session.session.normalize import normalize_tab, rehydrate_state
from tab_session.session.state import (
    MAX_RECENTLY_CLOSED,
    MAX_SUGGESTIONS,
    PAGE_TEXT_LIMIT,
    ChatMessage,
    ClosedReason,
    RecentlyClosedEntry,
    SessionState,
    Tab,
    TabGroup,
    TabHistoryEntry,
    TabStatus,
)

logger = logging.getLogger(__name__)

Handler = Callable[[SessionState, Any, Clock], SessionState]


def default_state(tab_id: str = "tab-1", *, clock: Clock = system_clock) -> SessionState:
    """Return the startup state: one active blank tab, not yet hydrated."""
    tab = create_tab(tab_id, clock=clock).model_copy(update={"active": True})
    return SessionState(tabs=(tab,), active_tab_id=tab.id)


# ---------------------------------------------------------------------------
# Tab list helpers
# ---------------------------------------------------------------------------


def _first_regular_index(tabs: list[Tab]) -> int:
    """Index just past the leading block of pinned tabs."""
    for index, tab in enumerate(tabs):
        if not tab.is_pinned:
            return index
    return len(tabs)


def _insert(tabs: list[Tab], tab: Tab) -> None:
    """Append ``tab``, or place it at the end of the pinned block if pinned."""
    if tab.is_pinned:
        tabs.insert(_first_regular_index(tabs), tab)
    else:
        tabs.append(tab)


def _deactivate(tabs: Iterable[Tab]) -> list[Tab]:
    return [tab.model_copy(update={"active": False}) if tab.active else tab for tab in tabs]


def _activate(tabs: Iterable[Tab], active_id: str | None, now: int) -> tuple[Tab, ...]:
    result = []
    for tab in tabs:
        if tab.id == active_id:
            tab = tab.model_copy(update={"active": True, "last_active_at": now})
        elif tab.active:
            tab = tab.model_copy(update={"active": False})
        result.append(tab)
    return tuple(result)


def _replace(state: SessionState, index: int, tab: Tab) -> SessionState:
    """Swap in an updated tab, moving it when it gains or loses pinned status."""
    tabs = list(state.tabs)
    previous = tabs[index]
    if previous.is_pinned == tab.is_pinned:
        tabs[index] = tab
    else:
        del tabs[index]
        tabs.insert(_first_regular_index(tabs), tab)
    return state.model_copy(update={"tabs": tuple(tabs)})


def _set_tab_field(state: SessionState, tab_id: str, name: str, value: object) -> SessionState:
    index = state.tab_index(tab_id)
    if index == -1:
        return state
    tab = state.tabs[index]
    if getattr(tab, name) == value:
        return state
    return _replace(state, index, tab.model_copy(update={name: value}))


# ---------------------------------------------------------------------------
# Tab transitions
# ---------------------------------------------------------------------------


def _add_tab(state: SessionState, action: AddTab, clock: Clock) -> SessionState:
    if state.find_tab(action.tab.id) is not None:
        logger.debug("AddTab ignored: tab %r already exists", action.tab.id)
        return state
    if action.make_active:
        tabs = _deactivate(state.tabs)
        new_tab = action.tab.model_copy(update={"active": True, "last_active_at": clock()})
        active_id = new_tab.id
    else:
        tabs = list(state.tabs)
        new_tab = action.tab.model_copy(update={"active": False}) if action.tab.active else action.tab
        active_id = state.active_tab_id
    _insert(tabs, new_tab)
    return state.model_copy(update={"tabs": tuple(tabs), "active_tab_id": active_id})


def _set_active(state: SessionState, action: SetActiveTab, clock: Clock) -> SessionState:
    if state.active_tab_id == action.tab_id or state.find_tab(action.tab_id) is None:
        return state
    return state.model_copy(
        update={
            "tabs": _activate(state.tabs, action.tab_id, clock()),
            "active_tab_id": action.tab_id,
        }
    )


def _patch_tab(state: SessionState, action: PatchTab, clock: Clock) -> SessionState:
    index = state.tab_index(action.tab_id)
    if index == -1:
        return state
    tab = state.tabs[index]
    update = dict(action.patch)

    new_url = update.get("url")
    if new_url and new_url != tab.url:
        now = clock()
        kept = tab.history[: tab.history_index + 1]
        entry = TabHistoryEntry(
            id=f"{tab.id}-history-{now}-{len(kept)}",
            url=new_url,
            title=update.get("title") or update.get("page_title") or tab.title,
            timestamp=now,
        )
        update["history"] = kept + (entry,)
        update["history_index"] = len(kept)
    else:
        history = update.get("history") or tab.history
        index_value = update.get("history_index", tab.history_index)
        update["history"] = history
        update["history_index"] = min(max(index_value, 0), len(history) - 1)

    if "page_text" in update:
        update["page_text"] = update["page_text"][:PAGE_TEXT_LIMIT]

    if all(getattr(tab, name) == value for name, value in update.items()):
        return state
    return _replace(state, index, tab.model_copy(update=update))


def _set_assistant(state: SessionState, action: SetAssistantOpen, clock: Clock) -> SessionState:
    return _set_tab_field(state, action.tab_id, "assistant_open", action.open)


def _set_status(state: SessionState, action: SetStatus, clock: Clock) -> SessionState:
    return _set_tab_field(state, action.tab_id, "status", action.status)


def _assign_group(state: SessionState, action: AssignGroup, clock: Clock) -> SessionState:
    return _set_tab_field(state, action.tab_id, "group_id", action.group_id)


def _append_chat(state: SessionState, action: AppendChatMessage, clock: Clock) -> SessionState:
    index = state.tab_index(action.tab_id)
    if index == -1:
        return state
    tab = state.tabs[index]
    message = ChatMessage(
        role=action.role,
        content=action.content,
        created_at=action.created_at if action.created_at is not None else clock(),
    )
    updated = tab.model_copy(update={"chat_history": tab.chat_history + (message,)})
    return _replace(state, index, updated)


def _close_tab(state: SessionState, action: CloseTab, clock: Clock) -> SessionState:
    if len(state.tabs) <= 1:
        return state
    index = state.tab_index(action.tab_id)
    if index == -1:
        return state
    now = clock()
    removed = state.tabs[index]
    remaining = state.tabs[:index] + state.tabs[index + 1 :]
    active_id = state.active_tab_id
    if removed.id == state.active_tab_id:
        fallback = remaining[index] if index < len(remaining) else remaining[0]
        active_id = fallback.id
        remaining = _activate(remaining, active_id, now)
    entry = RecentlyClosedEntry(
        tab=removed.to_snapshot(),
        closed_at=now,
        reason=action.reason or ClosedReason.USER,
    )
    return state.model_copy(
        update={
            "tabs": remaining,
            "active_tab_id": active_id,
            "recently_closed": ((entry,) + state.recently_closed)[:MAX_RECENTLY_CLOSED],
        }
    )


def _reorder(state: SessionState, action: ReorderTabs, clock: Clock) -> SessionState:
    by_id = {tab.id: tab for tab in state.tabs}
    placed: set[str] = set()
    ordered: list[Tab] = []

    for tab_id in action.pinned_ids:
        tab = by_id.get(tab_id)
        if tab is None or tab_id in placed:
            continue
        placed.add(tab_id)
        ordered.append(tab if tab.is_pinned else tab.model_copy(update={"status": TabStatus.PINNED}))

    for tab_id in action.regular_ids:
        tab = by_id.get(tab_id)
        if tab is None or tab_id in placed:
            continue
        placed.add(tab_id)
        # Only pinned tabs are demoted; sleeping/discarded keep their status.
        ordered.append(tab.model_copy(update={"status": TabStatus.NORMAL}) if tab.is_pinned else tab)

    ordered.extend(tab for tab in state.tabs if tab.id not in placed)
    if all(new is old for new, old in zip(ordered, state.tabs)):
        return state
    return state.model_copy(update={"tabs": tuple(ordered)})


def _reopen(state: SessionState, action: ReopenRecentlyClosed, clock: Clock) -> SessionState:
    if not state.recently_closed:
        return state
    entry = action.entry if action.entry is not None else state.recently_closed[0]
    if not any(candidate is entry for candidate in state.recently_closed):
        return state
    if state.find_tab(entry.tab.id) is not None:
        logger.debug("Reopen ignored: tab %r is already open", entry.tab.id)
        return state

    restored = normalize_tab(entry.tab, clock=clock, group_ids=state.tab_groups)
    restored = restored.model_copy(update={"active": True, "last_active_at": clock()})
    tabs = _deactivate(state.tabs)
    _insert(tabs, restored)
    return state.model_copy(
        update={
            "tabs": tuple(tabs),
            "active_tab_id": restored.id,
            "recently_closed": tuple(
                candidate for candidate in state.recently_closed if candidate is not entry
            ),
        }
    )


def _close_all(state: SessionState, action: CloseAllTabs, clock: Clock) -> SessionState:
    new_tab = action.new_tab
    if not new_tab.active:
        new_tab = new_tab.model_copy(update={"active": True})
    return state.model_copy(update={"tabs": (new_tab,), "active_tab_id": new_tab.id})


# ---------------------------------------------------------------------------
# Session-level transitions
# ---------------------------------------------------------------------------


def _add_suggestion(state: SessionState, action: AddSuggestion, clock: Clock) -> SessionState:
    trimmed = action.value.strip()
    if not trimmed:
        return state
    lowered = trimmed.lower()
    rest = tuple(item for item in state.suggestion_history if item.lower() != lowered)
    history = ((trimmed,) + rest)[:MAX_SUGGESTIONS]
    if history == state.suggestion_history:
        return state
    return state.model_copy(update={"suggestion_history": history})


def _rehydrate(state: SessionState, action: Rehydrate, clock: Clock) -> SessionState:
    return rehydrate_state(state, action.snapshot, clock=clock)


def _ready(state: SessionState, action: SessionReady, clock: Clock) -> SessionState:
    if state.hydrated:
        return state
    return state.model_copy(update={"hydrated": True})


def _update_settings(state: SessionState, action: UpdateSettings, clock: Clock) -> SessionState:
    update = dict(action.changes)
    policy_changes = update.pop("permission_policy", None)
    if policy_changes:
        update["permission_policy"] = state.settings.permission_policy.model_copy(
            update=policy_changes
        )
    settings = state.settings.model_copy(update=update)
    if settings == state.settings:
        return state
    return state.model_copy(update={"settings": settings})


def _upsert_group(state: SessionState, action: UpsertGroup, clock: Clock) -> SessionState:
    existing = state.tab_groups.get(action.group_id)
    color = action.color if action.color is not None else (existing.color if existing else None)
    if action.collapsed is not None:
        collapsed = action.collapsed
    else:
        collapsed = existing.collapsed if existing else False
    group = TabGroup(id=action.group_id, title=action.title, color=color, collapsed=collapsed)
    if group == existing:
        return state
    return state.model_copy(update={"tab_groups": {**state.tab_groups, group.id: group}})


def _delete_group(state: SessionState, action: DeleteGroup, clock: Clock) -> SessionState:
    if action.group_id not in state.tab_groups:
        return state
    groups = {key: group for key, group in state.tab_groups.items() if key != action.group_id}
    tabs = tuple(
        tab.model_copy(update={"group_id": None}) if tab.group_id == action.group_id else tab
        for tab in state.tabs
    )
    return state.model_copy(update={"tab_groups": groups, "tabs": tabs})


def _toggle_group(state: SessionState, action: ToggleGroupCollapse, clock: Clock) -> SessionState:
    group = state.tab_groups.get(action.group_id)
    if group is None:
        return state
    toggled = group.model_copy(update={"collapsed": not group.collapsed})
    return state.model_copy(update={"tab_groups": {**state.tab_groups, group.id: toggled}})


_HANDLERS: dict[type, Handler] = {
    AddTab: _add_tab,
    SetActiveTab: _set_active,
    PatchTab: _patch_tab,
    SetAssistantOpen: _set_assistant,
    SetStatus: _set_status,
    AssignGroup: _assign_group,
    AppendChatMessage: _append_chat,
    CloseTab: _close_tab,
    ReorderTabs: _reorder,
    ReopenRecentlyClosed: _reopen,
    AddSuggestion: _add_suggestion,
    Rehydrate: _rehydrate,
    SessionReady: _ready,
    UpdateSettings: _update_settings,
    UpsertGroup: _upsert_group,
    DeleteGroup: _delete_group,
    ToggleGroupCollapse: _toggle_group,
    CloseAllTabs: _close_all,
}


def reduce(state: SessionState, action: object, *, clock: Clock = system_clock) -> SessionState:
    """Apply ``action`` to ``state`` and return the resulting state.

    Parameters
    ----------
    state:
        The current session.
    action:
        One of the models in ``tab_session.session.actions``.  Anything else
        is ignored.
    clock:
        Time source for every timestamp the transition writes.

    Returns
    -------
    SessionState
        The new state, or ``state`` itself when nothing changed.
    """
    handler = _HANDLERS.get(type(action))
    if handler is None:
        logger.debug("Ignoring unknown action %r", type(action).__name__)
        return state
    return handler(state, action, clock)
