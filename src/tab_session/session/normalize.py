"""Rehydration and normalization of loaded snapshots.

A snapshot may come from an older writer or be partially corrupt.  The
helpers here repair what can be repaired (missing status, empty history,
out-of-range history index, dangling group references, partial settings)
and drop what cannot, logging each drop.  None of them raises for bad
*content*; only ``normalize_tab`` raises when a tab has no usable id,
because an id cannot be invented for a restored tab.
"""
from __future__ import annotations

import logging
from collections.abc import Collection, Mapping
from typing import Any

from pydantic import BaseModel, TypeAdapter, ValidationError

from tab_session.session.clock import Clock, system_clock
from tab_session.session.state import (
    BLANK_URL,
    MAX_RECENTLY_CLOSED,
    MAX_SUGGESTIONS,
    ChatMessage,
    ClosedReason,
    PermissionSettings,
    RecentlyClosedEntry,
    SessionSettings,
    SessionState,
    Tab,
    TabGroup,
    TabHistoryEntry,
    TabSnapshot,
    TabStatus,
)

logger = logging.getLogger(__name__)

_CHAT_ADAPTER: TypeAdapter[ChatMessage] = TypeAdapter(ChatMessage)
_HISTORY_ADAPTER: TypeAdapter[TabHistoryEntry] = TypeAdapter(TabHistoryEntry)


def _keys_for(model: type[BaseModel]) -> dict[str, str]:
    names: dict[str, str] = {}
    for name, info in model.model_fields.items():
        names[name] = name
        if info.alias:
            names[info.alias] = name
    return names


_TAB_KEYS = _keys_for(Tab)
_SETTINGS_KEYS = _keys_for(SessionSettings)
_PERMISSION_KEYS = _keys_for(PermissionSettings)


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _by_field_name(raw: Mapping[str, Any], keys: dict[str, str]) -> dict[str, Any]:
    """Re-key ``raw`` by attribute name, dropping unknown keys."""
    fields: dict[str, Any] = {}
    for key, value in raw.items():
        name = keys.get(key)
        if name is not None:
            fields[name] = value
    return fields


def _valid_items(values: object, adapter: TypeAdapter[Any], label: str) -> list[Any]:
    if not isinstance(values, (list, tuple)):
        return []
    items = []
    for value in values:
        try:
            items.append(adapter.validate_python(value))
        except ValidationError:
            logger.warning("Dropping malformed %s entry", label)
    return items


def _closed_reason(value: object) -> ClosedReason:
    try:
        return ClosedReason(value)
    except ValueError:
        return ClosedReason.USER


# ---------------------------------------------------------------------------
# Tabs
# ---------------------------------------------------------------------------


def normalize_tab(
    raw: TabSnapshot | Mapping[str, Any],
    *,
    clock: Clock = system_clock,
    group_ids: Collection[str] | None = None,
) -> Tab:
    """Return a valid, inactive ``Tab`` built from a possibly partial record.

    Parameters
    ----------
    raw:
        A ``Tab``, ``TabSnapshot`` or mapping with camelCase or snake_case
        keys.
    clock:
        Used only when a history entry must be synthesized and the record
        carries no ``createdAt``.
    group_ids:
        When given, a ``group_id`` not in this collection is reset to None.

    Returns
    -------
    Tab
        A tab satisfying the history invariants, with ``active=False``.

    Raises
    ------
    ValueError
        If ``raw`` is not a record or has no usable id, or if a scalar
        field holds a value of the wrong type.
    """
    if isinstance(raw, TabSnapshot):
        data: Mapping[str, Any] = raw.model_dump()
    elif isinstance(raw, Mapping):
        data = raw
    else:
        raise ValueError(f"Tab record must be a mapping, got {type(raw).__name__}")

    fields = _by_field_name(data, _TAB_KEYS)
    tab_id = fields.get("id")
    if not isinstance(tab_id, str) or not tab_id:
        raise ValueError("Tab record has no usable id")

    fields["active"] = False
    try:
        fields["status"] = TabStatus(fields.get("status"))
    except ValueError:
        fields["status"] = TabStatus.NORMAL
    group_id = fields.get("group_id")
    if not isinstance(group_id, str) or (
        group_ids is not None and group_id not in group_ids
    ):
        fields["group_id"] = None
    fields["chat_history"] = tuple(
        _valid_items(fields.get("chat_history"), _CHAT_ADAPTER, "chat message")
    )

    if not _is_int(fields.get("created_at")):
        fields["created_at"] = clock()
    if not _is_int(fields.get("last_active_at")):
        fields["last_active_at"] = fields["created_at"]

    history = _valid_items(fields.get("history"), _HISTORY_ADAPTER, "history")
    if not history:
        url = fields.get("url") if isinstance(fields.get("url"), str) else BLANK_URL
        title = fields.get("title") if isinstance(fields.get("title"), str) else ""
        history = [
            TabHistoryEntry(
                id=f"{tab_id}-history-{fields['created_at']}",
                url=url,
                title=title,
                timestamp=fields["created_at"],
            )
        ]
    fields["history"] = tuple(history)

    index = fields.get("history_index")
    if not _is_int(index) or not 0 <= index < len(history):
        fields["history_index"] = len(history) - 1

    return Tab.model_validate(fields)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def _merge_valid(
    model: type[BaseModel],
    base: dict[str, Any],
    incoming: dict[str, Any],
) -> dict[str, Any]:
    """Overlay ``incoming`` on ``base`` one field at a time, skipping bad values."""
    merged = dict(base)
    for name, value in incoming.items():
        try:
            probe = model.model_validate({**base, name: value})
        except ValidationError:
            logger.warning("Ignoring invalid %s.%s value %r", model.__name__, name, value)
            continue
        merged[name] = getattr(probe, name)
    return merged


def normalize_settings(raw: object) -> SessionSettings:
    """Merge loaded settings over the defaults.

    The merge is one level deep into ``permission_policy``: a snapshot that
    only records ``{"permissionPolicy": {"camera": "allow"}}`` keeps the
    default policy for the other capabilities.
    """
    if isinstance(raw, SessionSettings):
        return raw
    defaults = SessionSettings()
    if not isinstance(raw, Mapping):
        return defaults

    incoming = _by_field_name(raw, _SETTINGS_KEYS)
    raw_policy = incoming.pop("permission_policy", None)
    if isinstance(raw_policy, PermissionSettings):
        raw_policy = raw_policy.model_dump()
    policy_fields = _by_field_name(raw_policy, _PERMISSION_KEYS) if isinstance(raw_policy, Mapping) else {}

    policy = _merge_valid(
        PermissionSettings, defaults.permission_policy.model_dump(), policy_fields
    )
    base = defaults.model_dump(exclude={"permission_policy"})
    values = _merge_valid(SessionSettings, base, incoming)
    return SessionSettings(**values, permission_policy=PermissionSettings(**policy))


# ---------------------------------------------------------------------------
# Collections
# ---------------------------------------------------------------------------


def normalize_groups(raw: object) -> dict[str, TabGroup]:
    """Return valid groups keyed by their own ``id``."""
    if not isinstance(raw, Mapping):
        return {}
    groups: dict[str, TabGroup] = {}
    for key, value in raw.items():
        try:
            group = TabGroup.model_validate(value)
        except ValidationError:
            logger.warning("Dropping malformed tab group %r", key)
            continue
        groups[group.id] = group
    return groups


def normalize_recently_closed(
    raw: object,
    *,
    clock: Clock = system_clock,
) -> tuple[RecentlyClosedEntry, ...]:
    """Return at most ``MAX_RECENTLY_CLOSED`` repaired entries, order kept."""
    if not isinstance(raw, (list, tuple)):
        return ()
    entries: list[RecentlyClosedEntry] = []
    for item in raw:
        if isinstance(item, RecentlyClosedEntry):
            item = item.model_dump(by_alias=True)
        if not isinstance(item, Mapping):
            logger.warning("Dropping malformed recently-closed entry")
            continue
        try:
            tab = normalize_tab(item.get("tab"), clock=clock)  # type: ignore[arg-type]
        except ValueError:
            logger.warning("Dropping recently-closed entry with unusable tab")
            continue
        closed_at = item.get("closedAt", item.get("closed_at"))
        entries.append(
            RecentlyClosedEntry(
                tab=tab.to_snapshot(),
                closed_at=closed_at if _is_int(closed_at) else tab.last_active_at,
                reason=_closed_reason(item.get("reason")),
            )
        )
        if len(entries) == MAX_RECENTLY_CLOSED:
            break
    return tuple(entries)


def normalize_suggestions(raw: object) -> tuple[str, ...]:
    """Return trimmed, case-insensitively unique suggestions, capped."""
    if not isinstance(raw, (list, tuple)):
        return ()
    seen: set[str] = set()
    suggestions: list[str] = []
    for value in raw:
        if not isinstance(value, str):
            continue
        trimmed = value.strip()
        if not trimmed or trimmed.lower() in seen:
            continue
        seen.add(trimmed.lower())
        suggestions.append(trimmed)
    return tuple(suggestions[:MAX_SUGGESTIONS])


# ---------------------------------------------------------------------------
# Whole session
# ---------------------------------------------------------------------------


def rehydrate_state(
    current: SessionState,
    snapshot: Mapping[str, Any],
    *,
    clock: Clock = system_clock,
) -> SessionState:
    """Build the hydrated session from a decoded snapshot mapping.

    Tabs, groups, settings, recently-closed entries and suggestions are
    replaced wholesale.  Tabs with duplicate ids keep their first
    occurrence.  If no usable tab survives, ``current.tabs`` is kept so the
    session never ends up empty.  Pinned tabs are moved ahead of regular
    ones, keeping their relative order.  A missing or dangling
    ``activeTabId`` activates the first tab.
    """
    body = snapshot.get("state")
    if not isinstance(body, Mapping):
        body = {}

    groups = normalize_groups(body.get("tabGroups", body.get("tab_groups")))

    tabs: list[Tab] = []
    seen_ids: set[str] = set()
    raw_tabs = body.get("tabs")
    for raw_tab in raw_tabs if isinstance(raw_tabs, (list, tuple)) else ():
        try:
            tab = normalize_tab(raw_tab, clock=clock, group_ids=groups)
        except ValueError as exc:
            logger.warning("Dropping unusable tab from snapshot: %s", exc)
            continue
        if tab.id in seen_ids:
            logger.warning("Dropping duplicate tab id %r from snapshot", tab.id)
            continue
        seen_ids.add(tab.id)
        tabs.append(tab)

    if not tabs:
        logger.warning("Snapshot holds no usable tabs; keeping current tabs")
        tabs = [tab.model_copy(update={"active": False}) for tab in current.tabs]

    tabs = [tab for tab in tabs if tab.is_pinned] + [
        tab for tab in tabs if not tab.is_pinned
    ]

    active_id = body.get("activeTabId", body.get("active_tab_id"))
    if not any(tab.id == active_id for tab in tabs):
        active_id = tabs[0].id
    tabs = [
        tab.model_copy(update={"active": True}) if tab.id == active_id else tab
        for tab in tabs
    ]

    return current.model_copy(
        update={
            "tabs": tuple(tabs),
            "active_tab_id": active_id,
            "tab_groups": groups,
            "recently_closed": normalize_recently_closed(
                body.get("recentlyClosed", body.get("recently_closed")), clock=clock
            ),
            "suggestion_history": normalize_suggestions(
                body.get("suggestionHistory", body.get("suggestion_history"))
            ),
            "settings": normalize_settings(body.get("settings")),
            "hydrated": True,
        }
    )
