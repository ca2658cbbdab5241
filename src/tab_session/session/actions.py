"""Action catalog consumed by the session reducer.

Every action is an immutable Pydantic model carrying a literal ``type``
discriminator, so an action log can be persisted and replayed through
``parse_action``.  Payload validation happens here, at construction time:
a malformed action is a caller bug and raises ``ValueError`` (pydantic's
``ValidationError`` is a subclass); the reducer itself never raises.
"""
from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator

from tab_session.session.state import (
    ChatRole,
    ClosedReason,
    PermissionSettings,
    RecentlyClosedEntry,
    SessionSettings,
    SessionSnapshot,
    Tab,
    TabStatus,
)

_IMMUTABLE_TAB_FIELDS: frozenset[str] = frozenset({"id", "active"})


def _field_names_by_key(model: type[BaseModel]) -> dict[str, str]:
    """Map both attribute names and wire aliases to attribute names."""
    names: dict[str, str] = {}
    for name, info in model.model_fields.items():
        names[name] = name
        if info.alias:
            names[info.alias] = name
    return names


_TAB_KEYS = _field_names_by_key(Tab)
_SETTINGS_KEYS = _field_names_by_key(SessionSettings)
_PERMISSION_KEYS = _field_names_by_key(PermissionSettings)


def _resolve_keys(raw: dict[str, Any], known: dict[str, str], what: str) -> dict[str, Any]:
    resolved: dict[str, Any] = {}
    for key, value in raw.items():
        name = known.get(key)
        if name is None:
            raise ValueError(f"Unknown {what} field {key!r}")
        resolved[name] = value
    return resolved


class _Action(BaseModel):
    model_config = {"frozen": True}


class AddTab(_Action):
    type: Literal["tab_add"] = "tab_add"
    tab: Tab
    make_active: bool = True


class SetActiveTab(_Action):
    type: Literal["tab_set_active"] = "tab_set_active"
    tab_id: str


class PatchTab(_Action):
    """Merge ``patch`` into one tab.

    Keys may be attribute names or camelCase aliases.  ``id`` and ``active``
    cannot be patched: identity is fixed and activation goes through
    ``SetActiveTab``.
    """

    type: Literal["tab_patch"] = "tab_patch"
    tab_id: str
    patch: dict[str, Any]

    @field_validator("patch", mode="before")
    @classmethod
    def _validate_patch(cls, value: Any) -> dict[str, Any]:
        if not isinstance(value, dict):
            raise ValueError("patch must be a mapping")
        fields = _resolve_keys(value, _TAB_KEYS, "tab")
        blocked = _IMMUTABLE_TAB_FIELDS.intersection(fields)
        if blocked:
            raise ValueError(f"Tab fields cannot be patched: {sorted(blocked)}")
        # Validate value types against the Tab schema with a throwaway id.
        probe = Tab.model_validate({"id": "patch-probe", **fields})
        return {name: getattr(probe, name) for name in fields}


class SetAssistantOpen(_Action):
    type: Literal["tab_set_assistant"] = "tab_set_assistant"
    tab_id: str
    open: bool


class SetStatus(_Action):
    type: Literal["tab_set_status"] = "tab_set_status"
    tab_id: str
    status: TabStatus


class AssignGroup(_Action):
    type: Literal["tab_assign_group"] = "tab_assign_group"
    tab_id: str
    group_id: str | None = None


class AppendChatMessage(_Action):
    """Append a message; ``created_at=None`` is stamped by the reducer."""

    type: Literal["tab_append_chat"] = "tab_append_chat"
    tab_id: str
    role: ChatRole
    content: str
    created_at: int | None = None


class CloseTab(_Action):
    type: Literal["tab_close"] = "tab_close"
    tab_id: str
    reason: ClosedReason | None = None


class ReorderTabs(_Action):
    type: Literal["tab_reorder"] = "tab_reorder"
    pinned_ids: tuple[str, ...] = ()
    regular_ids: tuple[str, ...] = ()


class ReopenRecentlyClosed(_Action):
    """Reopen ``entry`` (matched by identity) or the most recent one."""

    type: Literal["tab_reopen"] = "tab_reopen"
    entry: RecentlyClosedEntry | None = None


class AddSuggestion(_Action):
    type: Literal["suggestion_add"] = "suggestion_add"
    value: str


class Rehydrate(_Action):
    """Replace the session with a decoded snapshot.

    ``snapshot`` is the raw decoded mapping (camelCase keys) so that
    normalization can repair fields an older writer left out.  A
    ``SessionSnapshot`` model is accepted too and dumped to that shape.
    """

    type: Literal["session_rehydrate"] = "session_rehydrate"
    snapshot: dict[str, Any]

    @field_validator("snapshot", mode="before")
    @classmethod
    def _dump_model(cls, value: Any) -> Any:
        if isinstance(value, SessionSnapshot):
            return value.model_dump(mode="json", by_alias=True)
        return value


class SessionReady(_Action):
    type: Literal["session_ready"] = "session_ready"


class UpdateSettings(_Action):
    """Partially update settings.

    ``permission_policy`` may itself be partial; it merges one level deep.
    """

    type: Literal["settings_update"] = "settings_update"
    changes: dict[str, Any]

    @field_validator("changes", mode="before")
    @classmethod
    def _validate_changes(cls, value: Any) -> dict[str, Any]:
        if not isinstance(value, dict):
            raise ValueError("changes must be a mapping")
        fields = _resolve_keys(value, _SETTINGS_KEYS, "settings")
        policy = fields.pop("permission_policy", None)
        probe = SessionSettings.model_validate(fields)
        cleaned: dict[str, Any] = {name: getattr(probe, name) for name in fields}
        if policy is not None:
            if isinstance(policy, PermissionSettings):
                policy = policy.model_dump()
            if not isinstance(policy, dict):
                raise ValueError("permission_policy must be a mapping")
            policy_fields = _resolve_keys(policy, _PERMISSION_KEYS, "permission")
            policy_probe = PermissionSettings.model_validate(policy_fields)
            cleaned["permission_policy"] = {
                name: getattr(policy_probe, name) for name in policy_fields
            }
        return cleaned


class UpsertGroup(_Action):
    """Create or update a group; None for color/collapsed keeps the old value."""

    type: Literal["group_upsert"] = "group_upsert"
    group_id: str
    title: str
    color: str | None = None
    collapsed: bool | None = None


class DeleteGroup(_Action):
    type: Literal["group_delete"] = "group_delete"
    group_id: str


class ToggleGroupCollapse(_Action):
    type: Literal["group_toggle_collapse"] = "group_toggle_collapse"
    group_id: str


class CloseAllTabs(_Action):
    type: Literal["tab_close_all"] = "tab_close_all"
    new_tab: Tab


SessionAction = Annotated[
    Union[
        AddTab,
        SetActiveTab,
        PatchTab,
        SetAssistantOpen,
        SetStatus,
        AssignGroup,
        AppendChatMessage,
        CloseTab,
        ReorderTabs,
        ReopenRecentlyClosed,
        AddSuggestion,
        Rehydrate,
        SessionReady,
        UpdateSettings,
        UpsertGroup,
        DeleteGroup,
        ToggleGroupCollapse,
        CloseAllTabs,
    ],
    Field(discriminator="type"),
]

_ACTION_ADAPTER: TypeAdapter[Any] = TypeAdapter(SessionAction)


def parse_action(data: dict[str, Any]) -> Any:
    """Validate a plain mapping (e.g. from an action log) into an action."""
    return _ACTION_ADAPTER.validate_python(data)
