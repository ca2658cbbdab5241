"""Unit tests for tab_session.session.actions construction and parsing."""
from __future__ import annotations

import pytest

from tab_session.session.actions import (
    AddTab,
    CloseTab,
    PatchTab,
    Rehydrate,
    ReorderTabs,
    SessionReady,
    UpdateSettings,
    parse_action,
)
from tab_session.session.clock import FixedClock
from tab_session.session.reducer import default_state
from tab_session.session.serializer import SnapshotSerializer
from tab_session.session.state import ClosedReason, PermissionPolicy, TabStatus


# ---------------------------------------------------------------------------
# PatchTab validation
# ---------------------------------------------------------------------------


class TestPatchTab:
    def test_aliases_resolved_to_attribute_names(self) -> None:
        action = PatchTab(tab_id="t1", patch={"pageTitle": "P", "address_input": "a"})
        assert action.patch == {"page_title": "P", "address_input": "a"}

    def test_values_coerced(self) -> None:
        action = PatchTab(tab_id="t1", patch={"status": "sleeping"})
        assert action.patch["status"] is TabStatus.SLEEPING

    @pytest.mark.parametrize("key", ["id", "active"])
    def test_immutable_fields_rejected(self, key: str) -> None:
        with pytest.raises(ValueError, match="cannot be patched"):
            PatchTab(tab_id="t1", patch={key: "x"})

    def test_unknown_field_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unknown tab field"):
            PatchTab(tab_id="t1", patch={"favicon": "x.png"})

    def test_bad_value_rejected(self) -> None:
        with pytest.raises(ValueError):
            PatchTab(tab_id="t1", patch={"status": "floating"})

    def test_action_is_frozen(self) -> None:
        action = CloseTab(tab_id="t1")
        with pytest.raises(ValueError):
            action.tab_id = "t2"  # type: ignore[misc]


# ---------------------------------------------------------------------------
# UpdateSettings validation
# ---------------------------------------------------------------------------


class TestUpdateSettings:
    def test_partial_policy_kept_partial(self) -> None:
        action = UpdateSettings(changes={"permissionPolicy": {"camera": "allow"}})
        assert action.changes == {"permission_policy": {"camera": PermissionPolicy.ALLOW}}

    def test_unknown_setting_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unknown settings field"):
            UpdateSettings(changes={"theme": "dark"})

    def test_unknown_permission_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unknown permission field"):
            UpdateSettings(changes={"permission_policy": {"location": "allow"}})

    def test_invalid_value_rejected(self) -> None:
        with pytest.raises(ValueError):
            UpdateSettings(changes={"confirm_close_threshold": 0})


# ---------------------------------------------------------------------------
# Rehydrate
# ---------------------------------------------------------------------------


class TestRehydrate:
    def test_accepts_snapshot_model(self) -> None:
        clock = FixedClock(start=3)
        snapshot = SnapshotSerializer(clock).to_snapshot(default_state(clock=clock))
        action = Rehydrate(snapshot=snapshot)
        assert action.snapshot["savedAt"] == 3
        assert action.snapshot["state"]["activeTabId"] == "tab-1"


# ---------------------------------------------------------------------------
# parse_action
# ---------------------------------------------------------------------------


class TestParseAction:
    def test_dispatches_on_type(self) -> None:
        action = parse_action({"type": "tab_close", "tab_id": "t1", "reason": "system"})
        assert isinstance(action, CloseTab)
        assert action.reason is ClosedReason.SYSTEM

    def test_round_trip_of_dumped_action(self) -> None:
        original = ReorderTabs(pinned_ids=("a",), regular_ids=("b", "c"))
        assert parse_action(original.model_dump()) == original

    def test_nested_tab(self) -> None:
        action = parse_action({"type": "tab_add", "tab": {"id": "t9"}, "make_active": False})
        assert isinstance(action, AddTab)
        assert action.tab.id == "t9"

    def test_payloadless_action(self) -> None:
        assert isinstance(parse_action({"type": "session_ready"}), SessionReady)

    def test_unknown_type_rejected(self) -> None:
        with pytest.raises(ValueError):
            parse_action({"type": "tab_explode", "tab_id": "t1"})
