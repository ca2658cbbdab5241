"""Unit tests for tab_session.session.store.SessionStore.

Covers dispatch / subscribe, startup hydration (sync and async), the
persistence effect, and teardown behaviour.
"""
from __future__ import annotations

import asyncio
import json
import logging
import threading

import pytest

from tab_session.session.actions import AddSuggestion, SessionReady, SetActiveTab
from tab_session.session.clock import FixedClock
from tab_session.session.facade import SessionActions
from tab_session.session.selectors import active_tab
from tab_session.session.serializer import SnapshotSerializer
from tab_session.session.store import SessionStore
from tab_session.storage.base import SnapshotBackend
from tab_session.storage.gateway import PersistenceGateway
from tab_session.storage.memory import InMemoryBackend


# ---------------------------------------------------------------------------
# Fixtures and helpers
# ---------------------------------------------------------------------------


class FailingBackend(SnapshotBackend):
    def __init__(self, payload: str | None = None) -> None:
        self._payload = payload

    def read(self) -> str | None:
        return self._payload

    def write(self, payload: str) -> None:
        raise OSError("disk full")

    def delete(self) -> None:
        raise OSError("read-only")


class BlockingBackend(InMemoryBackend):
    """Backend whose ``read`` waits until released."""

    def __init__(self, initial_payload: str | None = None) -> None:
        super().__init__(initial_payload)
        self.release = threading.Event()

    def read(self) -> str | None:
        self.release.wait(timeout=5)
        return super().read()


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(start=10_000)


@pytest.fixture()
def backend() -> InMemoryBackend:
    return InMemoryBackend()


@pytest.fixture()
def store(backend: InMemoryBackend, clock: FixedClock) -> SessionStore:
    return SessionStore(PersistenceGateway(backend), clock=clock)


def _stored_payload(clock: FixedClock) -> str:
    """A snapshot with two tabs, the second active."""
    return json.dumps(
        {
            "version": 1,
            "savedAt": 1,
            "state": {
                "tabs": [
                    {"id": "saved-1", "url": "https://one.test"},
                    {"id": "saved-2", "url": "https://two.test"},
                ],
                "activeTabId": "saved-2",
                "suggestionHistory": ["one"],
            },
        }
    )


# ---------------------------------------------------------------------------
# Construction / reading
# ---------------------------------------------------------------------------


class TestStoreBasics:
    def test_starts_with_default_tab(self, store: SessionStore) -> None:
        assert len(store.state.tabs) == 1
        assert store.get_state() is store.state
        assert store.state.hydrated is False

    def test_select(self, store: SessionStore) -> None:
        assert store.select(active_tab) is store.state.tabs[0]

    def test_repr(self, store: SessionStore) -> None:
        assert "tabs=1" in repr(store)


# ---------------------------------------------------------------------------
# dispatch / subscribe
# ---------------------------------------------------------------------------


class TestDispatch:
    def test_dispatch_returns_new_state(self, store: SessionStore) -> None:
        result = store.dispatch(AddSuggestion(value="query"))
        assert result is store.state
        assert store.state.suggestion_history == ("query",)

    def test_listener_called_on_change(self, store: SessionStore) -> None:
        seen = []
        store.subscribe(seen.append)
        store.dispatch(AddSuggestion(value="query"))
        assert seen == [store.state]

    def test_listener_not_called_on_noop(self, store: SessionStore) -> None:
        seen = []
        store.subscribe(seen.append)
        store.dispatch(SetActiveTab(tab_id=store.state.active_tab_id or ""))
        assert seen == []

    def test_unsubscribe(self, store: SessionStore) -> None:
        seen = []
        unsubscribe = store.subscribe(seen.append)
        unsubscribe()
        unsubscribe()
        store.dispatch(AddSuggestion(value="query"))
        assert seen == []

    def test_failing_listener_is_logged(
        self, store: SessionStore, caplog: pytest.LogCaptureFixture
    ) -> None:
        def broken(state: object) -> None:
            raise RuntimeError("boom")

        seen = []
        store.subscribe(broken)
        store.subscribe(seen.append)
        with caplog.at_level(logging.ERROR):
            store.dispatch(AddSuggestion(value="query"))
        assert len(seen) == 1
        assert "listener" in caplog.text


# ---------------------------------------------------------------------------
# Synchronous hydration and persistence
# ---------------------------------------------------------------------------


class TestSyncHydration:
    def test_nothing_stored_marks_ready(
        self, store: SessionStore, backend: InMemoryBackend
    ) -> None:
        state = store.hydrate()
        assert state.hydrated is True
        assert len(state.tabs) == 1
        # SessionReady changed the reference, so the default state is saved.
        assert backend.write_count == 1

    def test_rehydrates_stored_snapshot(self, clock: FixedClock) -> None:
        backend = InMemoryBackend(_stored_payload(clock))
        store = SessionStore(PersistenceGateway(backend), clock=clock)
        state = store.hydrate()
        assert [tab.id for tab in state.tabs] == ["saved-1", "saved-2"]
        assert state.active_tab_id == "saved-2"
        assert state.suggestion_history == ("one",)

    def test_hydrate_runs_once(self, store: SessionStore, backend: InMemoryBackend) -> None:
        store.hydrate()
        backend.write(_stored_payload(FixedClock()))
        store.hydrate()
        assert len(store.state.tabs) == 1

    def test_version_mismatch_discarded(
        self, clock: FixedClock, caplog: pytest.LogCaptureFixture
    ) -> None:
        payload = json.dumps({"version": 99, "savedAt": 1, "state": {"tabs": [{"id": "old"}]}})
        store = SessionStore(PersistenceGateway(InMemoryBackend(payload)), clock=clock)
        with caplog.at_level(logging.WARNING):
            state = store.hydrate()
        assert state.hydrated is True
        assert [tab.id for tab in state.tabs] == ["tab-1"]
        assert "Discarding" in caplog.text

    def test_malformed_group_reference_does_not_crash(self, clock: FixedClock) -> None:
        payload = json.dumps(
            {
                "version": 1,
                "savedAt": 1,
                "state": {"tabs": [{"id": "A", "groupId": ["g"]}], "activeTabId": "A"},
            }
        )
        store = SessionStore(PersistenceGateway(InMemoryBackend(payload)), clock=clock)
        state = store.hydrate()
        assert state.hydrated is True
        assert state.active_tab_id == "A"
        assert state.tabs[0].group_id is None

    def test_corrupt_payload_discarded(self, clock: FixedClock) -> None:
        store = SessionStore(PersistenceGateway(InMemoryBackend("{broken")), clock=clock)
        state = store.hydrate()
        assert state.hydrated is True
        assert [tab.id for tab in state.tabs] == ["tab-1"]

    def test_no_save_before_hydration(
        self, store: SessionStore, backend: InMemoryBackend
    ) -> None:
        store.dispatch(AddSuggestion(value="early"))
        assert backend.write_count == 0

    def test_every_change_after_hydration_saved(
        self, store: SessionStore, backend: InMemoryBackend, clock: FixedClock
    ) -> None:
        store.hydrate()
        store.dispatch(AddSuggestion(value="query"))
        snapshot = SnapshotSerializer(clock).decode(backend.read() or "")
        assert snapshot["state"]["suggestionHistory"] == ["query"]
        assert backend.write_count == 2

    def test_noop_dispatch_not_saved(self, store: SessionStore, backend: InMemoryBackend) -> None:
        store.hydrate()
        writes = backend.write_count
        store.dispatch(SessionReady())
        store.dispatch(SetActiveTab(tab_id="ghost"))
        assert backend.write_count == writes

    def test_no_gateway_keeps_memory_only(self, clock: FixedClock) -> None:
        store = SessionStore(clock=clock)
        assert store.hydrate().hydrated is True
        store.dispatch(AddSuggestion(value="query"))
        assert store.clear_persisted() is True

    def test_save_failure_is_logged_and_swallowed(
        self, clock: FixedClock, caplog: pytest.LogCaptureFixture
    ) -> None:
        store = SessionStore(PersistenceGateway(FailingBackend()), clock=clock)
        with caplog.at_level(logging.WARNING):
            store.hydrate()
            store.dispatch(AddSuggestion(value="query"))
        assert store.state.suggestion_history == ("query",)
        assert "Unable to persist" in caplog.text

    def test_clear_persisted(self, store: SessionStore, backend: InMemoryBackend) -> None:
        store.hydrate()
        assert store.clear_persisted() is True
        assert backend.read() is None

    def test_clear_persisted_failure(self, clock: FixedClock) -> None:
        store = SessionStore(PersistenceGateway(FailingBackend()), clock=clock)
        assert store.clear_persisted() is False


# ---------------------------------------------------------------------------
# Teardown
# ---------------------------------------------------------------------------


class TestClose:
    def test_dispatch_ignored_after_close(self, store: SessionStore) -> None:
        store.hydrate()
        before = store.state
        store.close()
        assert store.dispatch(AddSuggestion(value="late")) is before
        assert store.closed is True

    def test_hydrate_after_close_is_noop(self, store: SessionStore) -> None:
        store.close()
        assert store.hydrate().hydrated is False

    def test_save_errors_silent_after_close(
        self, clock: FixedClock, caplog: pytest.LogCaptureFixture
    ) -> None:
        store = SessionStore(PersistenceGateway(FailingBackend()), clock=clock)
        store.close()
        with caplog.at_level(logging.WARNING):
            store._save("payload")
        assert "Unable to persist" not in caplog.text

    def test_save_without_gateway_is_noop(self, clock: FixedClock) -> None:
        store = SessionStore(clock=clock)
        store._save("payload")
        assert store.pending_saves == 0


# ---------------------------------------------------------------------------
# Async startup and background saves
# ---------------------------------------------------------------------------


class TestAsyncStore:
    @pytest.mark.asyncio
    async def test_async_save_without_gateway_is_noop(self, clock: FixedClock) -> None:
        store = SessionStore(clock=clock)
        await store._save_async("payload")
        await store.start()
        store.dispatch(AddSuggestion(value="a"))
        await store.flush()
        assert store.state.suggestion_history == ("a",)

    @pytest.mark.asyncio
    async def test_start_rehydrates(self, clock: FixedClock) -> None:
        backend = InMemoryBackend(_stored_payload(clock))
        store = SessionStore(PersistenceGateway(backend), clock=clock)
        state = await store.start()
        assert state.active_tab_id == "saved-2"
        assert state.hydrated is True
        await store.flush()

    @pytest.mark.asyncio
    async def test_saves_run_in_background(
        self, store: SessionStore, backend: InMemoryBackend
    ) -> None:
        await store.start()
        await store.flush()
        writes = backend.write_count
        store.dispatch(AddSuggestion(value="a"))
        store.dispatch(AddSuggestion(value="b"))
        assert backend.write_count == writes
        await store.flush()
        assert store.pending_saves == 0
        assert backend.write_count == writes + 2
        assert json.loads(backend.read() or "")["state"]["suggestionHistory"] == ["b", "a"]

    @pytest.mark.asyncio
    async def test_close_during_startup_discards_load(self, clock: FixedClock) -> None:
        backend = BlockingBackend(_stored_payload(clock))
        store = SessionStore(PersistenceGateway(backend), clock=clock)
        startup = asyncio.create_task(store.start())
        await asyncio.sleep(0)
        store.close()
        backend.release.set()
        state = await startup
        assert state.hydrated is False
        assert [tab.id for tab in state.tabs] == ["tab-1"]
        assert backend.write_count == 0

    @pytest.mark.asyncio
    async def test_background_save_failure_swallowed(
        self, clock: FixedClock, caplog: pytest.LogCaptureFixture
    ) -> None:
        store = SessionStore(PersistenceGateway(FailingBackend()), clock=clock)
        with caplog.at_level(logging.WARNING):
            await store.start()
            store.dispatch(AddSuggestion(value="query"))
            await store.flush()
        assert "Unable to persist" in caplog.text

    @pytest.mark.asyncio
    async def test_async_context_manager(self, clock: FixedClock) -> None:
        backend = InMemoryBackend()
        async with SessionStore(PersistenceGateway(backend), clock=clock) as store:
            SessionActions(store).record_suggestion("inside")
        assert store.closed is True
        assert json.loads(backend.read() or "")["state"]["suggestionHistory"] == ["inside"]
