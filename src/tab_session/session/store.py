"""Session store: the single owner of the live ``SessionState``.

The store is the only writer.  Callers read through ``state`` / ``select``
and write through ``dispatch`` (usually via ``SessionActions``); listeners
registered with ``subscribe`` are told about every state change.

Persistence is an effect of state changes: once the session is hydrated,
every dispatch that produces a new state reference serializes the complete
state and hands it to the gateway.  Inside a running event loop the save
is a background task that ``dispatch`` never waits for; without a loop it
runs inline.  Each save carries the full state, so whichever finishes last
is authoritative.

Classes
-------
- SessionStore  — dispatch / subscribe / startup hydration / save effect
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, TypeVar

from tab_session.session.actions import Rehydrate, SessionReady
from tab_session.session.clock import Clock, system_clock
from tab_session.session.factory import TabFactory
from tab_session.session.reducer import default_state, reduce
from tab_session.session.serializer import (
    SchemaVersionError,
    SnapshotDecodeError,
    SnapshotSerializer,
)
from tab_session.session.state import SessionState
from tab_session.storage.gateway import PersistenceError, PersistenceGateway

logger = logging.getLogger(__name__)

Listener = Callable[[SessionState], None]
T = TypeVar("T")


class SessionStore:
    """Own the session state, apply actions, and persist changes.

    Parameters
    ----------
    gateway:
        Persistence gateway.  None keeps the session in memory only.
    clock:
        Time source shared by the reducer, the tab factory and the
        serializer.
    factory:
        Tab factory used by the action facade.  A fresh one (with its own
        id counter) is created when omitted.
    serializer:
        Snapshot serializer.  Defaults to one using ``clock``.
    initial_state:
        Starting state.  Defaults to a single blank active tab.
    """

    def __init__(
        self,
        gateway: PersistenceGateway | None = None,
        *,
        clock: Clock = system_clock,
        factory: TabFactory | None = None,
        serializer: SnapshotSerializer | None = None,
        initial_state: SessionState | None = None,
    ) -> None:
        self._gateway = gateway
        self._clock = clock
        self._factory = factory or TabFactory(clock)
        self._serializer = serializer or SnapshotSerializer(clock)
        self._state = initial_state if initial_state is not None else default_state(clock=clock)
        self._listeners: list[Listener] = []
        self._pending_saves: set[asyncio.Task[None]] = set()
        self._started = False
        self._closed = False

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    def get_state(self) -> SessionState:
        """Return the current state (an immutable value)."""
        return self._state

    def select(self, selector: Callable[[SessionState], T]) -> T:
        """Apply ``selector`` to the current state and return its result."""
        return selector(self._state)

    @property
    def factory(self) -> TabFactory:
        return self._factory

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def dispatch(self, action: Any) -> SessionState:
        """Apply ``action`` and return the resulting state.

        Listeners and the persistence effect run only when the state
        reference changes.  After ``close`` dispatches are ignored.
        """
        if self._closed:
            logger.debug("Ignoring %s dispatched after close", type(action).__name__)
            return self._state
        previous = self._state
        next_state = reduce(previous, action, clock=self._clock)
        if next_state is previous:
            return previous
        self._state = next_state
        self._persist(next_state)
        for listener in list(self._listeners):
            try:
                listener(next_state)
            except Exception:  # noqa: BLE001
                logger.exception("Session listener %r failed", listener)
        return next_state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for state changes; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    def hydrate(self) -> SessionState:
        """Load the stored snapshot synchronously and finish startup.

        Only the first call (of ``hydrate`` or ``start``) has any effect.
        """
        if self._started or self._closed:
            return self._state
        self._started = True
        return self._finish_startup(self._load_payload())

    async def start(self) -> SessionState:
        """Load the stored snapshot in a worker thread and finish startup.

        If ``close`` is called while the load is in flight, the loaded
        result is discarded.
        """
        if self._started or self._closed:
            return self._state
        self._started = True
        payload = await asyncio.to_thread(self._load_payload)
        if self._closed:
            logger.debug("Store closed during startup; discarding loaded snapshot")
            return self._state
        return self._finish_startup(payload)

    def _load_payload(self) -> str | None:
        if self._gateway is None:
            return None
        try:
            return self._gateway.load()
        except PersistenceError as exc:
            logger.warning("Unable to load session snapshot: %s", exc)
            return None

    def _finish_startup(self, payload: str | None) -> SessionState:
        snapshot: dict[str, Any] | None = None
        if payload is not None:
            try:
                snapshot = self._serializer.decode(payload)
            except (SchemaVersionError, SnapshotDecodeError) as exc:
                logger.warning("Discarding stored session snapshot: %s", exc)
        if snapshot is None:
            return self.dispatch(SessionReady())
        logger.debug("Rehydrating session from snapshot saved at %r", snapshot.get("savedAt"))
        return self.dispatch(Rehydrate(snapshot=snapshot))

    # ------------------------------------------------------------------
    # Persistence effect
    # ------------------------------------------------------------------

    def _persist(self, state: SessionState) -> None:
        if self._gateway is None or not state.hydrated:
            return
        payload = self._serializer.to_json(state)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._save(payload)
            return
        task = loop.create_task(self._save_async(payload))
        self._pending_saves.add(task)
        task.add_done_callback(self._pending_saves.discard)

    def _save(self, payload: str) -> None:
        if self._gateway is None:
            return
        try:
            self._gateway.save(payload)
        except PersistenceError as exc:
            if not self._closed:
                logger.warning("Unable to persist session snapshot: %s", exc)

    async def _save_async(self, payload: str) -> None:
        if self._gateway is None:
            return
        try:
            await asyncio.to_thread(self._gateway.save, payload)
        except PersistenceError as exc:
            if not self._closed:
                logger.warning("Unable to persist session snapshot: %s", exc)

    @property
    def pending_saves(self) -> int:
        return sum(1 for task in self._pending_saves if not task.done())

    async def flush(self) -> None:
        """Wait for every in-flight background save to finish."""
        pending = [task for task in self._pending_saves if not task.done()]
        while pending:
            await asyncio.gather(*pending)
            pending = [task for task in self._pending_saves if not task.done()]

    def clear_persisted(self) -> bool:
        """Delete the stored snapshot; returns False if that failed."""
        if self._gateway is None:
            return True
        try:
            self._gateway.clear()
        except PersistenceError as exc:
            logger.warning("Unable to clear session snapshot: %s", exc)
            return False
        return True

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Mark the store torn down.

        A pending startup load is discarded when it resolves, later
        dispatches are ignored, and errors from in-flight saves are no
        longer logged.
        """
        self._closed = True
        self._listeners.clear()

    async def __aenter__(self) -> "SessionStore":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.flush()
        self.close()

    def __repr__(self) -> str:
        return (
            f"SessionStore(tabs={len(self._state.tabs)}, "
            f"hydrated={self._state.hydrated}, closed={self._closed})"
        )
