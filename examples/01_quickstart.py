#!/usr/bin/env python3
"""Example: Quickstart — tab-session

Minimal working example: open a few tabs, navigate, pin and close one,
then reopen it from the recently-closed buffer.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install tab-session
"""
from __future__ import annotations

import tab_session
from tab_session import (
    CreateTabOptions,
    InMemoryBackend,
    PersistenceGateway,
    SessionActions,
    SessionStore,
    selectors,
)


def main() -> None:
    print(f"tab-session version: {tab_session.__version__}")

    # Step 1: Build a store over an in-memory backend and finish startup
    store = SessionStore(PersistenceGateway(InMemoryBackend()))
    store.hydrate()
    actions = SessionActions(store)

    # Step 2: Open tabs and navigate
    docs = actions.add_tab(CreateTabOptions(url="https://docs.python.org/3/"))
    news = actions.add_tab(make_active=False)
    actions.navigate(news, "python release notes")
    print(f"Open tabs: {[tab.id for tab in store.state.tabs]}")
    print(f"Active tab: {selectors.active_tab(store.state).url}")  # type: ignore[union-attr]

    # Step 3: Pin the docs tab
    actions.toggle_pin(docs, True)
    print(f"Pinned: {[tab.id for tab in selectors.pinned_tabs(store.state)]}")

    # Step 4: Close and reopen
    actions.close_tab(news)
    print(f"Recently closed: {len(store.state.recently_closed)}")
    reopened = actions.reopen_recently_closed()
    print(f"Reopened {reopened} at {store.state.find_tab(reopened).url}")  # type: ignore[arg-type,union-attr]


if __name__ == "__main__":
    main()
