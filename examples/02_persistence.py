#!/usr/bin/env python3
"""Example: Persistence across restarts

Runs two "processes" against the same snapshot file: the first builds a
session and saves it in the background, the second rehydrates it.

Usage:
    python examples/02_persistence.py

Requirements:
    pip install tab-session
"""
from __future__ import annotations

import asyncio
import tempfile
from pathlib import Path

from tab_session import (
    CreateTabOptions,
    FilesystemBackend,
    PersistenceGateway,
    SessionActions,
    SessionStore,
    SnapshotSerializer,
)


async def first_run(path: Path) -> None:
    async with SessionStore(PersistenceGateway(FilesystemBackend(path))) as store:
        actions = SessionActions(store)
        actions.upsert_group("research", "Research", color="blue")
        tab_id = actions.add_tab(CreateTabOptions(url="https://arxiv.org", group_id="research"))
        actions.append_chat_message(tab_id, "user", "Summarize the latest papers")
        actions.update_settings(permission_policy={"camera": "block"})
        print(f"First run: {len(store.state.tabs)} tabs, pending saves={store.pending_saves}")


async def second_run(path: Path) -> None:
    async with SessionStore(PersistenceGateway(FilesystemBackend(path))) as store:
        state = store.state
        print(f"Second run: {len(state.tabs)} tabs, active={state.active_tab_id}")
        print(f"  groups: {list(state.tab_groups)}")
        print(f"  camera policy: {state.settings.permission_policy.camera.value}")
        print(SnapshotSerializer().to_yaml(state)[:200])


def main() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "session.json"
        asyncio.run(first_run(path))
        asyncio.run(second_run(path))


if __name__ == "__main__":
    main()
