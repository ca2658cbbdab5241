"""Tab construction.

Classes
-------
- CreateTabOptions  — optional parameters for a new tab
- TabFactory        — id minting plus construction, with its own counter
"""
from __future__ import annotations

from collections.abc import Collection

from pydantic import BaseModel

from tab_session.session.clock import Clock, system_clock
from tab_session.session.state import (
    BLANK_URL,
    DEFAULT_TAB_TITLE,
    Tab,
    TabHistoryEntry,
    TabStatus,
)


class CreateTabOptions(BaseModel):
    """Optional parameters accepted by ``create_tab``.

    Every field left as None falls back to the value derived from ``url``.
    """

    url: str | None = None
    title: str | None = None
    incognito: bool = False
    status: TabStatus = TabStatus.NORMAL
    group_id: str | None = None
    address_input: str | None = None

    model_config = {"frozen": True}


def create_tab(
    tab_id: str,
    options: CreateTabOptions | None = None,
    *,
    clock: Clock = system_clock,
) -> Tab:
    """Build a new inactive tab with a single history entry.

    Parameters
    ----------
    tab_id:
        Identifier for the tab.  The caller guarantees uniqueness.
    options:
        Optional overrides; see ``CreateTabOptions``.
    clock:
        Source of ``created_at``.

    Returns
    -------
    Tab
        A tab positioned at history index 0.
    """
    options = options or CreateTabOptions()
    created_at = clock()
    url = options.url if options.url is not None else BLANK_URL
    is_home = url == BLANK_URL
    title = options.title if options.title is not None else (DEFAULT_TAB_TITLE if is_home else url)
    address_input = (
        options.address_input if options.address_input is not None else ("" if is_home else url)
    )
    return Tab(
        id=tab_id,
        title=title,
        url=url,
        address_value=url,
        address_input=address_input,
        page_title=title,
        status=options.status,
        incognito=options.incognito,
        group_id=options.group_id,
        history=(
            TabHistoryEntry(
                id=f"{tab_id}-history-{created_at}",
                url=url,
                title=title,
                timestamp=created_at,
            ),
        ),
        history_index=0,
        created_at=created_at,
        last_active_at=created_at,
    )


class TabFactory:
    """Mint unique tab ids and build tabs.

    Each factory owns its counter, so independent stores (or parallel test
    fixtures) never share sequence state.  Ids look like
    ``tab-<epoch-ms>-<seq>``.

    Parameters
    ----------
    clock:
        Time source for ids and ``created_at``.
    start:
        Initial counter value; the first id uses ``start + 1``.
    """

    def __init__(self, clock: Clock = system_clock, start: int = 0) -> None:
        self._clock = clock
        self._sequence = start

    @property
    def sequence(self) -> int:
        return self._sequence

    def next_id(self, taken: Collection[str] = ()) -> str:
        """Return a fresh id that is not in ``taken``."""
        while True:
            self._sequence += 1
            candidate = f"tab-{self._clock()}-{self._sequence}"
            if candidate not in taken:
                return candidate

    def create(
        self,
        options: CreateTabOptions | None = None,
        *,
        taken: Collection[str] = (),
    ) -> Tab:
        """Mint an id and build a tab with it."""
        return create_tab(self.next_id(taken), options, clock=self._clock)

    def __repr__(self) -> str:
        return f"TabFactory(sequence={self._sequence})"
