"""Unit tests for tab_session.session.factory."""
from __future__ import annotations

import pytest

from tab_session.session.clock import FixedClock
from tab_session.session.factory import CreateTabOptions, TabFactory, create_tab
from tab_session.session.state import BLANK_URL, DEFAULT_TAB_TITLE, TabStatus


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(start=1_000)


# ---------------------------------------------------------------------------
# create_tab
# ---------------------------------------------------------------------------


class TestCreateTab:
    def test_blank_tab_defaults(self, clock: FixedClock) -> None:
        tab = create_tab("t1", clock=clock)
        assert tab.url == BLANK_URL
        assert tab.title == DEFAULT_TAB_TITLE
        assert tab.page_title == DEFAULT_TAB_TITLE
        assert tab.address_value == BLANK_URL
        assert tab.address_input == ""
        assert tab.active is False
        assert tab.status is TabStatus.NORMAL
        assert tab.created_at == tab.last_active_at == 1_000

    def test_single_history_entry(self, clock: FixedClock) -> None:
        tab = create_tab("t1", clock=clock)
        assert tab.history_index == 0
        assert len(tab.history) == 1
        entry = tab.history[0]
        assert entry.id == "t1-history-1000"
        assert entry.url == BLANK_URL
        assert entry.timestamp == 1_000

    def test_url_sets_title_and_address_input(self, clock: FixedClock) -> None:
        tab = create_tab("t1", CreateTabOptions(url="https://example.com"), clock=clock)
        assert tab.title == "https://example.com"
        assert tab.address_input == "https://example.com"
        assert tab.history[0].title == "https://example.com"

    def test_explicit_options_win(self, clock: FixedClock) -> None:
        options = CreateTabOptions(
            url="https://example.com",
            title="Example",
            incognito=True,
            status=TabStatus.PINNED,
            group_id="g1",
            address_input="exa",
        )
        tab = create_tab("t1", options, clock=clock)
        assert tab.title == "Example"
        assert tab.incognito is True
        assert tab.is_pinned is True
        assert tab.group_id == "g1"
        assert tab.address_input == "exa"


# ---------------------------------------------------------------------------
# TabFactory
# ---------------------------------------------------------------------------


class TestTabFactory:
    def test_ids_are_sequential(self, clock: FixedClock) -> None:
        factory = TabFactory(clock)
        assert factory.next_id() == "tab-1000-1"
        assert factory.next_id() == "tab-1000-2"
        assert factory.sequence == 2

    def test_skips_taken_ids(self, clock: FixedClock) -> None:
        factory = TabFactory(clock)
        assert factory.next_id(taken={"tab-1000-1", "tab-1000-2"}) == "tab-1000-3"

    def test_factories_have_independent_counters(self, clock: FixedClock) -> None:
        first = TabFactory(clock)
        second = TabFactory(clock)
        first.next_id()
        first.next_id()
        assert second.next_id() == "tab-1000-1"

    def test_start_offset(self, clock: FixedClock) -> None:
        assert TabFactory(clock, start=10).next_id() == "tab-1000-11"

    def test_create_uses_minted_id(self, clock: FixedClock) -> None:
        tab = TabFactory(clock).create(CreateTabOptions(url="https://a.test"))
        assert tab.id == "tab-1000-1"
        assert tab.url == "https://a.test"
