from __future__ import annotations

from dataclasses import dataclass

import pytest

from attendee_core.errors import ApiError, TransportError
from attendee_core.models import PageResult
from attendee_core.notice import ERROR
from attendee_core.pagination import PagedCollection


@dataclass(frozen=True)
class Row:
    id: int
    label: str = ""


class FakePages:
    """page number → PageResult (or exception); records every request."""

    def __init__(self, pages):
        self.pages = pages
        self.requested: list[int] = []

    def __call__(self, page):
        self.requested.append(page)
        outcome = self.pages[page]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _page(ids, current, total):
    return PageResult.from_counts([Row(i) for i in ids], current, total)


def _ids(feed):
    return [r.id for r in feed.items]


@pytest.fixture
def notices():
    return []


def _feed(fetch, runner, notices, **kwargs):
    return PagedCollection("books", fetch, runner, on_notice=notices.append, **kwargs)


def test_reset_then_append_keeps_server_order(runner, notices):
    fetch = FakePages({1: _page([1, 2, 3], 1, 3), 2: _page([4, 5], 2, 3)})
    feed = _feed(fetch, runner, notices)

    feed.fetch_page(1, reset=True)
    feed.fetch_page(2, reset=False)

    assert _ids(feed) == [1, 2, 3, 4, 5]
    assert feed.page == 2
    assert feed.has_more is True
    assert notices == []


def test_append_drops_ids_already_present(runner, notices):
    fetch = FakePages({1: _page([1, 2, 3], 1, 2), 2: _page([3, 4, 4], 2, 2)})
    feed = _feed(fetch, runner, notices)

    feed.load_more()
    feed.load_more()

    assert _ids(feed) == [1, 2, 3, 4]
    assert len({r.id for r in feed.items}) == len(feed.items)


def test_append_without_dedupe_keeps_duplicates(runner, notices):
    fetch = FakePages({1: _page([1, 2], 1, 2), 2: _page([2, 3], 2, 2)})
    feed = _feed(fetch, runner, notices, dedupe=False)

    feed.load_more()
    feed.load_more()

    assert _ids(feed) == [1, 2, 2, 3]


def test_load_more_while_loading_makes_no_call(manual_runner, notices):
    fetch = FakePages({1: _page([1, 2], 1, 3), 2: _page([3], 2, 3)})
    feed = _feed(fetch, manual_runner, notices)

    assert feed.load_more() is True
    assert feed.is_loading
    assert feed.load_more() is False
    assert len(manual_runner.queue) == 1

    manual_runner.complete()
    assert feed.page == 1
    assert fetch.requested == [1]


def test_load_more_stops_after_last_page(runner, notices):
    fetch = FakePages({1: _page([1], 1, 2), 2: _page([2], 2, 2)})
    feed = _feed(fetch, runner, notices)

    assert feed.load_more()
    assert feed.load_more()
    assert feed.has_more is False
    assert feed.load_more() is False
    assert fetch.requested == [1, 2]


def test_first_load_more_is_a_page_one_reset(runner, notices):
    fetch = FakePages({1: _page([7, 8], 1, 1)})
    feed = _feed(fetch, runner, notices)

    feed.load_more()

    assert fetch.requested == [1]
    assert feed.loaded
    assert _ids(feed) == [7, 8]


def test_refresh_replaces_items_and_resets_page(runner, notices):
    pages = {1: _page([1, 2], 1, 2), 2: _page([3], 2, 2)}
    fetch = FakePages(pages)
    feed = _feed(fetch, runner, notices)
    feed.load_more()
    feed.load_more()
    assert _ids(feed) == [1, 2, 3]

    pages[1] = _page([9, 1], 1, 2)
    feed.refresh()

    assert _ids(feed) == [9, 1]
    assert feed.page == 1
    assert feed.has_more is True


def test_refresh_runs_even_while_loading(manual_runner, notices):
    fetch = FakePages({1: _page([1], 1, 2), 2: _page([2], 2, 2)})
    feed = _feed(fetch, manual_runner, notices)
    feed.load_more()
    manual_runner.complete()

    feed.load_more()
    feed.refresh()
    assert len(manual_runner.queue) == 2

    # The page-2 append lands first, then the reset wins.
    manual_runner.complete()
    manual_runner.complete()
    assert _ids(feed) == [1]
    assert feed.page == 1


def test_backend_error_leaves_items_and_reports_message(runner, notices):
    fetch = FakePages({1: _page([1, 2], 1, 3), 2: ApiError("No more books for you")})
    feed = _feed(fetch, runner, notices)
    feed.load_more()

    feed.load_more()

    assert _ids(feed) == [1, 2]
    assert feed.page == 1
    assert feed.has_more is True
    assert feed.is_loading is False
    assert notices[-1].kind == ERROR
    assert notices[-1].text == "No more books for you"


def test_transport_error_uses_generic_text(runner, notices):
    fetch = FakePages({1: TransportError("timed out")})
    feed = _feed(fetch, runner, notices)

    feed.load_more()

    assert feed.items == []
    assert feed.loaded is False
    assert notices[-1].text == "Failed to load books. Please try again."


def test_meta_is_kept_from_latest_page(runner, notices):
    first = PageResult([Row(1)], 1, 1, True, meta={"name": "CHM101"})
    second = PageResult([Row(2)], 2, 2, False)
    fetch = FakePages({1: first, 2: second})
    feed = _feed(fetch, runner, notices)

    feed.load_more()
    feed.load_more()

    assert feed.meta == {"name": "CHM101"}
    assert _ids(feed) == [1, 2]


def test_remove_and_map_items_notify(runner, notices):
    changes = []
    fetch = FakePages({1: _page([1, 2, 3], 1, 1)})
    feed = PagedCollection("subscriptions", fetch, runner,
                           on_change=lambda: changes.append(1))
    feed.load_more()
    before = len(changes)

    feed.remove(2)
    feed.remove(99)
    assert _ids(feed) == [1, 3]
    assert len(changes) == before + 1

    feed.map_items(lambda r: Row(r.id, "seen"))
    assert [r.label for r in feed.items] == ["seen", "seen"]
