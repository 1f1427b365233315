"""
PagedCollection — infinite-scroll list state shared by every list screen.

One instance per screen (books, book events, notifications, subscriptions,
history), parameterized by a page fetcher and a de-duplication policy.
All mutations happen on the Tk main thread; the fetch itself runs on the
BackgroundRunner.

Visible items are always the most recently completed reset fetch plus the
pages appended after it. refresh() does not cancel an in-flight load_more();
whichever completes last wins.
"""

from .config import log
from .errors import ApiError, TransportError
from .notice import Notice


def _by_id(record):
    return record.id


class PagedCollection:
    def __init__(self, name, fetch_page, runner, on_change=None, on_notice=None,
                 dedupe=True, key=_by_id):
        """
        fetch_page(page) → models.PageResult, blocking, raises ApiError.
        name is only used in log lines and the fallback error text.
        """
        self.name = name
        self._fetch = fetch_page
        self._runner = runner
        self._on_change = on_change or (lambda: None)
        self._on_notice = on_notice or (lambda notice: None)
        self._dedupe = dedupe
        self._key = key

        self.items = []
        self.meta = None
        self.page = 1
        self.has_more = True
        self.is_loading = False
        self.loaded = False

    # ─── Public operations ───────────────────────────────────

    def fetch_page(self, page, reset=False):
        """Request ``page``; reset replaces the items, otherwise append."""
        self.is_loading = True
        self._on_change()
        log.info("%s: fetching page %d (reset=%s)", self.name, page, reset)
        self._runner.submit(
            lambda: self._fetch(page),
            lambda result, error: self._apply(page, reset, result, error),
        )

    def load_more(self):
        """Next page for scroll-to-end. Returns False when nothing was requested."""
        if self.is_loading or not self.has_more:
            return False
        if not self.loaded:
            self.fetch_page(1, reset=True)
        else:
            self.fetch_page(self.page + 1, reset=False)
        return True

    def refresh(self):
        """Pull-to-refresh / new search term: always a page-1 reset."""
        self.fetch_page(1, reset=True)

    def remove(self, record_id):
        """Drop a record after the backend confirmed its deletion."""
        before = len(self.items)
        self.items = [r for r in self.items if self._key(r) != record_id]
        if len(self.items) != before:
            self._on_change()

    def map_items(self, fn):
        """Replace every item with fn(item), e.g. marking notifications read."""
        self.items = [fn(r) for r in self.items]
        self._on_change()

    # ─── Completion (main thread) ────────────────────────────

    def _apply(self, page, reset, result, error):
        self.is_loading = False

        if error is not None:
            self._report(error)
            self._on_change()
            return

        incoming = list(result.records)
        if reset:
            self.items = self._unique(incoming, set())
        else:
            seen = {self._key(r) for r in self.items} if self._dedupe else set()
            self.items = self.items + self._unique(incoming, seen)

        self.page = result.current_page or page
        self.has_more = bool(result.has_more)
        if result.meta is not None:
            self.meta = result.meta
        self.loaded = True
        log.info("%s: page %d applied, %d items, has_more=%s",
                 self.name, self.page, len(self.items), self.has_more)
        self._on_change()

    def _unique(self, records, seen):
        if not self._dedupe:
            return records
        out = []
        for record in records:
            k = self._key(record)
            if k in seen:
                continue
            seen.add(k)
            out.append(record)
        return out

    def _report(self, error):
        if isinstance(error, TransportError):
            log.warning("%s: transport error: %s", self.name, error)
            text = f"Failed to load {self.name}. Please try again."
        elif isinstance(error, ApiError):
            log.info("%s: backend error: %s", self.name, error.message)
            text = error.message
        else:
            log.error("%s: unexpected error: %s", self.name, error, exc_info=error)
            text = f"Failed to load {self.name}. Please try again."
        self._on_notice(Notice.error(text))
