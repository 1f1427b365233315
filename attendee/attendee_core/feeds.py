"""
Feed factories: one PagedCollection per list screen, plus the list actions
(mark notifications read, delete subscription, delete book) that edit a feed
after the backend confirms.
"""

from . import api
from .config import log
from .constants import BOOKS_PER_PAGE, DEFAULT_PER_PAGE, MSG_SIGNED_OUT
from .errors import ApiError, TransportError
from .notice import Notice
from .pagination import PagedCollection


def _per_page(config, name, default):
    return int((config.get("perPage") or {}).get(name, default))


def _user(tokens):
    user_id = tokens.get_token()
    if user_id is None:
        raise ApiError(MSG_SIGNED_OUT)
    return user_id


def books_feed(config, tokens, runner, search=lambda: "", **kwargs):
    per_page = _per_page(config, "books", BOOKS_PER_PAGE)

    def fetch(page):
        return api.fetch_books(config, _user(tokens), page, per_page, search())

    return PagedCollection("books", fetch, runner, **kwargs)


def book_events_feed(config, tokens, runner, book_id, **kwargs):
    def fetch(page):
        return api.fetch_book_details(config, _user(tokens), book_id, page)

    return PagedCollection("events", fetch, runner, **kwargs)


def notifications_feed(config, tokens, runner, **kwargs):
    per_page = _per_page(config, "notifications", DEFAULT_PER_PAGE)

    def fetch(page):
        return api.fetch_notifications(config, _user(tokens), page, per_page)

    return PagedCollection("notifications", fetch, runner, **kwargs)


def subscriptions_feed(config, tokens, runner, **kwargs):
    per_page = _per_page(config, "subscriptions", DEFAULT_PER_PAGE)

    def fetch(page):
        return api.fetch_subscriptions(config, _user(tokens), page, per_page)

    return PagedCollection("subscriptions", fetch, runner, **kwargs)


def history_feed(config, tokens, runner, **kwargs):
    per_page = _per_page(config, "history", DEFAULT_PER_PAGE)

    def fetch(page):
        return api.fetch_attendance_history(config, _user(tokens), page, per_page)

    return PagedCollection("attendance history", fetch, runner, **kwargs)


# ─── Feed actions ────────────────────────────────────────────────

def _error_text(error, fallback):
    if isinstance(error, TransportError) or not isinstance(error, ApiError):
        log.warning("%s: %s", fallback, error)
        return fallback
    return error.message


def mark_all_read(config, tokens, runner, feed):
    """Mark every notification seen; local items flip only after success."""
    def done(result, error):
        if error is not None:
            log.warning("Failed to mark notifications as seen: %s", error)
            return
        feed.map_items(lambda n: n.as_read())

    runner.submit(lambda: api.mark_notifications_read(config, _user(tokens)), done)


def remove_subscription(config, tokens, runner, feed, subscription_id, on_notice):
    def done(result, error):
        if error is not None:
            on_notice(Notice.error(_error_text(error, "Failed to delete subscription")))
            return
        feed.remove(subscription_id)
        on_notice(Notice.success("Subscription removed"))

    runner.submit(
        lambda: api.delete_subscription(config, _user(tokens), subscription_id), done,
    )


def remove_book(config, tokens, runner, feed, book_id, on_notice):
    def done(result, error):
        if error is not None:
            on_notice(Notice.error(_error_text(error, "Failed to delete book")))
            return
        feed.remove(book_id)
        on_notice(Notice.success("Attendance book deleted"))

    runner.submit(lambda: api.delete_book(config, _user(tokens), book_id), done)


def remove_event(config, tokens, runner, feed, column_id, on_notice):
    def done(result, error):
        if error is not None:
            on_notice(Notice.error(_error_text(error, "Failed to delete event")))
            return
        feed.remove(column_id)
        on_notice(Notice.success("Event deleted"))

    runner.submit(lambda: api.delete_column(config, _user(tokens), column_id), done)
