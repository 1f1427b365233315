"""
Backend API calls — attendance, books, notifications, subscriptions, auth.

All functions are blocking (run from worker threads via tasks.BackgroundRunner,
never directly from the Tk main thread). They return parsed models and raise
ApiError / TransportError; screens decide how a failure is shown.
"""

from .config import log
from .constants import (
    BOOKS_PER_PAGE, DEFAULT_PER_PAGE, MSG_INVALID_CODE, MSG_MARK_FAILED,
    MSG_SUBSCRIBE_FAILED,
)
from .http_client import post_json, get_json
from .models import (
    AttendanceEvent, Book, BookDetails, BookEvent, HistoryRecord,
    Notification, PageResult, Profile, Subscription,
)


# ─── Attendance ──────────────────────────────────────────────────

def get_event_details(config, code, user_id):
    """Resolve a 6-digit shortcode to its event."""
    data = post_json(config, "/attendance/attendance", {
        "action": "get_event_details",
        "identifier_type": "shortcode",
        "identifier": code,
        "user_id": user_id,
    }, fallback=MSG_INVALID_CODE)
    event = AttendanceEvent.from_api(data.get("data") or {})
    log.info("Event resolved | code=%s | column=%s | marked=%s",
             code, event.column_id, event.already_marked)
    return event


def mark_attendance(config, column_id, user_id, latitude, longitude):
    """Record attendance for one column at the given position."""
    data = post_json(config, "/attendance/attendance", {
        "action": "mark_attendance",
        "book_column_id": column_id,
        "user_id": user_id,
        "latitude": latitude,
        "longitude": longitude,
    }, fallback=MSG_MARK_FAILED)
    log.info("Attendance marked | column=%s", column_id)
    return data.get("message", "")


def set_subscription(config, column_id, user_id, subscribe):
    """Subscribe to (or unsubscribe from) the book that owns ``column_id``."""
    data = post_json(config, "/attendance/subscribe", {
        "action": "subscribe" if subscribe else "unsubscribe",
        "book_column_id": column_id,
        "user_id": user_id,
    }, fallback=MSG_SUBSCRIBE_FAILED)
    return data.get("message", "")


def fetch_attendance_history(config, user_id, page=1, per_page=DEFAULT_PER_PAGE):
    """
    Attendance history in the order the server returns it.

    Older backends return the whole history without pagination fields; that
    is treated as a single final page.
    """
    data = post_json(config, "/attendance/attendance-history", {
        "user_id": user_id,
        "page": page,
        "per_page": per_page,
    }, fallback="Failed to load attendance history")
    records = [HistoryRecord.from_api(r) for r in data.get("data") or []]
    pagination = data.get("pagination") or {}
    return PageResult.from_counts(
        records,
        pagination.get("current_page", page),
        pagination.get("total_pages", data.get("total_pages", page)),
    )


# ─── Books & events ──────────────────────────────────────────────

def fetch_books(config, user_id, page=1, per_page=BOOKS_PER_PAGE, search="",
                sort_by="created_at", sort_order="DESC"):
    data = post_json(config, "/book/books", {
        "user_id": user_id,
        "search": search,
        "page": page,
        "per_page": per_page,
        "sort_by": sort_by,
        "sort_order": sort_order,
    }, fallback="Failed to load books")
    pagination = data.get("pagination") or {}
    return PageResult.from_counts(
        [Book.from_api(b) for b in data.get("data") or []],
        pagination.get("current_page", page),
        pagination.get("total_pages", page),
    )


def fetch_book_details(config, user_id, book_id, page=1):
    """PageResult of BookEvent; ``meta`` carries the BookDetails header."""
    data = post_json(config, "/book/book-details", {
        "user_id": user_id,
        "book_id": book_id,
        "page": page,
    }, fallback="Failed to fetch book details", body_pass=False)
    pagination = data.get("pagination") or {}
    return PageResult(
        records=[BookEvent.from_api(e) for e in data.get("events") or []],
        current_page=page,
        total_pages=page,
        has_more=bool(pagination.get("hasMore")),
        meta=BookDetails.from_api(data.get("bookDetails") or {}),
    )


def create_book(config, user_id, name, description="", level=""):
    data = post_json(config, "/book/create", {
        "user_id": user_id,
        "book_name": name,
        "description": description,
        "level": level,
    }, fallback="Failed to create attendance book", body_pass=False)
    log.info("Book created: %s", name)
    return data.get("book_id") or (data.get("data") or {}).get("book_id")


def create_column(config, user_id, book_id, column):
    """
    Create one event (column) in a book.

    ``column`` is an events.ColumnSpec; its payload() carries the time window,
    geofence radius and optional coordinates.
    """
    payload = {"book_id": book_id, "user_id": user_id}
    payload.update(column.payload())
    data = post_json(config, "/book/create-column", payload,
                     fallback="Failed to create book column", body_pass=False)
    log.info("Column created in book %s: %s", book_id, column.column_name)
    return data.get("message", "")


def delete_book(config, user_id, book_id):
    post_json(config, "/book/delete-book", {
        "user_id": user_id,
        "book_id": book_id,
    }, fallback="Failed to delete book", body_pass=False)
    log.info("Book deleted: %s", book_id)


def delete_column(config, user_id, column_id):
    post_json(config, "/book/delete-column", {
        "user_id": user_id,
        "book_column_id": column_id,
    }, fallback="Failed to delete event", body_pass=False)
    log.info("Column deleted: %s", column_id)


# ─── Notifications & subscriptions ───────────────────────────────

def fetch_notifications(config, user_id, page=1, per_page=DEFAULT_PER_PAGE):
    data = post_json(config, "/user/notifications", {
        "user_id": user_id,
        "page": page,
        "per_page": per_page,
    }, fallback="Failed to load notifications")
    return PageResult.from_counts(
        [Notification.from_api(n) for n in data.get("notifications") or []],
        page,
        data.get("total_pages", page),
    )


def mark_notifications_read(config, user_id):
    post_json(config, "/user/mark-read", {"user_id": user_id},
              fallback="Failed to mark notifications as seen")


def fetch_subscriptions(config, user_id, page=1, per_page=DEFAULT_PER_PAGE):
    data = post_json(config, "/user/subscriptions", {
        "user_id": user_id,
        "page": page,
        "per_page": per_page,
        "action": "list_subscriptions",
    }, fallback="Failed to load subscriptions", body_pass=False)
    return PageResult.from_counts(
        [Subscription.from_api(s) for s in data.get("subscriptions") or []],
        page,
        data.get("total_pages", page),
    )


def delete_subscription(config, user_id, subscription_id):
    post_json(config, "/user/subscriptions", {
        "action": "delete_subscription",
        "user_id": user_id,
        "subscription_id": subscription_id,
    }, fallback="Failed to delete subscription", body_pass=False)
    log.info("Subscription deleted: %s", subscription_id)


# ─── Profile & auth ──────────────────────────────────────────────

def fetch_profile(config, user_id):
    data = post_json(config, "/user/user", {"user_id": user_id},
                     fallback="Failed to fetch user profile")
    return Profile.from_api(data.get("data") or {})


def edit_profile(config, user_id, fields):
    payload = {"user_id": user_id}
    payload.update(fields)
    data = post_json(config, "/user/edit-profile", payload,
                     fallback="Profile update failed", body_pass=False)
    return data.get("message", "")


def login(config, username, password):
    """Returns the user id the backend issues as the session token."""
    data = post_json(config, "/auth/login", {
        "username": username,
        "password": password,
        "func": "login",
    }, fallback="Login failed")
    return str(data["uid"])


def signup(config, fields):
    payload = {"func": "signup"}
    payload.update(fields)
    data = post_json(config, "/auth/signup", payload,
                     fallback="Signup failed", body_pass=False)
    return str(data["uid"])


def logout(config, user_id):
    """
    Ask the backend whether this user may log out.

    The endpoint inverts the usual convention: ``status == 0`` means allowed
    (no attendance marked in the last two hours).
    """
    data = post_json(config, "/user/logout", {"user_id": user_id},
                     body_pass=False, check_status=False)
    return str(data.get("status")) == "0"


# ─── Reference data ──────────────────────────────────────────────

def fetch_universities(config):
    return get_json(config, "/resources/universities",
                    fallback="Failed to load universities").get("data") or []


def fetch_faculties(config, university_id):
    return get_json(config, "/resources/faculties",
                    params={"universityId": university_id},
                    fallback="Failed to load faculties").get("data") or []


def fetch_departments(config, university_id, faculty_id):
    return get_json(config, "/resources/departments",
                    params={"universityId": university_id, "facultyId": faculty_id},
                    fallback="Failed to load departments").get("data") or []


def check_app_version(config, current_version, platform_name):
    """Raw version-check body; updates.evaluate_update() interprets it."""
    return get_json(config, "/version", params={
        "currentVersion": current_version,
        "platform": platform_name,
    }, check_status=False)
