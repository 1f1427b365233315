from __future__ import annotations

from unittest import mock

import pytest

from attendee_core import api, http_client
from attendee_core.constants import (
    MSG_ALREADY_MARKED, MSG_CODE_LENGTH, MSG_EVENT_ERROR, MSG_NO_LOCATION, MSG_SIGNED_OUT,
)
from attendee_core.errors import ApiError, TransportError
from attendee_core.models import AttendanceEvent, GeoSample
from attendee_core.notice import BLOCKING, ERROR, SUCCESS
from attendee_core.session import AttendanceSession, SessionState


def _event(**overrides) -> AttendanceEvent:
    fields = dict(
        event_title="CHM101",
        location_label="Week 3",
        location_name="Hall B",
        checked_in_count=12,
        coordinates=GeoSample(7.22, 3.43),
        column_id=55,
    )
    fields.update(overrides)
    return AttendanceEvent(**fields)


class Recorder:
    def __init__(self):
        self.notices = []
        self.changes = 0
        self.haptics = 0

    def notice(self, n):
        self.notices.append(n)

    def change(self):
        self.changes += 1

    def haptic(self):
        self.haptics += 1


@pytest.fixture
def rec():
    return Recorder()


@pytest.fixture
def make_session(config, tokens, runner, scheduler, rec):
    def build(run=None):
        return AttendanceSession(
            config, tokens, run or runner, scheduler,
            on_change=rec.change, on_notice=rec.notice, haptic=rec.haptic,
        )
    return build


@pytest.fixture
def calls(monkeypatch):
    """Stub the three attendance endpoints and record their arguments."""
    log = {"details": [], "mark": [], "subscribe": []}
    state = {"event": _event(), "mark_error": None, "sub_error": None}

    def details(config, code, user_id):
        log["details"].append((code, user_id))
        return state["event"]

    def mark(config, column_id, user_id, lat, lon):
        log["mark"].append((column_id, user_id, lat, lon))
        if state["mark_error"]:
            raise state["mark_error"]
        return "ok"

    def subscribe(config, column_id, user_id, flag):
        log["subscribe"].append((column_id, flag))
        if state["sub_error"]:
            raise state["sub_error"]
        return "ok"

    monkeypatch.setattr(api, "get_event_details", details)
    monkeypatch.setattr(api, "mark_attendance", mark)
    monkeypatch.setattr(api, "set_subscription", subscribe)
    log["state"] = state
    return log


def _loaded(make_session, location=GeoSample(7.2201, 3.4301)):
    session = make_session()
    if location is not None:
        session.set_location(location)
    assert session.submit_code("048217")
    assert session.state is SessionState.EVENT_LOADED
    return session


# ─── Code entry ──────────────────────────────────────────────────

@pytest.mark.parametrize("code", ["", "1", "12345", "1234567", "12ab56", "      "])
def test_bad_code_issues_no_call_and_shows_length_error(make_session, calls, rec, code):
    session = make_session()

    assert session.submit_code(code) is False

    assert calls["details"] == []
    assert session.state is SessionState.CODE_ENTRY
    assert rec.notices[-1].kind == ERROR
    assert rec.notices[-1].text == MSG_CODE_LENGTH


def test_valid_code_loads_event(make_session, calls, rec):
    session = make_session()

    session.submit_code("048217")

    assert calls["details"] == [("048217", "42")]
    assert session.state is SessionState.EVENT_LOADED
    assert session.event.event_title == "CHM101"
    assert rec.notices == []


def test_already_marked_stays_in_code_entry_and_never_marks(make_session, calls, rec, scheduler):
    calls["state"]["event"] = _event(already_marked=True)
    session = make_session()
    session.set_location(GeoSample(1.0, 2.0))

    session.submit_code("048217")
    assert session.state is SessionState.CODE_ENTRY
    assert rec.notices[-1].text == MSG_ALREADY_MARKED

    assert session.press_start() is False
    scheduler.advance(1000)
    assert calls["mark"] == []


def test_backend_rejection_shows_message_verbatim(make_session, monkeypatch, rec):
    def details(config, code, user_id):
        raise ApiError("Invalid attendance code")

    monkeypatch.setattr(api, "get_event_details", details)
    session = make_session()

    session.submit_code("111111")

    assert session.state is SessionState.CODE_ENTRY
    assert rec.notices[-1].text == "Invalid attendance code"


def test_transport_failure_shows_generic_text(make_session, monkeypatch, rec):
    def details(config, code, user_id):
        raise TransportError("connection reset")

    monkeypatch.setattr(api, "get_event_details", details)
    session = make_session()

    session.submit_code("111111")

    assert rec.notices[-1].text == "Error fetching event details"


def test_submit_ignored_while_lookup_in_flight(make_session, manual_runner, calls):
    session = make_session(manual_runner)

    assert session.submit_code("048217") is True
    assert session.lookup_pending
    assert session.submit_code("048217") is False
    assert len(manual_runner.queue) == 1

    manual_runner.complete()
    assert session.state is SessionState.EVENT_LOADED
    assert not session.lookup_pending


def test_no_token_blocks_lookup(make_session, calls, tokens, rec):
    tokens.clear_token()
    session = make_session()

    assert session.submit_code("048217") is False
    assert calls["details"] == []
    assert rec.notices[-1].kind == ERROR
    assert rec.notices[-1].text == MSG_SIGNED_OUT


# ─── Subscription toggle ─────────────────────────────────────────

def test_toggle_sends_subscribe_then_unsubscribe(make_session, calls, rec):
    session = _loaded(make_session)
    assert session.event.subscribed is False

    session.toggle_subscription()
    assert calls["subscribe"] == [(55, True)]
    assert session.event.subscribed is True
    assert rec.notices[-1].kind == SUCCESS

    session.toggle_subscription()
    assert calls["subscribe"] == [(55, True), (55, False)]
    assert session.event.subscribed is False


def test_toggle_flag_changes_only_after_success(make_session, manual_runner, calls):
    session = make_session(manual_runner)
    session.submit_code("048217")
    manual_runner.complete()

    session.toggle_subscription()
    assert session.event.subscribed is False   # request still in flight

    manual_runner.complete()
    assert session.event.subscribed is True


def test_toggle_failure_leaves_flag(make_session, calls, rec):
    calls["state"]["sub_error"] = ApiError("Failed to update subscription")
    session = _loaded(make_session)

    session.toggle_subscription()

    assert session.event.subscribed is False
    assert rec.notices[-1].text == "Failed to update subscription"


# ─── Long press ──────────────────────────────────────────────────

def test_progress_steps_by_ten_every_twenty_ms(make_session, calls, scheduler):
    session = _loaded(make_session)
    seen = []

    session.press_start()
    assert session.state is SessionState.CONFIRMING
    for _ in range(9):
        seen.append(session.progress)
        scheduler.advance(20)
        assert calls["mark"] == []
    seen.append(session.progress)

    assert seen == [0, 10, 20, 30, 40, 50, 60, 70, 80, 90]

    scheduler.advance(20)
    assert session.progress == 100
    assert len(calls["mark"]) == 1


def test_completed_press_marks_exactly_once(make_session, calls, scheduler):
    session = _loaded(make_session)

    session.press_start()
    scheduler.advance(5000)

    assert len(calls["mark"]) == 1
    assert session.state is SessionState.MARKED
    assert scheduler.pending == 0


def test_release_before_complete_resets_without_calls(make_session, calls, scheduler, rec):
    session = _loaded(make_session)

    session.press_start()
    scheduler.advance(100)
    assert session.progress == 50

    assert session.press_release() is True
    assert session.progress == 0
    assert session.state is SessionState.EVENT_LOADED
    assert scheduler.pending == 0

    scheduler.advance(1000)
    assert calls["mark"] == []
    assert rec.haptics == 1


def test_release_while_mark_in_flight_is_ignored(make_session, manual_runner, calls, scheduler):
    session = make_session(manual_runner)
    session.set_location(GeoSample(7.0, 3.0))
    session.submit_code("048217")
    manual_runner.complete()

    session.press_start()
    scheduler.advance(200)
    assert session.mark_pending

    assert session.press_release() is False
    assert session.state is SessionState.CONFIRMING
    assert session.progress == 100

    manual_runner.complete()
    assert session.state is SessionState.MARKED


def test_missing_location_aborts_without_mark(make_session, calls, scheduler, rec):
    session = _loaded(make_session, location=None)

    session.press_start()
    scheduler.advance(200)

    assert calls["mark"] == []
    assert session.state is SessionState.EVENT_LOADED
    assert session.progress == 0
    assert rec.notices[-1].text == MSG_NO_LOCATION


def test_mark_failure_returns_to_event_loaded(make_session, calls, scheduler, rec):
    calls["state"]["mark_error"] = ApiError("You are outside the event radius")
    session = _loaded(make_session)

    session.press_start()
    scheduler.advance(200)

    assert session.state is SessionState.EVENT_LOADED
    assert session.progress == 0
    assert rec.notices[-1].text == "You are outside the event radius"

    # A second attempt is allowed.
    calls["state"]["mark_error"] = None
    session.press_start()
    scheduler.advance(200)
    assert session.state is SessionState.MARKED
    assert len(calls["mark"]) == 2


def test_location_failure_is_blocking(make_session, rec):
    session = make_session()

    session.location_failed(RuntimeError("Location permission is required"))

    assert rec.notices[-1].kind == BLOCKING
    assert rec.notices[-1].title == "Permission Needed"


# ─── Done / teardown ─────────────────────────────────────────────

def test_done_resets_to_code_entry(make_session, calls, scheduler):
    session = _loaded(make_session)
    session.press_start()
    scheduler.advance(200)
    assert session.state is SessionState.MARKED

    assert session.done() is True

    assert session.state is SessionState.CODE_ENTRY
    assert session.event is None
    assert session.code == ""
    assert session.progress == 0
    assert session.location is not None


def test_done_outside_marked_is_noop(make_session, calls):
    session = _loaded(make_session)
    assert session.done() is False
    assert session.state is SessionState.EVENT_LOADED


def test_teardown_stops_countdown_and_ignores_late_results(make_session, manual_runner,
                                                           calls, scheduler, rec):
    session = make_session(manual_runner)
    session.submit_code("048217")
    session.teardown()

    manual_runner.complete()
    assert session.state is SessionState.CODE_ENTRY
    assert rec.notices == []

    other = make_session()
    other.submit_code("048217")
    other.press_start()
    scheduler.advance(40)
    other.teardown()
    assert scheduler.pending == 0
    scheduler.advance(1000)
    assert calls["mark"] == []


# ─── End to end over the HTTP layer ──────────────────────────────

def _response(body):
    resp = mock.Mock()
    resp.status_code = 200
    resp.json.return_value = body
    resp.text = str(body)
    return resp


def test_code_to_marked_end_to_end(config, tokens, runner, scheduler, monkeypatch):
    fake_http = mock.Mock()
    fake_http.post.side_effect = [
        _response({"status": 1, "data": {
            "book_title": "CHM101", "column_id": 55, "hasMarkedAttendance": False,
            "latitude": "7.22", "longitude": "3.43",
        }}),
        _response({"status": 1}),
    ]
    monkeypatch.setattr(http_client, "http", fake_http)
    session = AttendanceSession(config, tokens, runner, scheduler)
    session.set_location(GeoSample(7.2201, 3.4301))

    session.submit_code("048217")
    assert session.state is SessionState.EVENT_LOADED
    assert session.event.event_title == "CHM101"
    assert session.event.coordinates == GeoSample(7.22, 3.43)

    session.press_start()
    scheduler.advance(1000)

    assert session.state is SessionState.MARKED
    assert fake_http.post.call_count == 2
    body = fake_http.post.call_args_list[1].kwargs["json"]
    assert body["action"] == "mark_attendance"
    assert body["book_column_id"] == 55
    assert body["latitude"] == 7.2201
    assert body["longitude"] == 3.4301
    assert body["user_id"] == "42"


def test_http_error_body_message_reaches_the_user(config, tokens, runner, scheduler, monkeypatch):
    fake_http = mock.Mock()
    fake_http.post.return_value = _response({"status": 0, "message": "This event has closed"})
    fake_http.post.return_value.status_code = 410
    monkeypatch.setattr(http_client, "http", fake_http)
    notices = []
    session = AttendanceSession(config, tokens, runner, scheduler, on_notice=notices.append)

    session.submit_code("048217")

    assert session.state is SessionState.CODE_ENTRY
    assert notices[-1].text == "This event has closed"


def test_http_error_without_body_uses_generic_text(config, tokens, runner, scheduler, monkeypatch):
    fake_http = mock.Mock()
    fake_http.post.return_value = _response({})
    fake_http.post.return_value.status_code = 502
    fake_http.post.return_value.json.side_effect = ValueError("bad gateway page")
    monkeypatch.setattr(http_client, "http", fake_http)
    notices = []
    session = AttendanceSession(config, tokens, runner, scheduler, on_notice=notices.append)

    session.submit_code("048217")

    assert notices[-1].text == MSG_EVENT_ERROR
