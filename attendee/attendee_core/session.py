"""
AttendanceSession — explicit state machine for marking one attendance.

  CODE_ENTRY ──submit_code──▶ EVENT_LOADED ──press_start──▶ CONFIRMING
       ▲                          ▲   │ toggle_subscription      │
       │                          │   └──────────┘               │ 100%
       │                          └──── release / mark failed ───┤
       └────────────── done() ◀──── MARKED ◀──── mark ok ────────┘

Replaces the old scattered flags (isCodeSubmitted, isAttendanceMarked) so
impossible combinations cannot be represented. All methods run on the Tk
main thread; network calls go through the injected runner.
"""

import enum

from . import api
from .config import log
from .constants import (
    SHORTCODE_LENGTH, MSG_CODE_LENGTH, MSG_ALREADY_MARKED, MSG_EVENT_ERROR,
    MSG_MARK_ERROR, MSG_NO_LOCATION, MSG_SIGNED_OUT, MSG_SUBSCRIBE_ERROR,
    MSG_SUBSCRIBED, MSG_UNSUBSCRIBED,
)
from .errors import ApiError, TransportError
from .notice import Notice
from .tasks import LongPressCountdown


class SessionState(enum.Enum):
    CODE_ENTRY = "code_entry"
    EVENT_LOADED = "event_loaded"
    CONFIRMING = "confirming"
    MARKED = "marked"


def _failure_text(error, transport_fallback):
    """Backend message verbatim; generic text for transport failures."""
    if isinstance(error, TransportError):
        log.warning("Transport failure: %s", error)
        return transport_fallback
    if isinstance(error, ApiError):
        log.info("Backend rejected request: %s", error.message)
        return error.message
    log.error("Unexpected failure: %s", error, exc_info=error)
    return transport_fallback


class AttendanceSession:
    def __init__(self, config, tokens, runner, scheduler,
                 on_change=None, on_notice=None, haptic=None):
        self._config = config
        self._tokens = tokens
        self._runner = runner
        self._on_change = on_change or (lambda: None)
        self._on_notice = on_notice or (lambda notice: None)
        self._haptic = haptic or (lambda: None)
        self._countdown = LongPressCountdown(scheduler, self._on_progress, self._on_press_complete)

        self.state = SessionState.CODE_ENTRY
        self.code = ""
        self.event = None
        self.progress = 0
        self.location = None

        self._lookup_in_flight = False
        self._toggle_in_flight = False
        self._mark_in_flight = False
        self._closed = False

    @property
    def lookup_pending(self) -> bool:
        return self._lookup_in_flight

    @property
    def mark_pending(self) -> bool:
        return self._mark_in_flight

    # ─── Location intake ─────────────────────────────────────

    def set_location(self, sample):
        self.location = sample
        log.info("Location sample: %.5f, %.5f", sample.latitude, sample.longitude)

    def location_failed(self, error):
        """Permission/service failure: unmet precondition, so blocking."""
        log.warning("Location unavailable: %s", error)
        self._notify(Notice.blocking(
            "Permission Needed",
            str(error) or "Location permission is required to mark attendance.",
        ))

    # ─── CODE_ENTRY ──────────────────────────────────────────

    def submit_code(self, code):
        """Validate locally, then resolve the shortcode. Returns True if a lookup started."""
        if self.state is not SessionState.CODE_ENTRY or self._lookup_in_flight:
            return False

        code = (code or "").strip()
        self.code = code
        if len(code) != SHORTCODE_LENGTH or not code.isdigit():
            self._notify(Notice.error(MSG_CODE_LENGTH))
            return False

        user_id = self._user_id()
        if user_id is None:
            return False

        self._lookup_in_flight = True
        self._changed()
        self._runner.submit(
            lambda: api.get_event_details(self._config, code, user_id),
            self._on_event_details,
        )
        return True

    def _on_event_details(self, event, error):
        self._lookup_in_flight = False
        if self._closed or self.state is not SessionState.CODE_ENTRY:
            return

        if error is not None:
            self._notify(Notice.error(_failure_text(error, MSG_EVENT_ERROR)))
        elif event.already_marked:
            log.info("Code %s already marked by this user", self.code)
            self._notify(Notice.error(MSG_ALREADY_MARKED))
        else:
            self.event = event
            self.state = SessionState.EVENT_LOADED
        self._changed()

    # ─── EVENT_LOADED: subscription ──────────────────────────

    def toggle_subscription(self):
        if self.state is not SessionState.EVENT_LOADED or self._toggle_in_flight:
            return False
        user_id = self._user_id()
        if user_id is None:
            return False

        event = self.event
        subscribe = not event.subscribed
        self._toggle_in_flight = True
        self._runner.submit(
            lambda: api.set_subscription(self._config, event.column_id, user_id, subscribe),
            lambda result, error: self._on_subscription(event, subscribe, error),
        )
        return True

    def _on_subscription(self, event, subscribe, error):
        self._toggle_in_flight = False
        if self._closed or event is not self.event:
            return
        if error is not None:
            self._notify(Notice.error(_failure_text(error, MSG_SUBSCRIBE_ERROR)))
            return
        event.subscribed = subscribe
        log.info("Subscription for column %s → %s", event.column_id, subscribe)
        self._notify(Notice.success(MSG_SUBSCRIBED if subscribe else MSG_UNSUBSCRIBED))
        self._changed()

    # ─── Long press ──────────────────────────────────────────

    def press_start(self):
        if self.state is not SessionState.EVENT_LOADED or self._mark_in_flight:
            return False
        self._haptic()
        self.state = SessionState.CONFIRMING
        self._countdown.start()
        self._changed()
        return True

    def press_release(self):
        """Release before 100% aborts; after completion the release is ignored."""
        if self.state is not SessionState.CONFIRMING:
            return False
        if not self._countdown.cancel():
            return False
        self.progress = 0
        self.state = SessionState.EVENT_LOADED
        self._changed()
        return True

    def _on_progress(self, value):
        self.progress = value
        self._changed()

    def _on_press_complete(self):
        if self.location is None:
            self._notify(Notice.error(MSG_NO_LOCATION))
            self._abort_confirmation()
            return

        user_id = self._user_id()
        if user_id is None:
            self._abort_confirmation()
            return

        column_id = self.event.column_id
        lat, lon = self.location.latitude, self.location.longitude
        self._mark_in_flight = True
        log.info("Marking attendance | column=%s", column_id)
        self._runner.submit(
            lambda: api.mark_attendance(self._config, column_id, user_id, lat, lon),
            self._on_marked,
        )

    def _on_marked(self, result, error):
        self._mark_in_flight = False
        if self._closed or self.state is not SessionState.CONFIRMING:
            return
        if error is not None:
            self._notify(Notice.error(_failure_text(error, MSG_MARK_ERROR)))
            self._abort_confirmation()
            return
        self.state = SessionState.MARKED
        self._changed()

    def _abort_confirmation(self):
        self._countdown.cancel()
        self.progress = 0
        self.state = SessionState.EVENT_LOADED
        self._changed()

    # ─── MARKED ──────────────────────────────────────────────

    def done(self):
        if self.state is not SessionState.MARKED:
            return False
        self.reset()
        return True

    def reset(self):
        """Full return to CODE_ENTRY; the location sample is kept."""
        self._countdown.cancel()
        self.state = SessionState.CODE_ENTRY
        self.code = ""
        self.event = None
        self.progress = 0
        self._changed()

    def teardown(self):
        """Screen is going away: stop timers, ignore late results."""
        self._countdown.cancel()
        self._closed = True

    # ─── Helpers ─────────────────────────────────────────────

    def _user_id(self):
        user_id = self._tokens.get_token()
        if user_id is None:
            self._notify(Notice.error(MSG_SIGNED_OUT))
        return user_id

    def _notify(self, notice):
        if not self._closed:
            self._on_notice(notice)

    def _changed(self):
        if not self._closed:
            self._on_change()
