"""
Constants, timings, page sizes, user-facing messages and theme colors.
"""

APP_VERSION = "1.4.0"

# ─── Attendance flow ─────────────────────────────────────────────
SHORTCODE_LENGTH = 6
LONG_PRESS_TICK_MS = 20        # 20ms * 10 ticks = 1s of sustained press
LONG_PRESS_STEP = 10
LONG_PRESS_COMPLETE = 100

# ─── Pagination ──────────────────────────────────────────────────
BOOKS_PER_PAGE = 5
DEFAULT_PER_PAGE = 10

# ─── Network ─────────────────────────────────────────────────────
API_TIMEOUT = 20               # Seconds for ordinary API calls
API_TIMEOUT_REFERENCE = 10     # GET lookups (universities, version)
LOCATION_TIMEOUT = 8
CONNECTIVITY_CHECK_SEC = 5     # How often the offline banner re-checks
TASK_POLL_MS = 50              # Worker-thread result polling on the Tk loop

# ─── Notices ─────────────────────────────────────────────────────
NOTICE_DURATION_MS = 3000

MSG_CODE_LENGTH = "Please enter a 6-digit code"
MSG_ALREADY_MARKED = "You have already marked attendance for this event."
MSG_INVALID_CODE = "Invalid attendance code"
MSG_EVENT_ERROR = "Error fetching event details"
MSG_MARK_FAILED = "Failed to mark attendance"
MSG_MARK_ERROR = "Error marking attendance"
MSG_NO_LOCATION = "Location not available. Please enable location services."
MSG_SUBSCRIBE_FAILED = "Failed to update subscription"
MSG_SUBSCRIBE_ERROR = "Error updating subscription"
MSG_SUBSCRIBED = (
    "Subscribed successfully! We will notify you when a new attendance "
    "drops for this book"
)
MSG_UNSUBSCRIBED = (
    "Unsubscribed successfully! You will no longer receive notifications "
    "from this attendance book"
)
MSG_GENERIC_ERROR = "An unexpected error occurred. Please try again."
MSG_LOGOUT_BLOCKED = "You cannot log out at this time"
MSG_SIGNED_OUT = "Your session has ended. Please log in again."

# ─── Theme (shared with the web dashboard) ───────────────────────
THEME = {
    "bg":             "#f8fafc",
    "bg_card":        "#ffffff",
    "bg_input":       "#f1f5f9",
    "header_bg":      "#1e3a8a",
    "primary":        "#2563eb",
    "primary_hover":  "#1d4ed8",
    "text_primary":   "#0f172a",
    "text_secondary": "#64748b",
    "border":         "#cbd5e1",
    "success":        "#16a34a",
    "error":          "#dc2626",
    "warning":        "#f59e0b",
}
