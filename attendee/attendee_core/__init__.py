"""
attendee_core — Attendee desktop client v1.4
============================================
Architecture: Tkinter main-thread event loop, worker threads for HTTP only.

  constants.py    → Version, timings, messages, theme
  config.py       → Paths, logging, config load/save, helpers
  errors.py       → ApiError / TransportError / ValidationError
  http_client.py  → HTTP session with retry/pooling, JSON envelope decoding
  models.py       → Parsed backend records (events, books, notifications…)
  api.py          → Backend API calls
  token_store.py  → Session token persistence
  auth.py         → Login / signup / logout, signup validation
  events.py       → Book and event creation forms (validation + payload)
  tasks.py        → BackgroundRunner, LongPressCountdown (root.after based)
  session.py      → AttendanceSession state machine
  pagination.py   → PagedCollection (infinite-scroll list state)
  feeds.py        → One PagedCollection per list screen + list actions
  location.py     → Device position providers
  network.py      → Connectivity monitor
  updates.py      → App version check
  state.py        → AppState dataclass (process-wide UI state)
  notice.py       → Notice values shown by the notice bar
  widgets.py      → NoticeBar, ProgressStrip, Tk helpers
  attend_view.py  → Attend tab
  list_view.py    → Generic paged list tab
  book_forms.py   → Create book / event dialogs
  login_view.py   → Setup, login and signup dialogs
  app.py          → AttendeeApp (Tk main loop, tabs, connectivity)
  runner.py       → main() + auto-restart wrapper
"""
