"""
AttendeeApp — the main Tkinter application.

Every screen, timer and network callback runs inside Tk's event loop via
root.after(). Network calls go through one BackgroundRunner, whose worker
threads never touch Tkinter.

Tabs: Attend | Books | Notifications | Subscriptions | History.
"""

import tkinter as tk
import webbrowser
from tkinter import messagebox, ttk

from . import api, feeds
from .auth import AuthService
from .book_forms import open_book_dialog, open_event_dialog
from .config import log, safe_print
from .constants import APP_VERSION, CONNECTIVITY_CHECK_SEC, MSG_GENERIC_ERROR, THEME
from .attend_view import AttendView
from .errors import ApiError, TransportError
from .list_view import ListView
from .network import ConnectivityMonitor
from .notice import Notice
from .state import AppState
from .tasks import BackgroundRunner
from .widgets import FONT, NoticeBar, safe_widget_config


def _when(moment):
    return moment.strftime("%d %b %Y, %H:%M") if moment else "—"


class AttendeeApp:
    """
    Owns the Tk root. Schedules via root.after():
      _check_connectivity() — online/offline transitions   (every 5s)
      BackgroundRunner      — polls worker results         (every 50ms)
    """

    def __init__(self, config, tokens, update=None):
        self._config = config
        self._tokens = tokens
        self.state = AppState(user_id=tokens.get_token(), update=update)
        self._root = None
        self._runner = None
        self._views = {}
        self._connectivity_job = None
        self.logged_out = False

    def run(self):
        """Start the app. Blocks on Tk mainloop. Call from main thread."""
        root = tk.Tk()
        self._root = root
        root.title(f"Attendee v{APP_VERSION}")
        root.configure(bg=THEME["bg"])
        root.geometry("720x640")
        root.minsize(560, 520)
        root.protocol("WM_DELETE_WINDOW", self.stop)

        self._runner = BackgroundRunner(root)
        self._notices = NoticeBar(root)
        self._monitor = ConnectivityMonitor(
            self._config["serverUrl"], self._runner,
            on_offline=self._on_offline, on_online=self._on_online,
        )

        self._build_header()
        self._build_tabs()

        root.after(200, self._load_profile)
        root.after(CONNECTIVITY_CHECK_SEC * 1000, self._check_connectivity)
        if self.state.update is not None:
            root.after(300, self._show_update)

        log.info("v%s started for user %s", APP_VERSION, self.state.user_id)
        safe_print("Attendee running.\n")

        try:
            root.mainloop()
        finally:
            self._teardown()
            log.info("AttendeeApp shut down.")

    def stop(self):
        try:
            self._root.quit()
        except (tk.TclError, AttributeError):
            pass

    def _teardown(self):
        """Cancel every timer and drop in-flight results before the root dies."""
        if self._connectivity_job is not None:
            try:
                self._root.after_cancel(self._connectivity_job)
            except tk.TclError:
                pass
            self._connectivity_job = None
        attend = self._views.get("attend")
        if attend is not None:
            attend.teardown()
        if self._runner is not None:
            self._runner.close()
        try:
            self._root.destroy()
        except tk.TclError:
            pass

    def show_notice(self, notice):
        self._notices.show(notice)

    # ─── Layout ──────────────────────────────────────────────

    def _build_header(self):
        header = tk.Frame(self._root, bg=THEME["header_bg"], height=56)
        header.pack(fill="x")
        header.pack_propagate(False)
        self._greeting = tk.Label(header, text="Attendee", font=(FONT, 14, "bold"),
                                  fg="white", bg=THEME["header_bg"])
        self._greeting.pack(side="left", padx=18)
        tk.Button(header, text="Log Out", relief="flat", cursor="hand2",
                  bg=THEME["header_bg"], fg="white", activebackground=THEME["primary_hover"],
                  command=self._logout).pack(side="right", padx=12)

    def _build_tabs(self):
        nb = ttk.Notebook(self._root)
        nb.pack(fill="both", expand=True)
        self._notebook = nb
        cfg, tokens, runner = self._config, self._tokens, self._runner

        attend = AttendView(nb, cfg, tokens, runner, self.show_notice, haptic=self._root.bell)
        nb.add(attend.frame, text="Attend")
        self._views["attend"] = attend
        attend.mount()

        books = ListView(nb, "My Attendance Books", self._format_book, search=True,
                         actions=(("Delete", self._delete_book), ("Open", self._open_book)))
        books.bind(feeds.books_feed(cfg, tokens, runner, search=books.search_var.get,
                                    on_change=books.render, on_notice=self.show_notice))
        self._add_list("books", books)
        tk.Button(books.frame, text="+ New Book", relief="flat", cursor="hand2",
                  bg=THEME["primary"], fg="white",
                  command=self._create_book).pack(anchor="e", pady=(6, 0))

        notes = ListView(nb, "Notifications", self._format_notification)
        notes.bind(feeds.notifications_feed(cfg, tokens, runner,
                                            on_change=self._notifications_changed,
                                            on_notice=self.show_notice))
        self._add_list("notifications", notes)

        subs = ListView(nb, "Subscriptions", self._format_subscription,
                        actions=(("Unsubscribe", self._delete_subscription),))
        subs.bind(feeds.subscriptions_feed(cfg, tokens, runner,
                                           on_change=subs.render, on_notice=self.show_notice))
        self._add_list("subscriptions", subs)

        history = ListView(nb, "Attendance History", self._format_history)
        history.bind(feeds.history_feed(cfg, tokens, runner,
                                        on_change=history.render, on_notice=self.show_notice))
        self._add_list("history", history)

        nb.bind("<<NotebookTabChanged>>", self._on_tab_changed)

    def _add_list(self, key, view):
        self._notebook.add(view.frame, text=key.title())
        self._views[key] = view

    def _on_tab_changed(self, _event):
        key = self._current_tab()
        view = self._views.get(key)
        if key == "attend" or view is None:
            return
        feed = view.feed
        if not feed.loaded and not feed.is_loading:
            feed.load_more()
        if key == "notifications":
            self._mark_seen()

    def _notifications_changed(self):
        self._views["notifications"].render()
        if self._current_tab() == "notifications":
            self._mark_seen()

    def _mark_seen(self):
        """Unread notifications flip to read once the backend acknowledges."""
        feed = self._views["notifications"].feed
        if feed.is_loading or not any(not n.is_read for n in feed.items):
            return
        feeds.mark_all_read(self._config, self._tokens, self._runner, feed)

    def _current_tab(self):
        try:
            index = self._notebook.index(self._notebook.select())
        except tk.TclError:
            return None
        return list(self._views)[index]

    # ─── Row formatting ──────────────────────────────────────

    @staticmethod
    def _format_book(book):
        level = f"  ·  Level {book.level}" if book.level else ""
        return f"{book.title}{level}  ·  {book.total_columns} events  ·  avg {book.average_score}"

    @staticmethod
    def _format_notification(note):
        dot = "  " if note.is_read else "● "
        return f"{dot}{note.title} — {note.description}  ({_when(note.timestamp)})"

    @staticmethod
    def _format_subscription(sub):
        return f"{sub.book_name}  ·  since {_when(sub.subscription_date)}"

    @staticmethod
    def _format_history(record):
        return f"{record.book_title}  ·  {record.column_name}  ·  {_when(record.attendance_time)}"

    # ─── List actions ────────────────────────────────────────

    def _delete_book(self, book):
        if not messagebox.askyesno("Delete Book", f"Delete \"{book.title}\" and all its events?",
                                   parent=self._root):
            return
        feeds.remove_book(self._config, self._tokens, self._runner,
                          self._views["books"].feed, book.id, self.show_notice)

    def _delete_subscription(self, sub):
        feeds.remove_subscription(self._config, self._tokens, self._runner,
                                  self._views["subscriptions"].feed, sub.id, self.show_notice)

    def _create_book(self):
        if self.state.blocks_input:
            return

        def created(_book_id):
            self.show_notice(Notice.success("Attendance book created"))
            self._views["books"].refresh()

        open_book_dialog(self._root, self._config, self.state.user_id, self._runner, created)

    def _open_book(self, book):
        """Book details window: the book's events, paged, with create/delete."""
        top = tk.Toplevel(self._root)
        top.title(book.title)
        top.geometry("620x520")
        top.transient(self._root)

        view = ListView(top, book.title, self._format_event,
                        actions=(("Delete", lambda ev: feeds.remove_event(
                                     self._config, self._tokens, self._runner,
                                     view.feed, ev.id, self.show_notice)),))

        def changed():
            view.render()
            meta = view.feed.meta
            if meta is not None:
                view.set_title(f"{meta.name}  ·  {meta.total_students} students")

        view.bind(feeds.book_events_feed(self._config, self._tokens, self._runner, book.id,
                                         on_change=changed, on_notice=self.show_notice))
        view.frame.pack(fill="both", expand=True)

        def created(_message):
            self.show_notice(Notice.success("Event created"))
            view.refresh()

        tk.Button(top, text="+ New Event", relief="flat", cursor="hand2",
                  bg=THEME["primary"], fg="white",
                  command=lambda: open_event_dialog(
                      top, self._config, self.state.user_id, book.id, self._runner, created,
                      position=self._views["attend"].session.location,
                  )).pack(anchor="e", padx=18, pady=(0, 12))
        view.feed.load_more()

    @staticmethod
    def _format_event(event):
        return (f"{event.name}  ·  {event.type}  ·  code {event.short_code}"
                f"  ·  {event.attendance_count} present")

    # ─── Profile / logout ────────────────────────────────────

    def _load_profile(self):
        def done(profile, error):
            if error is not None:
                log.warning("Profile fetch failed: %s", error)
                return
            self.state.profile = profile
            safe_widget_config(self._greeting, text=f"Hi, {profile.username}")

        self._runner.submit(
            lambda: api.fetch_profile(self._config, self.state.user_id), done,
        )

    def _logout(self):
        auth = AuthService(self._config, self._tokens)

        def done(_result, error):
            if error is not None:
                if isinstance(error, TransportError) or not isinstance(error, ApiError):
                    log.warning("Logout failed: %s", error)
                    self.show_notice(Notice.error(MSG_GENERIC_ERROR))
                else:
                    self.show_notice(Notice.blocking("Logout", error.message))
                return
            log.info("Logged out")
            self.logged_out = True
            self.stop()

        self._runner.submit(auth.logout, done)

    # ─── Connectivity (every 5s) ─────────────────────────────

    def _check_connectivity(self):
        try:
            self._monitor.poll()
        except Exception as e:
            log.error("_check_connectivity error: %s", e)
        self._connectivity_job = self._root.after(
            CONNECTIVITY_CHECK_SEC * 1000, self._check_connectivity)

    def _on_offline(self):
        self.state.mark_offline()
        self._sync_input()
        self.show_notice(Notice.blocking(
            "No Internet Connection",
            "Please check your internet connection and try again.",
        ))

    def _on_online(self):
        log.info("Back online after %.0fs", self.state.offline_seconds)
        self.state.mark_online()
        self._sync_input()
        self.show_notice(Notice.success("Back online"))

    def _sync_input(self):
        """While input is blocked only the current tab stays reachable."""
        blocked = self.state.blocks_input
        current = self._notebook.select()
        for tab in self._notebook.tabs():
            if tab != current:
                self._notebook.tab(tab, state="disabled" if blocked else "normal")

    # ─── Version check ───────────────────────────────────────

    def _show_update(self):
        update = self.state.update
        title = "Update Required" if update.mandatory else "Update Available"
        text = f"{update.message}\n\nLatest version: {update.latest_version}"
        if update.download_url:
            wants = messagebox.askyesno(title, text + "\n\nOpen the download page?",
                                        parent=self._root)
            if wants:
                webbrowser.open(update.download_url)
        else:
            self.show_notice(Notice.blocking(title, text))

        if update.mandatory:
            log.warning("Mandatory update %s pending — closing", update.latest_version)
            self.stop()
