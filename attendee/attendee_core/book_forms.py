"""
Create-book and create-event dialogs (Toplevel children of the main window).

Validation happens locally through events.BookSpec / ColumnSpec before any
request; the request itself runs on the BackgroundRunner.
"""

import tkinter as tk
from datetime import date, datetime
from tkinter import messagebox, ttk

from . import api
from .config import log
from .constants import THEME
from .errors import ApiError, ValidationError
from .events import EVENT_TYPES, DEFAULT_RADIUS_M, BookSpec, ColumnSpec
from .widgets import FONT

_DATE_FMT = "%Y-%m-%d"
_TIME_FMT = "%H:%M"


class _FormDialog:
    def __init__(self, parent, title, height):
        top = tk.Toplevel(parent)
        top.title(title)
        top.configure(bg=THEME["bg"])
        top.resizable(False, False)
        top.transient(parent)
        top.geometry(f"420x{height}")
        self.top = top
        self.body = tk.Frame(top, bg=THEME["bg"], padx=26, pady=18)
        self.body.pack(fill="both", expand=True)
        self._busy = False

    def field(self, label, default=""):
        tk.Label(self.body, text=label, font=(FONT, 10, "bold"), bg=THEME["bg"],
                 fg=THEME["text_primary"]).pack(anchor="w", pady=(6, 2))
        var = tk.StringVar(value=default)
        tk.Entry(self.body, textvariable=var, font=(FONT, 11),
                 bg=THEME["bg_input"], relief="flat").pack(fill="x", ipady=4)
        return var

    def submit_button(self, text, command):
        tk.Button(self.body, text=text, font=(FONT, 12, "bold"), bg=THEME["primary"],
                  fg="white", relief="flat", pady=8, cursor="hand2",
                  command=command).pack(fill="x", pady=(16, 0))

    def run(self, runner, fn, on_success):
        """Submit fn on the runner once; the dialog closes on success."""
        if self._busy:
            return
        self._busy = True

        def done(result, error):
            self._busy = False
            if error is not None:
                text = error.message if isinstance(error, ApiError) else str(error)
                log.warning("%s failed: %s", self.top.title(), text)
                try:
                    messagebox.showerror("Error", text, parent=self.top)
                except tk.TclError:
                    pass
                return
            on_success(result)
            try:
                self.top.destroy()
            except tk.TclError:
                pass

        runner.submit(fn, done)


def open_book_dialog(parent, config, user_id, runner, on_created):
    dialog = _FormDialog(parent, "Create Attendance Book", 330)
    name = dialog.field("Book name")
    description = dialog.field("Description")
    level = dialog.field("Level")

    def submit():
        spec = BookSpec(name.get(), description.get().strip(), level.get().strip())
        try:
            spec.validate()
        except ValidationError as e:
            messagebox.showwarning("Validation Error", str(e), parent=dialog.top)
            return
        dialog.run(
            runner,
            lambda: api.create_book(config, user_id, spec.name.strip(),
                                    spec.description, spec.level),
            on_created,
        )

    dialog.submit_button("Create Book", submit)
    return dialog


def _parse_moment(day, text):
    moment = datetime.strptime(text.strip(), _TIME_FMT)
    return datetime.combine(day, moment.time())


def open_event_dialog(parent, config, user_id, book_id, runner, on_created, position=None):
    """
    ``position`` (a GeoSample) pre-fills the coordinates for physical events;
    without it the user types them.
    """
    dialog = _FormDialog(parent, "Create Event", 620)
    name = dialog.field("Event name")
    day = dialog.field("Date (YYYY-MM-DD)", date.today().strftime(_DATE_FMT))
    start = dialog.field("Start time (HH:MM)", "09:00")
    end = dialog.field("End time (HH:MM)", "10:00")
    radius = dialog.field("Radius (metres)", str(DEFAULT_RADIUS_M))

    tk.Label(dialog.body, text="Event type", font=(FONT, 10, "bold"), bg=THEME["bg"],
             fg=THEME["text_primary"]).pack(anchor="w", pady=(6, 2))
    kind = ttk.Combobox(dialog.body, values=EVENT_TYPES, state="readonly")
    kind.set(EVENT_TYPES[0])
    kind.pack(fill="x")

    place = dialog.field("Location name")
    lat = dialog.field("Latitude", f"{position.latitude}" if position else "")
    lon = dialog.field("Longitude", f"{position.longitude}" if position else "")

    def coordinate(var):
        text = var.get().strip()
        return float(text) if text else None

    def submit():
        try:
            event_day = datetime.strptime(day.get().strip(), _DATE_FMT).date()
            spec = ColumnSpec(
                column_name=name.get(),
                event_date=event_day,
                start_time=_parse_moment(event_day, start.get()),
                end_time=_parse_moment(event_day, end.get()),
                radius=radius.get().strip(),
                event_type=kind.get(),
                location_name=place.get(),
                latitude=coordinate(lat),
                longitude=coordinate(lon),
            )
            spec.validate()
        except ValidationError as e:
            messagebox.showwarning("Validation Error", str(e), parent=dialog.top)
            return
        except ValueError:
            messagebox.showwarning("Validation Error",
                                   "Check the date, times and coordinates", parent=dialog.top)
            return
        dialog.run(runner, lambda: api.create_column(config, user_id, book_id, spec), on_created)

    dialog.submit_button("Create Event", submit)
    return dialog
