"""
Small Tk widgets shared by the screens: notice bar, progress strip, helpers.
"""

import tkinter as tk
from tkinter import messagebox

from .constants import NOTICE_DURATION_MS, THEME
from .notice import SUCCESS

FONT = "Segoe UI"


def safe_widget_config(widget, **kwargs):
    """Configure a widget, silently ignoring TclError if destroyed."""
    try:
        widget.config(**kwargs)
    except (tk.TclError, AttributeError):
        pass


class NoticeBar:
    """Snackbar strip at the bottom of a window; blocking notices use a modal."""

    def __init__(self, parent):
        self._parent = parent
        self._label = tk.Label(parent, text="", font=(FONT, 10), fg="white",
                               anchor="w", padx=14, pady=8, wraplength=520,
                               justify="left")
        self._label.bind("<Button-1>", lambda e: self.hide())
        self._hide_job = None

    def show(self, notice):
        if notice.is_blocking:
            messagebox.showwarning(notice.title or "Attention", notice.text,
                                   parent=self._parent)
            return

        bg = THEME["success"] if notice.kind == SUCCESS else THEME["error"]
        try:
            self._label.config(text=notice.text, bg=bg)
            self._label.pack(side="bottom", fill="x")
            if self._hide_job is not None:
                self._parent.after_cancel(self._hide_job)
            self._hide_job = self._parent.after(NOTICE_DURATION_MS, self.hide)
        except tk.TclError:
            pass

    def hide(self):
        if self._hide_job is not None:
            try:
                self._parent.after_cancel(self._hide_job)
            except tk.TclError:
                pass
        self._hide_job = None
        try:
            self._label.pack_forget()
        except tk.TclError:
            pass


class ProgressStrip(tk.Canvas):
    """Horizontal fill used by the long-press button."""

    def __init__(self, parent, width=360, height=54, text=""):
        super().__init__(parent, width=width, height=height, bg=THEME["bg_card"],
                         highlightthickness=3, highlightbackground=THEME["primary"],
                         cursor="hand2")
        self._w = width
        self._h = height
        self._fill = self.create_rectangle(0, 0, 0, height, fill=THEME["primary"], width=0)
        self._text = self.create_text(width // 2, height // 2, text=text,
                                      font=(FONT, 12, "bold"), fill=THEME["text_primary"])

    def set_progress(self, value):
        done = value >= 100
        try:
            self.coords(self._fill, 0, 0, self._w * value / 100, self._h)
            self.itemconfig(self._text,
                            fill=THEME["success"] if done else THEME["text_primary"])
            self.config(highlightbackground=THEME["success"] if done else THEME["primary"])
        except tk.TclError:
            pass
