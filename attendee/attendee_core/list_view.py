"""
ListView — generic infinite-scroll list over a PagedCollection.

Scrolling to the bottom asks the feed for the next page; the Refresh button
(pull-to-refresh on the phone) always reloads page 1. The view never
tracks pagination itself.
"""

import tkinter as tk

from .constants import THEME
from .widgets import FONT, safe_widget_config

_LOAD_MORE_AT = 0.98   # fraction of the list scrolled before load_more


class ListView:
    def __init__(self, parent, title, formatter, search=False, actions=()):
        """
        formatter(record) → str, one Listbox row per record.
        actions: (label, callback(record)) buttons acting on the selection.
        """
        self.feed = None
        self._formatter = formatter
        self._requested_at = None   # item count when load_more last fired
        self.frame = tk.Frame(parent, bg=THEME["bg"], padx=18, pady=14)

        header = tk.Frame(self.frame, bg=THEME["bg"])
        header.pack(fill="x")
        self._title_lbl = tk.Label(header, text=title, font=(FONT, 15, "bold"),
                                   bg=THEME["bg"], fg=THEME["text_primary"])
        self._title_lbl.pack(side="left")
        tk.Button(header, text="Refresh", relief="flat", cursor="hand2",
                  bg=THEME["bg_input"], command=self.refresh).pack(side="right")

        self.search_var = tk.StringVar()
        if search:
            bar = tk.Frame(self.frame, bg=THEME["bg"])
            bar.pack(fill="x", pady=(10, 0))
            entry = tk.Entry(bar, textvariable=self.search_var, font=(FONT, 11),
                             bg=THEME["bg_input"], relief="flat")
            entry.pack(side="left", fill="x", expand=True, ipady=4)
            entry.bind("<Return>", lambda e: self.refresh())
            tk.Button(bar, text="Search", relief="flat", cursor="hand2",
                      command=self.refresh).pack(side="right", padx=(6, 0))

        body = tk.Frame(self.frame, bg=THEME["bg"])
        body.pack(fill="both", expand=True, pady=(10, 0))
        self._scroll = tk.Scrollbar(body, orient="vertical")
        self._list = tk.Listbox(body, font=(FONT, 11), activestyle="none",
                                relief="flat", highlightthickness=0,
                                yscrollcommand=self._on_scroll)
        self._scroll.config(command=self._list.yview)
        self._scroll.pack(side="right", fill="y")
        self._list.pack(side="left", fill="both", expand=True)

        footer = tk.Frame(self.frame, bg=THEME["bg"])
        footer.pack(fill="x", pady=(8, 0))
        self._status_lbl = tk.Label(footer, text="", font=(FONT, 9),
                                    bg=THEME["bg"], fg=THEME["text_secondary"])
        self._status_lbl.pack(side="left")
        for label, callback in actions:
            tk.Button(footer, text=label, relief="flat", cursor="hand2",
                      command=lambda cb=callback: self._run_action(cb)).pack(side="right", padx=(6, 0))

    def bind(self, feed):
        self.feed = feed

    def set_title(self, text):
        safe_widget_config(self._title_lbl, text=text)

    # ─── Feed interaction ────────────────────────────────────

    def refresh(self):
        self._requested_at = None
        if self.feed is not None:
            self.feed.refresh()

    def _on_scroll(self, first, last):
        self._scroll.set(first, last)
        if self.feed is None or not self.feed.items:
            return
        # One request per list length, so a failed page is not retried in a loop.
        count = len(self.feed.items)
        if float(last) >= _LOAD_MORE_AT and count != self._requested_at:
            if self.feed.load_more():
                self._requested_at = count

    def selected(self):
        sel = self._list.curselection()
        if not sel or self.feed is None:
            return None
        index = sel[0]
        if index >= len(self.feed.items):
            return None
        return self.feed.items[index]

    def _run_action(self, callback):
        record = self.selected()
        if record is not None:
            callback(record)

    # ─── Rendering ───────────────────────────────────────────

    def render(self):
        feed = self.feed
        if feed is None:
            return
        try:
            top = self._list.yview()[0]
            self._list.delete(0, "end")
            for record in feed.items:
                self._list.insert("end", self._formatter(record))
            self._list.yview_moveto(top)
        except tk.TclError:
            return

        if feed.is_loading:
            status = "Loading..."
        elif not feed.items and feed.loaded:
            status = f"No {feed.name} found"
        elif feed.has_more:
            status = f"{len(feed.items)} shown — scroll for more"
        else:
            status = f"{len(feed.items)} shown"
        safe_widget_config(self._status_lbl, text=status)
