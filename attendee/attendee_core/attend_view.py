"""
AttendView — the Attend tab: code entry, event card, long press, confirmation.

Pure rendering over AttendanceSession. Every redraw reads session.state and
shows exactly one of the three panels; no widget holds its own flags.
"""

import tkinter as tk

from .config import log
from .constants import THEME, SHORTCODE_LENGTH
from .location import provider_from_config
from .session import AttendanceSession, SessionState
from .widgets import FONT, ProgressStrip, safe_widget_config


class AttendView:
    def __init__(self, parent, config, tokens, runner, show_notice, haptic=None):
        self._runner = runner
        self._provider = provider_from_config(config)
        self.frame = tk.Frame(parent, bg=THEME["bg"])
        self.session = AttendanceSession(
            config, tokens, runner, scheduler=self.frame,
            on_change=self.render, on_notice=show_notice, haptic=haptic,
        )
        self._build_code_panel()
        self._build_event_panel()
        self._build_marked_panel()
        self._current = None
        self.render()

    # ─── Lifecycle ───────────────────────────────────────────

    def mount(self):
        """One location sample per mount, fetched off the main thread."""
        self._runner.submit(self._provider.current_position, self._on_location)

    def _on_location(self, sample, error):
        if error is not None:
            self.session.location_failed(error)
        else:
            self.session.set_location(sample)

    def teardown(self):
        self.session.teardown()

    # ─── UI construction ─────────────────────────────────────

    def _build_code_panel(self):
        panel = tk.Frame(self.frame, bg=THEME["bg"], padx=40, pady=40)
        tk.Label(panel, text="Enter Attendance Code", font=(FONT, 18, "bold"),
                 bg=THEME["bg"], fg=THEME["text_primary"]).pack(pady=(0, 18))

        self._code_var = tk.StringVar()
        self._code_var.trace_add("write", self._limit_code)
        entry = tk.Entry(panel, textvariable=self._code_var, font=(FONT, 22),
                         width=10, justify="center", bg=THEME["bg_input"],
                         relief="flat")
        entry.pack(ipady=8)
        entry.bind("<Return>", lambda e: self._submit())

        self._submit_btn = tk.Button(
            panel, text="Submit Code", font=(FONT, 13, "bold"),
            bg=THEME["primary"], fg="white", activebackground=THEME["primary_hover"],
            activeforeground="white", relief="flat", padx=24, pady=10,
            cursor="hand2", command=self._submit,
        )
        self._submit_btn.pack(pady=(18, 0))
        self._code_panel = panel

    def _build_event_panel(self):
        panel = tk.Frame(self.frame, bg=THEME["bg"], padx=30, pady=24)
        card = tk.Frame(panel, bg=THEME["bg_card"], padx=24, pady=18,
                        highlightbackground=THEME["border"], highlightthickness=1)
        card.pack(fill="x")

        top = tk.Frame(card, bg=THEME["bg_card"])
        top.pack(fill="x")
        self._title_lbl = tk.Label(top, font=(FONT, 17, "bold"), bg=THEME["bg_card"],
                                   fg=THEME["text_primary"], anchor="w")
        self._title_lbl.pack(side="left", fill="x", expand=True)
        self._bell_btn = tk.Button(top, font=(FONT, 10), relief="flat", cursor="hand2",
                                   command=self.session.toggle_subscription)
        self._bell_btn.pack(side="right")

        self._sub_lbl = tk.Label(card, font=(FONT, 10, "italic"), bg=THEME["bg_card"],
                                 fg=THEME["primary"], anchor="w")
        self._sub_lbl.pack(fill="x")
        self._column_lbl = self._info_row(card)
        self._place_lbl = self._info_row(card)
        self._count_lbl = self._info_row(card)
        self._coords_lbl = self._info_row(card)

        self._press = ProgressStrip(panel, text="Long Press to Mark Attendance")
        self._press.pack(pady=(22, 0))
        self._press.bind("<ButtonPress-1>", lambda e: self.session.press_start())
        self._press.bind("<ButtonRelease-1>", lambda e: self.session.press_release())
        self._event_panel = panel

    def _info_row(self, parent):
        lbl = tk.Label(parent, font=(FONT, 11), bg=THEME["bg_card"],
                       fg=THEME["text_secondary"], anchor="w")
        lbl.pack(fill="x", pady=(6, 0))
        return lbl

    def _build_marked_panel(self):
        panel = tk.Frame(self.frame, bg=THEME["bg"], padx=40, pady=50)
        tk.Label(panel, text="✔", font=(FONT, 54), bg=THEME["bg"],
                 fg=THEME["primary"]).pack()
        tk.Label(panel, text="You Have Successfully Marked Your Attendance!",
                 font=(FONT, 14, "bold"), bg=THEME["bg"],
                 fg=THEME["text_primary"]).pack(pady=(10, 20))
        tk.Button(panel, text="Done", font=(FONT, 12, "bold"), bg=THEME["primary"],
                  fg="white", relief="flat", padx=28, pady=8, cursor="hand2",
                  command=self.session.done).pack()
        self._marked_panel = panel

    # ─── Input ───────────────────────────────────────────────

    def _limit_code(self, *_):
        value = self._code_var.get()
        cleaned = "".join(ch for ch in value if ch.isdigit())[:SHORTCODE_LENGTH]
        if cleaned != value:
            self._code_var.set(cleaned)

    def _submit(self):
        self.session.submit_code(self._code_var.get())

    # ─── Rendering ───────────────────────────────────────────

    def render(self):
        s = self.session
        if s.state is SessionState.CODE_ENTRY:
            panel = self._code_panel
            if not s.code and self._code_var.get():
                self._code_var.set("")
            safe_widget_config(self._submit_btn,
                               state="disabled" if s.lookup_pending else "normal")
        elif s.state is SessionState.MARKED:
            panel = self._marked_panel
        else:
            panel = self._event_panel
            self._render_event()

        if panel is not self._current:
            if self._current is not None:
                self._current.pack_forget()
            panel.pack(fill="both", expand=True)
            self._current = panel
            log.info("Attend screen → %s", s.state.value)

    def _render_event(self):
        event = self.session.event
        if event is None:
            return
        safe_widget_config(self._title_lbl, text=event.event_title)
        safe_widget_config(self._sub_lbl, text="Subscribed" if event.subscribed else "")
        safe_widget_config(
            self._bell_btn,
            text="\U0001F514 On" if event.subscribed else "\U0001F515 Off",
            fg=THEME["primary"] if event.subscribed else THEME["text_secondary"],
        )
        safe_widget_config(self._column_lbl, text=f"Event: {event.location_label}")
        safe_widget_config(self._place_lbl, text=f"Location: {event.location_name}")
        safe_widget_config(self._count_lbl,
                           text=f"{event.checked_in_count} Students Checked In")
        if event.coordinates is not None:
            c = event.coordinates
            safe_widget_config(self._coords_lbl, text=f"{c.latitude:.5f}, {c.longitude:.5f}")
        else:
            safe_widget_config(self._coords_lbl, text="")
        self._press.set_progress(self.session.progress)
