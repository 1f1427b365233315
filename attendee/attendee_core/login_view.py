"""
First-run dialogs: server setup, login and signup.

Each dialog runs its own small Tk root before the main app starts, the way
device enrollment does, and returns its result (or None when closed).
Network calls block briefly here; the dialog shows "Please wait..." first.
"""

import tkinter as tk
from tkinter import messagebox, ttk

from . import api
from .auth import AuthService
from .config import log, save_config
from .constants import APP_VERSION, THEME, MSG_GENERIC_ERROR
from .errors import ApiError, TransportError, ValidationError
from .widgets import FONT

GENDERS = ("Male", "Female")
ROLES = ("student", "lecturer")


def _window(title, width, height):
    root = tk.Tk()
    root.title(title)
    root.resizable(False, False)
    root.configure(bg=THEME["bg"])
    root.update_idletasks()
    x = (root.winfo_screenwidth() - width) // 2
    y = (root.winfo_screenheight() - height) // 2
    root.geometry(f"{width}x{height}+{x}+{y}")

    header = tk.Frame(root, bg=THEME["header_bg"], height=64)
    header.pack(fill="x")
    header.pack_propagate(False)
    tk.Label(header, text=title, font=(FONT, 15, "bold"), fg="white",
             bg=THEME["header_bg"]).pack(expand=True)
    body = tk.Frame(root, bg=THEME["bg"], padx=32, pady=18)
    body.pack(fill="both", expand=True)
    return root, body


def _field(body, label, show=None):
    tk.Label(body, text=label, font=(FONT, 10, "bold"), bg=THEME["bg"],
             fg=THEME["text_primary"]).pack(anchor="w", pady=(8, 2))
    var = tk.StringVar()
    tk.Entry(body, textvariable=var, font=(FONT, 11), show=show or "",
             bg=THEME["bg_input"], relief="flat").pack(fill="x", ipady=5)
    return var


def _error_text(error):
    if isinstance(error, TransportError):
        log.warning("Auth transport error: %s", error)
        return MSG_GENERIC_ERROR
    return str(error)


# ─── Server setup ────────────────────────────────────────────────

def gui_setup():
    """Ask for the backend URL and application credential. Returns config or None."""
    result = {"config": None}
    root, body = _window("Attendee — Setup", 440, 330)

    url_var = _field(body, "Server URL")
    pass_var = _field(body, "Application key", show="•")
    status = tk.Label(body, text="", font=(FONT, 9), bg=THEME["bg"], fg=THEME["error"])
    status.pack(pady=(10, 0))

    def on_save():
        url = url_var.get().strip().rstrip("/")
        if not url.startswith(("http://", "https://")):
            status.config(text="Server URL must start with http:// or https://")
            return
        config = {"serverUrl": url, "adminPass": pass_var.get().strip()}
        save_config(config)
        result["config"] = config
        root.destroy()

    tk.Button(body, text="Save", font=(FONT, 12, "bold"), bg=THEME["primary"],
              fg="white", relief="flat", pady=8, command=on_save).pack(fill="x", pady=(12, 0))
    root.mainloop()
    return result["config"]


# ─── Login ───────────────────────────────────────────────────────

def gui_login(config, tokens):
    """Login dialog with a link to signup. Returns the user id or None."""
    result = {"uid": None, "signup": False}
    auth = AuthService(config, tokens)
    root, body = _window("Attendee — Log In", 420, 360)

    user_var = _field(body, "Email or username")
    pass_var = _field(body, "Password", show="•")
    status = tk.Label(body, text="", font=(FONT, 9), bg=THEME["bg"], fg=THEME["error"])
    status.pack(pady=(10, 0))

    def on_login():
        status.config(text="Please wait...", fg=THEME["primary"])
        root.update_idletasks()
        try:
            result["uid"] = auth.login(user_var.get(), pass_var.get())
        except ValidationError as e:
            status.config(text=str(e), fg=THEME["error"])
            return
        except ApiError as e:
            status.config(text="")
            messagebox.showerror("Login Failed", _error_text(e), parent=root)
            return
        root.destroy()

    def on_signup():
        result["signup"] = True
        root.destroy()

    tk.Button(body, text="Log In", font=(FONT, 12, "bold"), bg=THEME["primary"],
              fg="white", relief="flat", pady=8, command=on_login).pack(fill="x", pady=(12, 0))
    tk.Button(body, text="Create an account", relief="flat", bg=THEME["bg"],
              fg=THEME["primary"], cursor="hand2", command=on_signup).pack(pady=(8, 0))
    tk.Label(body, text=f"v{APP_VERSION}", font=(FONT, 8), bg=THEME["bg"],
             fg=THEME["text_secondary"]).pack(side="bottom")
    root.mainloop()

    if result["signup"]:
        return gui_signup(config, tokens)
    return result["uid"]


# ─── Signup ──────────────────────────────────────────────────────

class _Picker:
    """Combobox over backend reference data (id/name dicts)."""

    def __init__(self, body, label, on_pick=None):
        tk.Label(body, text=label, font=(FONT, 10, "bold"), bg=THEME["bg"],
                 fg=THEME["text_primary"]).pack(anchor="w", pady=(6, 2))
        self._box = ttk.Combobox(body, state="readonly")
        self._box.pack(fill="x")
        self._rows = []
        if on_pick:
            self._box.bind("<<ComboboxSelected>>", lambda e: on_pick())

    def load(self, rows):
        self._rows = list(rows)
        self._box["values"] = [str(r.get("name", r.get("id"))) for r in self._rows]
        self._box.set("")

    @property
    def value(self):
        index = self._box.current()
        return self._rows[index].get("id") if index >= 0 else ""


def gui_signup(config, tokens):
    result = {"uid": None}
    auth = AuthService(config, tokens)
    root, outer = _window("Attendee — Create an Account", 480, 760)

    canvas = tk.Canvas(outer, bg=THEME["bg"], highlightthickness=0)
    body = tk.Frame(canvas, bg=THEME["bg"])
    canvas.create_window((0, 0), window=body, anchor="nw", width=410)
    body.bind("<Configure>", lambda e: canvas.config(scrollregion=canvas.bbox("all")))
    canvas.pack(fill="both", expand=True)

    fields = {
        "username": _field(body, "Username (4-12 characters)"),
        "email": _field(body, "Email Address"),
        "phone": _field(body, "Phone Number (11 digits)"),
        "fullname": _field(body, "Full Name"),
        "matric_no": _field(body, "Matric Number"),
        "level": _field(body, "Level"),
    }
    gender = _Picker(body, "Gender")
    gender.load([{"id": g, "name": g} for g in GENDERS])
    role = _Picker(body, "Role")
    role.load([{"id": r, "name": r.title()} for r in ROLES])

    def reference(loader, *args):
        try:
            return loader(config, *args)
        except ApiError as e:
            messagebox.showerror("Error", _error_text(e), parent=root)
            return []

    def on_university():
        faculty.load(reference(api.fetch_faculties, university.value))
        department.load([])

    def on_faculty():
        department.load(reference(api.fetch_departments, university.value, faculty.value))

    university = _Picker(body, "University", on_university)
    faculty = _Picker(body, "Faculty", on_faculty)
    department = _Picker(body, "Department")
    password = _field(body, "Password", show="•")
    confirm = _field(body, "Confirm Password", show="•")

    def on_submit():
        data = {k: v.get().strip() for k, v in fields.items()}
        data.update({
            "gender": gender.value,
            "role": role.value,
            "university": university.value,
            "faculty": faculty.value,
            "department": department.value,
            "password": password.get(),
        })
        try:
            result["uid"] = auth.signup(data, confirm.get())
        except ValidationError as e:
            messagebox.showwarning("Validation Error", str(e), parent=root)
            return
        except ApiError as e:
            messagebox.showerror("Signup Failed", _error_text(e), parent=root)
            return
        root.destroy()

    tk.Button(body, text="Sign Up", font=(FONT, 12, "bold"), bg=THEME["primary"],
              fg="white", relief="flat", pady=8, command=on_submit).pack(fill="x", pady=(16, 8))

    root.after(100, lambda: university.load(reference(api.fetch_universities)))
    root.mainloop()
    return result["uid"]
