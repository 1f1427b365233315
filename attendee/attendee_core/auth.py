"""
Login, signup and logout on top of TokenStore.

The backend issues the user id as the session token; it is stored only after
a successful login/signup and cleared only after the backend allows logout.
"""

import re

from . import api
from .config import log
from .constants import MSG_LOGOUT_BLOCKED
from .errors import ValidationError, ApiError

_USERNAME_RE = re.compile(r"^[a-zA-Z0-9_]+$")
_EMAIL_RE = re.compile(r"\S+@\S+\.\S+")
_PHONE_RE = re.compile(r"^\d{11}$")

SIGNUP_REQUIRED = (
    ("fullname", "Full name is required"),
    ("gender", "Gender is required"),
    ("university", "University is required"),
    ("faculty", "Faculty is required"),
    ("department", "Department is required"),
    ("matric_no", "Matric number is required"),
)


def validate_signup(fields, confirm_password):
    """Raise ValidationError with the first problem found, in form order."""
    username = fields.get("username") or ""
    if not 4 <= len(username) <= 12:
        raise ValidationError("Username must be between 4 and 12 characters")
    if not _USERNAME_RE.match(username):
        raise ValidationError("Username can only contain letters, numbers, and underscores")
    if not _EMAIL_RE.search(fields.get("email") or ""):
        raise ValidationError("Please enter a valid email address")
    if not _PHONE_RE.match(fields.get("phone") or ""):
        raise ValidationError("Phone number must be 11 digits")
    for key, message in SIGNUP_REQUIRED:
        if not fields.get(key):
            raise ValidationError(message)
    password = fields.get("password") or ""
    if len(password) < 6:
        raise ValidationError("Password must be at least 6 characters long")
    if password != confirm_password:
        raise ValidationError("Passwords do not match")


class AuthService:
    def __init__(self, config, tokens):
        self._config = config
        self._tokens = tokens

    def login(self, username, password):
        if not username.strip() or not password:
            raise ValidationError("Email and password are required")
        uid = api.login(self._config, username.strip(), password)
        self._tokens.set_token(uid)
        log.info("Login OK for %s", username.strip())
        return uid

    def signup(self, fields, confirm_password):
        validate_signup(fields, confirm_password)
        uid = api.signup(self._config, fields)
        self._tokens.set_token(uid)
        log.info("Signup OK for %s", fields["username"])
        return uid

    def logout(self):
        """Clear the token if the backend allows it; raise ApiError otherwise."""
        user_id = self._tokens.get_token()
        if user_id is None:
            return
        if not api.logout(self._config, user_id):
            log.info("Logout refused by backend (recent attendance)")
            raise ApiError(MSG_LOGOUT_BLOCKED)
        self._tokens.clear_token()
