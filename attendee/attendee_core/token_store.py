"""
TokenStore — the one place the session token is read or written.

Injected into every component that needs the user id; nothing else touches
the token file. Writes happen only at login/signup and logout.
"""

import os

from .config import log, TOKEN_FILE


class TokenStore:
    def __init__(self, path=TOKEN_FILE):
        self._path = path
        self._cached = None

    def get_token(self):
        """Current token or None when unauthenticated."""
        if self._cached is not None:
            return self._cached
        try:
            token = self._path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            log.warning("Session token unreadable: %s", e)
            return None
        self._cached = token or None
        return self._cached

    def set_token(self, token):
        token = str(token).strip()
        if not token:
            raise ValueError("empty session token")
        fd = os.open(str(self._path), os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(token)
        self._cached = token
        log.info("Session token stored")

    def clear_token(self):
        self._cached = None
        self._path.unlink(missing_ok=True)
        log.info("Session token cleared")

    @property
    def is_authenticated(self) -> bool:
        return self.get_token() is not None
