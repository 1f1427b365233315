"""
Notice — the user-facing outcome of a handler.

ERROR and SUCCESS notices are transient (auto-hide after NOTICE_DURATION_MS);
BLOCKING notices need an explicit acknowledgement. widgets.NoticeBar renders
them; core classes only emit them.
"""

from dataclasses import dataclass

ERROR = "error"
SUCCESS = "success"
BLOCKING = "blocking"


@dataclass(frozen=True)
class Notice:
    kind: str
    text: str
    title: str = ""

    @classmethod
    def error(cls, text):
        return cls(ERROR, text)

    @classmethod
    def success(cls, text):
        return cls(SUCCESS, text)

    @classmethod
    def blocking(cls, title, text):
        return cls(BLOCKING, text, title)

    @property
    def is_blocking(self) -> bool:
        return self.kind == BLOCKING
