"""
AppState — process-wide UI state that is not owned by a single screen.

All mutations happen on the Tkinter main thread. No locks needed.
Per-screen state lives in AttendanceSession / PagedCollection instances.
"""

import time
from dataclasses import dataclass, field
from typing import Optional

from .models import Profile
from .updates import UpdateInfo


@dataclass
class AppState:
    # ── Connectivity ──────────────────────────────────────────
    online: bool = True
    offline_since: float = 0.0

    # ── Session ───────────────────────────────────────────────
    user_id: Optional[str] = None
    profile: Optional[Profile] = None

    # ── Version check ─────────────────────────────────────────
    update: Optional[UpdateInfo] = None

    started_at: float = field(default_factory=time.time)

    @property
    def offline_seconds(self) -> float:
        if self.online:
            return 0.0
        return time.time() - self.offline_since

    def mark_offline(self):
        self.online = False
        self.offline_since = time.time()

    def mark_online(self):
        self.online = True
        self.offline_since = 0.0

    @property
    def blocks_input(self) -> bool:
        """Offline or a mandatory update pending: screens stay read-only."""
        return not self.online or bool(self.update and self.update.mandatory)
