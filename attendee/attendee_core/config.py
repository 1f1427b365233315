"""
Paths, logging setup, config load/save, safe_print.
"""

import os
import json
import sys
import logging
from pathlib import Path


# ─── Paths ───────────────────────────────────────────────────────
# One data directory per OS user: config, session token, log.
BASE_DIR = Path(os.environ.get("ATTENDEE_HOME") or Path.home() / ".attendee")

BASE_DIR.mkdir(parents=True, exist_ok=True)

CONFIG_FILE = BASE_DIR / "config.json"
TOKEN_FILE = BASE_DIR / "session.token"
LOG_FILE = BASE_DIR / "attendee.log"


# ─── Safe print (no crash when --noconsole) ──────────────────────

def safe_print(*args, **kwargs):
    try:
        print(*args, **kwargs)
    except (OSError, ValueError, AttributeError):
        pass


# ─── Logging ─────────────────────────────────────────────────────

try:
    if LOG_FILE.exists() and LOG_FILE.stat().st_size > 1_000_000:
        LOG_FILE.write_text("")
except OSError:
    pass

logging.basicConfig(
    filename=str(LOG_FILE),
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    encoding="utf-8",
)
log = logging.getLogger("attendee")

console_handler = logging.StreamHandler(sys.stdout)
console_handler.setLevel(logging.INFO)
console_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
log.addHandler(console_handler)


# ─── Config Management ──────────────────────────────────────────

def load_config():
    """Load config from disk, then apply environment overrides. Returns dict or None."""
    config = None
    if CONFIG_FILE.exists():
        try:
            with open(CONFIG_FILE, "r") as f:
                config = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            log.warning("Config at %s unreadable: %s", CONFIG_FILE, e)
            config = None

    env_url = os.environ.get("ATTENDEE_SERVER_URL")
    env_pass = os.environ.get("ATTENDEE_ADMIN_PASS")
    if env_url or env_pass:
        config = dict(config or {})
        if env_url:
            config["serverUrl"] = env_url
        if env_pass:
            config["adminPass"] = env_pass

    if not config or not config.get("serverUrl"):
        return None

    config["serverUrl"] = config["serverUrl"].rstrip("/")
    config.setdefault("adminPass", "")
    return config


def save_config(config):
    """Save config dict to disk."""
    with open(CONFIG_FILE, "w") as f:
        json.dump(config, f, indent=2)
    log.info("Config saved to %s", CONFIG_FILE)
