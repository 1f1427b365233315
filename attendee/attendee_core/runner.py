"""
Entry point and auto-restart wrapper.
"""

import sys
import time

from .constants import APP_VERSION
from .config import log, safe_print, load_config
from . import http_client
from .login_view import gui_setup, gui_login
from .token_store import TokenStore
from .updates import check_for_update
from .app import AttendeeApp


def main():
    """Primary entry point: setup → login → version check → app."""
    safe_print("Attendee v" + APP_VERSION)
    safe_print()

    config = load_config()
    if not config:
        config = gui_setup()
        if not config:
            sys.exit(0)
    else:
        log.info("Loaded config for %s", config["serverUrl"])

    tokens = TokenStore()

    # Logging out returns to the login dialog instead of quitting.
    while True:
        if not tokens.is_authenticated:
            if not gui_login(config, tokens):
                sys.exit(0)

        update = check_for_update(config)
        if update is not None:
            log.info("Update available: %s (mandatory=%s)",
                     update.latest_version, update.mandatory)

        app = AttendeeApp(config, tokens, update=update)
        app.run()
        if not app.logged_out:
            break


def run_with_auto_restart():
    """
    Wrapper that auto-restarts on crash.
    Crash counter resets if the app ran for 2+ minutes (not a boot-loop).
    """
    crash_count = 0
    crash_window = 120
    max_rapid_crashes = 5

    while True:
        start_time = time.time()
        try:
            main()
            break
        except KeyboardInterrupt:
            safe_print("\nAttendee stopped by user.")
            break
        except SystemExit as e:
            if e.code in (0, None):
                break
            log.error("Attendee SystemExit: %s", e)
            raise
        except Exception as e:
            elapsed = time.time() - start_time
            log.error("Attendee crashed after %.0fs: %s", elapsed, e, exc_info=True)

            if elapsed > crash_window:
                crash_count = 0
            crash_count += 1

            if crash_count >= max_rapid_crashes:
                log.warning("Too many rapid crashes (%d). Giving up.", crash_count)
                raise
            wait = min(5 * crash_count, 30)

            log.info("Restarting in %ds (crash %d)...", wait, crash_count)
            time.sleep(wait)

            http_client.http = http_client.reset_session(http_client.http)
