"""
Attendee — desktop client for code-based attendance marking.
=============================================================
Enter the 6-digit code shown by the lecturer, check the event, and
long-press to mark attendance at your current position. Also browses
attendance books, notifications, subscriptions and history.

Usage:
    python attendee.py
"""

from attendee_core.runner import run_with_auto_restart

if __name__ == "__main__":
    run_with_auto_restart()
