"""
Error types shared by the API layer and the screens that call it.

Screens catch ApiError at the handler boundary and turn it into a Notice;
nothing here is allowed to escape past the screen that made the call.
"""


class ApiError(RuntimeError):
    """Backend answered with a non-success ``status``."""

    def __init__(self, message, payload=None):
        super().__init__(message)
        self.message = message
        self.payload = payload or {}


class TransportError(ApiError):
    """Request never produced a usable JSON answer (network, HTTP, decode)."""


class ValidationError(ValueError):
    """Local input check failed before any network call."""


class LocationUnavailable(RuntimeError):
    """Position source denied or unreachable. Shown as a blocking alert."""
