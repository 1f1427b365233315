"""
App version check: is an update available, and is it mandatory?
"""

import platform
from dataclasses import dataclass
from typing import Optional

from . import api
from .config import log
from .constants import APP_VERSION
from .errors import ApiError


def _parts(version):
    out = []
    for piece in str(version or "0").strip().lstrip("v").split("."):
        try:
            out.append(int(piece))
        except ValueError:
            out.append(0)
    return out


def compare_versions(current, latest):
    """-1 if current < latest, 1 if newer, 0 if equal. Missing parts count as 0."""
    a, b = _parts(current), _parts(latest)
    for i in range(max(len(a), len(b))):
        x = a[i] if i < len(a) else 0
        y = b[i] if i < len(b) else 0
        if x < y:
            return -1
        if x > y:
            return 1
    return 0


@dataclass(frozen=True)
class UpdateInfo:
    latest_version: str
    download_url: Optional[str]
    message: str
    mandatory: bool


def evaluate_update(body, force_update_versions=()):
    """
    Interpret the version endpoint body. Returns UpdateInfo or None when the
    check failed or no update is required.
    """
    if not body.get("success"):
        log.warning("Version check failed: %s", body.get("message", "no detail"))
        return None
    if not body.get("updateRequired"):
        return None

    latest = str(body.get("latestVersion") or "")
    mandatory = bool(body.get("mustUpdate")) or any(
        compare_versions(latest, forced) >= 0 for forced in force_update_versions
    )
    if mandatory:
        default_msg = "A critical update is available. You must update the app to continue."
    else:
        default_msg = "A new version of the app is available."
    return UpdateInfo(
        latest_version=latest,
        download_url=body.get("downloadUrl") or None,
        message=body.get("updateMessage") or default_msg,
        mandatory=mandatory,
    )


def check_for_update(config):
    """Blocking. Never raises: a broken version endpoint must not stop startup."""
    try:
        body = api.check_app_version(config, APP_VERSION, platform.system().lower())
    except ApiError as e:
        log.warning("Version check error: %s", e)
        return None
    return evaluate_update(body, config.get("forceUpdateVersions", ()))
