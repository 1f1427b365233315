from __future__ import annotations

import pytest

from attendee_core import api, updates
from attendee_core.errors import TransportError
from attendee_core.updates import compare_versions, evaluate_update


@pytest.mark.parametrize("current, latest, expected", [
    ("1.4.0", "1.4.0", 0),
    ("1.4", "1.4.0", 0),
    ("1.3.9", "1.4.0", -1),
    ("1.10.0", "1.9.9", 1),
    ("v2.0", "1.99", 1),
])
def test_compare_versions(current, latest, expected):
    assert compare_versions(current, latest) == expected


def test_failed_check_means_no_update():
    assert evaluate_update({"success": False, "message": "db down"}) is None


def test_no_update_required():
    assert evaluate_update({"success": True, "updateRequired": False}) is None


def test_optional_update_defaults():
    info = evaluate_update({"success": True, "updateRequired": True, "latestVersion": "1.5.0"})

    assert info.mandatory is False
    assert info.latest_version == "1.5.0"
    assert info.message == "A new version of the app is available."
    assert info.download_url is None


def test_must_update_flag_makes_it_mandatory():
    info = evaluate_update({
        "success": True, "updateRequired": True, "mustUpdate": True,
        "latestVersion": "2.0.0", "downloadUrl": "https://example.test/dl",
        "updateMessage": "Please update",
    })

    assert info.mandatory is True
    assert info.message == "Please update"
    assert info.download_url == "https://example.test/dl"


def test_forced_version_list_makes_it_mandatory():
    body = {"success": True, "updateRequired": True, "latestVersion": "1.6.0"}

    assert evaluate_update(body, ["1.6.0"]).mandatory is True
    assert evaluate_update(body, ["1.7.0"]).mandatory is False


def test_check_for_update_swallows_transport_errors(config, monkeypatch):
    def broken(*args):
        raise TransportError("offline")

    monkeypatch.setattr(api, "check_app_version", broken)

    assert updates.check_for_update(config) is None


def test_check_for_update_uses_config_forced_versions(config, monkeypatch):
    monkeypatch.setattr(api, "check_app_version", lambda *args: {
        "success": True, "updateRequired": True, "latestVersion": "1.5.0",
    })
    config["forceUpdateVersions"] = ["1.5.0"]

    assert updates.check_for_update(config).mandatory is True
