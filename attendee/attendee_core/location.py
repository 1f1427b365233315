"""
Position sources for the Attend screen.

Desktops rarely have a GPS, so the sample comes either from fixed
coordinates in config.json (lab kiosks) or from an IP geolocation lookup.
Any failure raises LocationUnavailable, which the screen shows as a
blocking alert.
"""

import requests

from .config import log
from .constants import LOCATION_TIMEOUT
from .errors import LocationUnavailable
from .models import GeoSample
from . import http_client


class StaticLocationProvider:
    """Fixed coordinates from config.json, checked when first asked for."""

    def __init__(self, latitude, longitude):
        self._latitude = latitude
        self._longitude = longitude

    def current_position(self):
        try:
            return GeoSample(float(self._latitude), float(self._longitude))
        except (TypeError, ValueError) as e:
            log.warning("Configured coordinates unusable: %r, %r", self._latitude, self._longitude)
            raise LocationUnavailable(
                "The configured location is invalid. Check latitude and longitude in config.json."
            ) from e


class IpLocationProvider:
    """GET ``url`` and read latitude/longitude (or lat/lon) from the JSON body."""

    def __init__(self, url):
        self._url = url

    def current_position(self):
        try:
            resp = http_client.http.get(self._url, timeout=LOCATION_TIMEOUT)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            log.warning("IP location lookup failed: %s", e)
            raise LocationUnavailable(
                "Location services are unavailable. Check your connection and try again."
            ) from e

        lat = data.get("latitude", data.get("lat"))
        lon = data.get("longitude", data.get("lon"))
        try:
            return GeoSample(float(lat), float(lon))
        except (TypeError, ValueError) as e:
            raise LocationUnavailable("Location service returned no position.") from e


class NoLocationProvider:
    def current_position(self):
        raise LocationUnavailable("Location permission is required to mark attendance.")


def provider_from_config(config):
    """Fixed coordinates win over the lookup URL; neither → always unavailable."""
    if config.get("latitude") is not None and config.get("longitude") is not None:
        return StaticLocationProvider(config["latitude"], config["longitude"])
    if config.get("locationUrl"):
        return IpLocationProvider(config["locationUrl"])
    log.warning("No location source configured — attendance marking disabled")
    return NoLocationProvider()
