"""
HTTP session with connection pooling, automatic retry, and certifi CA bundle.

Every backend call goes through ``post_json`` / ``get_json`` so the shared
application credential and the ``status`` convention live in one place.
"""

import os

import certifi
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import log
from .constants import API_TIMEOUT, API_TIMEOUT_REFERENCE
from .errors import ApiError, TransportError

# Only idempotent reads are resent. POSTs (mark attendance, subscribe,
# create/delete) reach the server at most once; the user re-initiates.
_retry_strategy = Retry(
    total=3,
    backoff_factor=1,                           # Wait 1s, 2s, 4s between retries
    status_forcelist=[502, 503, 504],
    allowed_methods=["HEAD", "GET"],
)


def _get_ca_bundle():
    """Env override first (corporate proxies), then certifi."""
    env_ca = os.environ.get('REQUESTS_CA_BUNDLE') or os.environ.get('SSL_CERT_FILE')
    if env_ca and os.path.isfile(env_ca):
        return env_ca
    return certifi.where()


def create_session():
    """Create a new requests.Session with connection pooling, retry, and SSL."""
    session = requests.Session()
    adapter = HTTPAdapter(
        pool_connections=2,
        pool_maxsize=6,
        max_retries=_retry_strategy,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.verify = _get_ca_bundle()
    session.headers["Content-Type"] = "application/json"
    return session


def reset_session(session):
    """Close and recreate the HTTP session (fixes stale connections)."""
    try:
        session.close()
    except requests.RequestException:
        pass
    return create_session()


# Global shared session
http = create_session()


# ─── Response convention ─────────────────────────────────────────

def is_success(data):
    """Backend reports success as ``1`` or ``"1"``."""
    return str(data.get("status")) == "1"


def _auth_headers(config):
    return {"Authorization": f"Bearer {config.get('adminPass', '')}"}


def _decode(resp, path):
    if resp.status_code >= 400:
        log.warning("%s failed: HTTP %d — %s", path, resp.status_code, resp.text[:200])
        try:
            body = resp.json()
        except ValueError:
            body = None
        # A JSON error body with a message is the backend talking: show it verbatim.
        if isinstance(body, dict) and body.get("message"):
            raise ApiError(body["message"], body)
        raise TransportError(f"Server error (HTTP {resp.status_code})")
    try:
        data = resp.json()
    except ValueError:
        log.warning("%s returned non-JSON body: %s", path, resp.text[:200])
        raise TransportError("Unexpected response from server")
    if not isinstance(data, dict):
        raise TransportError("Unexpected response from server")
    return data


def post_json(config, path, payload, fallback="Request failed", body_pass=True,
              check_status=True):
    """
    POST ``payload`` to ``serverUrl + path`` and return the decoded body.

    Raises TransportError on network/HTTP/decode failure and ApiError when the
    backend answers with a non-success ``status``. The application credential
    travels as a bearer header and, with ``body_pass``, as the ``pass`` field.
    """
    url = f"{config['serverUrl']}{path}"
    body = dict(payload)
    if body_pass:
        body["pass"] = config.get("adminPass", "")
    try:
        resp = http.post(url, json=body, headers=_auth_headers(config), timeout=API_TIMEOUT)
    except requests.RequestException as e:
        log.warning("%s network error: %s", path, e)
        raise TransportError(str(e)) from e

    data = _decode(resp, path)
    if check_status and not is_success(data):
        message = data.get("message") or fallback
        log.info("%s rejected by backend: %s", path, message)
        raise ApiError(message, data)
    return data


def get_json(config, path, params=None, fallback="Request failed", check_status=True):
    """GET variant used for reference data and the version check."""
    url = f"{config['serverUrl']}{path}"
    try:
        resp = http.get(url, params=params, headers=_auth_headers(config),
                        timeout=API_TIMEOUT_REFERENCE)
    except requests.RequestException as e:
        log.warning("%s network error: %s", path, e)
        raise TransportError(str(e)) from e

    data = _decode(resp, path)
    if check_status and not is_success(data):
        message = data.get("message") or fallback
        log.info("%s rejected by backend: %s", path, message)
        raise ApiError(message, data)
    return data
