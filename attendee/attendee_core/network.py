"""
Connectivity monitoring.

Connectivity: socket-level check against the backend host (network-interface
agnostic, works on WiFi, LAN, or any adapter). The monitor is polled from
the Tk loop; the check itself runs on the BackgroundRunner.
"""

import socket
from urllib.parse import urlsplit

from .config import log


def is_online(server_url):
    """
    Quick connectivity check via socket connect to the server's host.
    Only tests whether a TCP connection to the server can be established.
    """
    parts = urlsplit(server_url)
    host = parts.hostname
    if not host:
        return False
    port = parts.port or (443 if parts.scheme == "https" else 80)
    try:
        sock = socket.create_connection((host, port), timeout=4)
        sock.close()
        return True
    except OSError:
        return False


class ConnectivityMonitor:
    """
    Tracks online/offline transitions and reports them once each.

    on_offline() / on_online() fire on the main thread only when the state
    actually flips; repeated checks with the same answer are silent.
    """

    def __init__(self, server_url, runner, on_offline, on_online, check=is_online):
        self._server_url = server_url
        self._runner = runner
        self._on_offline = on_offline
        self._on_online = on_online
        self._check = check
        self._in_flight = False
        self.online = True

    def poll(self):
        if self._in_flight:
            return
        self._in_flight = True
        self._runner.submit(lambda: self._check(self._server_url), self._on_result)

    def _on_result(self, online, error):
        self._in_flight = False
        online = bool(online) and error is None
        if online == self.online:
            return
        self.online = online
        if online:
            log.info("Network ONLINE — reconnected")
            self._on_online()
        else:
            log.warning("Network OFFLINE — %s unreachable", self._server_url)
            self._on_offline()
