"""Network reachability checks.

``is_online()`` is a hint only: a True answer does not promise that the next
remote call succeeds, so callers still handle remote failures themselves.
"""

import logging
import socket
from abc import ABC, abstractmethod
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)


class Connectivity(ABC):
    """Answers whether the remote store looks reachable right now."""

    @abstractmethod
    def is_online(self) -> bool:
        pass


class StaticConnectivity(Connectivity):
    """Fixed answer, switchable at runtime. Used for forced-offline mode."""

    def __init__(self, online: bool = True):
        self._online = online

    def is_online(self) -> bool:
        return self._online

    def go_online(self) -> None:
        self._online = True

    def go_offline(self) -> None:
        self._online = False


class SocketConnectivity(Connectivity):
    """Probe the remote host with a TCP connect."""

    def __init__(self, url: str, timeout: float = 2.0):
        parts = urlsplit(url)
        self.host = parts.hostname or ""
        self.port = parts.port or (443 if parts.scheme == "https" else 80)
        self.timeout = timeout

    def is_online(self) -> bool:
        if not self.host:
            return False
        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout):
                return True
        except OSError as e:
            logger.debug("Connectivity probe to %s:%s failed: %s", self.host, self.port, e)
            return False
