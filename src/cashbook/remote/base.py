"""Abstract remote store interface."""

from abc import ABC, abstractmethod
from typing import Any, Optional

from cashbook.domain.errors import RemoteUnavailable

Row = dict[str, Any]


class RemoteStore(ABC):
    """Create/read/update/delete over named remote collections.

    Implementations raise ``RemoteUnavailable`` when the backend cannot be
    reached and ``RemoteRejected`` when it refuses a request.
    """

    @abstractmethod
    def select(
        self,
        collection: str,
        filters: Optional[dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[Row]:
        """Return rows matching every equality filter."""
        pass

    @abstractmethod
    def insert(self, collection: str, payload: Row) -> Row:
        """Insert a row without id. Returns the stored row with its server id."""
        pass

    @abstractmethod
    def update(self, collection: str, record_id: str, fields: Row) -> Optional[Row]:
        """Apply partial fields to a row. Returns the updated row if echoed."""
        pass

    @abstractmethod
    def delete(self, collection: str, record_id: str) -> None:
        """Remove a row."""
        pass

    def close(self) -> None:
        pass


class DisconnectedRemoteStore(RemoteStore):
    """Remote store used when no server is configured. Every call fails."""

    def _unavailable(self) -> RemoteUnavailable:
        return RemoteUnavailable("No server configured (set CASHBOOK_REMOTE_URL)")

    def select(self, collection, filters=None, order_by=None, descending=False):
        raise self._unavailable()

    def insert(self, collection, payload):
        raise self._unavailable()

    def update(self, collection, record_id, fields):
        raise self._unavailable()

    def delete(self, collection, record_id):
        raise self._unavailable()
