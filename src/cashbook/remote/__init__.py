"""Remote store and authentication clients."""

from cashbook.remote.auth import AuthClient, AuthSession, SessionFile, SessionManager
from cashbook.remote.base import DisconnectedRemoteStore, RemoteStore, Row
from cashbook.remote.rest import RestRemoteStore

__all__ = [
    "AuthClient",
    "AuthSession",
    "SessionFile",
    "SessionManager",
    "DisconnectedRemoteStore",
    "RemoteStore",
    "RestRemoteStore",
    "Row",
]
