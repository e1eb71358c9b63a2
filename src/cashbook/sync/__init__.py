"""Offline-first synchronization: connectivity, outbox and synchronizer."""

from cashbook.sync.connectivity import Connectivity, SocketConnectivity, StaticConnectivity
from cashbook.sync.outbox import Outbox
from cashbook.sync.synchronizer import DrainResult, Synchronizer, SyncStrategy

__all__ = [
    "Connectivity",
    "SocketConnectivity",
    "StaticConnectivity",
    "Outbox",
    "DrainResult",
    "Synchronizer",
    "SyncStrategy",
]
