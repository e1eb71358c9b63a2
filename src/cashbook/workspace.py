"""Process-wide registry of the stores and clients the services share."""

import logging
from dataclasses import dataclass
from typing import Optional

from cashbook.config import Settings
from cashbook.database.base import RecordStore
from cashbook.database.factories import create_sqlite_store
from cashbook.domain.errors import AuthRequired, not_signed_in
from cashbook.remote.auth import AuthClient, SessionFile, SessionManager
from cashbook.remote.base import DisconnectedRemoteStore, RemoteStore
from cashbook.remote.rest import RestRemoteStore
from cashbook.sync.connectivity import Connectivity, SocketConnectivity, StaticConnectivity
from cashbook.sync.outbox import DEFAULT_MAX_RETRIES, Outbox
from cashbook.sync.synchronizer import Synchronizer

logger = logging.getLogger(__name__)


@dataclass
class Workspace:
    """Everything an entity service needs, built once at process start."""

    store: RecordStore
    remote: RemoteStore
    connectivity: Connectivity
    outbox: Outbox
    synchronizer: Synchronizer
    sessions: Optional[SessionManager] = None
    auth: Optional[AuthClient] = None
    user_id: Optional[str] = None

    @property
    def owner_id(self) -> Optional[str]:
        """Identity that owns every record this workspace writes."""
        if self.user_id:
            return self.user_id
        if self.sessions is not None and self.sessions.session is not None:
            return self.sessions.session.user_id
        return None

    def require_owner(self) -> str:
        owner_id = self.owner_id
        if not owner_id:
            raise AuthRequired(not_signed_in())
        return owner_id

    def is_online(self) -> bool:
        return self.connectivity.is_online()

    def close(self) -> None:
        self.store.close()
        self.remote.close()
        if self.auth is not None:
            self.auth.close()


def build_workspace(
    store: RecordStore,
    remote: RemoteStore,
    connectivity: Connectivity,
    max_retries: int = DEFAULT_MAX_RETRIES,
    sessions: Optional[SessionManager] = None,
    auth: Optional[AuthClient] = None,
    user_id: Optional[str] = None,
) -> Workspace:
    """Wire an outbox and synchronizer around the given collaborators."""
    outbox = Outbox(store, max_retries=max_retries)
    synchronizer = Synchronizer(store, remote, connectivity, outbox)
    return Workspace(
        store=store,
        remote=remote,
        connectivity=connectivity,
        outbox=outbox,
        synchronizer=synchronizer,
        sessions=sessions,
        auth=auth,
        user_id=user_id,
    )


def create_workspace(settings: Settings) -> Workspace:
    """Build the workspace described by ``settings``."""
    settings.home.mkdir(parents=True, exist_ok=True)
    store = create_sqlite_store(settings.database_path)

    auth = None
    if settings.remote_url:
        auth = AuthClient(settings.remote_url, settings.api_key, timeout=settings.timeout)
    sessions = SessionManager(SessionFile(settings.session_path), auth)

    if settings.remote_url:
        remote: RemoteStore = RestRemoteStore(
            settings.remote_url,
            settings.api_key,
            token_provider=sessions.access_token,
            timeout=settings.timeout,
        )
    else:
        remote = DisconnectedRemoteStore()

    if settings.force_offline or not settings.remote_url:
        connectivity: Connectivity = StaticConnectivity(online=False)
    else:
        connectivity = SocketConnectivity(settings.remote_url)

    logger.debug(
        "Workspace ready: db=%s remote=%s offline=%s",
        settings.database_path,
        settings.remote_url,
        settings.force_offline,
    )
    return build_workspace(
        store,
        remote,
        connectivity,
        max_retries=settings.max_retries,
        sessions=sessions,
        auth=auth,
    )
