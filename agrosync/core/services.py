"""
Service wiring for AgroSync
Builds the local data layer, sync engine and connectivity monitor from config
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from agrosync.core.connectivity import (
    ConnectivityMonitor, ConnectivitySignal, StaticConnectivitySignal, HttpProbeSignal
)
from agrosync.core.database import DatabaseService
from agrosync.core.exceptions import RemoteStoreError
from agrosync.core.local_store import LocalStore
from agrosync.core.operation_queue import OperationQueue
from agrosync.core.remote_store import RemoteStore, RemoteConfig, PostgrestRemoteStore
from agrosync.core.repository import RepositoryRegistry
from agrosync.core.sync_engine import SyncEngine

logger = logging.getLogger(__name__)


class UnconfiguredRemoteStore(RemoteStore):
    """Placeholder used when no remote URL is configured; every call fails"""

    async def _fail(self, collection: str):
        raise RemoteStoreError("Remote store is not configured", collection=collection)

    async def insert(self, collection: str, record: Dict[str, Any]):
        await self._fail(collection)

    async def update(self, collection: str, record_id: str, changes: Dict[str, Any]):
        await self._fail(collection)

    async def delete(self, collection: str, record_id: str):
        await self._fail(collection)

    async def select_all(self, collection: str) -> List[Dict[str, Any]]:
        await self._fail(collection)
        return []


@dataclass
class SyncServices:
    """All long-lived components of one AgroSync instance"""
    db: DatabaseService
    local_store: LocalStore
    queue: OperationQueue
    repositories: RepositoryRegistry
    remote: RemoteStore
    signal: ConnectivitySignal
    engine: SyncEngine
    monitor: ConnectivityMonitor

    async def start(self, start_monitor: bool = True):
        await self.db.initialize_database()
        if start_monitor:
            await self.monitor.start()
        else:
            # One-shot use: no polling loop, but the signal must reflect reality
            await self.signal.check_now()

    async def stop(self):
        await self.monitor.stop()
        await self.remote.close()
        await self.db.close()


def build_remote_store(remote_config: Dict[str, Any]) -> RemoteStore:
    if not remote_config.get('url'):
        logger.warning("No remote URL configured - queued operations will stay pending")
        return UnconfiguredRemoteStore()
    return PostgrestRemoteStore(RemoteConfig.from_dict(remote_config))


def build_signal(connectivity_config: Dict[str, Any]) -> ConnectivitySignal:
    mode = connectivity_config.get('mode', 'static')
    if mode == 'probe':
        probe_url = connectivity_config.get('probe_url')
        if not probe_url:
            raise ValueError("connectivity.probe_url is required in probe mode")
        return HttpProbeSignal(
            probe_url=probe_url,
            interval=float(connectivity_config.get('probe_interval', 15.0)),
            timeout=float(connectivity_config.get('probe_timeout', 5.0)),
            initially_online=bool(connectivity_config.get('initially_online', False)),
        )
    if mode != 'static':
        raise ValueError(f"Unknown connectivity mode '{mode}'")
    return StaticConnectivitySignal(online=bool(connectivity_config.get('initially_online', True)))


def build_services(config: Dict[str, Any], remote: Optional[RemoteStore] = None,
                   signal: Optional[ConnectivitySignal] = None) -> SyncServices:
    """Wire components; call start() on the result before use"""
    db_config = config.get('database', {})
    sync_config = config.get('sync', {})

    db = DatabaseService(
        db_config.get('url', 'sqlite+aiosqlite:///./data/agrosync.db'),
        echo=db_config.get('echo', False)
    )
    local_store = LocalStore(db)
    queue = OperationQueue(db)
    repositories = RepositoryRegistry(local_store, queue)

    remote = remote or build_remote_store(config.get('remote', {}))
    signal = signal or build_signal(config.get('connectivity', {}))

    engine = SyncEngine(
        queue,
        remote,
        is_online=signal.is_online,
        local_store=local_store,
        max_retries=sync_config.get('max_retries') or None,
        strict_mapping=bool(sync_config.get('strict_mapping', False)),
    )
    monitor = ConnectivityMonitor(
        signal,
        engine,
        settle_delay=float(sync_config.get('settle_delay', 1.0)),
        auto_sync_interval=float(sync_config.get('auto_sync_interval', 0) or 0),
    )

    return SyncServices(
        db=db,
        local_store=local_store,
        queue=queue,
        repositories=repositories,
        remote=remote,
        signal=signal,
        engine=engine,
        monitor=monitor,
    )
