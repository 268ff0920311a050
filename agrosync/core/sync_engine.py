"""
Sync engine for AgroSync
Drains the operation queue against the remote store, one item at a time
"""

import asyncio
import inspect
import logging
import time
from typing import Callable, Iterable, List, Optional, Union

from agrosync.core.exceptions import RemoteStoreError
from agrosync.core.local_store import LocalStore
from agrosync.core.mapping import to_remote, from_remote
from agrosync.core.models import (
    EntityType, OperationType, OperationQueueItem, SyncResult, SyncStatus, PullResult,
    get_definition, resolve_entity_type
)
from agrosync.core.operation_queue import OperationQueue
from agrosync.core.remote_store import RemoteStore

LAST_SYNC_TIME_KEY = 'last_sync_time'

SyncListener = Callable[[SyncResult], object]


class SyncEngine:
    """
    Applies queued operations to the remote store.

    Passes are mutually exclusive per engine instance: a call made while a
    pass is in flight returns a no-op result instead of waiting. Items are
    applied sequentially in timestamp order, a failed item stays queued and
    the pass moves on to the next one.
    """

    def __init__(self, queue: OperationQueue, remote: RemoteStore,
                 is_online: Callable[[], bool], local_store: Optional[LocalStore] = None,
                 max_retries: Optional[int] = None, strict_mapping: bool = False):
        self.queue = queue
        self.remote = remote
        self.local_store = local_store
        self.max_retries = max_retries or None
        self.strict_mapping = strict_mapping
        self._is_online = is_online
        self._lock = asyncio.Lock()
        self._listeners: List[SyncListener] = []
        self.logger = logging.getLogger(__name__)

    @property
    def is_syncing(self) -> bool:
        return self._lock.locked()

    def add_listener(self, listener: SyncListener):
        """Register a callback invoked with the result of every completed pass"""
        self._listeners.append(listener)

    def remove_listener(self, listener: SyncListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def sync_to_remote(self) -> SyncResult:
        """Run one drain pass"""
        if self._lock.locked():
            self.logger.info("Sync already in progress")
            return SyncResult(success=False)

        if not self._is_online():
            self.logger.info("Cannot sync - offline")
            return SyncResult(success=False)

        async with self._lock:
            result = await self._drain_pass()

        await self._notify(result)
        return result

    async def _drain_pass(self) -> SyncResult:
        synced_count = 0
        error_count = 0

        try:
            items = await self.queue.drain(max_retries=self.max_retries)

            if not items:
                self.logger.info("No items to sync")
                await self._record_sync_time()
                return SyncResult(success=True)

            self.logger.info(f"Syncing {len(items)} queued operations...")

            for item in items:
                try:
                    await self._apply(item)
                except Exception as e:
                    error_count += 1
                    self.logger.error(
                        f"Error syncing {item.operation.value} {item.entity_type.value}/"
                        f"{item.entity_id} (queue item {item.id}): {e}"
                    )
                    await self.queue.record_failure(item.id, str(e))
                    continue

                await self.queue.remove(item.id)
                synced_count += 1

            await self._record_sync_time()

        except Exception as e:
            self.logger.error(f"Sync pass aborted: {e}", exc_info=True)
            return SyncResult(success=False, synced_count=synced_count, error_count=error_count + 1)

        self.logger.info(f"Sync complete: {synced_count} synced, {error_count} errors")
        return SyncResult(success=True, synced_count=synced_count, error_count=error_count)

    async def _apply(self, item: OperationQueueItem):
        """Issue the remote write matching one queue item"""
        definition = get_definition(item.entity_type)
        collection = definition.collection

        if item.operation is OperationType.CREATE:
            if item.data is None:
                raise ValueError(f"Create operation {item.id} has no data")
            await self.remote.insert(collection, to_remote(definition, item.data, self.strict_mapping))

        elif item.operation is OperationType.UPDATE:
            changes = to_remote(definition, item.data or {}, self.strict_mapping)
            await self.remote.update(collection, item.entity_id, changes)

        elif item.operation is OperationType.DELETE:
            await self.remote.delete(collection, item.entity_id)

    async def _record_sync_time(self):
        if self.local_store is not None:
            await self.local_store.set_metadata(LAST_SYNC_TIME_KEY, int(time.time() * 1000))

    async def _notify(self, result: SyncResult):
        for listener in list(self._listeners):
            try:
                outcome = listener(result)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as e:
                self.logger.error(f"Sync listener failed: {e}")

    async def get_sync_status(self) -> SyncStatus:
        """Pending count and in-flight state for indicators"""
        last_sync_time = None
        if self.local_store is not None:
            last_sync_time = await self.local_store.get_metadata(LAST_SYNC_TIME_KEY)

        stalled_count = 0
        if self.max_retries:
            stalled_count = await self.queue.count_stalled(self.max_retries)

        return SyncStatus(
            pending_count=await self.queue.count(),
            is_syncing=self.is_syncing,
            is_online=self._is_online(),
            last_sync_time=last_sync_time,
            stalled_count=stalled_count,
        )

    async def pull_from_remote(
        self, entity_types: Optional[Iterable[Union[str, EntityType]]] = None
    ) -> PullResult:
        """
        Refresh local copies from the remote collections.

        Entity types with pending queue items are skipped so unsynced local
        writes are never overwritten. Remote rows are upserted; local
        records missing remotely are kept.
        """
        result = PullResult()

        if self.local_store is None:
            raise RuntimeError("pull_from_remote requires a local store")

        if self._lock.locked() or not self._is_online():
            self.logger.info("Pull skipped - sync in progress or offline")
            return result

        targets = [resolve_entity_type(name) for name in entity_types] if entity_types else list(EntityType)

        async with self._lock:
            for entity_type in targets:
                if await self.queue.count(entity_type) > 0:
                    self.logger.info(f"Skipping pull of {entity_type.value}: local changes pending")
                    result.skipped.append(entity_type.value)
                    continue

                definition = get_definition(entity_type)
                try:
                    rows = await self.remote.select_all(definition.collection)
                except RemoteStoreError as e:
                    self.logger.error(f"Pull of {definition.collection} failed: {e}")
                    result.failed.append(entity_type.value)
                    continue

                records = [from_remote(definition, row) for row in rows]
                async with self.local_store.write_lock:
                    # A local write may have landed while the fetch was in flight
                    if await self.queue.count(entity_type) > 0:
                        self.logger.info(f"Discarding pull of {entity_type.value}: local changes made during fetch")
                        result.skipped.append(entity_type.value)
                        continue
                    result.refreshed[entity_type.value] = await self.local_store.bulk_put(entity_type, records)

        self.logger.info(f"Pull complete: {result.refreshed}")
        return result
