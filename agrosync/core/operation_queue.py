"""
Operation queue for AgroSync
Append-only log of pending create/update/delete operations, drained in
timestamp order by the sync engine.
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

from sqlalchemy import select, delete, func

from agrosync.core.database import DatabaseService
from agrosync.core.models import EntityType, OperationType, OperationQueueItem, SyncQueueDB


class OperationQueue:
    """Durable FIFO of pending mutations"""

    def __init__(self, db: DatabaseService):
        self.db = db
        self.logger = logging.getLogger(__name__)

        # Serializes enqueues so timestamps and ids grow together
        self._enqueue_lock = asyncio.Lock()
        self._last_timestamp: Optional[int] = None

    async def _next_timestamp(self, session) -> int:
        if self._last_timestamp is None:
            result = await session.execute(select(func.max(SyncQueueDB.timestamp)))
            self._last_timestamp = result.scalar() or 0

        timestamp = max(int(time.time() * 1000), self._last_timestamp + 1)
        self._last_timestamp = timestamp
        return timestamp

    async def enqueue(self, operation: OperationType, entity_type: EntityType,
                      entity_id: str, data: Optional[Dict[str, Any]] = None) -> OperationQueueItem:
        """Append an operation; id and timestamp are assigned here"""
        async with self._enqueue_lock:
            async with self.db.guarded_session() as session:
                row = SyncQueueDB(
                    operation=operation.value,
                    entity_type=entity_type.value,
                    entity_id=entity_id,
                    data=dict(data) if data is not None else None,
                    timestamp=await self._next_timestamp(session),
                    retry_count=0,
                )
                session.add(row)
                await session.flush()
                item = OperationQueueItem.from_db(row)

        self.logger.debug(
            f"Queued {operation.value} {entity_type.value}/{entity_id} as item {item.id}"
        )
        return item

    async def drain(self, max_retries: Optional[int] = None) -> List[OperationQueueItem]:
        """
        Snapshot of queued items in ascending timestamp order.

        Items enqueued after the snapshot is taken are not included. When
        max_retries is given, items that already failed that many times are
        left out.
        """
        query = select(SyncQueueDB).order_by(SyncQueueDB.timestamp, SyncQueueDB.id)
        if max_retries:
            query = query.where(SyncQueueDB.retry_count < max_retries)

        async with self.db.guarded_session() as session:
            result = await session.execute(query)
            return [OperationQueueItem.from_db(row) for row in result.scalars().all()]

    async def remove(self, item_id: int) -> bool:
        async with self.db.guarded_session() as session:
            result = await session.execute(delete(SyncQueueDB).where(SyncQueueDB.id == item_id))
            return result.rowcount > 0

    async def record_failure(self, item_id: int, error: str):
        """Bump the retry counter and keep the last error for an item"""
        async with self.db.guarded_session() as session:
            row = await session.get(SyncQueueDB, item_id)
            if row is None:
                return
            row.retry_count = (row.retry_count or 0) + 1
            row.last_error = error

    async def count(self, entity_type: Optional[EntityType] = None) -> int:
        query = select(func.count()).select_from(SyncQueueDB)
        if entity_type is not None:
            query = query.where(SyncQueueDB.entity_type == entity_type.value)

        async with self.db.guarded_session() as session:
            result = await session.execute(query)
            return result.scalar_one()

    async def count_stalled(self, max_retries: int) -> int:
        """Items that reached the retry limit and are no longer drained"""
        async with self.db.guarded_session() as session:
            result = await session.execute(
                select(func.count()).select_from(SyncQueueDB).where(
                    SyncQueueDB.retry_count >= max_retries
                )
            )
            return result.scalar_one()

    async def clear(self) -> int:
        """Discard every pending operation"""
        async with self.db.guarded_session() as session:
            result = await session.execute(delete(SyncQueueDB))
            removed = result.rowcount

        self.logger.warning(f"Cleared {removed} pending operations from the sync queue")
        return removed
