"""
Local record storage for AgroSync
Durable per-entity-type records and key/value metadata
"""

import asyncio
import logging
import time
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select, delete, func

from agrosync.core.database import DatabaseService
from agrosync.core.models import (
    EntityType, EntityDefinition, LocalRecordDB, MetadataDB, get_definition
)


def _now_ms() -> float:
    return time.time() * 1000


def _order_records(definition: EntityDefinition, rows: List[LocalRecordDB]) -> List[Dict[str, Any]]:
    """Order rows by the entity's natural field, missing values last"""
    # Most recently modified first among equal sort values
    rows = sorted(rows, key=lambda row: row.last_modified, reverse=True)
    if not definition.sort_field:
        return [dict(row.data) for row in rows]

    with_value = [row for row in rows if row.data.get(definition.sort_field) not in (None, "")]
    without_value = [row for row in rows if row.data.get(definition.sort_field) in (None, "")]
    with_value.sort(key=lambda row: str(row.data[definition.sort_field]),
                    reverse=definition.sort_descending)

    return [dict(row.data) for row in with_value + without_value]


class LocalStore:
    """SQLite-backed store for entity records"""

    def __init__(self, db: DatabaseService):
        self.db = db
        # Held across write-then-enqueue and across a pull upsert
        self.write_lock = asyncio.Lock()
        self.logger = logging.getLogger(__name__)

    async def get(self, entity_type: EntityType, record_id: str) -> Optional[Dict[str, Any]]:
        async with self.db.guarded_session() as session:
            row = await session.get(LocalRecordDB, (entity_type.value, record_id))
            return dict(row.data) if row else None

    async def list(self, entity_type: EntityType) -> List[Dict[str, Any]]:
        """All records of one type in their natural order"""
        async with self.db.guarded_session() as session:
            result = await session.execute(
                select(LocalRecordDB).where(LocalRecordDB.entity_type == entity_type.value)
            )
            rows = result.scalars().all()

        return _order_records(get_definition(entity_type), list(rows))

    async def put(self, entity_type: EntityType, record: Dict[str, Any]) -> Dict[str, Any]:
        """Insert or replace a record keyed by its id"""
        if not record.get('id'):
            raise ValueError(f"Cannot store {entity_type.value} record without an id")

        async with self.db.guarded_session() as session:
            await self._put(session, entity_type, record)

        return dict(record)

    async def bulk_put(self, entity_type: EntityType, records: Iterable[Dict[str, Any]]) -> int:
        """Insert or replace many records in one transaction"""
        count = 0
        async with self.db.guarded_session() as session:
            for record in records:
                if not record.get('id'):
                    self.logger.warning(f"Skipping {entity_type.value} record without id")
                    continue
                await self._put(session, entity_type, record)
                count += 1

        self.logger.debug(f"Stored {count} {entity_type.value} records")
        return count

    async def _put(self, session, entity_type: EntityType, record: Dict[str, Any]):
        row = await session.get(LocalRecordDB, (entity_type.value, record['id']))
        if row is None:
            session.add(LocalRecordDB(
                entity_type=entity_type.value,
                id=record['id'],
                data=dict(record),
                last_modified=_now_ms(),
            ))
        else:
            row.data = dict(record)
            row.last_modified = _now_ms()

    async def delete(self, entity_type: EntityType, record_id: str) -> bool:
        """Delete a record; returns False when nothing was stored"""
        async with self.db.guarded_session() as session:
            result = await session.execute(
                delete(LocalRecordDB).where(
                    (LocalRecordDB.entity_type == entity_type.value) &
                    (LocalRecordDB.id == record_id)
                )
            )
            return result.rowcount > 0

    async def clear(self, entity_type: EntityType) -> int:
        async with self.db.guarded_session() as session:
            result = await session.execute(
                delete(LocalRecordDB).where(LocalRecordDB.entity_type == entity_type.value)
            )
            return result.rowcount

    async def count(self, entity_type: EntityType) -> int:
        async with self.db.guarded_session() as session:
            result = await session.execute(
                select(func.count()).select_from(LocalRecordDB).where(
                    LocalRecordDB.entity_type == entity_type.value
                )
            )
            return result.scalar_one()

    async def get_metadata(self, key: str, default: Any = None) -> Any:
        async with self.db.guarded_session() as session:
            row = await session.get(MetadataDB, key)
            return row.value if row else default

    async def set_metadata(self, key: str, value: Any):
        async with self.db.guarded_session() as session:
            row = await session.get(MetadataDB, key)
            if row is None:
                session.add(MetadataDB(key=key, value=value))
            else:
                row.value = value
