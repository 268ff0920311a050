"""
Entity repositories for AgroSync

Every mutation writes the local store first and then appends the matching
operation to the queue before returning to the caller.
"""

import logging
import secrets
import string
import time
from typing import Any, Dict, Iterator, List, Optional, Union

from agrosync.core.exceptions import EntityNotFoundError
from agrosync.core.local_store import LocalStore
from agrosync.core.models import EntityType, OperationType, resolve_entity_type
from agrosync.core.operation_queue import OperationQueue

_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_id() -> str:
    """Collision-resistant local id: epoch millis plus a random base36 suffix"""
    suffix = ''.join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{int(time.time() * 1000)}-{suffix}"


class EntityRepository:
    """CRUD facade for one entity type"""

    def __init__(self, entity_type: EntityType, local_store: LocalStore, queue: OperationQueue):
        self.entity_type = entity_type
        self.local_store = local_store
        self.queue = queue
        self.logger = logging.getLogger(__name__)

    async def add(self, entity: Dict[str, Any]) -> Dict[str, Any]:
        """Store a new entity and queue its creation"""
        record = {key: value for key, value in entity.items() if key != 'id'}
        record['id'] = generate_id()

        async with self.local_store.write_lock:
            await self.local_store.put(self.entity_type, record)
            await self.queue.enqueue(OperationType.CREATE, self.entity_type, record['id'], record)

        self.logger.info(f"Added {self.entity_type.value} {record['id']}")
        return record

    async def update(self, record_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Merge changes into a stored entity and queue only the changed fields"""
        changes = {key: value for key, value in changes.items() if key != 'id'}

        async with self.local_store.write_lock:
            existing = await self.local_store.get(self.entity_type, record_id)
            if existing is None:
                raise EntityNotFoundError(self.entity_type.value, record_id)

            updated = {**existing, **changes}
            await self.local_store.put(self.entity_type, updated)
            await self.queue.enqueue(OperationType.UPDATE, self.entity_type, record_id, changes)

        self.logger.info(f"Updated {self.entity_type.value} {record_id}: {sorted(changes)}")
        return updated

    async def remove(self, record_id: str):
        """Delete locally right away; the remote delete follows through the queue"""
        async with self.local_store.write_lock:
            removed = await self.local_store.delete(self.entity_type, record_id)
            if not removed:
                self.logger.debug(f"{self.entity_type.value} {record_id} was not stored locally")

            await self.queue.enqueue(OperationType.DELETE, self.entity_type, record_id)
        self.logger.info(f"Removed {self.entity_type.value} {record_id}")

    async def get(self, record_id: str) -> Optional[Dict[str, Any]]:
        return await self.local_store.get(self.entity_type, record_id)

    async def list_all(self) -> List[Dict[str, Any]]:
        return await self.local_store.list(self.entity_type)


class RepositoryRegistry:
    """One repository per entity type, looked up by type or name"""

    def __init__(self, local_store: LocalStore, queue: OperationQueue):
        self._repositories = {
            entity_type: EntityRepository(entity_type, local_store, queue)
            for entity_type in EntityType
        }

    def get(self, entity_type: Union[str, EntityType]) -> EntityRepository:
        return self._repositories[resolve_entity_type(entity_type)]

    def __getitem__(self, entity_type: Union[str, EntityType]) -> EntityRepository:
        return self.get(entity_type)

    def __iter__(self) -> Iterator[EntityRepository]:
        return iter(self._repositories.values())

    @property
    def fields(self) -> EntityRepository:
        return self._repositories[EntityType.FIELD]

    @property
    def expenses(self) -> EntityRepository:
        return self._repositories[EntityType.EXPENSE]

    @property
    def income(self) -> EntityRepository:
        return self._repositories[EntityType.INCOME]

    @property
    def tasks(self) -> EntityRepository:
        return self._repositories[EntityType.TASK]

    @property
    def inventory(self) -> EntityRepository:
        return self._repositories[EntityType.INVENTORY]

    @property
    def storage_bins(self) -> EntityRepository:
        return self._repositories[EntityType.STORAGE_BIN]
