"""
Core data models for AgroSync
Entity definitions, operation queue items and SQLAlchemy tables
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Dict, Any, List, Optional, Union

from sqlalchemy import Column, String, Integer, BigInteger, Float, Text, JSON, Index
from sqlalchemy.orm import declarative_base

from agrosync.core.exceptions import UnknownEntityTypeError

Base = declarative_base()


class EntityType(Enum):
    """Domain entity kinds recorded offline"""
    FIELD = "field"
    EXPENSE = "expense"
    INCOME = "income"
    TASK = "task"
    INVENTORY = "inventory"
    STORAGE_BIN = "storage_bin"


class OperationType(Enum):
    """Mutation kinds carried by the operation queue"""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class EntityDefinition:
    """
    Per-entity storage and serialization settings.

    field_map lists every known local (camelCase) field next to the column
    name the remote schema uses for it.
    """
    entity_type: EntityType
    collection: str
    field_map: Dict[str, str]
    sort_field: Optional[str] = None
    sort_descending: bool = True

    @property
    def reverse_field_map(self) -> Dict[str, str]:
        return {remote: local for local, remote in self.field_map.items()}


ENTITY_DEFINITIONS: Dict[EntityType, EntityDefinition] = {
    EntityType.FIELD: EntityDefinition(
        entity_type=EntityType.FIELD,
        collection="fields",
        sort_field="plantingDate",
        field_map={
            "id": "id",
            "name": "name",
            "cropType": "crop_type",
            "area": "area",
            "plantingDate": "planting_date",
            "expectedHarvest": "expected_harvest",
            "status": "status",
            "notes": "notes",
        },
    ),
    EntityType.EXPENSE: EntityDefinition(
        entity_type=EntityType.EXPENSE,
        collection="expenses",
        sort_field="date",
        field_map={
            "id": "id",
            "date": "date",
            "category": "category",
            "description": "description",
            "amount": "amount",
            "fieldId": "field_id",
            "fieldName": "field_name",
        },
    ),
    EntityType.INCOME: EntityDefinition(
        entity_type=EntityType.INCOME,
        collection="income",
        sort_field="date",
        field_map={
            "id": "id",
            "date": "date",
            "source": "source",
            "description": "description",
            "amount": "amount",
            "fieldId": "field_id",
            "fieldName": "field_name",
        },
    ),
    EntityType.TASK: EntityDefinition(
        entity_type=EntityType.TASK,
        collection="tasks",
        sort_field="dueDate",
        sort_descending=False,
        field_map={
            "id": "id",
            "title": "title",
            "description": "description",
            "dueDate": "due_date",
            "priority": "priority",
            "status": "status",
            "fieldId": "field_id",
            "fieldName": "field_name",
            "assignedTo": "assigned_to",
            "completedAt": "completed_at",
        },
    ),
    # Stock records have no record date, so they list alphabetically by name
    EntityType.INVENTORY: EntityDefinition(
        entity_type=EntityType.INVENTORY,
        collection="inventory",
        sort_field="name",
        sort_descending=False,
        field_map={
            "id": "id",
            "name": "name",
            "category": "category",
            "quantity": "quantity",
            "unit": "unit",
            "minQuantity": "min_quantity",
            "costPerUnit": "cost_per_unit",
            "supplier": "supplier",
            "notes": "notes",
            "fieldId": "field_id",
            "harvestDate": "harvest_date",
        },
    ),
    # Bins have no date field at all; alphabetical like inventory
    EntityType.STORAGE_BIN: EntityDefinition(
        entity_type=EntityType.STORAGE_BIN,
        collection="storage_bins",
        sort_field="name",
        sort_descending=False,
        field_map={
            "id": "id",
            "name": "name",
            "type": "type",
            "capacity": "capacity",
            "currentQuantity": "current_quantity",
            "unit": "unit",
            "commodity": "commodity",
            "location": "location",
            "notes": "notes",
        },
    ),
}


def get_definition(entity_type: EntityType) -> EntityDefinition:
    """Return the storage/serialization definition for an entity type"""
    return ENTITY_DEFINITIONS[entity_type]


def resolve_entity_type(name: Union[str, EntityType]) -> EntityType:
    """Resolve an entity type from its value or remote collection name"""
    if isinstance(name, EntityType):
        return name

    normalized = str(name).strip().lower().replace("-", "_")
    for definition in ENTITY_DEFINITIONS.values():
        if normalized in (definition.entity_type.value, definition.collection):
            return definition.entity_type

    raise UnknownEntityTypeError(str(name))


# SQLAlchemy Models
class LocalRecordDB(Base):
    """Locally stored entity record"""
    __tablename__ = 'local_records'

    entity_type = Column(String(32), primary_key=True)
    id = Column(String(64), primary_key=True)
    data = Column(JSON, nullable=False)
    last_modified = Column(Float, nullable=False)  # epoch milliseconds


class SyncQueueDB(Base):
    """Pending mutation awaiting remote reconciliation"""
    __tablename__ = 'sync_queue'

    id = Column(Integer, primary_key=True, autoincrement=True)
    operation = Column(String(10), nullable=False)
    entity_type = Column(String(32), nullable=False, index=True)
    entity_id = Column(String(64), nullable=False)
    data = Column(JSON, nullable=True)
    timestamp = Column(BigInteger, nullable=False)  # epoch milliseconds
    retry_count = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)

    __table_args__ = (
        Index('idx_sync_queue_order', 'timestamp', 'id'),
    )


class MetadataDB(Base):
    """Key/value metadata such as the last sync time"""
    __tablename__ = 'metadata'

    key = Column(String(100), primary_key=True)
    value = Column(JSON, nullable=True)


@dataclass
class OperationQueueItem:
    """Operation queue entry domain model"""
    id: int
    operation: OperationType
    entity_type: EntityType
    entity_id: str
    timestamp: int
    data: Optional[Dict[str, Any]] = None
    retry_count: int = 0
    last_error: Optional[str] = None

    @classmethod
    def from_db(cls, row: SyncQueueDB) -> 'OperationQueueItem':
        """Create from database model"""
        return cls(
            id=row.id,
            operation=OperationType(row.operation),
            entity_type=EntityType(row.entity_type),
            entity_id=row.entity_id,
            timestamp=row.timestamp,
            data=row.data,
            retry_count=row.retry_count or 0,
            last_error=row.last_error,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'operation': self.operation.value,
            'entity_type': self.entity_type.value,
            'entity_id': self.entity_id,
            'data': self.data,
            'timestamp': self.timestamp,
            'retry_count': self.retry_count,
            'last_error': self.last_error,
        }


@dataclass
class SyncResult:
    """Outcome of one drain pass"""
    success: bool
    synced_count: int = 0
    error_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SyncStatus:
    """Sync indicator state for callers"""
    pending_count: int
    is_syncing: bool
    is_online: bool = True
    last_sync_time: Optional[int] = None
    stalled_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PullResult:
    """Outcome of refreshing local copies from the remote store"""
    refreshed: Dict[str, int] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
