"""
Pydantic schemas for API request/response models
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Type

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from agrosync.core.models import EntityType


class ErrorCode(str, Enum):
    """Standardized error codes for API responses"""
    UNAUTHORIZED = "UNAUTHORIZED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNKNOWN_ENTITY_TYPE = "UNKNOWN_ENTITY_TYPE"
    NOT_FOUND = "NOT_FOUND"
    LOCAL_STORE_UNAVAILABLE = "LOCAL_STORE_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class APIErrorDetail(BaseModel):
    """Detailed error information"""
    field: Optional[str] = Field(None, description="Field that caused the error")
    message: str = Field(..., description="Human-readable error message")
    code: Optional[str] = Field(None, description="Machine-readable error code")


class APIErrorResponse(BaseModel):
    """Standardized error response schema"""
    success: bool = Field(False, description="Always false for error responses")
    error: str = Field(..., description="Main error message")
    error_code: ErrorCode = Field(..., description="Standardized error code")
    details: Optional[List[APIErrorDetail]] = Field(None, description="Detailed error information")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Error timestamp")
    request_id: Optional[str] = Field(None, description="Request tracking ID")


# ==================== ENTITY SCHEMAS ====================

class EntitySchema(BaseModel):
    """Base for entity payloads: camelCase on the wire, extra fields kept"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra='allow')

    id: Optional[str] = None


class FieldSchema(EntitySchema):
    name: str = Field(..., min_length=1)
    crop_type: str
    area: float = Field(..., ge=0)
    planting_date: str
    expected_harvest: Optional[str] = None
    status: Literal['planted', 'growing', 'ready', 'harvested'] = 'planted'
    notes: Optional[str] = None


class ExpenseSchema(EntitySchema):
    date: str
    category: Literal['seeds', 'fertilizer', 'pesticide', 'labor', 'equipment', 'fuel', 'other']
    description: str
    amount: float = Field(..., ge=0)
    field_id: Optional[str] = None
    field_name: Optional[str] = None


class IncomeSchema(EntitySchema):
    date: str
    source: Literal['harvest_sale', 'livestock_sale', 'contract', 'grant', 'other']
    description: str
    amount: float = Field(..., ge=0)
    field_id: Optional[str] = None
    field_name: Optional[str] = None


class TaskSchema(EntitySchema):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    due_date: str
    priority: Literal['low', 'medium', 'high', 'urgent'] = 'medium'
    status: Literal['pending', 'in_progress', 'completed', 'cancelled'] = 'pending'
    field_id: Optional[str] = None
    field_name: Optional[str] = None
    assigned_to: Optional[str] = None
    completed_at: Optional[str] = None


class InventoryItemSchema(EntitySchema):
    name: str = Field(..., min_length=1)
    category: Literal['seeds', 'fertilizer', 'pesticide', 'equipment', 'fuel', 'tools', 'harvest', 'other']
    quantity: float = Field(..., ge=0)
    unit: str
    min_quantity: float = Field(0, ge=0)
    cost_per_unit: Optional[float] = None
    supplier: Optional[str] = None
    notes: Optional[str] = None
    field_id: Optional[str] = None
    harvest_date: Optional[str] = None


class StorageBinSchema(EntitySchema):
    name: str = Field(..., min_length=1)
    type: Literal['grain', 'equipment', 'general', 'cold_storage']
    capacity: float = Field(..., ge=0)
    current_quantity: float = Field(0, ge=0)
    unit: str
    commodity: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None


ENTITY_SCHEMAS: Dict[EntityType, Type[EntitySchema]] = {
    EntityType.FIELD: FieldSchema,
    EntityType.EXPENSE: ExpenseSchema,
    EntityType.INCOME: IncomeSchema,
    EntityType.TASK: TaskSchema,
    EntityType.INVENTORY: InventoryItemSchema,
    EntityType.STORAGE_BIN: StorageBinSchema,
}


# ==================== SYNC SCHEMAS ====================

class SyncResultResponse(BaseModel):
    success: bool
    synced_count: int
    error_count: int


class SyncStatusResponse(BaseModel):
    pending_count: int
    is_syncing: bool
    is_online: bool
    last_sync_time: Optional[int] = Field(None, description="Epoch milliseconds of the last completed pass")
    stalled_count: int = 0


class QueueItemResponse(BaseModel):
    id: int
    operation: str
    entity_type: str
    entity_id: str
    data: Optional[Dict[str, Any]] = None
    timestamp: int
    retry_count: int
    last_error: Optional[str] = None


class PullRequest(BaseModel):
    entity_types: Optional[List[str]] = None


class PullResponse(BaseModel):
    refreshed: Dict[str, int]
    skipped: List[str]
    failed: List[str]


class ConnectivityRequest(BaseModel):
    online: bool


class ConnectivityResponse(BaseModel):
    online: bool
