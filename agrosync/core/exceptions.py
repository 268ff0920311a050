"""
Exception hierarchy for the AgroSync core
"""

from typing import Optional


class AgroSyncError(Exception):
    """Base exception for all AgroSync errors"""


class UnknownEntityTypeError(AgroSyncError):
    """Raised when an entity type name cannot be resolved"""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown entity type '{name}'")


class EntityNotFoundError(AgroSyncError):
    """Raised when a record does not exist in the local store"""

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id '{entity_id}' not found")


class LocalStoreUnavailableError(AgroSyncError):
    """Raised when the on-device database cannot be read or written"""


class RemoteStoreError(AgroSyncError):
    """Raised when the remote store rejects or fails a request"""

    def __init__(self, message: str, collection: Optional[str] = None,
                 status_code: Optional[int] = None):
        self.collection = collection
        self.status_code = status_code
        super().__init__(message)


class SchemaMappingError(AgroSyncError):
    """Raised when a local field has no remote mapping and strict mapping is on"""

    def __init__(self, entity_type: str, field_name: str):
        self.entity_type = entity_type
        self.field_name = field_name
        super().__init__(f"No remote mapping for {entity_type}.{field_name}")
