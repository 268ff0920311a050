"""
AgroSync Core Module
Exports the offline data layer components
"""

from .models import (
    EntityType,
    OperationType,
    EntityDefinition,
    OperationQueueItem,
    SyncResult,
    SyncStatus,
    PullResult,
    get_definition,
    resolve_entity_type
)
from .exceptions import (
    AgroSyncError,
    EntityNotFoundError,
    LocalStoreUnavailableError,
    RemoteStoreError,
    SchemaMappingError,
    UnknownEntityTypeError
)
from .database import DatabaseService
from .local_store import LocalStore
from .operation_queue import OperationQueue
from .repository import EntityRepository, RepositoryRegistry, generate_id
from .remote_store import RemoteStore, RemoteConfig, PostgrestRemoteStore
from .sync_engine import SyncEngine
from .connectivity import (
    ConnectivitySignal,
    StaticConnectivitySignal,
    HttpProbeSignal,
    ConnectivityMonitor
)
from .services import SyncServices, build_services

__all__ = [
    # Models
    'EntityType',
    'OperationType',
    'EntityDefinition',
    'OperationQueueItem',
    'SyncResult',
    'SyncStatus',
    'PullResult',
    'get_definition',
    'resolve_entity_type',

    # Errors
    'AgroSyncError',
    'EntityNotFoundError',
    'LocalStoreUnavailableError',
    'RemoteStoreError',
    'SchemaMappingError',
    'UnknownEntityTypeError',

    # Local data layer
    'DatabaseService',
    'LocalStore',
    'OperationQueue',
    'EntityRepository',
    'RepositoryRegistry',
    'generate_id',

    # Remote sync
    'RemoteStore',
    'RemoteConfig',
    'PostgrestRemoteStore',
    'SyncEngine',

    # Connectivity
    'ConnectivitySignal',
    'StaticConnectivitySignal',
    'HttpProbeSignal',
    'ConnectivityMonitor',

    # Wiring
    'SyncServices',
    'build_services'
]
