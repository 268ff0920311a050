"""
Pytest configuration and fixtures for AgroSync tests
"""

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from agrosync.core.connectivity import StaticConnectivitySignal
from agrosync.core.database import DatabaseService
from agrosync.core.exceptions import RemoteStoreError
from agrosync.core.local_store import LocalStore
from agrosync.core.operation_queue import OperationQueue
from agrosync.core.remote_store import RemoteStore
from agrosync.core.repository import RepositoryRegistry
from agrosync.core.sync_engine import SyncEngine


class FakeRemoteStore(RemoteStore):
    """In-memory remote store that records every call"""

    def __init__(self):
        self.calls: List[tuple] = []
        self.rows: Dict[str, List[Dict[str, Any]]] = {}
        self.failing_ids: Dict[str, str] = {}
        self.failing_collections: Dict[str, str] = {}
        self.gate: Optional[asyncio.Event] = None
        self.entered = asyncio.Event()

    async def _enter(self, collection: str, record_id: Optional[str]):
        self.entered.set()
        if self.gate is not None:
            await self.gate.wait()
        if collection in self.failing_collections:
            raise RemoteStoreError(self.failing_collections[collection], collection=collection)
        if record_id in self.failing_ids:
            raise RemoteStoreError(self.failing_ids[record_id], collection=collection, status_code=400)

    async def insert(self, collection: str, record: Dict[str, Any]):
        await self._enter(collection, record.get('id'))
        self.calls.append(('insert', collection, record.get('id'), record))

    async def update(self, collection: str, record_id: str, changes: Dict[str, Any]):
        await self._enter(collection, record_id)
        self.calls.append(('update', collection, record_id, changes))

    async def delete(self, collection: str, record_id: str):
        await self._enter(collection, record_id)
        self.calls.append(('delete', collection, record_id, None))

    async def select_all(self, collection: str) -> List[Dict[str, Any]]:
        await self._enter(collection, None)
        self.calls.append(('select_all', collection, None, None))
        return [dict(row) for row in self.rows.get(collection, [])]


@pytest.fixture
async def db():
    """In-memory database with all tables created"""
    service = DatabaseService("sqlite+aiosqlite:///:memory:")
    await service.initialize_database()
    yield service
    await service.close()


@pytest.fixture
def local_store(db):
    return LocalStore(db)


@pytest.fixture
def queue(db):
    return OperationQueue(db)


@pytest.fixture
def repositories(local_store, queue):
    return RepositoryRegistry(local_store, queue)


@pytest.fixture
def remote():
    return FakeRemoteStore()


@pytest.fixture
def signal():
    return StaticConnectivitySignal(online=True)


@pytest.fixture
def engine(queue, remote, signal, local_store):
    return SyncEngine(queue, remote, is_online=signal.is_online, local_store=local_store)


@pytest.fixture
def sample_field():
    """Field payload in the local camelCase shape"""
    return {
        'name': 'North Paddock',
        'cropType': 'Maize',
        'area': 12.5,
        'plantingDate': '2024-03-01',
        'expectedHarvest': '2024-08-15',
        'status': 'planted',
        'notes': 'Irrigated',
    }


@pytest.fixture
def sample_expense():
    return {
        'date': '2024-03-02',
        'category': 'seeds',
        'description': 'Hybrid maize seed',
        'amount': 340.0,
    }
