"""Unit tests for the database service."""

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from agrosync.core.database import DatabaseService
from agrosync.core.exceptions import LocalStoreUnavailableError


@pytest.mark.asyncio
async def test_initialize_creates_required_tables(db):
    info = await db.get_schema_info()

    assert {"local_records", "sync_queue", "metadata"} <= set(info["tables"])
    assert await db.health_check() is True


@pytest.mark.asyncio
async def test_file_database_creates_parent_directory(tmp_path):
    path = tmp_path / "nested" / "agrosync.db"
    service = DatabaseService(f"sqlite+aiosqlite:///{path}")

    await service.initialize_database()
    await service.close()

    assert path.exists()


@pytest.mark.asyncio
async def test_health_check_fails_without_tables():
    service = DatabaseService("sqlite+aiosqlite:///:memory:")

    assert await service.health_check() is False
    await service.close()


@pytest.mark.asyncio
async def test_guarded_session_wraps_database_errors(db):
    with pytest.raises(LocalStoreUnavailableError) as exc_info:
        async with db.guarded_session() as session:
            await session.execute(text("SELECT * FROM missing_table"))

    assert isinstance(exc_info.value.__cause__, OperationalError)
