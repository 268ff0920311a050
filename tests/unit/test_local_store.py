"""Unit tests for the SQLite-backed local store."""

import asyncio

import pytest

from agrosync.core.models import EntityType


@pytest.mark.asyncio
async def test_put_and_get(local_store):
    await local_store.put(EntityType.FIELD, {"id": "f1", "name": "North"})

    assert await local_store.get(EntityType.FIELD, "f1") == {"id": "f1", "name": "North"}
    assert await local_store.get(EntityType.FIELD, "missing") is None


@pytest.mark.asyncio
async def test_put_replaces_whole_record(local_store):
    await local_store.put(EntityType.FIELD, {"id": "f1", "name": "North", "notes": "old"})
    await local_store.put(EntityType.FIELD, {"id": "f1", "name": "North"})

    assert await local_store.get(EntityType.FIELD, "f1") == {"id": "f1", "name": "North"}
    assert await local_store.count(EntityType.FIELD) == 1


@pytest.mark.asyncio
async def test_put_requires_id(local_store):
    with pytest.raises(ValueError):
        await local_store.put(EntityType.FIELD, {"name": "No id"})


@pytest.mark.asyncio
async def test_same_id_in_different_types_is_independent(local_store):
    await local_store.put(EntityType.FIELD, {"id": "x", "name": "Field"})
    await local_store.put(EntityType.INVENTORY, {"id": "x", "name": "Seed"})

    assert (await local_store.get(EntityType.FIELD, "x"))["name"] == "Field"
    assert (await local_store.get(EntityType.INVENTORY, "x"))["name"] == "Seed"


@pytest.mark.asyncio
async def test_delete_reports_whether_record_existed(local_store):
    await local_store.put(EntityType.TASK, {"id": "t1", "title": "Spray"})

    assert await local_store.delete(EntityType.TASK, "t1") is True
    assert await local_store.delete(EntityType.TASK, "t1") is False


@pytest.mark.asyncio
async def test_bulk_put_skips_records_without_id(local_store):
    stored = await local_store.bulk_put(EntityType.EXPENSE, [
        {"id": "e1", "amount": 10},
        {"amount": 20},
        {"id": "e2", "amount": 30},
    ])

    assert stored == 2
    assert await local_store.count(EntityType.EXPENSE) == 2


@pytest.mark.asyncio
async def test_tasks_listed_by_due_date_ascending(local_store):
    await local_store.bulk_put(EntityType.TASK, [
        {"id": "late", "title": "Harvest", "dueDate": "2024-09-01"},
        {"id": "none", "title": "Someday"},
        {"id": "soon", "title": "Weed", "dueDate": "2024-04-01"},
    ])

    ids = [task["id"] for task in await local_store.list(EntityType.TASK)]

    assert ids == ["soon", "late", "none"]


@pytest.mark.asyncio
async def test_expenses_listed_newest_first(local_store):
    await local_store.bulk_put(EntityType.EXPENSE, [
        {"id": "jan", "date": "2024-01-10"},
        {"id": "mar", "date": "2024-03-10"},
        {"id": "feb", "date": "2024-02-10"},
    ])

    ids = [expense["id"] for expense in await local_store.list(EntityType.EXPENSE)]

    assert ids == ["mar", "feb", "jan"]


@pytest.mark.asyncio
async def test_inventory_listed_by_name_regardless_of_harvest_date(local_store):
    await local_store.bulk_put(EntityType.INVENTORY, [
        {"id": "urea", "name": "Urea", "harvestDate": "2023-01-01"},
        {"id": "maize", "name": "Maize", "harvestDate": "2024-06-01"},
        {"id": "diesel", "name": "Diesel"},
    ])

    ids = [item["id"] for item in await local_store.list(EntityType.INVENTORY)]

    assert ids == ["diesel", "maize", "urea"]


@pytest.mark.asyncio
async def test_equal_sort_values_listed_most_recent_first(local_store):
    await local_store.put(EntityType.INCOME, {"id": "first", "date": "2024-05-01"})
    await asyncio.sleep(0.01)
    await local_store.put(EntityType.INCOME, {"id": "second", "date": "2024-05-01"})

    ids = [income["id"] for income in await local_store.list(EntityType.INCOME)]

    assert ids == ["second", "first"]


@pytest.mark.asyncio
async def test_clear_only_affects_one_type(local_store):
    await local_store.put(EntityType.FIELD, {"id": "f1"})
    await local_store.put(EntityType.TASK, {"id": "t1"})

    assert await local_store.clear(EntityType.FIELD) == 1
    assert await local_store.count(EntityType.FIELD) == 0
    assert await local_store.count(EntityType.TASK) == 1


@pytest.mark.asyncio
async def test_metadata_round_trip(local_store):
    assert await local_store.get_metadata("last_sync_time") is None
    assert await local_store.get_metadata("last_sync_time", 0) == 0

    await local_store.set_metadata("last_sync_time", 1700000000000)
    await local_store.set_metadata("last_sync_time", 1700000000500)

    assert await local_store.get_metadata("last_sync_time") == 1700000000500
