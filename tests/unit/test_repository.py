"""Unit tests for entity repositories."""

import re

import pytest

from agrosync.core.exceptions import EntityNotFoundError, UnknownEntityTypeError
from agrosync.core.models import EntityType, OperationType
from agrosync.core.repository import generate_id


def test_generate_id_format_and_uniqueness():
    ids = {generate_id() for _ in range(200)}

    assert len(ids) == 200
    assert all(re.fullmatch(r"\d{13}-[0-9a-z]{9}", value) for value in ids)


@pytest.mark.asyncio
async def test_add_stores_record_and_queues_create(repositories, local_store, queue, sample_field):
    record = await repositories.fields.add(sample_field)

    assert record["id"]
    assert record["cropType"] == "Maize"
    assert await local_store.get(EntityType.FIELD, record["id"]) == record

    items = await queue.drain()
    assert len(items) == 1
    assert items[0].operation is OperationType.CREATE
    assert items[0].entity_type is EntityType.FIELD
    assert items[0].entity_id == record["id"]
    assert items[0].data == record


@pytest.mark.asyncio
async def test_add_ignores_caller_supplied_id(repositories, sample_expense):
    record = await repositories.expenses.add({**sample_expense, "id": "mine"})

    assert record["id"] != "mine"


@pytest.mark.asyncio
async def test_update_merges_and_queues_only_changes(repositories, queue, sample_field):
    record = await repositories.fields.add(sample_field)

    updated = await repositories.fields.update(record["id"], {"status": "growing", "id": "ignored"})

    assert updated["status"] == "growing"
    assert updated["name"] == "North Paddock"
    assert updated["id"] == record["id"]

    items = await queue.drain()
    assert [item.operation for item in items] == [OperationType.CREATE, OperationType.UPDATE]
    assert items[1].data == {"status": "growing"}


@pytest.mark.asyncio
async def test_update_missing_record_raises_and_queues_nothing(repositories, queue):
    with pytest.raises(EntityNotFoundError):
        await repositories.tasks.update("missing", {"status": "completed"})

    assert await queue.count() == 0


@pytest.mark.asyncio
async def test_remove_deletes_locally_and_queues_delete(repositories, local_store, queue, sample_expense):
    record = await repositories.expenses.add(sample_expense)

    await repositories.expenses.remove(record["id"])

    assert await local_store.get(EntityType.EXPENSE, record["id"]) is None
    items = await queue.drain()
    assert items[-1].operation is OperationType.DELETE
    assert items[-1].entity_id == record["id"]
    assert items[-1].data is None


@pytest.mark.asyncio
async def test_remove_of_unknown_record_still_queues_delete(repositories, queue):
    await repositories.inventory.remove("never-stored")

    items = await queue.drain()
    assert len(items) == 1
    assert items[0].entity_id == "never-stored"


@pytest.mark.asyncio
async def test_list_all_and_get(repositories):
    first = await repositories.storage_bins.add({"name": "Silo B", "type": "grain"})
    second = await repositories.storage_bins.add({"name": "Silo A", "type": "grain"})

    assert await repositories.storage_bins.get(first["id"]) == first
    assert [b["name"] for b in await repositories.storage_bins.list_all()] == ["Silo A", "Silo B"]
    assert second in await repositories.storage_bins.list_all()


def test_registry_lookup(repositories):
    assert repositories.get("tasks") is repositories.tasks
    assert repositories["storage-bin"] is repositories.storage_bins
    assert repositories.get(EntityType.INCOME) is repositories.income
    assert len(list(repositories)) == len(EntityType)

    with pytest.raises(UnknownEntityTypeError):
        repositories.get("livestock")
