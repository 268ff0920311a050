"""Unit tests for the one-time legacy export import."""

import json

import pytest

from agrosync.core.exceptions import UnknownEntityTypeError
from agrosync.core.migration import MIGRATION_MARKER_KEY, import_legacy_export
from agrosync.core.models import EntityType


@pytest.fixture
def export_file(tmp_path):
    path = tmp_path / "export.json"
    path.write_text(json.dumps({
        "fields": [
            {"id": "f1", "name": "North", "cropType": "Maize"},
            {"id": "f2", "name": "South", "cropType": "Soy"},
        ],
        "tasks": [{"id": "t1", "title": "Spray", "dueDate": "2024-05-01"}],
        "storage_bins": [],
    }))
    return path


@pytest.mark.asyncio
async def test_import_stores_records_without_queueing(local_store, queue, export_file):
    imported = await import_legacy_export(local_store, export_file)

    assert imported == {"field": 2, "task": 1, "storage_bin": 0}
    assert (await local_store.get(EntityType.FIELD, "f2"))["cropType"] == "Soy"
    assert await queue.count() == 0
    assert await local_store.get_metadata(MIGRATION_MARKER_KEY) is True


@pytest.mark.asyncio
async def test_import_runs_once_unless_forced(local_store, export_file):
    await import_legacy_export(local_store, export_file)

    assert await import_legacy_export(local_store, export_file) == {}
    assert (await import_legacy_export(local_store, export_file, force=True))["field"] == 2


@pytest.mark.asyncio
async def test_import_rejects_unexpected_shapes(local_store, tmp_path):
    not_object = tmp_path / "list.json"
    not_object.write_text("[]")
    bad_records = tmp_path / "bad.json"
    bad_records.write_text(json.dumps({"fields": {"id": "f1"}}))
    unknown = tmp_path / "unknown.json"
    unknown.write_text(json.dumps({"livestock": []}))

    with pytest.raises(ValueError):
        await import_legacy_export(local_store, not_object)
    with pytest.raises(ValueError):
        await import_legacy_export(local_store, bad_records)
    with pytest.raises(UnknownEntityTypeError):
        await import_legacy_export(local_store, unknown)

    assert await local_store.get_metadata(MIGRATION_MARKER_KEY) is None
