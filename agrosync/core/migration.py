"""
One-time import of a legacy JSON export into the local store.

The export maps collection names to record lists, e.g.
{"fields": [...], "expenses": [...], "tasks": [...]}. Imported records are
not queued for sync because they already exist remotely.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Union

from agrosync.core.local_store import LocalStore
from agrosync.core.models import resolve_entity_type

logger = logging.getLogger(__name__)

MIGRATION_MARKER_KEY = 'legacy_import_completed'


async def import_legacy_export(local_store: LocalStore, source: Union[str, Path],
                               force: bool = False) -> Dict[str, int]:
    """Import a legacy export once; returns records stored per entity type"""
    if not force and await local_store.get_metadata(MIGRATION_MARKER_KEY):
        logger.info("Legacy data already imported")
        return {}

    with open(source, 'r', encoding='utf-8') as f:
        payload = json.load(f)

    if not isinstance(payload, dict):
        raise ValueError("Legacy export must be a JSON object keyed by collection name")

    imported = {}
    for name, records in payload.items():
        entity_type = resolve_entity_type(name)
        if not isinstance(records, list):
            raise ValueError(f"Expected a list of records for '{name}'")
        imported[entity_type.value] = await local_store.bulk_put(entity_type, records)
        logger.info(f"Imported {imported[entity_type.value]} {entity_type.value} records")

    await local_store.set_metadata(MIGRATION_MARKER_KEY, True)
    logger.info("Legacy import completed successfully")
    return imported
