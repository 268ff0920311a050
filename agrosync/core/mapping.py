"""
Key translation between the local record shape and the remote schema.

Local records use camelCase keys, the remote schema uses snake_case columns.
Top-level fields are renamed through each entity's field map; nested
objects and unmapped keys go through the structural translator. Values are
never changed.
"""

import logging
import re
from typing import Any, Callable, Dict

from agrosync.core.exceptions import SchemaMappingError
from agrosync.core.models import EntityDefinition

logger = logging.getLogger(__name__)

_UPPERCASE = re.compile(r'([A-Z])')


def camel_to_snake(key: str) -> str:
    """fieldName -> field_name"""
    return _UPPERCASE.sub(r'_\1', key).lower()


def snake_to_camel(key: str) -> str:
    """field_name -> fieldName"""
    head, *rest = key.split('_')
    return head + ''.join(part[:1].upper() + part[1:] for part in rest)


def translate_keys(value: Any, rename: Callable[[str], str]) -> Any:
    """Recursively rename dict keys, descending into dicts and lists"""
    if isinstance(value, dict):
        return {rename(key) if isinstance(key, str) else key: translate_keys(item, rename)
                for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [translate_keys(item, rename) for item in value]
    return value


def to_snake_keys(value: Any) -> Any:
    return translate_keys(value, camel_to_snake)


def to_camel_keys(value: Any) -> Any:
    return translate_keys(value, snake_to_camel)


def to_remote(definition: EntityDefinition, data: Dict[str, Any],
              strict: bool = False) -> Dict[str, Any]:
    """Translate a local record (or partial update) into remote columns"""
    payload = {}
    for key, value in data.items():
        remote_key = definition.field_map.get(key)
        if remote_key is None:
            if strict:
                raise SchemaMappingError(definition.entity_type.value, key)
            remote_key = camel_to_snake(key)
            logger.warning(
                f"Unmapped {definition.entity_type.value} field '{key}', sending as '{remote_key}'"
            )
        payload[remote_key] = to_snake_keys(value)
    return payload


def from_remote(definition: EntityDefinition, row: Dict[str, Any]) -> Dict[str, Any]:
    """Translate a remote row back into the local record shape"""
    reverse = definition.reverse_field_map
    record = {}
    for key, value in row.items():
        local_key = reverse.get(key) or snake_to_camel(key)
        record[local_key] = to_camel_keys(value)
    return record
