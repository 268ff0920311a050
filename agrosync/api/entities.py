"""
Entities API Router
CRUD over the offline repositories; every write is queued for sync
"""

import logging
from typing import Any, Dict, List, Type

from fastapi import APIRouter, Body, Depends, Response, status
from pydantic import ValidationError

from agrosync.api.dependencies import verify_api_key, get_services
from agrosync.api.error_handling import ValidationAPIError
from agrosync.api.schemas import APIErrorDetail, ENTITY_SCHEMAS, EntitySchema
from agrosync.core.exceptions import EntityNotFoundError
from agrosync.core.models import resolve_entity_type
from agrosync.core.services import SyncServices

router = APIRouter()
logger = logging.getLogger(__name__)


def _validation_error(exc: ValidationError) -> ValidationAPIError:
    return ValidationAPIError(
        "Validation failed",
        [
            APIErrorDetail(
                field=".".join(str(loc) for loc in error["loc"]),
                message=error["msg"],
                code=error["type"]
            )
            for error in exc.errors()
        ]
    )


def _validate(schema: Type[EntitySchema], payload: Dict[str, Any]) -> Dict[str, Any]:
    try:
        model = schema.model_validate(payload)
    except ValidationError as e:
        raise _validation_error(e)
    return model.model_dump(by_alias=True, exclude_none=True)


def _to_local_keys(schema: Type[EntitySchema], changes: Dict[str, Any]) -> Dict[str, Any]:
    """Accept python-style field names in partial updates, store camelCase"""
    normalized = {}
    for key, value in changes.items():
        field = schema.model_fields.get(key)
        normalized[field.alias if field and field.alias else key] = value
    return normalized


@router.get("/{entity_type}", response_model=List[Dict[str, Any]])
async def list_entities(
    entity_type: str,
    authenticated: bool = Depends(verify_api_key),
    services: SyncServices = Depends(get_services)
):
    """List stored records in their natural order"""
    return await services.repositories.get(entity_type).list_all()


@router.get("/{entity_type}/{record_id}", response_model=Dict[str, Any])
async def get_entity(
    entity_type: str,
    record_id: str,
    authenticated: bool = Depends(verify_api_key),
    services: SyncServices = Depends(get_services)
):
    repository = services.repositories.get(entity_type)
    record = await repository.get(record_id)
    if record is None:
        raise EntityNotFoundError(repository.entity_type.value, record_id)
    return record


@router.post("/{entity_type}", response_model=Dict[str, Any], status_code=status.HTTP_201_CREATED)
async def add_entity(
    entity_type: str,
    payload: Dict[str, Any] = Body(...),
    authenticated: bool = Depends(verify_api_key),
    services: SyncServices = Depends(get_services)
):
    """Store a new record locally and queue its creation"""
    resolved = resolve_entity_type(entity_type)
    record = _validate(ENTITY_SCHEMAS[resolved], payload)
    return await services.repositories.get(resolved).add(record)


@router.patch("/{entity_type}/{record_id}", response_model=Dict[str, Any])
async def update_entity(
    entity_type: str,
    record_id: str,
    changes: Dict[str, Any] = Body(...),
    authenticated: bool = Depends(verify_api_key),
    services: SyncServices = Depends(get_services)
):
    """Apply a partial update; only the given fields are queued"""
    resolved = resolve_entity_type(entity_type)
    schema = ENTITY_SCHEMAS[resolved]
    repository = services.repositories.get(resolved)

    existing = await repository.get(record_id)
    if existing is None:
        raise EntityNotFoundError(resolved.value, record_id)

    changes = _to_local_keys(schema, changes)
    _validate(schema, {**existing, **changes})

    return await repository.update(record_id, changes)


@router.delete("/{entity_type}/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_entity(
    entity_type: str,
    record_id: str,
    authenticated: bool = Depends(verify_api_key),
    services: SyncServices = Depends(get_services)
):
    await services.repositories.get(entity_type).remove(record_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
