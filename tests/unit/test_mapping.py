"""Unit tests for local/remote key translation."""

import pytest

from agrosync.core.exceptions import SchemaMappingError
from agrosync.core.mapping import (
    camel_to_snake, snake_to_camel, to_snake_keys, to_remote, from_remote
)
from agrosync.core.models import EntityType, get_definition


class TestKeyCase:
    @pytest.mark.parametrize("camel, snake", [
        ("cropType", "crop_type"),
        ("plantingDate", "planting_date"),
        ("id", "id"),
        ("costPerUnit", "cost_per_unit"),
    ])
    def test_camel_snake_pairs(self, camel, snake):
        assert camel_to_snake(camel) == snake
        assert snake_to_camel(snake) == camel

    def test_nested_structures_are_translated(self):
        value = {"soilTest": {"phLevel": 6.5, "samples": [{"depthCm": 10}]}}

        assert to_snake_keys(value) == {"soil_test": {"ph_level": 6.5, "samples": [{"depth_cm": 10}]}}

    def test_values_are_not_touched(self):
        assert to_snake_keys({"notes": "keepThisCamelCase"}) == {"notes": "keepThisCamelCase"}


class TestEntityMapping:
    def test_to_remote_uses_field_map(self):
        definition = get_definition(EntityType.TASK)
        record = {"id": "t1", "title": "Spray", "dueDate": "2024-05-01", "assignedTo": "Sam"}

        assert to_remote(definition, record) == {
            "id": "t1",
            "title": "Spray",
            "due_date": "2024-05-01",
            "assigned_to": "Sam",
        }

    def test_to_remote_partial_update(self):
        definition = get_definition(EntityType.INVENTORY)

        assert to_remote(definition, {"minQuantity": 5}) == {"min_quantity": 5}

    def test_unmapped_field_falls_back_to_snake_case(self):
        definition = get_definition(EntityType.FIELD)

        assert to_remote(definition, {"soilType": "loam"}) == {"soil_type": "loam"}

    def test_unmapped_field_rejected_in_strict_mode(self):
        definition = get_definition(EntityType.FIELD)

        with pytest.raises(SchemaMappingError) as exc_info:
            to_remote(definition, {"soilType": "loam"}, strict=True)

        assert exc_info.value.field_name == "soilType"

    def test_from_remote_restores_local_shape(self):
        definition = get_definition(EntityType.STORAGE_BIN)
        row = {
            "id": "b1",
            "name": "Silo 1",
            "current_quantity": 40,
            "created_at": "2024-01-01T00:00:00Z",
        }

        assert from_remote(definition, row) == {
            "id": "b1",
            "name": "Silo 1",
            "currentQuantity": 40,
            "createdAt": "2024-01-01T00:00:00Z",
        }

    def test_every_definition_maps_id(self):
        for entity_type in EntityType:
            assert get_definition(entity_type).field_map["id"] == "id"


def test_structural_translation_example():
    value = {"fieldName": 1, "nested": {"subField": 2, "list": [{"itemId": 3}]}}

    assert to_snake_keys(value) == {"field_name": 1, "nested": {"sub_field": 2, "list": [{"item_id": 3}]}}


def test_scalar_leaves_and_array_order_survive_translation():
    value = {"isActive": True, "isArchived": False, "notes": None, "tags": ["aB", 1, None, False]}

    translated = to_snake_keys(value)

    assert translated == {"is_active": True, "is_archived": False, "notes": None,
                          "tags": ["aB", 1, None, False]}
    assert translated["is_active"] is True
    assert translated["is_archived"] is False
    assert translated["notes"] is None
    assert translated["tags"][2] is None

    remote_row = to_remote(get_definition(EntityType.TASK), {"fieldId": None, "priority": 0})
    assert remote_row == {"field_id": None, "priority": 0}
