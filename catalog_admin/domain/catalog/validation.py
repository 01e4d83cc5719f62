from __future__ import annotations

from typing import Any, Callable, Mapping

from ..kinds import EntityKind
from ..value_objects import is_valid_color_spec, normalize_color_spec

RAIL_TYPES = ("Embutir", "Sobrepor")

Validator = Callable[[Mapping[str, Any]], list[str]]


def _text(fields: Mapping[str, Any], key: str) -> str:
    value = fields.get(key)
    return str(value).strip() if value is not None else ""


def required_message(label: str) -> str:
    return f'Field "{label}" is required'


def validate_handle(fields: Mapping[str, Any]) -> list[str]:
    errors = []
    if not _text(fields, "model"):
        errors.append(required_message("Model"))
    if not _text(fields, "size"):
        errors.append(required_message("Size"))
    return errors


def validate_rail(fields: Mapping[str, Any]) -> list[str]:
    errors = []
    if not _text(fields, "name"):
        errors.append(required_message("Name"))
    rail_type = _text(fields, "rail_type")
    if rail_type and rail_type not in RAIL_TYPES:
        errors.append(f'Field "Type" must be one of: {", ".join(RAIL_TYPES)}')
    return errors


def validate_glass(fields: Mapping[str, Any]) -> list[str]:
    errors = []
    if not _text(fields, "glass_type"):
        errors.append(required_message("Glass type"))
    color_spec = normalize_color_spec(fields.get("color_spec"))
    if color_spec and not is_valid_color_spec(color_spec):
        errors.append("Invalid RGB format. Use R,G,B or R,G,B,A (e.g. 255,0,0,0.5)")
    return errors


VALIDATORS: dict[EntityKind, Validator] = {
    EntityKind.HANDLE: validate_handle,
    EntityKind.RAIL: validate_rail,
    EntityKind.GLASS: validate_glass,
}


def validate_record(kind: EntityKind, fields: Mapping[str, Any]) -> list[str]:
    return VALIDATORS[EntityKind.parse(kind)](fields)
