from __future__ import annotations

from typing import Any, Mapping

from ...kinds import EntityKind
from ...value_objects import DEFAULT_COLOR_SPEC, normalize_color_spec
from ..models import Glass
from ..validation import validate_glass
from .base import EntityRepository, clean_text, optional_str


class GlassRepository(EntityRepository):
    """Glass types have no owner or photo and are only ever soft deleted."""

    kind = EntityKind.GLASS
    table = "pv_vidro"
    order_column = "tipo"
    natural_key_column = "tipo"
    duplicate_message = "A glass type with this name already exists. Choose a different name."
    list_filters = {"ativo": True}
    soft_delete = True

    def validate(self, fields: Mapping[str, Any]) -> list[str]:
        return validate_glass(fields)

    def from_row(self, row: Mapping[str, Any]) -> Glass:
        return Glass(
            id=optional_str(row.get("id")),
            glass_type=row.get("tipo") or "",
            color_spec=row.get("rgb") or DEFAULT_COLOR_SPEC,
            active=bool(row.get("ativo", True)),
            created_at=optional_str(row.get("criado_em")),
        )

    def to_insert_row(self, fields, *, owner_id, photo_url):
        return {
            "tipo": clean_text(fields, "glass_type"),
            "rgb": normalize_color_spec(fields.get("color_spec")) or DEFAULT_COLOR_SPEC,
            "ativo": True,
        }

    def to_update_row(self, fields, *, photo_url):
        row = {}
        if "glass_type" in fields:
            row["tipo"] = clean_text(fields, "glass_type")
        if "color_spec" in fields:
            row["rgb"] = normalize_color_spec(fields.get("color_spec")) or DEFAULT_COLOR_SPEC
        return {key: value for key, value in row.items() if value is not None}
