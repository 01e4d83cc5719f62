from __future__ import annotations

from typing import Any, Mapping

from ...kinds import EntityKind
from ..models import Rail
from ..validation import validate_rail
from .base import EntityRepository, clean_text, optional_str


class RailRepository(EntityRepository):
    kind = EntityKind.RAIL
    table = "trilhos"
    order_column = "nome"
    natural_key_column = "nome"
    duplicate_message = "A rail with this name already exists. Choose a different name."
    owned = True
    photo_folder = "trilhos"

    def validate(self, fields: Mapping[str, Any]) -> list[str]:
        return validate_rail(fields)

    def from_row(self, row: Mapping[str, Any]) -> Rail:
        return Rail(
            id=optional_str(row.get("id")),
            name=row.get("nome") or "",
            rail_type=row.get("tipo"),
            manufacturer=row.get("fabricante"),
            color=row.get("cor"),
            photo_url=row.get("foto"),
            owner_id=optional_str(row.get("id_usuario")),
            created_at=optional_str(row.get("criado_em")),
        )

    def to_insert_row(self, fields, *, owner_id, photo_url):
        row = self.to_update_row(fields, photo_url=photo_url)
        row["id_usuario"] = owner_id
        return row

    def to_update_row(self, fields, *, photo_url):
        return {
            "nome": clean_text(fields, "name"),
            "tipo": clean_text(fields, "rail_type"),
            "fabricante": clean_text(fields, "manufacturer"),
            "cor": clean_text(fields, "color"),
            "foto": photo_url,
        }
