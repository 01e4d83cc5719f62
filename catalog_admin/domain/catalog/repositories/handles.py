from __future__ import annotations

from typing import Any, Mapping

from ...kinds import EntityKind
from ..models import Handle
from ..validation import validate_handle
from .base import EntityRepository, clean_text, optional_str


class HandleRepository(EntityRepository):
    kind = EntityKind.HANDLE
    table = "puxadores"
    order_column = "modelo"
    natural_key_column = "modelo"
    duplicate_message = "A handle with this model already exists. Choose a different model."
    owned = True
    photo_folder = "puxadores"

    def validate(self, fields: Mapping[str, Any]) -> list[str]:
        return validate_handle(fields)

    def from_row(self, row: Mapping[str, Any]) -> Handle:
        return Handle(
            id=optional_str(row.get("id")),
            model=row.get("modelo") or row.get("nome") or "",
            size=row.get("medida") or "",
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
        model = clean_text(fields, "model")
        # the remote table keeps the model in both columns
        return {
            "nome": model,
            "modelo": model,
            "fabricante": clean_text(fields, "manufacturer"),
            "cor": clean_text(fields, "color"),
            "medida": clean_text(fields, "size"),
            "foto": photo_url,
        }
