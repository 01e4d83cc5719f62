from __future__ import annotations

from pathlib import Path
from typing import Iterable

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ...domain.catalog.models import Entity, Glass, Handle, Rail
from ...domain.identity import DisplayInfo
from ...domain.kinds import EntityKind


class CatalogPresenter:
    def __init__(self, templates_dir: Path | None = None):
        base_dir = templates_dir or (Path(__file__).resolve().parent / "templates")
        self._env = Environment(
            loader=FileSystemLoader(str(base_dir)),
            autoescape=select_autoescape(enabled_extensions=("html.j2",), default_for_string=False, default=False),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def _render(self, template: str, **context) -> str:
        return self._env.get_template(template).render(**context).strip()

    def modal_title(self, kind: EntityKind, *, editing: bool) -> str:
        return self._render("modal_title.j2", kind=EntityKind.parse(kind), editing=editing)

    def owner_label(self, info: DisplayInfo, user_id: str) -> str:
        """Owner markup; failed lookups carry a retry button bound to the user id."""
        return self._render("owner_label.html.j2", info=info, user_id=user_id)

    def saved_message(self, kind: EntityKind, *, created: bool, degraded: bool = False) -> str:
        action = "created" if created else "updated"
        return self._render("notice.j2", kind=EntityKind.parse(kind), action=action, degraded=degraded)

    def deleted_message(self, kind: EntityKind, *, degraded: bool = False) -> str:
        return self._render("notice.j2", kind=EntityKind.parse(kind), action="deleted", degraded=degraded)

    def listing(self, kind: EntityKind, entities: Iterable[Entity], *, degraded: bool = False) -> str:
        rows = [self._row(entity) for entity in entities]
        return self._render("listing.j2", kind=EntityKind.parse(kind), rows=rows, degraded=degraded)

    @staticmethod
    def _row(entity: Entity) -> dict:
        if isinstance(entity, Handle):
            detail = " / ".join(part for part in (entity.size, entity.manufacturer, entity.color) if part)
            return {"id": entity.id, "title": entity.model, "detail": detail}
        if isinstance(entity, Rail):
            detail = " / ".join(part for part in (entity.rail_type, entity.manufacturer, entity.color) if part)
            return {"id": entity.id, "title": entity.name, "detail": detail}
        if isinstance(entity, Glass):
            return {"id": entity.id, "title": entity.glass_type, "detail": f"rgb {entity.color_spec}"}
        raise TypeError(f"Unsupported entity: {entity!r}")
