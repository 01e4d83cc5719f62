from __future__ import annotations

import logging
from typing import Any, Mapping

from ...domain.catalog.models import Entity
from ...domain.kinds import EntityKind
from ...domain.value_objects import DEFAULT_COLOR_SPEC, normalize_color_spec
from .color_preview import ColorPreview
from .layouts import ALL_FIELD_IDS, LAYOUTS, FieldDescriptor, WidgetKind, layout_for
from .surface import FormSurface

RGB_FIELD_ID = "item_rgb"

logger = logging.getLogger(__name__)


class FieldMapper:
    """
    Moves values between a form surface and plain record dicts.

    ``configure_fields_for`` applies a kind's layout to the shared form,
    converting widgets in place. ``extract`` and ``populate`` never leave
    the process.
    """

    def __init__(self, form: FormSurface, *, preview: ColorPreview | None = None):
        self._form = form
        self._preview = preview or ColorPreview()
        self._watching_rgb = False

    @property
    def form(self) -> FormSurface:
        return self._form

    @property
    def preview(self) -> ColorPreview:
        return self._preview

    def layout_for(self, kind: EntityKind | str) -> tuple[FieldDescriptor, ...]:
        return layout_for(kind)

    def configure_fields_for(self, kind: EntityKind | str) -> tuple[FieldDescriptor, ...]:
        kind = EntityKind.parse(kind)
        layout = LAYOUTS[kind]
        listed = set()
        for descriptor in layout:
            self._form.configure(descriptor)
            self._form.set_visible(descriptor.field_id, descriptor.widget != WidgetKind.HIDDEN)
            listed.add(descriptor.field_id)

        for field_id in ALL_FIELD_IDS:
            if field_id not in listed and self._form.has_field(field_id):
                self._form.set_visible(field_id, False)

        if kind == EntityKind.GLASS:
            if not self._watching_rgb:
                self._form.watch(RGB_FIELD_ID, self._preview.update)
                self._watching_rgb = True
            self._preview.update(self._form.get_value(RGB_FIELD_ID))
        logger.debug("Configured form fields for %s", kind.value)
        return layout

    def extract(self, kind: EntityKind | str) -> dict[str, Any]:
        kind = EntityKind.parse(kind)
        record: dict[str, Any] = {}
        for descriptor in LAYOUTS[kind]:
            raw = self._form.get_value(descriptor.field_id) if self._form.has_field(descriptor.field_id) else None
            if descriptor.widget == WidgetKind.FILE:
                record[descriptor.key] = raw or None
            elif descriptor.widget == WidgetKind.COLOR:
                record[descriptor.key] = normalize_color_spec(raw) or DEFAULT_COLOR_SPEC
            else:
                record[descriptor.key] = "" if raw is None else str(raw).strip()
        return record

    def populate(self, kind: EntityKind | str, record: Mapping[str, Any] | Entity) -> None:
        kind = EntityKind.parse(kind)
        values = record.to_record() if hasattr(record, "to_record") else record
        for descriptor in LAYOUTS[kind]:
            value = values.get(descriptor.key)
            if descriptor.widget == WidgetKind.FILE:
                self._form.set_value(descriptor.field_id, value or None)
            elif descriptor.widget == WidgetKind.COLOR:
                self._form.set_value(descriptor.field_id, normalize_color_spec(value) or DEFAULT_COLOR_SPEC)
            else:
                self._form.set_value(descriptor.field_id, "" if value is None else str(value))

    def clear(self) -> None:
        defaults: dict[str, Any] = {}
        for layout in LAYOUTS.values():
            for descriptor in layout:
                defaults.setdefault(descriptor.field_id, descriptor.default)
        for field_id, default in defaults.items():
            if self._form.has_field(field_id):
                self._form.set_value(field_id, default)
        self._preview.reset()
