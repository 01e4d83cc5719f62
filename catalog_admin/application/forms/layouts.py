from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from ...domain.catalog.validation import RAIL_TYPES
from ...domain.kinds import EntityKind


class WidgetKind(str, Enum):
    TEXT = "text"
    CHOICE = "choice"
    COLOR = "color"
    FILE = "file"
    HIDDEN = "hidden"


@dataclass(frozen=True)
class FieldDescriptor:
    field_id: str
    key: str
    widget: WidgetKind = WidgetKind.TEXT
    label: str = ""
    required: bool = False
    choices: tuple[str, ...] = ()
    default: Any = ""


ITEM_ID = FieldDescriptor("item_id", "id", WidgetKind.HIDDEN)
ITEM_PHOTO = FieldDescriptor("item_photo", "photo", WidgetKind.FILE, "Photo", default=None)
ITEM_PHOTO_URL = FieldDescriptor("item_photo_url", "photo_url", WidgetKind.HIDDEN)
ITEM_MANUFACTURER = FieldDescriptor("item_manufacturer", "manufacturer", label="Manufacturer")
ITEM_COLOR = FieldDescriptor("item_color", "color", label="Color")

LAYOUTS: dict[EntityKind, tuple[FieldDescriptor, ...]] = {
    EntityKind.HANDLE: (
        ITEM_ID,
        FieldDescriptor("item_model", "model", label="Model", required=True),
        ITEM_MANUFACTURER,
        ITEM_COLOR,
        FieldDescriptor("item_size", "size", label="Size", required=True),
        ITEM_PHOTO,
        ITEM_PHOTO_URL,
    ),
    # rails reuse the size slot as the mounting type selector
    EntityKind.RAIL: (
        ITEM_ID,
        FieldDescriptor("item_model", "name", label="Name", required=True),
        ITEM_MANUFACTURER,
        ITEM_COLOR,
        FieldDescriptor(
            "item_size",
            "rail_type",
            WidgetKind.CHOICE,
            "Type",
            choices=("", *RAIL_TYPES),
        ),
        ITEM_PHOTO,
        ITEM_PHOTO_URL,
    ),
    EntityKind.GLASS: (
        ITEM_ID,
        FieldDescriptor("item_model", "glass_type", label="Glass type", required=True),
        FieldDescriptor("item_rgb", "color_spec", WidgetKind.COLOR, "RGB color"),
    ),
}

ALL_FIELD_IDS: tuple[str, ...] = tuple(
    dict.fromkeys(descriptor.field_id for layout in LAYOUTS.values() for descriptor in layout)
)


def layout_for(kind: EntityKind | str) -> tuple[FieldDescriptor, ...]:
    return LAYOUTS[EntityKind.parse(kind)]
