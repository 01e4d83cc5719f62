from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from ..kinds import EntityKind
from ..value_objects import DEFAULT_COLOR_SPEC


@dataclass(frozen=True)
class Handle:
    model: str
    size: str
    manufacturer: str | None = None
    color: str | None = None
    photo_url: str | None = None
    owner_id: str | None = None
    created_at: str | None = None
    id: str | None = None

    kind = EntityKind.HANDLE

    @property
    def is_new(self) -> bool:
        return not self.id

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id or "",
            "model": self.model,
            "manufacturer": self.manufacturer or "",
            "color": self.color or "",
            "size": self.size,
            "photo": None,
            "photo_url": self.photo_url or "",
        }


@dataclass(frozen=True)
class Rail:
    name: str
    rail_type: str | None = None
    manufacturer: str | None = None
    color: str | None = None
    photo_url: str | None = None
    owner_id: str | None = None
    created_at: str | None = None
    id: str | None = None

    kind = EntityKind.RAIL

    @property
    def is_new(self) -> bool:
        return not self.id

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id or "",
            "name": self.name,
            "manufacturer": self.manufacturer or "",
            "color": self.color or "",
            "rail_type": self.rail_type or "",
            "photo": None,
            "photo_url": self.photo_url or "",
        }


@dataclass(frozen=True)
class Glass:
    glass_type: str
    color_spec: str = DEFAULT_COLOR_SPEC
    active: bool = True
    created_at: str | None = None
    id: str | None = None

    kind = EntityKind.GLASS

    @property
    def is_new(self) -> bool:
        return not self.id

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id or "",
            "glass_type": self.glass_type,
            "color_spec": self.color_spec,
        }


Entity = Union[Handle, Rail, Glass]


@dataclass(frozen=True)
class UploadFile:
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        if "." not in self.filename:
            return "bin"
        return self.filename.rsplit(".", 1)[1].lower() or "bin"


@dataclass(frozen=True)
class UploadedPhoto:
    url: str
    path: str
