from __future__ import annotations

from enum import Enum

from .errors import UnknownKind


class EntityKind(str, Enum):
    HANDLE = "handle"
    RAIL = "rail"
    GLASS = "glass"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @classmethod
    def parse(cls, value: "EntityKind | str") -> "EntityKind":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UnknownKind(value) from None


_LABELS = {
    EntityKind.HANDLE: "Handle",
    EntityKind.RAIL: "Rail",
    EntityKind.GLASS: "Glass",
}
