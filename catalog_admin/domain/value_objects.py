from __future__ import annotations

import re
from dataclasses import dataclass

DEFAULT_COLOR_SPEC = "255,255,255,0.3"
NEUTRAL_SWATCH = "rgba(255,255,255,0.3)"

# Components are not range-checked: "999,0,0,0.5" is accepted.
_COLOR_SPEC_RE = re.compile(r"^\d{1,3},\d{1,3},\d{1,3}(,\d*\.?\d+)?$")


def normalize_color_spec(raw: str | None) -> str:
    if raw is None:
        return ""
    return re.sub(r"\s+", "", str(raw))


def is_valid_color_spec(raw: str | None) -> bool:
    normalized = normalize_color_spec(raw)
    return bool(normalized) and _COLOR_SPEC_RE.match(normalized) is not None


@dataclass(frozen=True)
class ColorSpec:
    value: str

    @classmethod
    def parse(cls, raw: str | None) -> "ColorSpec":
        normalized = normalize_color_spec(raw)
        if not _COLOR_SPEC_RE.match(normalized):
            raise ValueError(f"Invalid color specification: {raw!r}")
        return cls(normalized)

    @property
    def components(self) -> tuple[str, ...]:
        return tuple(self.value.split(","))

    @property
    def has_alpha(self) -> bool:
        return len(self.components) == 4

    def to_css(self) -> str:
        parts = ",".join(self.components)
        if self.has_alpha:
            return f"rgba({parts})"
        return f"rgb({parts})"

    def __str__(self) -> str:
        return self.value


def swatch_for(raw: str | None) -> str:
    try:
        return ColorSpec.parse(raw).to_css()
    except ValueError:
        return NEUTRAL_SWATCH
