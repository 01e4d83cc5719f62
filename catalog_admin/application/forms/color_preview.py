from __future__ import annotations

from typing import Any

from ...domain.value_objects import NEUTRAL_SWATCH, is_valid_color_spec, swatch_for


class ColorPreview:
    """Live swatch next to the glass color input."""

    def __init__(self) -> None:
        self.swatch = NEUTRAL_SWATCH
        self.valid = False

    def update(self, raw: Any) -> str:
        text = "" if raw is None else str(raw)
        self.valid = is_valid_color_spec(text)
        self.swatch = swatch_for(text) if self.valid else NEUTRAL_SWATCH
        return self.swatch

    def reset(self) -> None:
        self.swatch = NEUTRAL_SWATCH
        self.valid = False
