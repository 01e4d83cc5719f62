from .color_preview import ColorPreview
from .layouts import ALL_FIELD_IDS, LAYOUTS, FieldDescriptor, WidgetKind, layout_for
from .mapper import FieldMapper
from .surface import FormSurface, InMemoryForm

__all__ = [
    "ALL_FIELD_IDS",
    "ColorPreview",
    "FieldDescriptor",
    "FieldMapper",
    "FormSurface",
    "InMemoryForm",
    "LAYOUTS",
    "WidgetKind",
    "layout_for",
]
