from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol

from .layouts import FieldDescriptor, WidgetKind

ChangeCallback = Callable[[Any], None]


class FormSurface(Protocol):
    def has_field(self, field_id: str) -> bool: ...

    def widget_of(self, field_id: str) -> Optional[WidgetKind]: ...

    def configure(self, descriptor: FieldDescriptor) -> None: ...

    def set_visible(self, field_id: str, visible: bool) -> None: ...

    def get_value(self, field_id: str) -> Any: ...

    def set_value(self, field_id: str, value: Any) -> None: ...

    def watch(self, field_id: str, callback: ChangeCallback) -> None: ...


@dataclass
class FieldState:
    descriptor: FieldDescriptor
    value: Any = ""
    visible: bool = True
    watchers: List[ChangeCallback] = field(default_factory=list)


class InMemoryForm:
    """Headless form used by the CLI and tests."""

    def __init__(self) -> None:
        self._fields: Dict[str, FieldState] = {}

    @property
    def field_ids(self) -> list[str]:
        return list(self._fields)

    def has_field(self, field_id: str) -> bool:
        return field_id in self._fields

    def widget_of(self, field_id: str) -> Optional[WidgetKind]:
        state = self._fields.get(field_id)
        return state.descriptor.widget if state else None

    def descriptor_of(self, field_id: str) -> Optional[FieldDescriptor]:
        state = self._fields.get(field_id)
        return state.descriptor if state else None

    def configure(self, descriptor: FieldDescriptor) -> None:
        state = self._fields.get(descriptor.field_id)
        if state is None:
            self._fields[descriptor.field_id] = FieldState(descriptor, descriptor.default)
            return
        # swapping the widget keeps whatever the user already typed
        state.descriptor = descriptor

    def set_visible(self, field_id: str, visible: bool) -> None:
        self._state(field_id).visible = visible

    def is_visible(self, field_id: str) -> bool:
        state = self._fields.get(field_id)
        return bool(state and state.visible)

    def get_value(self, field_id: str) -> Any:
        return self._state(field_id).value

    def set_value(self, field_id: str, value: Any) -> None:
        state = self._state(field_id)
        state.value = value
        for callback in list(state.watchers):
            callback(value)

    def watch(self, field_id: str, callback: ChangeCallback) -> None:
        self._state(field_id).watchers.append(callback)

    def _state(self, field_id: str) -> FieldState:
        try:
            return self._fields[field_id]
        except KeyError:
            raise KeyError(f"Unknown form field: {field_id}") from None
