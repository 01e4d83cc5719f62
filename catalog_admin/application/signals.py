from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List

from ..domain.kinds import EntityKind

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class Notification:
    message: str
    severity: Severity = Severity.INFO


KindChangedHandler = Callable[[EntityKind], None]
NotificationHandler = Callable[[Notification], None]
ModalClosedHandler = Callable[[], None]


class ChangeFeed:
    """
    In-process fan-out for the signals list views and toasts listen to.

    Handlers run synchronously in subscription order. A failing handler is
    logged and does not stop the remaining ones.
    """

    def __init__(self) -> None:
        self._kind_changed: Dict[EntityKind, List[KindChangedHandler]] = {}
        self._any_kind: List[KindChangedHandler] = []
        self._notifications: List[NotificationHandler] = []
        self._modal_closed: List[ModalClosedHandler] = []

    def on_kind_changed(self, handler: KindChangedHandler, kind: EntityKind | None = None) -> None:
        if kind is None:
            self._any_kind.append(handler)
        else:
            self._kind_changed.setdefault(EntityKind.parse(kind), []).append(handler)

    def on_notification(self, handler: NotificationHandler) -> None:
        self._notifications.append(handler)

    def on_modal_closed(self, handler: ModalClosedHandler) -> None:
        self._modal_closed.append(handler)

    def unsubscribe(self, handler: Callable) -> bool:
        removed = False
        for handlers in (*self._kind_changed.values(), self._any_kind, self._notifications, self._modal_closed):
            while handler in handlers:
                handlers.remove(handler)
                removed = True
        return removed

    def kind_changed(self, kind: EntityKind) -> None:
        logger.debug("kind changed: %s", kind.value)
        for handler in [*self._kind_changed.get(kind, []), *self._any_kind]:
            self._dispatch("kind_changed", handler, kind)

    def notify(self, message: str, severity: Severity = Severity.INFO) -> None:
        notification = Notification(message=message, severity=severity)
        for handler in list(self._notifications):
            self._dispatch("notification", handler, notification)

    def modal_closed(self) -> None:
        for handler in list(self._modal_closed):
            self._dispatch("modal_closed", handler)

    def _dispatch(self, signal: str, handler: Callable, *args) -> None:
        try:
            handler(*args)
        except Exception:
            logger.exception("Handler %r failed for %s signal", handler, signal)
