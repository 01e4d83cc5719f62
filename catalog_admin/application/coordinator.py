from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Protocol, Sequence

from ..domain.catalog.models import Entity
from ..domain.errors import NoActiveSession, SessionBusy, UnknownKind
from ..domain.kinds import EntityKind
from ..domain.results import RepositoryResult
from .forms import FieldMapper
from .handlers import KindHandlers
from .presenters import CatalogPresenter
from .signals import ChangeFeed, Severity

logger = logging.getLogger(__name__)

_session_ids = itertools.count(1)


class ModalState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    SAVING = "saving"
    FORCED_CLOSED = "forced_closed"


class SaveStatus(Enum):
    SAVED = "saved"
    INVALID = "invalid"
    FAILED = "failed"
    NO_SESSION = "no_session"
    BUSY = "busy"


@dataclass(frozen=True)
class SaveOutcome:
    status: SaveStatus
    messages: tuple[str, ...] = ()
    result: Optional[RepositoryResult] = None


@dataclass(frozen=True)
class ModalSession:
    kind: EntityKind
    record: Optional[Entity] = None
    token: int = field(default_factory=lambda: next(_session_ids))

    @property
    def editing(self) -> bool:
        if self.record is None:
            return False
        if isinstance(self.record, Mapping):
            return bool(self.record.get("id"))
        return not self.record.is_new


class SubmitEvent(Protocol):
    def prevent_default(self) -> None: ...


class ModalSurface(Protocol):
    def show(self, title: str, caption: Optional[str] = None) -> None: ...

    def set_caption(self, caption: Optional[str]) -> None: ...

    def hide(self, *, force: bool = False) -> None: ...


class InMemoryModal:
    def __init__(self) -> None:
        self.visible = False
        self.title: Optional[str] = None
        self.caption: Optional[str] = None
        self.force_hidden = 0

    def show(self, title: str, caption: Optional[str] = None) -> None:
        self.visible = True
        self.title = title
        self.caption = caption

    def set_caption(self, caption: Optional[str]) -> None:
        self.caption = caption

    def hide(self, *, force: bool = False) -> None:
        self.visible = False
        if force:
            self.force_hidden += 1


class ModalCoordinator:
    """
    Owns the single create/edit modal shared by every catalog kind.

    CLOSED -> OPEN -> SAVING -> CLOSED, with FORCED_CLOSED reachable from
    anywhere. A save that completes after its session was force closed
    leaves the coordinator as it is.
    """

    def __init__(
        self,
        mapper: FieldMapper,
        *,
        feed: ChangeFeed,
        modal: ModalSurface,
        presenter: CatalogPresenter | None = None,
    ):
        self._mapper = mapper
        self._feed = feed
        self._modal = modal
        self._presenter = presenter or CatalogPresenter()
        self._handlers: Dict[EntityKind, KindHandlers] = {}
        self._session: Optional[ModalSession] = None
        self._state = ModalState.CLOSED

    @property
    def state(self) -> ModalState:
        return self._state

    @property
    def session(self) -> Optional[ModalSession]:
        return self._session

    @property
    def kinds(self) -> tuple[EntityKind, ...]:
        return tuple(self._handlers)

    def register(self, handlers: KindHandlers) -> None:
        if handlers.kind in self._handlers:
            raise ValueError(f"Handlers for {handlers.kind.value} are already registered")
        self._handlers[handlers.kind] = handlers

    def register_all(self, handlers: Sequence[KindHandlers]) -> None:
        for item in handlers:
            self.register(item)

    async def open(self, kind: EntityKind | str, record: Optional[Entity] = None) -> ModalSession:
        handlers = self._handlers_for(kind)
        if self._state == ModalState.SAVING:
            raise SessionBusy("open a modal")

        previous = self._session
        if previous is not None:
            logger.info("Replacing open %s modal with %s", previous.kind.value, handlers.kind.value)
            self._run_close_hook(previous.kind)

        self._mapper.configure_fields_for(handlers.kind)
        if record is None:
            self._mapper.clear()
        else:
            self._mapper.populate(handlers.kind, record)

        session = ModalSession(kind=handlers.kind, record=record)
        self._session = session
        self._state = ModalState.OPEN

        self._modal.show(self._presenter.modal_title(handlers.kind, editing=session.editing))
        logger.info("Opened %s modal (editing=%s)", handlers.kind.value, session.editing)
        if handlers.open is None:
            return session

        try:
            caption = await handlers.open(record)
        except Exception:
            logger.exception("Open hook for %s failed", handlers.kind.value)
            if self._session is session:
                self._session = None
                self._state = ModalState.CLOSED
                self._run_close_hook(handlers.kind)
                self._mapper.clear()
                self._modal.hide()
            raise

        if self._session is not session:
            logger.info("Modal for %s was closed before its caption resolved", handlers.kind.value)
        elif caption is not None:
            self._modal.set_caption(caption)
        return session

    async def save(self, event: SubmitEvent | None = None) -> SaveOutcome:
        if event is not None:
            event.prevent_default()
        session = self._session
        if session is None:
            error = NoActiveSession("save")
            logger.warning("%s", error)
            return SaveOutcome(SaveStatus.NO_SESSION, messages=(error.message,))
        if self._state == ModalState.SAVING:
            error = SessionBusy("save")
            logger.warning("%s (%s)", error, session.kind.value)
            return SaveOutcome(SaveStatus.BUSY, messages=(error.message,))

        handlers = self._handlers[session.kind]
        fields = self._mapper.extract(session.kind)
        errors = tuple(handlers.validate(fields))
        if errors:
            for message in errors:
                self._feed.notify(message, Severity.ERROR)
            return SaveOutcome(SaveStatus.INVALID, messages=errors)

        created = not str(fields.get("id") or "").strip()
        self._state = ModalState.SAVING
        try:
            result = await handlers.save(fields)
        finally:
            if self._session is session:
                self._state = ModalState.OPEN

        if self._session is not session:
            logger.info("Discarding %s save result for a modal that is no longer open", session.kind.value)
            status = SaveStatus.SAVED if result.success else SaveStatus.FAILED
            return SaveOutcome(status, result=result)

        if not result.success:
            message = result.message or "Save failed"
            logger.info("Save of %s failed: %s", session.kind.value, message)
            self._feed.notify(message, Severity.ERROR)
            return SaveOutcome(SaveStatus.FAILED, messages=(message,), result=result)

        self._finish(session.kind)
        self._state = ModalState.CLOSED
        self._feed.notify(
            self._presenter.saved_message(session.kind, created=created, degraded=result.degraded),
            Severity.WARNING if result.degraded else Severity.SUCCESS,
        )
        return SaveOutcome(SaveStatus.SAVED, result=result)

    def close(self) -> bool:
        if self._state != ModalState.OPEN or self._session is None:
            logger.warning("Close requested in state %s", self._state.value)
            return False
        kind = self._session.kind
        self._finish(kind)
        self._state = ModalState.CLOSED
        logger.info("Closed %s modal", kind.value)
        return True

    def force_close(self) -> None:
        if self._state == ModalState.FORCED_CLOSED and self._session is None:
            return
        if self._session is not None:
            self._run_close_hook(self._session.kind)
        self._session = None
        self._mapper.clear()
        self._modal.hide(force=True)
        self._state = ModalState.FORCED_CLOSED
        logger.info("Modal force closed")
        self._feed.modal_closed()

    async def delete(self, kind: EntityKind | str, record_id: str) -> RepositoryResult:
        handlers = self._handlers_for(kind)
        result = await handlers.delete(record_id)
        if result.success:
            self._feed.notify(
                self._presenter.deleted_message(handlers.kind, degraded=result.degraded),
                Severity.WARNING if result.degraded else Severity.SUCCESS,
            )
        else:
            self._feed.notify(result.message or "Delete failed", Severity.ERROR)
        return result

    def _handlers_for(self, kind: Any) -> KindHandlers:
        parsed = EntityKind.parse(kind)
        handlers = self._handlers.get(parsed)
        if handlers is None:
            raise UnknownKind(kind)
        return handlers

    def _finish(self, kind: EntityKind) -> None:
        self._session = None
        self._run_close_hook(kind)
        self._mapper.clear()
        self._modal.hide()
        self._feed.modal_closed()

    def _run_close_hook(self, kind: EntityKind) -> None:
        handlers = self._handlers.get(kind)
        if handlers is not None and handlers.close is not None:
            handlers.close()
