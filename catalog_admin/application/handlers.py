from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Optional

from ..domain.catalog.models import Entity
from ..domain.catalog.repositories import EntityRepository
from ..domain.catalog.validation import validate_record
from ..domain.kinds import EntityKind
from ..domain.results import RepositoryResult
from .forms import ColorPreview
from .lookup_cache import LookupCache
from .presenters import CatalogPresenter

OpenHook = Callable[[Optional[Entity]], Awaitable[Optional[str]]]
CloseHook = Callable[[], None]
SaveHandler = Callable[[Mapping[str, Any]], Awaitable[RepositoryResult]]
DeleteHandler = Callable[[str], Awaitable[RepositoryResult]]
Validator = Callable[[Mapping[str, Any]], list]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KindHandlers:
    kind: EntityKind
    save: SaveHandler
    delete: DeleteHandler
    validate: Validator
    open: Optional[OpenHook] = None
    close: Optional[CloseHook] = None


def save_handler(repository: EntityRepository) -> SaveHandler:
    async def save(fields: Mapping[str, Any]) -> RepositoryResult:
        record_id = str(fields.get("id") or "").strip()
        if record_id:
            return await repository.update(record_id, fields)
        return await repository.create(fields)

    return save


def owner_caption(lookup: LookupCache, presenter: CatalogPresenter) -> OpenHook:
    async def open_hook(record: Optional[Entity]) -> Optional[str]:
        owner_id = getattr(record, "owner_id", None)
        if not owner_id:
            return None
        info = await lookup.resolve(owner_id)
        return presenter.owner_label(info, owner_id)

    return open_hook


def build_kind_handlers(
    repositories: Mapping[EntityKind, EntityRepository],
    *,
    lookup: LookupCache | None = None,
    presenter: CatalogPresenter | None = None,
    preview: ColorPreview | None = None,
) -> list[KindHandlers]:
    presenter = presenter or CatalogPresenter()
    handlers = []
    for kind, repository in repositories.items():
        kind = EntityKind.parse(kind)
        open_hook = None
        close_hook = None
        if repository.owned and lookup is not None:
            open_hook = owner_caption(lookup, presenter)
        if kind == EntityKind.GLASS and preview is not None:
            close_hook = preview.reset
        handlers.append(
            KindHandlers(
                kind=kind,
                save=save_handler(repository),
                delete=repository.delete,
                validate=lambda fields, _kind=kind: validate_record(_kind, fields),
                open=open_hook,
                close=close_hook,
            )
        )
        logger.debug("Built handlers for %s", kind.value)
    return handlers
