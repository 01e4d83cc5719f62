from __future__ import annotations

import logging
from dataclasses import dataclass

from ..domain.catalog.repositories import (
    DEFAULT_BUCKET,
    MAX_UPLOAD_BYTES,
    EntityRepository,
    GlassRepository,
    HandleRepository,
    RailRepository,
    UploadRepository,
)
from ..domain.errors import IdentityError
from ..domain.gateways import BlobStorage, DataService
from ..domain.identity import DisplayInfo, IdentityValidator
from ..domain.identity.directory import UserDirectory
from ..domain.kinds import EntityKind
from ..infrastructure.rest import RestBlobStorage, RestDataService, RestSession
from ..infrastructure.sqlite import SQLiteActorStore, SQLiteDatabase
from .coordinator import InMemoryModal, ModalCoordinator, ModalSurface
from .forms import ColorPreview, FieldMapper, FormSurface, InMemoryForm
from .handlers import build_kind_handlers
from .lookup_cache import LookupCache
from .presenters import CatalogPresenter
from .signals import ChangeFeed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppConfig:
    api_url: str
    api_key: str
    actor_db_path: str = "data/actor.db"
    lookup_ttl_seconds: float = 300
    lookup_timeout_seconds: float = 5
    upload_max_bytes: int = MAX_UPLOAD_BYTES
    storage_bucket: str = DEFAULT_BUCKET
    request_timeout_seconds: float = 15
    metrics_log_path: str | None = None


class AppContainer:
    def __init__(
        self,
        *,
        config: AppConfig,
        feed: ChangeFeed,
        repositories: dict[EntityKind, EntityRepository],
        uploads: UploadRepository,
        lookup: LookupCache,
        mapper: FieldMapper,
        coordinator: ModalCoordinator,
        presenter: CatalogPresenter,
        actors: SQLiteActorStore,
        database: SQLiteDatabase,
        rest: RestSession | None,
    ):
        self.config = config
        self.feed = feed
        self.repositories = repositories
        self.uploads = uploads
        self.lookup = lookup
        self.mapper = mapper
        self.coordinator = coordinator
        self.presenter = presenter
        self.actors = actors

        self._database = database
        self._rest = rest

    def repository(self, kind: EntityKind | str) -> EntityRepository:
        return self.repositories[EntityKind.parse(kind)]

    async def init_resources(self) -> None:
        await self._database.init()
        await self._prime_current_actor()

    async def _prime_current_actor(self) -> None:
        actor = await self.actors.current()
        if actor is None:
            return
        try:
            actor = IdentityValidator().validate(actor)
        except IdentityError as exc:
            logger.warning("Stored actor is not usable: %s", exc)
            return
        self.lookup.prime(actor.id, DisplayInfo(name=actor.display_name, email=actor.email))

    async def close(self) -> None:
        if self._rest is not None:
            await self._rest.close()


def create_container(
    config: AppConfig,
    *,
    data: DataService | None = None,
    storage: BlobStorage | None = None,
    form: FormSurface | None = None,
    modal: ModalSurface | None = None,
) -> AppContainer:
    rest = None
    if data is None or storage is None:
        rest = RestSession(config.api_url, config.api_key, request_timeout=config.request_timeout_seconds)
    data = data or RestDataService(rest)
    storage = storage or RestBlobStorage(rest)

    database = SQLiteDatabase(config.actor_db_path)
    actors = SQLiteActorStore(database)
    feed = ChangeFeed()
    users = UserDirectory(data)
    identity = IdentityValidator()
    uploads = UploadRepository(storage, bucket=config.storage_bucket, max_bytes=config.upload_max_bytes)

    repositories: dict[EntityKind, EntityRepository] = {}
    for repo_cls in (HandleRepository, RailRepository, GlassRepository):
        repositories[repo_cls.kind] = repo_cls(
            data,
            actors=actors,
            identity=identity,
            users=users if repo_cls.owned else None,
            uploads=uploads if repo_cls.photo_folder else None,
            on_change=feed.kind_changed,
        )

    lookup = LookupCache(
        users,
        ttl_seconds=config.lookup_ttl_seconds,
        timeout_seconds=config.lookup_timeout_seconds,
    )
    presenter = CatalogPresenter()
    preview = ColorPreview()
    mapper = FieldMapper(form or InMemoryForm(), preview=preview)
    coordinator = ModalCoordinator(mapper, feed=feed, modal=modal or InMemoryModal(), presenter=presenter)
    coordinator.register_all(
        build_kind_handlers(repositories, lookup=lookup, presenter=presenter, preview=preview)
    )

    return AppContainer(
        config=config,
        feed=feed,
        repositories=repositories,
        uploads=uploads,
        lookup=lookup,
        mapper=mapper,
        coordinator=coordinator,
        presenter=presenter,
        actors=actors,
        database=database,
        rest=rest,
    )
