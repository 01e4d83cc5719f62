from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, ClassVar, Mapping, Optional

from ....infrastructure.metrics import metrics
from ...errors import (
    REAUTHENTICATE_HINT,
    BackendError,
    BackendErrorCode,
    IdentityError,
    StorageUnavailable,
    ValidationError,
)
from ...gateways import ActorStore, DataService
from ...identity import ActorIdentity, IdentityValidator
from ...identity.directory import UserDirectory
from ...kinds import EntityKind
from ...results import RepositoryResult
from ..models import Entity, UploadFile
from .fixtures import fallback_rows
from .uploads import UploadRepository

ChangeListener = Callable[[EntityKind], None]

logger = logging.getLogger(__name__)


def clean_text(fields: Mapping[str, Any], key: str) -> Optional[str]:
    value = fields.get(key)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def optional_str(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


def as_fields(fields: Mapping[str, Any] | Entity) -> Mapping[str, Any]:
    if hasattr(fields, "to_record"):
        return fields.to_record()
    return fields


class EntityRepository:
    """
    Uniform list/create/update/delete over one remote catalog table.

    Expected failures never raise: every operation returns a RepositoryResult
    whose error is already translated into a user-facing message. When the
    backend reports the table as missing, reads fall back to the fixture
    rows from fallback.yaml and writes are applied to an in-memory copy of
    them.
    """

    kind: ClassVar[EntityKind]
    table: ClassVar[str]
    order_column: ClassVar[str]
    natural_key_column: ClassVar[str]
    duplicate_message: ClassVar[str]
    list_filters: ClassVar[Mapping[str, Any]] = {}
    owned: ClassVar[bool] = False
    soft_delete: ClassVar[bool] = False
    photo_folder: ClassVar[Optional[str]] = None

    def __init__(
        self,
        data: DataService,
        *,
        actors: ActorStore,
        identity: IdentityValidator | None = None,
        users: UserDirectory | None = None,
        uploads: UploadRepository | None = None,
        on_change: ChangeListener | None = None,
    ):
        self._data = data
        self._actors = actors
        self._identity = identity or IdentityValidator()
        self._users = users
        self._uploads = uploads
        self._on_change = on_change
        self._demo_rows: list[dict[str, Any]] | None = None

    # -- hooks -----------------------------------------------------------

    def validate(self, fields: Mapping[str, Any]) -> list[str]:
        raise NotImplementedError

    def from_row(self, row: Mapping[str, Any]) -> Entity:
        raise NotImplementedError

    def to_insert_row(
        self,
        fields: Mapping[str, Any],
        *,
        owner_id: str | None,
        photo_url: str | None,
    ) -> dict[str, Any]:
        raise NotImplementedError

    def to_update_row(self, fields: Mapping[str, Any], *, photo_url: str | None) -> dict[str, Any]:
        raise NotImplementedError

    # -- operations ------------------------------------------------------

    async def list(self) -> RepositoryResult:
        async with metrics.span_async(f"{self.kind.value}:list", source="repository") as span:
            response = await self._data.select(
                self.table,
                filters=dict(self.list_filters) or None,
                order=self.order_column,
            )
            if response.error is None:
                rows = response.data or []
                span.mark("ok", rows=len(rows))
                return RepositoryResult.ok(tuple(self.from_row(row) for row in rows))
            if response.error.code == BackendErrorCode.RELATION_MISSING:
                logger.warning("Table %s does not exist, serving fallback %s data", self.table, self.kind.value)
                span.mark("fallback")
                return RepositoryResult.ok(self._demo_entities(), degraded=True)
            error = self._translate(response.error)
            logger.error("Failed to list %s: %s", self.kind.value, response.error)
            span.mark("failed")
            return RepositoryResult.fail(error, data=())

    async def create(self, fields: Mapping[str, Any] | Entity) -> RepositoryResult:
        async with metrics.span_async(f"{self.kind.value}:create", source="repository") as span:
            result = await self._create(as_fields(fields))
            span.mark(_outcome(result))
            return result

    async def update(self, record_id: str | None, fields: Mapping[str, Any] | Entity) -> RepositoryResult:
        async with metrics.span_async(f"{self.kind.value}:update", source="repository") as span:
            result = await self._update(record_id, as_fields(fields))
            span.mark(_outcome(result))
            return result

    async def delete(self, record_id: str | None) -> RepositoryResult:
        async with metrics.span_async(f"{self.kind.value}:delete", source="repository") as span:
            result = await self._delete(record_id)
            span.mark(_outcome(result))
            return result

    # -- flows -----------------------------------------------------------

    async def _create(self, fields: Mapping[str, Any]) -> RepositoryResult:
        errors = self.validate(fields)
        if errors:
            return RepositoryResult.fail(ValidationError(errors))
        try:
            actor = self._identity.validate(await self._actors.current())
        except IdentityError as exc:
            return RepositoryResult.fail(exc)

        if self.owned:
            owner_error = await self._check_owner(actor)
            if owner_error is not None:
                return RepositoryResult.fail(owner_error)

        photo_url, upload_error = await self._resolve_photo(fields, actor, keep_existing=False)
        if upload_error is not None:
            return RepositoryResult.fail(upload_error)

        row = self.to_insert_row(
            fields,
            owner_id=actor.id if self.owned else None,
            photo_url=photo_url,
        )
        response = await self._data.insert(self.table, row)
        if response.error is not None:
            if response.error.code == BackendErrorCode.RELATION_MISSING:
                return self._demo_insert(row)
            return self._reject("create", response.error)

        entity = self.from_row(_first_row(response.data) or row)
        logger.info("Created %s %s", self.kind.value, entity.id)
        self._changed()
        return RepositoryResult.ok(entity)

    async def _update(self, record_id: str | None, fields: Mapping[str, Any]) -> RepositoryResult:
        record_id = str(record_id).strip() if record_id is not None else ""
        if not record_id:
            return RepositoryResult.fail(ValidationError(f"{self.kind.label} id is required"))
        errors = self.validate(fields)
        if errors:
            return RepositoryResult.fail(ValidationError(errors))
        try:
            actor = self._identity.validate(await self._actors.current())
        except IdentityError as exc:
            return RepositoryResult.fail(exc)

        photo_url, upload_error = await self._resolve_photo(fields, actor, keep_existing=True)
        if upload_error is not None:
            return RepositoryResult.fail(upload_error)

        row = self.to_update_row(fields, photo_url=photo_url)
        response = await self._data.update(self.table, row, match_id=record_id)
        if response.error is not None:
            if response.error.code == BackendErrorCode.RELATION_MISSING:
                return self._demo_update(record_id, row)
            return self._reject("update", response.error)

        updated = _first_row(response.data)
        if updated is None:
            return RepositoryResult.fail(self._not_found(record_id))
        entity = self.from_row(updated)
        logger.info("Updated %s %s", self.kind.value, record_id)
        self._changed()
        return RepositoryResult.ok(entity)

    async def _delete(self, record_id: str | None) -> RepositoryResult:
        record_id = str(record_id).strip() if record_id is not None else ""
        if not record_id:
            return RepositoryResult.fail(ValidationError(f"{self.kind.label} id is required"))

        if self.soft_delete:
            response = await self._data.update(self.table, {"ativo": False}, match_id=record_id)
        else:
            response = await self._data.delete(self.table, match_id=record_id)
        if response.error is not None:
            if response.error.code == BackendErrorCode.RELATION_MISSING:
                return self._demo_delete(record_id)
            return self._reject("delete", response.error)

        logger.info("Deleted %s %s (soft=%s)", self.kind.value, record_id, self.soft_delete)
        self._changed()
        return RepositoryResult.ok()

    # -- helpers ---------------------------------------------------------

    async def _check_owner(self, actor: ActorIdentity) -> BackendError | None:
        if self._users is None:
            return None
        try:
            exists = await self._users.exists(actor.id)
        except BackendError as exc:
            return self._translate(exc)
        if exists is False:
            logger.warning("Actor %s is not registered in the user table", actor.id)
            return BackendError(
                BackendErrorCode.FOREIGN_KEY_VIOLATION,
                f"Your user account was not found on the server. {REAUTHENTICATE_HINT}",
            )
        return None

    async def _resolve_photo(
        self,
        fields: Mapping[str, Any],
        actor: ActorIdentity,
        *,
        keep_existing: bool,
    ):
        photo = fields.get("photo")
        if isinstance(photo, UploadFile) and self.photo_folder:
            if self._uploads is None:
                return None, StorageUnavailable("Photo upload is not configured")
            uploaded = await self._uploads.upload(photo, self.photo_folder, owner_email=actor.email)
            if not uploaded.success:
                return None, uploaded.error
            return uploaded.data.url, None
        if keep_existing:
            return clean_text(fields, "photo_url"), None
        return None, None

    def _translate(self, error: BackendError) -> BackendError:
        if error.code == BackendErrorCode.FOREIGN_KEY_VIOLATION:
            return error.with_message(f"Your user account is not registered on the server. {REAUTHENTICATE_HINT}")
        if error.code == BackendErrorCode.UNIQUENESS_VIOLATION:
            if self.natural_key_column in (error.message or ""):
                return error.with_message(self.duplicate_message)
            return error.with_message("A record with the same information already exists. Check the data.")
        if error.code == BackendErrorCode.TIMEOUT:
            return error.with_message("Connection error. Please try again.")
        if error.code == BackendErrorCode.RELATION_MISSING:
            return error.with_message(f"Table {self.table} does not exist")
        return error

    def _reject(self, action: str, error: BackendError) -> RepositoryResult:
        logger.error(
            "Failed to %s %s: code=%s raw=%s message=%s",
            action,
            self.kind.value,
            error.code.value,
            error.raw_code,
            error.message,
        )
        return RepositoryResult.fail(self._translate(error))

    def _not_found(self, record_id: str) -> BackendError:
        return BackendError(BackendErrorCode.NOT_FOUND, f"{self.kind.label} {record_id} was not found")

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change(self.kind)

    # -- demo dataset ----------------------------------------------------

    def _demo_store(self) -> list[dict[str, Any]]:
        if self._demo_rows is None:
            self._demo_rows = fallback_rows(self.table)
        return self._demo_rows

    def _demo_entities(self) -> tuple[Entity, ...]:
        rows = [
            row
            for row in self._demo_store()
            if all(row.get(key) == value for key, value in self.list_filters.items())
        ]
        rows.sort(key=lambda row: str(row.get(self.order_column) or "").lower())
        return tuple(self.from_row(row) for row in rows)

    def _find_demo(self, record_id: str) -> dict[str, Any] | None:
        for row in self._demo_store():
            if str(row.get("id")) == record_id:
                return row
        return None

    def _demo_insert(self, row: Mapping[str, Any]) -> RepositoryResult:
        stored = {
            **row,
            "id": str(uuid.uuid4()),
            "criado_em": datetime.now(timezone.utc).isoformat(),
        }
        self._demo_store().append(stored)
        logger.warning("Table %s does not exist, %s %s kept in demo data", self.table, self.kind.value, stored["id"])
        self._changed()
        return RepositoryResult.ok(self.from_row(stored), degraded=True)

    def _demo_update(self, record_id: str, row: Mapping[str, Any]) -> RepositoryResult:
        stored = self._find_demo(record_id)
        if stored is None:
            return RepositoryResult.fail(self._not_found(record_id))
        stored.update(row)
        logger.warning("Table %s does not exist, %s %s updated in demo data", self.table, self.kind.value, record_id)
        self._changed()
        return RepositoryResult.ok(self.from_row(stored), degraded=True)

    def _demo_delete(self, record_id: str) -> RepositoryResult:
        stored = self._find_demo(record_id)
        if stored is None:
            return RepositoryResult.fail(self._not_found(record_id))
        if self.soft_delete:
            stored["ativo"] = False
        else:
            self._demo_store().remove(stored)
        logger.warning("Table %s does not exist, %s %s removed from demo data", self.table, self.kind.value, record_id)
        self._changed()
        return RepositoryResult.ok(degraded=True)


def _first_row(data: Any) -> dict[str, Any] | None:
    if isinstance(data, list):
        return data[0] if data else None
    if isinstance(data, dict):
        return data
    return None


def _outcome(result: RepositoryResult) -> str:
    if not result.success:
        return "failed"
    return "demo" if result.degraded else "ok"
