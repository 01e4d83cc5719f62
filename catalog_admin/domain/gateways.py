from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol, Sequence

from .errors import BackendError
from .identity.models import ActorIdentity


@dataclass(frozen=True)
class TableResponse:
    data: Any = None
    error: Optional[BackendError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class DataService(Protocol):
    async def select(
        self,
        table: str,
        *,
        filters: Mapping[str, Any] | None = None,
        order: str | None = None,
        limit: int | None = None,
        columns: str = "*",
        single: bool = False,
    ) -> TableResponse: ...

    async def insert(self, table: str, row: Mapping[str, Any]) -> TableResponse: ...

    async def update(self, table: str, row: Mapping[str, Any], *, match_id: str) -> TableResponse: ...

    async def delete(self, table: str, *, match_id: str) -> TableResponse: ...


class BlobStorage(Protocol):
    async def list_buckets(self) -> Sequence[str]: ...

    async def create_bucket(self, name: str, *, public: bool = True) -> None: ...

    async def upload(self, bucket: str, path: str, data: bytes, *, content_type: str) -> None: ...

    def public_url(self, bucket: str, path: str) -> str: ...


class ActorStore(Protocol):
    async def current(self) -> Optional[ActorIdentity]: ...
