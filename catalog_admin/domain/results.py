from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .errors import CatalogError


@dataclass(frozen=True)
class RepositoryResult:
    success: bool
    data: Any = None
    error: CatalogError | None = None
    degraded: bool = False

    @classmethod
    def ok(cls, data: Any = None, *, degraded: bool = False) -> "RepositoryResult":
        return cls(success=True, data=data, degraded=degraded)

    @classmethod
    def fail(cls, error: CatalogError, *, data: Any = None) -> "RepositoryResult":
        return cls(success=False, data=data, error=error)

    @property
    def message(self) -> str | None:
        return str(self.error) if self.error is not None else None
