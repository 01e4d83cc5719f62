from __future__ import annotations

import logging
from typing import Optional

from ..errors import BackendErrorCode
from ..gateways import DataService
from .models import DisplayInfo

USERS_TABLE = "usuarios"

logger = logging.getLogger(__name__)


class UserNotFound(LookupError):
    pass


class UserDirectory:
    """Read-only view over the backend's user table."""

    def __init__(self, data: DataService, *, table: str = USERS_TABLE):
        self._data = data
        self._table = table

    async def display_info(self, user_id: str) -> DisplayInfo:
        response = await self._data.select(
            self._table,
            filters={"id": user_id},
            columns="id,nome,email",
            single=True,
        )
        if response.error is not None:
            if response.error.code == BackendErrorCode.NOT_FOUND:
                raise UserNotFound("User not found")
            raise response.error
        row = response.data
        if not row:
            raise UserNotFound("User not found")
        email = str(row.get("email") or "")
        name = str(row.get("nome") or email or "Unnamed user")
        return DisplayInfo(name=name, email=email)

    async def exists(self, user_id: str) -> Optional[bool]:
        """
        Returns None when the user table itself is missing (demo backend),
        otherwise whether the user row exists.
        """
        response = await self._data.select(
            self._table,
            filters={"id": user_id},
            columns="id",
            limit=1,
        )
        if response.error is not None:
            if response.error.code == BackendErrorCode.RELATION_MISSING:
                logger.warning("Table %s is missing; skipping owner check (demo mode)", self._table)
                return None
            if response.error.code == BackendErrorCode.NOT_FOUND:
                return False
            raise response.error
        return bool(response.data)
