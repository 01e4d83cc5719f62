from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Mapping

import aiohttp

from ...domain.gateways import TableResponse
from .errors import error_from_response, transport_error

logger = logging.getLogger(__name__)


def filter_literal(value: Any) -> str:
    if value is None:
        return "is.null"
    if isinstance(value, bool):
        return f"eq.{'true' if value else 'false'}"
    return f"eq.{value}"


async def read_payload(resp: aiohttp.ClientResponse) -> Any:
    text = await resp.text()
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return {"message": text}


class RestSession:
    """Lazily created aiohttp session shared by the REST gateways."""

    def __init__(self, base_url: str, api_key: str, *, request_timeout: float = 15):
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._request_timeout = request_timeout
        self._session: aiohttp.ClientSession | None = None
        self.access_token: str | None = None

    def headers(self, extra: Mapping[str, str] | None = None) -> dict[str, str]:
        headers = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self.access_token or self._api_key}",
        }
        if extra:
            headers.update(extra)
        return headers

    def get(self) -> aiohttp.ClientSession:
        if not self._session or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self._request_timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None


class RestDataService:
    """DataService over PostgREST (``/rest/v1/<table>``)."""

    def __init__(self, session: RestSession):
        self._session = session
        self._rest_url = f"{session.base_url}/rest/v1"

    async def select(
        self,
        table: str,
        *,
        filters: Mapping[str, Any] | None = None,
        order: str | None = None,
        limit: int | None = None,
        columns: str = "*",
        single: bool = False,
    ) -> TableResponse:
        params = {"select": columns}
        for column, value in (filters or {}).items():
            params[column] = filter_literal(value)
        if order:
            params["order"] = f"{order}.asc"
        if limit is not None:
            params["limit"] = str(limit)
        headers = {"Accept": "application/vnd.pgrst.object+json"} if single else None
        return await self._request("GET", table, params=params, headers=headers)

    async def insert(self, table: str, row: Mapping[str, Any]) -> TableResponse:
        return await self._request(
            "POST",
            table,
            json_body=dict(row),
            headers={"Prefer": "return=representation"},
        )

    async def update(self, table: str, row: Mapping[str, Any], *, match_id: str) -> TableResponse:
        return await self._request(
            "PATCH",
            table,
            params={"id": filter_literal(match_id)},
            json_body=dict(row),
            headers={"Prefer": "return=representation"},
        )

    async def delete(self, table: str, *, match_id: str) -> TableResponse:
        return await self._request(
            "DELETE",
            table,
            params={"id": filter_literal(match_id)},
            headers={"Prefer": "return=minimal"},
        )

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: Mapping[str, str] | None = None,
        json_body: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> TableResponse:
        url = f"{self._rest_url}/{table}"
        session = self._session.get()
        try:
            async with session.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=self._session.headers(headers),
            ) as resp:
                payload = await read_payload(resp)
                if resp.status >= 400:
                    error = error_from_response(resp.status, payload)
                    logger.debug("%s %s -> %s %s", method, table, resp.status, error.raw_code)
                    return TableResponse(error=error)
                return TableResponse(data=payload)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.warning("%s %s failed: %r", method, table, exc)
            return TableResponse(error=transport_error(exc))
