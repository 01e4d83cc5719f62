from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping
from urllib.parse import quote

import aiohttp

from .client import RestSession, read_payload
from .errors import error_from_response, transport_error

logger = logging.getLogger(__name__)


class RestBlobStorage:
    """BlobStorage over the storage API (``/storage/v1``). Failures raise BackendError."""

    def __init__(self, session: RestSession):
        self._session = session
        self._storage_url = f"{session.base_url}/storage/v1"

    async def list_buckets(self) -> list[str]:
        payload = await self._request("GET", "bucket")
        return [str(item.get("name") or item.get("id")) for item in payload or [] if isinstance(item, dict)]

    async def create_bucket(self, name: str, *, public: bool = True) -> None:
        await self._request("POST", "bucket", json_body={"id": name, "name": name, "public": public})

    async def upload(self, bucket: str, path: str, data: bytes, *, content_type: str) -> None:
        await self._request(
            "POST",
            f"object/{bucket}/{quote(path)}",
            data=data,
            headers={"Content-Type": content_type, "x-upsert": "false"},
        )

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self._storage_url}/object/public/{bucket}/{quote(path)}"

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        json_body: Any = None,
        data: bytes | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        session = self._session.get()
        try:
            async with session.request(
                method,
                f"{self._storage_url}/{endpoint}",
                json=json_body,
                data=data,
                headers=self._session.headers(headers),
            ) as resp:
                payload = await read_payload(resp)
                if resp.status >= 400:
                    raise error_from_response(resp.status, payload)
                return payload
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.warning("storage %s %s failed: %r", method, endpoint, exc)
            raise transport_error(exc) from exc

