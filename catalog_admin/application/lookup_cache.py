from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Protocol

from ..domain.errors import BackendError
from ..domain.identity import DisplayInfo
from ..domain.identity.directory import UserNotFound
from ..infrastructure.metrics import metrics

logger = logging.getLogger(__name__)


class DisplayLookup(Protocol):
    async def display_info(self, user_id: str) -> DisplayInfo: ...


@dataclass(frozen=True)
class LookupCacheEntry:
    key: str
    value: DisplayInfo
    inserted_at: float


class LookupCache:
    """
    Owner display data keyed by user id.

    Entries live for ``ttl_seconds`` and are evicted lazily on the next
    access. Concurrent resolutions of the same id share one backend lookup.
    Failures resolve to ``DisplayInfo.failed`` and are not cached, so a
    later ``resolve`` or ``retry`` asks the backend again.
    """

    def __init__(
        self,
        lookup: DisplayLookup,
        *,
        ttl_seconds: float = 300,
        timeout_seconds: float = 5,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._lookup = lookup
        self._ttl = ttl_seconds
        self._timeout = timeout_seconds
        self._clock = clock
        self._entries: Dict[str, LookupCacheEntry] = {}
        self._in_flight: Dict[str, asyncio.Task] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def peek(self, user_id: str) -> DisplayInfo | None:
        entry = self._entries.get(user_id)
        if entry is None:
            return None
        if self._is_expired(entry):
            del self._entries[user_id]
            return None
        return entry.value

    async def resolve(self, user_id: str) -> DisplayInfo:
        if not user_id:
            raise ValueError("user id is required")

        cached = self.peek(user_id)
        if cached is not None:
            return cached

        task = self._in_flight.get(user_id)
        if task is None:
            task = asyncio.ensure_future(self._resolve_remote(user_id))
            self._in_flight[user_id] = task
        return await asyncio.shield(task)

    async def retry(self, user_id: str) -> DisplayInfo:
        self._entries.pop(user_id, None)
        return await self.resolve(user_id)

    def prime(self, user_id: str, info: DisplayInfo) -> None:
        if not user_id:
            raise ValueError("user id is required")
        self._entries[user_id] = LookupCacheEntry(user_id, info, self._clock())

    def clear(self) -> None:
        self._entries.clear()
        self._in_flight.clear()

    async def _resolve_remote(self, user_id: str) -> DisplayInfo:
        try:
            async with metrics.span_async("lookup:display_info", source="cache") as span:
                try:
                    info = await asyncio.wait_for(self._lookup.display_info(user_id), self._timeout)
                except UserNotFound:
                    span.mark("failed", reason="not_found")
                    return DisplayInfo.failed("user not found")
                except asyncio.TimeoutError:
                    logger.warning("Owner lookup for %s timed out after %ss", user_id, self._timeout)
                    span.mark("failed", reason="timeout")
                    return DisplayInfo.failed("timeout")
                except BackendError as exc:
                    logger.warning("Owner lookup for %s failed: %s", user_id, exc)
                    span.mark("failed", reason=exc.code.value)
                    return DisplayInfo.failed(exc.message)
                except Exception as exc:
                    logger.exception("Owner lookup for %s failed unexpectedly", user_id)
                    span.mark("failed", reason=type(exc).__name__)
                    return DisplayInfo.failed(str(exc) or type(exc).__name__)

                # a clear() while the lookup ran discards its result
                if self._in_flight.get(user_id) is asyncio.current_task():
                    self._entries[user_id] = LookupCacheEntry(user_id, info, self._clock())
                return info
        finally:
            if self._in_flight.get(user_id) is asyncio.current_task():
                del self._in_flight[user_id]

    def _is_expired(self, entry: LookupCacheEntry) -> bool:
        return self._clock() - entry.inserted_at >= self._ttl
