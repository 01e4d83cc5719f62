from __future__ import annotations

import functools
import json
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, TypeVar

T = TypeVar("T")


@dataclass
class ActionSpan:
    action: str
    source: str | None = None
    outcome: str = "ok"
    extra: dict[str, Any] = field(default_factory=dict)

    def mark(self, outcome: str, **extra: Any) -> None:
        self.outcome = outcome
        self.extra.update(extra)


class MetricsClient:
    """Writes one JSON line per catalog action to the ``metrics.actions`` logger."""

    def __init__(self):
        self._logger = logging.getLogger("metrics.actions")

    def configure(self, logger: logging.Logger | None = None) -> None:
        if logger:
            self._logger = logger

    def _emit(self, span: ActionSpan, duration_ms: float, success: bool) -> None:
        payload: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "action": span.action,
            "duration_ms": round(duration_ms, 3),
            "success": success,
            "outcome": span.outcome if success else "error",
        }
        if span.source:
            payload["source"] = span.source
        if span.extra:
            payload.update(span.extra)
        self._logger.info(json.dumps(payload, ensure_ascii=False, default=str))

    @asynccontextmanager
    async def span_async(self, action: str, *, source: str | None = None, extra: dict | None = None):
        current = ActionSpan(action=action, source=source, extra=dict(extra or {}))
        start = time.perf_counter()
        success = True
        try:
            yield current
        except Exception:
            success = False
            raise
        finally:
            self._emit(current, (time.perf_counter() - start) * 1000, success)

    def wrap_async(self, action: str, *, source: str | None = None):
        def decorator(func: Callable[..., Awaitable[T]]):
            @functools.wraps(func)
            async def wrapper(*args, **kwargs):
                async with self.span_async(action, source=source):
                    return await func(*args, **kwargs)

            return wrapper

        return decorator


metrics = MetricsClient()
