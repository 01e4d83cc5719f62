from __future__ import annotations

import asyncio
from typing import Any

from ...domain.errors import BackendError, BackendErrorCode

_CODES = {
    "42P01": BackendErrorCode.RELATION_MISSING,
    # newer PostgREST reports unknown tables from its schema cache
    "PGRST205": BackendErrorCode.RELATION_MISSING,
    "23503": BackendErrorCode.FOREIGN_KEY_VIOLATION,
    "23505": BackendErrorCode.UNIQUENESS_VIOLATION,
    "PGRST301": BackendErrorCode.TIMEOUT,
    "57014": BackendErrorCode.TIMEOUT,
    "PGRST116": BackendErrorCode.NOT_FOUND,
}


def classify(raw_code: str | None, message: str | None = None) -> BackendErrorCode:
    code = _CODES.get((raw_code or "").strip().upper())
    if code is not None:
        return code
    if "timeout" in (message or "").lower():
        return BackendErrorCode.TIMEOUT
    return BackendErrorCode.UNKNOWN


def error_from_response(status: int, payload: Any) -> BackendError:
    raw_code = None
    message = None
    if isinstance(payload, dict):
        raw_code = payload.get("code") or payload.get("error")
        message = payload.get("message") or payload.get("error_description") or payload.get("details")
    elif payload:
        message = str(payload)
    raw_code = str(raw_code) if raw_code is not None else None
    message = message or f"Request failed with HTTP {status}"
    return BackendError(classify(raw_code, message), message, raw_code=raw_code, status=status)


def transport_error(exc: BaseException) -> BackendError:
    if isinstance(exc, asyncio.TimeoutError):
        message = "Request timeout"
    else:
        message = f"Connection failed: {exc}"
    return BackendError(BackendErrorCode.TIMEOUT, message, raw_code=type(exc).__name__)
