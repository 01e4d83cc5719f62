from __future__ import annotations

from enum import Enum
from typing import Sequence

REAUTHENTICATE_HINT = "Please sign out and sign in again."


class CatalogError(Exception):
    """Base class for every failure the registration core reports to the UI."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class IdentityError(CatalogError):
    reason = "identity"


class NotAuthenticated(IdentityError):
    reason = "not_authenticated"

    def __init__(self):
        super().__init__(f"User is not authenticated. {REAUTHENTICATE_HINT}")


class MissingId(IdentityError):
    reason = "missing_id"

    def __init__(self):
        super().__init__(f"User id is missing. {REAUTHENTICATE_HINT}")


class ProvisionalId(IdentityError):
    reason = "provisional_id"

    def __init__(self, actor_id: str):
        super().__init__(f"User id '{actor_id}' is temporary. {REAUTHENTICATE_HINT}")
        self.actor_id = actor_id


class MalformedId(IdentityError):
    reason = "malformed_id"

    def __init__(self, actor_id: str):
        super().__init__(f"User id '{actor_id}' has an invalid format. {REAUTHENTICATE_HINT}")
        self.actor_id = actor_id


class ValidationError(CatalogError):
    def __init__(self, messages: Sequence[str] | str):
        if isinstance(messages, str):
            messages = [messages]
        self.messages = tuple(messages)
        super().__init__("\n".join(self.messages))


class BackendErrorCode(str, Enum):
    RELATION_MISSING = "relation_missing"
    FOREIGN_KEY_VIOLATION = "foreign_key_violation"
    UNIQUENESS_VIOLATION = "uniqueness_violation"
    TIMEOUT = "timeout"
    NOT_FOUND = "not_found"
    UNKNOWN = "unknown"


class BackendError(CatalogError):
    def __init__(
        self,
        code: BackendErrorCode,
        message: str,
        *,
        raw_code: str | None = None,
        status: int | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.raw_code = raw_code
        self.status = status

    def with_message(self, message: str) -> "BackendError":
        return BackendError(self.code, message, raw_code=self.raw_code, status=self.status)


class UnknownKind(CatalogError):
    def __init__(self, kind: object):
        super().__init__(f"Unknown entity kind: {kind!r}")
        self.kind = kind


class NoActiveSession(CatalogError):
    def __init__(self, action: str = "save"):
        super().__init__(f"Cannot {action}: no modal session is active")


class SessionBusy(CatalogError):
    def __init__(self, action: str):
        super().__init__(f"Cannot {action} while a save is in progress")


class StorageUnavailable(CatalogError):
    def __init__(self, detail: str = "Image storage bucket is unavailable"):
        super().__init__(detail)
