from .errors import (
    BackendError,
    BackendErrorCode,
    CatalogError,
    IdentityError,
    NoActiveSession,
    SessionBusy,
    StorageUnavailable,
    UnknownKind,
    ValidationError,
)
from .gateways import ActorStore, BlobStorage, DataService, TableResponse
from .identity import ActorIdentity, DisplayInfo, IdentityValidator
from .kinds import EntityKind
from .results import RepositoryResult
from .catalog import Entity, Glass, Handle, Rail, UploadFile

__all__ = [
    "ActorIdentity",
    "ActorStore",
    "BackendError",
    "BackendErrorCode",
    "BlobStorage",
    "CatalogError",
    "DataService",
    "DisplayInfo",
    "Entity",
    "EntityKind",
    "Glass",
    "Handle",
    "IdentityError",
    "IdentityValidator",
    "NoActiveSession",
    "Rail",
    "RepositoryResult",
    "SessionBusy",
    "StorageUnavailable",
    "TableResponse",
    "UnknownKind",
    "UploadFile",
    "ValidationError",
]
