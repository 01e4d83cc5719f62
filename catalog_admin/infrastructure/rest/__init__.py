from .client import RestDataService, RestSession
from .errors import classify, error_from_response, transport_error
from .storage import RestBlobStorage

__all__ = [
    "RestBlobStorage",
    "RestDataService",
    "RestSession",
    "classify",
    "error_from_response",
    "transport_error",
]
