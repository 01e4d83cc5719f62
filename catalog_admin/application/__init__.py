from .bootstrap import bootstrap_app
from .container import AppConfig, AppContainer, create_container
from .coordinator import InMemoryModal, ModalCoordinator, ModalState, SaveOutcome, SaveStatus
from .handlers import KindHandlers, build_kind_handlers
from .lookup_cache import LookupCache
from .signals import ChangeFeed, Notification, Severity

__all__ = [
    "AppConfig",
    "AppContainer",
    "ChangeFeed",
    "InMemoryModal",
    "KindHandlers",
    "LookupCache",
    "ModalCoordinator",
    "ModalState",
    "Notification",
    "SaveOutcome",
    "SaveStatus",
    "Severity",
    "bootstrap_app",
    "build_kind_handlers",
    "create_container",
]
