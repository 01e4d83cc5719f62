from .models import ActorIdentity, DisplayInfo
from .validator import PROVISIONAL_ID_PREFIX, IdentityValidator

__all__ = [
    "ActorIdentity",
    "DisplayInfo",
    "IdentityValidator",
    "PROVISIONAL_ID_PREFIX",
]
