from .base import ChangeListener, EntityRepository
from .glass import GlassRepository
from .handles import HandleRepository
from .rails import RailRepository
from .uploads import DEFAULT_BUCKET, MAX_UPLOAD_BYTES, UploadRepository

__all__ = [
    "ChangeListener",
    "EntityRepository",
    "GlassRepository",
    "HandleRepository",
    "RailRepository",
    "UploadRepository",
    "DEFAULT_BUCKET",
    "MAX_UPLOAD_BYTES",
]
