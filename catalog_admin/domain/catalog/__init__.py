from .models import Entity, Glass, Handle, Rail, UploadedPhoto, UploadFile
from .validation import RAIL_TYPES, validate_record

__all__ = [
    "Entity",
    "Glass",
    "Handle",
    "Rail",
    "UploadFile",
    "UploadedPhoto",
    "RAIL_TYPES",
    "validate_record",
]
