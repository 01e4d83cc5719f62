from .database import SQLiteDatabase
from .actors import SQLiteActorStore

__all__ = [
    "SQLiteDatabase",
    "SQLiteActorStore",
]
