"""
Storage abstractions.

Integration Points:
- MetadataStorage → PostgreSQL / MySQL (a unique index on bans(type, value, active))
"""

from utiopia.storage.base import (
    MetadataStorage,
    Collections,
    Row,
)
from utiopia.storage.local import InMemoryMetadataStorage, create_local_storage

__all__ = [
    "MetadataStorage",
    "Collections",
    "Row",
    "InMemoryMetadataStorage",
    "create_local_storage",
]
