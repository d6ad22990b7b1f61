"""
Models module for famalbum.

- Collection and its read-side shapes (CollectionPublic, CollectionMember, RelatedCollection)
- ImageReference and User rows
- Database schema and DatabaseManager
"""

from .collection import Collection, CollectionMember, CollectionPublic, RelatedCollection
from .database import DatabaseManager, create_database, get_database_manager
from .image import ImageReference
from .schema import get_schema_statements, validate_schema_compatibility
from .user import User

__all__ = [
    "Collection",
    "CollectionMember",
    "CollectionPublic",
    "RelatedCollection",
    "ImageReference",
    "User",
    "DatabaseManager",
    "create_database",
    "get_database_manager",
    "get_schema_statements",
    "validate_schema_compatibility",
]
