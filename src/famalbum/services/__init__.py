"""
Services module for famalbum.

- CollectionService: facade over every collection operation
- CollectionRepository: row-level access to the collection tables
- MembershipManager / RelationGraph / DeletionOrchestrator: the engine
- ImageDirectory / UserDirectory / StorageService: collaborators
"""

from .collections import CollectionService, create_collection_service
from .deletion import DeletionOrchestrator, DeletionReport, DeletionStage
from .images import ImageDirectory
from .membership import MembershipManager
from .relations import RelationGraph
from .repository import CollectionRepository
from .storage import StorageService
from .users import UserDirectory

__all__ = [
    "CollectionService",
    "create_collection_service",
    "CollectionRepository",
    "MembershipManager",
    "RelationGraph",
    "DeletionOrchestrator",
    "DeletionReport",
    "DeletionStage",
    "ImageDirectory",
    "UserDirectory",
    "StorageService",
]
