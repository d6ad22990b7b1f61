"""
Symmetric relation graph between collections.

A relation is one row in ``collection_relations`` (either orientation) and
is mirrored in both collections' ``related_collections`` lists.
"""

import duckdb

from ..errors import ConflictError, DatabaseError, InvalidOperationError, NotFoundError
from ..logging_config import get_logger
from ..models.collection import RelatedCollection
from ..models.database import DatabaseManager
from .repository import CollectionRepository

logger = get_logger(__name__)


class RelationGraph:
    """Adds, removes and lists related collections."""

    def __init__(self, db_manager: DatabaseManager, repository: CollectionRepository):
        self.db = db_manager
        self.repository = repository

    def get_related(self, collection_id: str) -> list[RelatedCollection]:
        """Collections related to ``collection_id``, by name, excluding itself."""
        return self.repository.fetch_related(collection_id)

    def add_relation(self, collection_id: str, related_collection_id: str) -> None:
        """
        Relate two distinct collections.

        Raises:
            NotFoundError: If either collection is missing (source checked first)
            InvalidOperationError: If both ids are the same collection
            ConflictError: If the pair is already related in either orientation
            DatabaseError: If a write fails
        """
        context = {"collection_id": collection_id, "related_collection_id": related_collection_id}
        try:
            with self.db.transaction():
                source = self.repository.get_collection(collection_id)
                target = self.repository.get_collection(related_collection_id)

                if source is None:
                    raise NotFoundError(
                        "Source collection not found", code="source_collection_not_found", details=context
                    )
                if target is None:
                    raise NotFoundError(
                        "Target collection not found", code="target_collection_not_found", details=context
                    )
                if collection_id == related_collection_id:
                    raise InvalidOperationError(
                        "self-relation: cannot relate a collection to itself", code="self_relation", details=context
                    )
                if self.repository.relation_exists(collection_id, related_collection_id):
                    raise ConflictError("Collections are already related", code="already_related", details=context)

                self.repository.insert_relation(collection_id, related_collection_id)

                # Each mirror is only appended to when missing, so a half-synced pair heals
                for record, other_id in ((source, related_collection_id), (target, collection_id)):
                    if other_id not in record.related_collections:
                        self.repository.set_related(record.id, [*record.related_collections, other_id])
        except duckdb.Error as e:
            raise DatabaseError(
                f"Failed to add collection relation: {e}",
                details={"operation": "add_relation", **context},
                original_exception=e,
            ) from e

        logger.info("collection_relation_added", **context)

    def remove_relation(self, collection_id: str, related_collection_id: str) -> None:
        """
        Unrelate two collections. Removing a pair that does not exist is not an error.

        Raises:
            DatabaseError: If a write fails
        """
        context = {"collection_id": collection_id, "related_collection_id": related_collection_id}
        try:
            with self.db.transaction():
                removed = self.repository.delete_relation(collection_id, related_collection_id)

                for record_id, other_id in (
                    (collection_id, related_collection_id),
                    (related_collection_id, collection_id),
                ):
                    record = self.repository.get_collection(record_id)
                    if record is not None and other_id in record.related_collections:
                        self.repository.set_related(
                            record_id, [cid for cid in record.related_collections if cid != other_id]
                        )
        except duckdb.Error as e:
            raise DatabaseError(
                f"Failed to remove collection relation: {e}",
                details={"operation": "remove_relation", **context},
                original_exception=e,
            ) from e

        logger.info("collection_relation_removed", rows_removed=removed, **context)
