"""
Membership management for collections.

Keeps three things in step: the ``collection_members`` join table, the
denormalized ``collections.members`` list, and each user's own list in the
user directory. Every change runs in one transaction so the three never
diverge and concurrent read-modify-writes in this process cannot clobber
each other. The owner is always a member and can never be removed.
"""

import duckdb

from ..errors import DatabaseError, InvalidOperationError, NotFoundError, ValidationError
from ..logging_config import get_logger, log_user_action
from ..models.collection import Collection, CollectionMember, CollectionPublic
from ..models.database import DatabaseManager
from .repository import CollectionRepository
from .users import UserDirectory

logger = get_logger(__name__)


class MembershipManager:
    """Creates collections and adds or removes their members."""

    def __init__(self, db_manager: DatabaseManager, repository: CollectionRepository, user_directory: UserDirectory):
        self.db = db_manager
        self.repository = repository
        self.user_directory = user_directory

    def _require_collection(self, collection_id: str) -> Collection:
        collection = self.repository.get_collection(collection_id)
        if collection is None:
            raise NotFoundError(
                "Collection not found", code="collection_not_found", details={"collection_id": collection_id}
            )
        return collection

    def create(self, name: str, owner_id: str) -> CollectionPublic:
        """
        Create a collection owned by ``owner_id``, who becomes its only member.

        Returns:
            CollectionPublic with ``user_role == "owner"``

        Raises:
            ValidationError: If the name is blank or the owner id is missing
            NotFoundError: If the owner is unknown to the user directory
            DatabaseError: If any insert fails
        """
        if not owner_id:
            raise ValidationError("Owner ID is required to create a collection", code="owner_id_required")
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Collection name is required and cannot be empty", code="name_required")

        try:
            with self.db.transaction():
                collection = self.repository.insert_collection(name.strip(), owner_id)
                self.repository.insert_member(collection.id, owner_id)
                self.user_directory.add_to_collection(owner_id, collection.id)
        except duckdb.Error as e:
            raise DatabaseError(
                f"Failed to create collection: {e}",
                details={"operation": "create_collection", "owner_id": owner_id},
                original_exception=e,
            ) from e

        log_user_action(owner_id, "collection_created", collection_id=collection.id, name=collection.name)
        return collection.to_public(owner_id)

    def add_member(self, collection_id: str, user_id: str) -> None:
        """
        Add ``user_id`` to the collection.

        Adding an existing member returns without writing anything.

        Raises:
            NotFoundError: If the collection (or the user) does not exist
            DatabaseError: If a write fails
        """
        try:
            with self.db.transaction():
                collection = self._require_collection(collection_id)
                if collection.has_member(user_id):
                    logger.debug("member_already_present", collection_id=collection_id, user_id=user_id)
                    return

                self.repository.insert_member(collection_id, user_id)
                self.repository.set_members(collection_id, [*collection.members, user_id])
                self.user_directory.add_to_collection(user_id, collection_id)
        except duckdb.Error as e:
            raise DatabaseError(
                f"Failed to add member to collection: {e}",
                details={"operation": "add_member", "collection_id": collection_id, "user_id": user_id},
                original_exception=e,
            ) from e

        log_user_action(user_id, "collection_member_added", collection_id=collection_id)

    def remove_member(self, collection_id: str, user_id: str) -> None:
        """
        Remove ``user_id`` from the collection.

        Removing a user who is not a member returns without writing anything.

        Raises:
            NotFoundError: If the collection (or the user) does not exist
            InvalidOperationError: If ``user_id`` is the owner; nothing is written
            DatabaseError: If a write fails
        """
        try:
            with self.db.transaction():
                collection = self._require_collection(collection_id)
                if user_id == collection.owner_id:
                    raise InvalidOperationError(
                        "cannot remove owner",
                        code="cannot_remove_owner",
                        user_message="The collection owner cannot be removed.",
                        details={"collection_id": collection_id, "user_id": user_id},
                    )
                if not collection.has_member(user_id):
                    logger.debug("member_not_present", collection_id=collection_id, user_id=user_id)
                    return

                self.repository.delete_member(collection_id, user_id)
                self.repository.set_members(collection_id, [uid for uid in collection.members if uid != user_id])
                self.user_directory.remove_from_collection(user_id, collection_id)
        except duckdb.Error as e:
            raise DatabaseError(
                f"Failed to remove member from collection: {e}",
                details={"operation": "remove_member", "collection_id": collection_id, "user_id": user_id},
                original_exception=e,
            ) from e

        log_user_action(user_id, "collection_member_removed", collection_id=collection_id)

    def get_members(self, collection_id: str) -> list[CollectionMember]:
        """
        Members of the collection with their role, ordered by first then last name.

        Raises:
            DatabaseError: If the query fails
        """
        rows = self.repository.fetch_members(collection_id)
        return [CollectionMember.from_row(row) for row in rows]
