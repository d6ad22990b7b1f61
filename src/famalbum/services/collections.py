"""
Collection service facade.

Wires the repository, membership manager, relation graph and deletion
orchestrator over one database and one object store, and adds the simple
query/update helpers callers need. Collaborators are passed in; nothing here
is a module-level singleton.
"""

from ..errors import ValidationError
from ..logging_config import get_logger
from ..models.collection import Collection, CollectionMember, CollectionPublic, RelatedCollection
from ..models.database import DatabaseManager, get_database_manager
from .deletion import DeletionOrchestrator, DeletionReport
from .images import ImageDirectory
from .membership import MembershipManager
from .relations import RelationGraph
from .repository import CollectionRepository
from .storage import StorageService
from .users import UserDirectory

logger = get_logger(__name__)


class CollectionService:
    """Entry point for every collection operation."""

    def __init__(
        self,
        db_manager: DatabaseManager,
        object_store: StorageService,
        user_directory: UserDirectory | None = None,
        image_directory: ImageDirectory | None = None,
    ):
        self.db = db_manager
        self.object_store = object_store
        self.repository = CollectionRepository(db_manager)
        self.user_directory = user_directory or UserDirectory(db_manager)
        self.image_directory = image_directory or ImageDirectory(db_manager)
        self.membership = MembershipManager(db_manager, self.repository, self.user_directory)
        self.relations = RelationGraph(db_manager, self.repository)
        self.deletion = DeletionOrchestrator(
            db_manager, self.repository, self.image_directory, self.object_store, self.user_directory
        )

    # membership

    def create(self, name: str, owner_id: str) -> CollectionPublic:
        return self.membership.create(name, owner_id)

    def add_member(self, collection_id: str, user_id: str) -> None:
        self.membership.add_member(collection_id, user_id)

    def remove_member(self, collection_id: str, user_id: str) -> None:
        self.membership.remove_member(collection_id, user_id)

    def get_members(self, collection_id: str) -> list[CollectionMember]:
        return self.membership.get_members(collection_id)

    # relations

    def get_related(self, collection_id: str) -> list[RelatedCollection]:
        return self.relations.get_related(collection_id)

    def add_relation(self, collection_id: str, related_collection_id: str) -> None:
        self.relations.add_relation(collection_id, related_collection_id)

    def remove_relation(self, collection_id: str, related_collection_id: str) -> None:
        self.relations.remove_relation(collection_id, related_collection_id)

    # deletion

    def delete(self, collection_id: str) -> DeletionReport:
        return self.deletion.delete_collection(collection_id)

    # queries and updates

    def get_all(self) -> list[CollectionPublic]:
        """Every collection, newest first, without a user context (role "member")."""
        return [collection.to_public() for collection in self.repository.list_collections()]

    def get_by_id(self, collection_id: str) -> Collection | None:
        return self.repository.get_collection(collection_id)

    def exists(self, collection_id: str) -> bool:
        return self.repository.collection_exists(collection_id)

    def get_user_collections(self, user_id: str) -> list[CollectionPublic]:
        """Collections ``user_id`` belongs to, newest first, with that user's role."""
        return [collection.to_public(user_id) for collection in self.repository.list_user_collections(user_id)]

    def update(self, collection_id: str, name: str | None = None) -> Collection | None:
        """
        Update the supplied fields of a collection.

        Returns:
            The updated record, or None if the collection does not exist

        Raises:
            ValidationError: If ``name`` is given but blank
        """
        if name is not None and not name.strip():
            raise ValidationError("Collection name cannot be empty", code="name_required")

        with self.db.transaction():
            if self.repository.get_collection(collection_id) is None:
                logger.warning("collection_not_found_for_update", collection_id=collection_id)
                return None
            collection = self.repository.update_collection(
                collection_id, name=name.strip() if name is not None else None
            )

        logger.info("collection_updated", collection_id=collection_id, name_changed=name is not None)
        return collection


def create_collection_service(db_path: str, object_store: StorageService) -> CollectionService:
    """
    Build a CollectionService over the database at ``db_path``.

    The database and its schema are created if missing.
    """
    return CollectionService(get_database_manager(db_path), object_store)
