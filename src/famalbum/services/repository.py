"""
Relational repository for collections, memberships and relations.

Row-level reads and writes over ``collections``, ``collection_members``,
``collection_relations`` and the collection side of ``image_collections``.
No business rules live here; callers decide what to write and wrap
multi-statement changes in ``DatabaseManager.transaction()``.
"""

from typing import Any

import duckdb

from ..errors import DatabaseError
from ..logging_config import get_logger
from ..models.collection import Collection, RelatedCollection
from ..models.database import DatabaseManager

logger = get_logger(__name__)

COLLECTION_COLUMNS = "id, name, owner_id, members, related_collections, created_at, updated_at"


class CollectionRepository:
    """Query boundary over the collection tables."""

    def __init__(self, db_manager: DatabaseManager):
        self.db = db_manager

    def _fetch(self, operation: str, query: str, parameters: tuple | None = None, **context: Any) -> list[dict]:
        try:
            return self.db.execute_dict_query(query, parameters)
        except duckdb.Error as e:
            raise DatabaseError(
                f"Failed to {operation.replace('_', ' ')}: {e}",
                details={"operation": operation, **context},
                original_exception=e,
            ) from e

    def _execute(self, operation: str, query: str, parameters: tuple | None = None, **context: Any) -> int:
        """Run a write statement and return the number of affected rows."""
        try:
            result = self.db.execute_query(query, parameters)
        except duckdb.Error as e:
            raise DatabaseError(
                f"Failed to {operation.replace('_', ' ')}: {e}",
                details={"operation": operation, **context},
                original_exception=e,
            ) from e
        return int(result[0][0]) if result else 0

    # collections

    def insert_collection(self, name: str, owner_id: str, related: list[str] | None = None) -> Collection:
        """Insert a collection whose only member is its owner."""
        rows = self._fetch(
            "insert_collection",
            f"""INSERT INTO collections (id, name, owner_id, members, related_collections)
                VALUES (?, ?, ?, ?::TEXT[], ?::TEXT[])
                RETURNING {COLLECTION_COLUMNS}""",
            (Collection.new_id(), name, owner_id, [owner_id], list(related or [])),
            owner_id=owner_id,
        )
        return Collection.from_row(rows[0])

    def get_collection(self, collection_id: str) -> Collection | None:
        rows = self._fetch(
            "get_collection",
            f"SELECT {COLLECTION_COLUMNS} FROM collections WHERE id = ?",
            (collection_id,),
            collection_id=collection_id,
        )
        return Collection.from_row(rows[0]) if rows else None

    def collection_exists(self, collection_id: str) -> bool:
        rows = self._fetch(
            "check_collection_exists",
            "SELECT 1 AS found FROM collections WHERE id = ? LIMIT 1",
            (collection_id,),
            collection_id=collection_id,
        )
        return bool(rows)

    def list_collections(self) -> list[Collection]:
        rows = self._fetch("list_collections", f"SELECT {COLLECTION_COLUMNS} FROM collections ORDER BY created_at DESC")
        return [Collection.from_row(row) for row in rows]

    def list_user_collections(self, user_id: str) -> list[Collection]:
        rows = self._fetch(
            "list_user_collections",
            """SELECT c.id, c.name, c.owner_id, c.members, c.related_collections, c.created_at, c.updated_at
               FROM collections c
               JOIN collection_members cm ON c.id = cm.collection_id
               WHERE cm.user_id = ?
               ORDER BY c.created_at DESC""",
            (user_id,),
            user_id=user_id,
        )
        return [Collection.from_row(row) for row in rows]

    def update_collection(self, collection_id: str, name: str | None = None) -> Collection | None:
        """
        Update the supplied fields; ``updated_at`` is always bumped.

        Returns:
            The updated record, or None if no row matched
        """
        assignments = []
        values: list[Any] = []
        if name is not None:
            assignments.append("name = ?")
            values.append(name)
        assignments.append("updated_at = CURRENT_TIMESTAMP")
        values.append(collection_id)

        rows = self._fetch(
            "update_collection",
            f"UPDATE collections SET {', '.join(assignments)} WHERE id = ? RETURNING {COLLECTION_COLUMNS}",
            tuple(values),
            collection_id=collection_id,
        )
        return Collection.from_row(rows[0]) if rows else None

    def set_members(self, collection_id: str, members: list[str]) -> None:
        self._execute(
            "set_members",
            "UPDATE collections SET members = ?::TEXT[], updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            (list(members), collection_id),
            collection_id=collection_id,
        )

    def set_related(self, collection_id: str, related: list[str]) -> None:
        self._execute(
            "set_related_collections",
            "UPDATE collections SET related_collections = ?::TEXT[], updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            (list(related), collection_id),
            collection_id=collection_id,
        )

    def delete_collection(self, collection_id: str) -> bool:
        """
        Delete a collection row and every join row that references it.

        Membership, relation and image association rows go in the same
        transaction as the collection row. Image rows are left alone.

        Returns:
            True if the collection row existed
        """
        with self.db.transaction():
            context = {"collection_id": collection_id}
            members = self._execute(
                "delete_collection_members",
                "DELETE FROM collection_members WHERE collection_id = ?",
                (collection_id,),
                **context,
            )
            relations = self._execute(
                "delete_collection_relations",
                "DELETE FROM collection_relations WHERE collection_id_1 = ? OR collection_id_2 = ?",
                (collection_id, collection_id),
                **context,
            )
            associations = self._execute(
                "delete_image_associations",
                "DELETE FROM image_collections WHERE collection_id = ?",
                (collection_id,),
                **context,
            )
            deleted = self._execute(
                "delete_collection", "DELETE FROM collections WHERE id = ?", (collection_id,), **context
            )

        logger.debug(
            "collection_rows_deleted",
            collection_id=collection_id,
            membership_rows=members,
            relation_rows=relations,
            image_association_rows=associations,
        )
        return deleted > 0

    # memberships

    def insert_member(self, collection_id: str, user_id: str) -> bool:
        """Insert a membership row; an existing pair is left untouched."""
        inserted = self._execute(
            "insert_member",
            """INSERT INTO collection_members (collection_id, user_id)
               VALUES (?, ?)
               ON CONFLICT DO NOTHING""",
            (collection_id, user_id),
            collection_id=collection_id,
            user_id=user_id,
        )
        return inserted > 0

    def delete_member(self, collection_id: str, user_id: str) -> bool:
        deleted = self._execute(
            "delete_member",
            "DELETE FROM collection_members WHERE collection_id = ? AND user_id = ?",
            (collection_id, user_id),
            collection_id=collection_id,
            user_id=user_id,
        )
        return deleted > 0

    def fetch_members(self, collection_id: str) -> list[dict]:
        """Member user rows with the collection owner id and join time, by first then last name."""
        return self._fetch(
            "fetch_members",
            """SELECT u.id, u.email, u.first_name, u.middle_name, u.last_name, u.birthday,
                      u.collections, c.owner_id, cm.joined_at
               FROM collection_members cm
               JOIN users u ON u.id = cm.user_id
               JOIN collections c ON c.id = cm.collection_id
               WHERE cm.collection_id = ?
               ORDER BY u.first_name, u.last_name, u.id""",
            (collection_id,),
            collection_id=collection_id,
        )

    def fetch_member_ids(self, collection_id: str) -> set[str]:
        rows = self._fetch(
            "fetch_member_ids",
            "SELECT user_id FROM collection_members WHERE collection_id = ?",
            (collection_id,),
            collection_id=collection_id,
        )
        return {row["user_id"] for row in rows}

    # relations

    def relation_exists(self, collection_id: str, other_id: str) -> bool:
        """True if the pair is stored in either orientation."""
        rows = self._fetch(
            "check_relation_exists",
            """SELECT 1 AS found FROM collection_relations
               WHERE (collection_id_1 = ? AND collection_id_2 = ?)
                  OR (collection_id_1 = ? AND collection_id_2 = ?)
               LIMIT 1""",
            (collection_id, other_id, other_id, collection_id),
            collection_id=collection_id,
            other_id=other_id,
        )
        return bool(rows)

    def insert_relation(self, collection_id: str, other_id: str) -> None:
        self._execute(
            "insert_relation",
            "INSERT INTO collection_relations (collection_id_1, collection_id_2) VALUES (?, ?)",
            (collection_id, other_id),
            collection_id=collection_id,
            other_id=other_id,
        )

    def delete_relation(self, collection_id: str, other_id: str) -> int:
        """Delete the pair in either orientation; returns the rows removed."""
        return self._execute(
            "delete_relation",
            """DELETE FROM collection_relations
               WHERE (collection_id_1 = ? AND collection_id_2 = ?)
                  OR (collection_id_1 = ? AND collection_id_2 = ?)""",
            (collection_id, other_id, other_id, collection_id),
            collection_id=collection_id,
            other_id=other_id,
        )

    def fetch_related(self, collection_id: str) -> list[RelatedCollection]:
        rows = self._fetch(
            "fetch_related_collections",
            """SELECT c.id, c.name, len(c.members) AS member_count, c.created_at
               FROM collections c
               JOIN collection_relations cr ON (c.id = cr.collection_id_1 OR c.id = cr.collection_id_2)
               WHERE (cr.collection_id_1 = ? OR cr.collection_id_2 = ?) AND c.id != ?
               ORDER BY c.name""",
            (collection_id, collection_id, collection_id),
            collection_id=collection_id,
        )
        return [RelatedCollection.from_row(row) for row in rows]
