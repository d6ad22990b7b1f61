"""
User directory: each user's personal list of collection memberships.

The collection engine notifies this directory whenever a membership changes.
Both notifications are idempotent.
"""

from datetime import date

import duckdb

from ..errors import DatabaseError, NotFoundError, ValidationError
from ..logging_config import get_logger
from ..models.database import DatabaseManager
from ..models.user import User

logger = get_logger(__name__)

USER_COLUMNS = "id, email, first_name, middle_name, last_name, birthday, collections, created_at, updated_at"


class UserDirectory:
    """Maintains ``users.collections`` alongside the membership join table."""

    def __init__(self, db_manager: DatabaseManager):
        self.db = db_manager

    def create_user(
        self,
        email: str,
        first_name: str | None = None,
        last_name: str | None = None,
        middle_name: str | None = None,
        birthday: date | None = None,
    ) -> User:
        """
        Create a user with no collections.

        Raises:
            ValidationError: If the email is empty
            DatabaseError: If the insert fails (including a duplicate email)
        """
        if not email or not email.strip():
            raise ValidationError("Email is required", code="email_required")

        try:
            rows = self.db.execute_dict_query(
                f"""INSERT INTO users (id, email, first_name, middle_name, last_name, birthday, collections)
                    VALUES (?, ?, ?, ?, ?, ?, []::TEXT[])
                    RETURNING {USER_COLUMNS}""",
                (User.new_id(), email.strip(), first_name, middle_name, last_name, birthday),
            )
        except duckdb.Error as e:
            raise DatabaseError(
                f"Failed to create user: {e}", details={"operation": "create_user"}, original_exception=e
            ) from e

        user = User.from_row(rows[0])
        logger.info("user_created", user_id=user.id)
        return user

    def get_by_id(self, user_id: str) -> User | None:
        try:
            rows = self.db.execute_dict_query(f"SELECT {USER_COLUMNS} FROM users WHERE id = ?", (user_id,))
        except duckdb.Error as e:
            raise DatabaseError(
                f"Failed to get user by ID: {e}",
                details={"operation": "get_user", "user_id": user_id},
                original_exception=e,
            ) from e
        return User.from_row(rows[0]) if rows else None

    def _require(self, user_id: str, collection_id: str) -> User:
        user = self.get_by_id(user_id)
        if user is None:
            raise NotFoundError(
                "User not found",
                code="user_not_found",
                details={"user_id": user_id, "collection_id": collection_id},
            )
        return user

    def _set_collections(self, user_id: str, collections: list[str]) -> None:
        try:
            self.db.execute_query(
                "UPDATE users SET collections = ?::TEXT[], updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (collections, user_id),
            )
        except duckdb.Error as e:
            raise DatabaseError(
                f"Failed to update user collections: {e}",
                details={"operation": "set_user_collections", "user_id": user_id},
                original_exception=e,
            ) from e

    def add_to_collection(self, user_id: str, collection_id: str) -> None:
        """
        Record that ``user_id`` belongs to ``collection_id``.

        Raises:
            NotFoundError: If the user does not exist
            DatabaseError: If the update fails
        """
        with self.db.transaction():
            user = self._require(user_id, collection_id)
            if collection_id in user.collections:
                return
            self._set_collections(user_id, [*user.collections, collection_id])

        logger.info("user_added_to_collection", user_id=user_id, collection_id=collection_id)

    def remove_from_collection(self, user_id: str, collection_id: str) -> None:
        """
        Drop ``collection_id`` from the user's list.

        Raises:
            NotFoundError: If the user does not exist
            DatabaseError: If the update fails
        """
        with self.db.transaction():
            user = self._require(user_id, collection_id)
            if collection_id not in user.collections:
                return
            self._set_collections(user_id, [cid for cid in user.collections if cid != collection_id])

        logger.info("user_removed_from_collection", user_id=user_id, collection_id=collection_id)
