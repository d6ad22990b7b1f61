"""
Image directory: image rows and their collection associations.

The collection engine reads orphan candidates from here and removes image
rows once their blobs are gone. Uploading and thumbnailing happen elsewhere;
``register_image`` only records an already-stored image.
"""

from typing import Any

import duckdb

from ..errors import DatabaseError, ValidationError
from ..logging_config import get_logger
from ..models.database import DatabaseManager
from ..models.image import ImageReference

logger = get_logger(__name__)


class ImageDirectory:
    """Read and delete access to ``images`` and ``image_collections``."""

    def __init__(self, db_manager: DatabaseManager):
        self.db = db_manager

    def _fetch(self, operation: str, query: str, parameters: tuple, **context: Any) -> list[dict]:
        try:
            return self.db.execute_dict_query(query, parameters)
        except duckdb.Error as e:
            raise DatabaseError(
                f"Failed to {operation.replace('_', ' ')}: {e}",
                details={"operation": operation, **context},
                original_exception=e,
            ) from e

    def register_image(
        self,
        filename: str,
        collection_ids: list[str],
        original_key: str | None = None,
        thumbnail_key: str | None = None,
        title: str | None = None,
    ) -> ImageReference:
        """
        Record an image and associate it with one or more collections.

        Raises:
            ValidationError: If no collection is given or the filename is empty
            DatabaseError: If the inserts fail
        """
        if not collection_ids:
            raise ValidationError(
                "At least one collection must be associated with the image", code="collection_required"
            )
        if not filename:
            raise ValidationError("Filename is required", code="filename_required")

        image = ImageReference(
            id=ImageReference.new_id(),
            original_key=original_key,
            thumbnail_key=thumbnail_key,
            collection_ids=set(collection_ids),
            filename=filename,
            title=title,
        )

        try:
            with self.db.transaction():
                self.db.execute_query(
                    """INSERT INTO images (id, title, filename, original_key, thumbnail_key)
                       VALUES (?, ?, ?, ?, ?)""",
                    (image.id, title, filename, original_key, thumbnail_key),
                )
                for collection_id in sorted(image.collection_ids):
                    self.db.execute_query(
                        "INSERT INTO image_collections (image_id, collection_id) VALUES (?, ?)",
                        (image.id, collection_id),
                    )
        except duckdb.Error as e:
            raise DatabaseError(
                f"Failed to register image: {e}",
                details={"operation": "register_image", "filename": filename},
                original_exception=e,
            ) from e

        logger.info("image_registered", image_id=image.id, collection_count=len(image.collection_ids))
        return image

    def get_orphaned_by_collection(self, collection_id: str) -> list[ImageReference]:
        """
        Images whose only owning collection is ``collection_id``.

        Returns:
            List of ImageReference with ``collection_ids == {collection_id}``
        """
        rows = self._fetch(
            "get_orphaned_images",
            """SELECT i.id, i.title, i.filename, i.original_key, i.thumbnail_key
               FROM images i
               JOIN image_collections ic ON i.id = ic.image_id
               WHERE ic.collection_id = ?
                 AND i.id NOT IN (
                     SELECT image_id FROM image_collections WHERE collection_id != ?
                 )
               ORDER BY i.id""",
            (collection_id, collection_id),
            collection_id=collection_id,
        )
        return [ImageReference.from_row({**row, "collection_ids": [collection_id]}) for row in rows]

    def get_by_collection(self, collection_id: str) -> list[ImageReference]:
        """Every image associated with ``collection_id``, with its full association set."""
        rows = self._fetch(
            "get_images_by_collection",
            """SELECT i.id, i.title, i.filename, i.original_key, i.thumbnail_key,
                      list(ic.collection_id) AS collection_ids
               FROM images i
               JOIN image_collections ic ON i.id = ic.image_id
               WHERE i.id IN (SELECT image_id FROM image_collections WHERE collection_id = ?)
               GROUP BY i.id, i.title, i.filename, i.original_key, i.thumbnail_key
               ORDER BY i.id""",
            (collection_id,),
            collection_id=collection_id,
        )
        return [ImageReference.from_row(row) for row in rows]

    def get_by_id(self, image_id: str) -> ImageReference | None:
        rows = self._fetch(
            "get_image",
            "SELECT id, title, filename, original_key, thumbnail_key FROM images WHERE id = ?",
            (image_id,),
            image_id=image_id,
        )
        if not rows:
            return None
        return ImageReference.from_row({**rows[0], "collection_ids": self.get_collection_ids(image_id)})

    def get_collection_ids(self, image_id: str) -> set[str]:
        rows = self._fetch(
            "get_image_collection_ids",
            "SELECT collection_id FROM image_collections WHERE image_id = ?",
            (image_id,),
            image_id=image_id,
        )
        return {row["collection_id"] for row in rows}

    def delete_image(self, image_id: str) -> bool:
        """
        Delete an image row together with its collection associations.

        Returns:
            True if the image row existed
        """
        try:
            with self.db.transaction():
                self.db.execute_query("DELETE FROM image_collections WHERE image_id = ?", (image_id,))
                result = self.db.execute_query("DELETE FROM images WHERE id = ?", (image_id,))
        except duckdb.Error as e:
            raise DatabaseError(
                f"Failed to delete image: {e}",
                details={"operation": "delete_image", "image_id": image_id},
                original_exception=e,
            ) from e

        deleted = bool(result and result[0][0] > 0)
        if deleted:
            logger.info("image_row_deleted", image_id=image_id)
        else:
            logger.warning("image_not_found_for_deletion", image_id=image_id)
        return deleted
