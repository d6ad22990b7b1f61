"""
Image reference model for famalbum.

Only the fields the collection engine needs: identity, the two blob keys in
the object store, and the set of collections that reference the image.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any


@dataclass
class ImageReference:
    """An image row plus its collection associations."""

    id: str
    original_key: str | None
    thumbnail_key: str | None
    collection_ids: set[str] = field(default_factory=set)
    filename: str | None = None
    title: str | None = None

    @staticmethod
    def new_id() -> str:
        return str(uuid.uuid4())

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "ImageReference":
        return cls(
            id=row["id"],
            original_key=row.get("original_key"),
            thumbnail_key=row.get("thumbnail_key"),
            collection_ids=set(row.get("collection_ids") or []),
            filename=row.get("filename"),
            title=row.get("title"),
        )

    def blob_keys(self) -> list[str]:
        """Object store keys to delete, original first; empty keys are skipped."""
        return [key for key in (self.original_key, self.thumbnail_key) if key]

    def is_orphaned_by(self, collection_id: str) -> bool:
        """True when ``collection_id`` is the only collection referencing the image."""
        return self.collection_ids == {collection_id}
