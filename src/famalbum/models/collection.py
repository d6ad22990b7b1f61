"""
Collection models for famalbum.

``Collection`` mirrors a row of the ``collections`` table. The other
dataclasses are read-side shapes handed to callers.
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Literal

Role = Literal["owner", "member"]


def _isoformat(value: datetime | str | None) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return value.isoformat()


def normalize_date(value: date | datetime | str | None) -> str | None:
    """Reduce a date-like value to ``YYYY-MM-DD``; ``None`` stays ``None``."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    return text[:10] if text else None


@dataclass
class Collection:
    """
    A named group of users sharing media, with exactly one owner.

    ``members`` always contains ``owner_id``; ``related_collections`` is the
    denormalized mirror of the symmetric ``collection_relations`` table.
    """

    id: str
    name: str
    owner_id: str
    members: list[str]
    related_collections: list[str] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @staticmethod
    def new_id() -> str:
        return str(uuid.uuid4())

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Collection":
        """Build a Collection from a column-name keyed database row."""
        return cls(
            id=row["id"],
            name=row["name"],
            owner_id=row["owner_id"],
            members=list(row.get("members") or []),
            related_collections=list(row.get("related_collections") or []),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    @property
    def member_count(self) -> int:
        return len(self.members)

    def has_member(self, user_id: str) -> bool:
        return user_id in self.members

    def role_of(self, user_id: str) -> Role:
        return "owner" if user_id == self.owner_id else "member"

    def to_public(self, user_id: str = "") -> "CollectionPublic":
        """Project the record for ``user_id``; an empty id yields the member role."""
        return CollectionPublic(
            id=self.id,
            name=self.name,
            member_count=self.member_count,
            owner_id=self.owner_id,
            user_role=self.role_of(user_id),
            related_collections=list(self.related_collections),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "owner_id": self.owner_id,
            "members": list(self.members),
            "related_collections": list(self.related_collections),
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
        }


@dataclass
class CollectionPublic:
    """Collection summary as seen by one user."""

    id: str
    name: str
    member_count: int
    owner_id: str
    user_role: Role
    related_collections: list[str]
    created_at: datetime | None
    updated_at: datetime | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "member_count": self.member_count,
            "owner_id": self.owner_id,
            "user_role": self.user_role,
            "related_collections": list(self.related_collections),
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
        }


@dataclass
class CollectionMember:
    """A user row joined through ``collection_members`` with its derived role."""

    id: str
    email: str
    first_name: str | None
    middle_name: str | None
    last_name: str | None
    birthday: str | None
    collections: list[str]
    role: Role
    joined_at: str | None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "CollectionMember":
        return cls(
            id=row["id"],
            email=row["email"],
            first_name=row.get("first_name"),
            middle_name=row.get("middle_name"),
            last_name=row.get("last_name"),
            birthday=normalize_date(row.get("birthday")),
            collections=list(row.get("collections") or []),
            role="owner" if row["id"] == row["owner_id"] else "member",
            joined_at=_isoformat(row.get("joined_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "email": self.email,
            "first_name": self.first_name,
            "middle_name": self.middle_name,
            "last_name": self.last_name,
            "collections": list(self.collections),
            "role": self.role,
            "joined_at": self.joined_at,
        }
        if self.birthday is not None:
            data["birthday"] = self.birthday
        return data


@dataclass
class RelatedCollection:
    """Summary of a collection reached through the relation graph."""

    id: str
    name: str
    member_count: int
    created_at: datetime | None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "RelatedCollection":
        return cls(
            id=row["id"],
            name=row["name"],
            member_count=int(row.get("member_count") or 0),
            created_at=row.get("created_at"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "member_count": self.member_count,
            "created_at": _isoformat(self.created_at),
        }
