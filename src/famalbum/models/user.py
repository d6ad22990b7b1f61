"""User row as maintained by the user directory."""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any


@dataclass
class User:
    id: str
    email: str
    first_name: str | None = None
    middle_name: str | None = None
    last_name: str | None = None
    birthday: date | None = None
    collections: list[str] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @staticmethod
    def new_id() -> str:
        return str(uuid.uuid4())

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "User":
        return cls(
            id=row["id"],
            email=row["email"],
            first_name=row.get("first_name"),
            middle_name=row.get("middle_name"),
            last_name=row.get("last_name"),
            birthday=row.get("birthday"),
            collections=list(row.get("collections") or []),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    @property
    def display_name(self) -> str:
        parts = [part for part in (self.first_name, self.middle_name, self.last_name) if part]
        return " ".join(parts) or self.email
