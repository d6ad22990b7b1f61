"""
Pytest configuration and fixtures for famalbum tests.
"""

import tempfile
from collections.abc import Generator
from contextlib import nullcontext
from datetime import date
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from famalbum.models.database import DatabaseManager, create_database
from famalbum.models.image import ImageReference
from famalbum.models.user import User
from famalbum.services.collections import CollectionService
from famalbum.services.images import ImageDirectory
from famalbum.services.repository import CollectionRepository
from famalbum.services.storage import StorageService
from famalbum.services.users import UserDirectory


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set up test environment variables."""
    monkeypatch.setenv("TESTING", "true")
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("GCS_PHOTOS_BUCKET", "test-photos-bucket")
    monkeypatch.setenv("GOOGLE_CLOUD_PROJECT", "test-project")


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def db_manager(temp_dir: Path) -> Generator[DatabaseManager, None, None]:
    """A freshly initialized DuckDB database in a temporary directory."""
    manager = create_database(str(temp_dir / "famalbum.db"))
    yield manager
    manager.close()


@pytest.fixture
def mock_db() -> MagicMock:
    """A DatabaseManager stand-in whose transaction() is a no-op context manager."""
    db = MagicMock(spec=DatabaseManager)
    db.transaction.side_effect = lambda: nullcontext(db)
    return db


@pytest.fixture
def repository(db_manager: DatabaseManager) -> CollectionRepository:
    return CollectionRepository(db_manager)


@pytest.fixture
def user_directory(db_manager: DatabaseManager) -> UserDirectory:
    return UserDirectory(db_manager)


@pytest.fixture
def image_directory(db_manager: DatabaseManager) -> ImageDirectory:
    return ImageDirectory(db_manager)


@pytest.fixture
def mock_object_store() -> MagicMock:
    """Object store double recording deleted keys."""
    return MagicMock(spec=StorageService)


@pytest.fixture
def collection_service(
    db_manager: DatabaseManager,
    mock_object_store: MagicMock,
    user_directory: UserDirectory,
    image_directory: ImageDirectory,
) -> CollectionService:
    return CollectionService(db_manager, mock_object_store, user_directory, image_directory)


class TestDataFactory:
    """Factory for rows the collection engine works with."""

    @staticmethod
    def create_user(
        user_directory: UserDirectory,
        first_name: str = "Ada",
        last_name: str = "Lovelace",
        email: str | None = None,
        birthday: date | None = None,
    ) -> User:
        """Create a user with a unique email derived from the name."""
        return user_directory.create_user(
            email or f"{first_name.lower()}.{last_name.lower()}@example.com",
            first_name=first_name,
            last_name=last_name,
            birthday=birthday,
        )

    @staticmethod
    def create_image(
        image_directory: ImageDirectory,
        collection_ids: list[str],
        name: str = "photo",
        with_thumbnail: bool = True,
    ) -> ImageReference:
        """Register an image whose blob keys are derived from ``name``."""
        return image_directory.register_image(
            filename=f"{name}.jpg",
            collection_ids=collection_ids,
            original_key=f"images/{name}/original.jpg",
            thumbnail_key=f"images/{name}/thumb.jpg" if with_thumbnail else None,
        )


@pytest.fixture
def factory() -> type[TestDataFactory]:
    return TestDataFactory
