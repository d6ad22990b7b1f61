"""
Unit tests for the CollectionService facade.
"""

import pytest

from famalbum.errors import ValidationError
from famalbum.services.collections import CollectionService, create_collection_service


class TestCollectionService:
    """Test cases for queries and updates on the facade."""

    @pytest.fixture(autouse=True)
    def setup(self, collection_service, user_directory, factory):
        self.service = collection_service
        self.owner = factory.create_user(user_directory, "Olive", "Owner")
        self.guest = factory.create_user(user_directory, "Gus", "Guest")

    def test_get_all_has_no_user_context(self):
        """Test listing without a user yields the member role."""
        self.service.create("Trip", self.owner.id)

        collections = self.service.get_all()

        assert len(collections) == 1
        assert collections[0].user_role == "member"

    def test_get_user_collections_roles(self):
        """Test roles are derived for the requesting user."""
        trip = self.service.create("Trip", self.owner.id)
        self.service.add_member(trip.id, self.guest.id)

        assert [c.user_role for c in self.service.get_user_collections(self.owner.id)] == ["owner"]
        assert [c.user_role for c in self.service.get_user_collections(self.guest.id)] == ["member"]

    def test_exists_and_get_by_id(self):
        """Test lookups by id."""
        trip = self.service.create("Trip", self.owner.id)

        assert self.service.exists(trip.id) is True
        assert self.service.get_by_id(trip.id).name == "Trip"
        assert self.service.exists("missing") is False

    def test_update_name(self):
        """Test renaming strips whitespace."""
        trip = self.service.create("Trip", self.owner.id)

        updated = self.service.update(trip.id, name="  Summer  ")

        assert updated.name == "Summer"

    def test_update_blank_name(self):
        """Test a blank name is rejected."""
        trip = self.service.create("Trip", self.owner.id)

        with pytest.raises(ValidationError):
            self.service.update(trip.id, name=" ")

    def test_update_missing(self):
        """Test updating a missing collection returns None."""
        assert self.service.update("missing", name="x") is None


class TestCreateCollectionService:
    def test_creates_database(self, temp_dir, mock_object_store):
        service = create_collection_service(str(temp_dir / "new.db"), mock_object_store)

        assert isinstance(service, CollectionService)
        assert service.db.verify_schema() is True
        service.db.close()
