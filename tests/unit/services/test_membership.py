"""
Unit tests for MembershipManager.
"""

from unittest.mock import MagicMock

import duckdb
import pytest

from famalbum.errors import DatabaseError, InvalidOperationError, NotFoundError, ValidationError
from famalbum.models.collection import Collection
from famalbum.services.membership import MembershipManager
from famalbum.services.repository import CollectionRepository
from famalbum.services.users import UserDirectory


class TestMembershipManagerMocked:
    """Test cases with every collaborator mocked."""

    @pytest.fixture(autouse=True)
    def setup(self, mock_db):
        self.db = mock_db
        self.repository = MagicMock(spec=CollectionRepository)
        self.users = MagicMock(spec=UserDirectory)
        self.manager = MembershipManager(self.db, self.repository, self.users)
        self.collection = Collection(id="c1", name="Trip", owner_id="u1", members=["u1", "u2"])
        self.repository.get_collection.return_value = self.collection

    def test_create_requires_owner(self):
        """Test a missing owner id is rejected before any write."""
        with pytest.raises(ValidationError) as exc_info:
            self.manager.create("Trip", "")

        assert exc_info.value.code == "owner_id_required"
        self.repository.insert_collection.assert_not_called()

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_create_requires_name(self, name):
        """Test blank names are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            self.manager.create(name, "u1")

        assert exc_info.value.code == "name_required"

    def test_create_writes_all_three_stores(self):
        """Test create inserts the row, the membership and notifies the user directory."""
        self.repository.insert_collection.return_value = Collection(
            id="new", name="Trip", owner_id="u1", members=["u1"]
        )

        public = self.manager.create("  Trip  ", "u1")

        self.repository.insert_collection.assert_called_once_with("Trip", "u1")
        self.repository.insert_member.assert_called_once_with("new", "u1")
        self.users.add_to_collection.assert_called_once_with("u1", "new")
        assert public.user_role == "owner"
        assert public.member_count == 1

    def test_add_existing_member_writes_nothing(self):
        """Test adding a present member is a no-op."""
        self.manager.add_member("c1", "u2")

        self.repository.insert_member.assert_not_called()
        self.repository.set_members.assert_not_called()
        self.users.add_to_collection.assert_not_called()

    def test_add_member(self):
        """Test adding a new member updates every store."""
        self.manager.add_member("c1", "u3")

        self.repository.insert_member.assert_called_once_with("c1", "u3")
        self.repository.set_members.assert_called_once_with("c1", ["u1", "u2", "u3"])
        self.users.add_to_collection.assert_called_once_with("u3", "c1")

    def test_add_member_missing_collection(self):
        """Test adding to a missing collection is NotFound."""
        self.repository.get_collection.return_value = None

        with pytest.raises(NotFoundError) as exc_info:
            self.manager.add_member("missing", "u3")

        assert exc_info.value.code == "collection_not_found"

    def test_remove_owner_rejected_before_writes(self):
        """Test the owner can never be removed."""
        with pytest.raises(InvalidOperationError, match="cannot remove owner"):
            self.manager.remove_member("c1", "u1")

        self.repository.delete_member.assert_not_called()
        self.repository.set_members.assert_not_called()
        self.users.remove_from_collection.assert_not_called()

    def test_remove_member(self):
        """Test removing a member updates every store."""
        self.manager.remove_member("c1", "u2")

        self.repository.delete_member.assert_called_once_with("c1", "u2")
        self.repository.set_members.assert_called_once_with("c1", ["u1"])
        self.users.remove_from_collection.assert_called_once_with("u2", "c1")

    def test_remove_non_member_writes_nothing(self):
        """Test removing a non-member is a no-op."""
        self.manager.remove_member("c1", "u9")

        self.repository.delete_member.assert_not_called()
        self.repository.set_members.assert_not_called()
        self.users.remove_from_collection.assert_not_called()

    def test_driver_error_wrapped(self):
        """Test raw driver errors surface as DatabaseError."""
        self.repository.insert_member.side_effect = duckdb.Error("locked")

        with pytest.raises(DatabaseError, match="Failed to add member"):
            self.manager.add_member("c1", "u3")

    def test_runs_inside_transaction(self):
        """Test membership changes are wrapped in a transaction."""
        self.manager.add_member("c1", "u3")

        self.db.transaction.assert_called_once_with()


class TestMembershipManagerDatabase:
    """Test cases against a real database."""

    @pytest.fixture(autouse=True)
    def setup(self, db_manager, repository, user_directory, factory):
        self.manager = MembershipManager(db_manager, repository, user_directory)
        self.repository = repository
        self.users = user_directory
        self.owner = factory.create_user(user_directory, "Olive", "Owner")
        self.guest = factory.create_user(user_directory, "Gus", "Guest")

    def test_create_collection(self):
        """Test the three stores agree after creation."""
        public = self.manager.create("Trip", self.owner.id)

        assert self.repository.get_collection(public.id).members == [self.owner.id]
        assert self.repository.fetch_member_ids(public.id) == {self.owner.id}
        assert self.users.get_by_id(self.owner.id).collections == [public.id]

    def test_create_with_unknown_owner_rolls_back(self):
        """Test nothing persists when the owner is unknown."""
        with pytest.raises(NotFoundError):
            self.manager.create("Trip", "nobody")

        assert self.repository.list_collections() == []

    def test_add_and_remove_member(self):
        """Test membership round trip through all stores."""
        public = self.manager.create("Trip", self.owner.id)

        self.manager.add_member(public.id, self.guest.id)
        assert self.repository.get_collection(public.id).members == [self.owner.id, self.guest.id]
        assert self.users.get_by_id(self.guest.id).collections == [public.id]

        self.manager.remove_member(public.id, self.guest.id)
        assert self.repository.get_collection(public.id).members == [self.owner.id]
        assert self.repository.fetch_member_ids(public.id) == {self.owner.id}
        assert self.users.get_by_id(self.guest.id).collections == []

    def test_add_unknown_user_rolls_back(self):
        """Test a failed directory update leaves the join table untouched."""
        public = self.manager.create("Trip", self.owner.id)

        with pytest.raises(NotFoundError):
            self.manager.add_member(public.id, "nobody")

        assert self.repository.fetch_member_ids(public.id) == {self.owner.id}
        assert self.repository.get_collection(public.id).members == [self.owner.id]

    def test_get_members_roles(self):
        """Test members carry their derived role."""
        public = self.manager.create("Trip", self.owner.id)
        self.manager.add_member(public.id, self.guest.id)

        members = {member.id: member.role for member in self.manager.get_members(public.id)}

        assert members == {self.owner.id: "owner", self.guest.id: "member"}
