"""
Unit tests for UserDirectory.
"""

from datetime import date

import pytest

from famalbum.errors import DatabaseError, NotFoundError, ValidationError


class TestUserDirectory:
    """Test cases for user rows and their collection lists."""

    def test_create_user(self, user_directory):
        """Test a new user has no collections."""
        user = user_directory.create_user(
            " ada@example.com ", first_name="Ada", last_name="Lovelace", birthday=date(1815, 12, 10)
        )

        assert user.email == "ada@example.com"
        assert user.collections == []
        assert user.birthday == date(1815, 12, 10)
        assert user_directory.get_by_id(user.id) == user

    def test_create_user_requires_email(self, user_directory):
        """Test an empty email is rejected."""
        with pytest.raises(ValidationError):
            user_directory.create_user("  ")

    def test_duplicate_email(self, user_directory):
        """Test emails are unique."""
        user_directory.create_user("ada@example.com")

        with pytest.raises(DatabaseError):
            user_directory.create_user("ada@example.com")

    def test_add_to_collection_is_idempotent(self, user_directory, factory):
        """Test adding the same collection twice keeps one entry."""
        user = factory.create_user(user_directory)

        user_directory.add_to_collection(user.id, "c1")
        user_directory.add_to_collection(user.id, "c1")
        user_directory.add_to_collection(user.id, "c2")

        assert user_directory.get_by_id(user.id).collections == ["c1", "c2"]

    def test_remove_from_collection_is_idempotent(self, user_directory, factory):
        """Test removing an absent collection is a no-op."""
        user = factory.create_user(user_directory)
        user_directory.add_to_collection(user.id, "c1")

        user_directory.remove_from_collection(user.id, "c1")
        user_directory.remove_from_collection(user.id, "c1")

        assert user_directory.get_by_id(user.id).collections == []

    def test_unknown_user(self, user_directory):
        """Test notifications for a missing user raise NotFound."""
        with pytest.raises(NotFoundError) as exc_info:
            user_directory.add_to_collection("nobody", "c1")

        assert exc_info.value.code == "user_not_found"

        with pytest.raises(NotFoundError):
            user_directory.remove_from_collection("nobody", "c1")
