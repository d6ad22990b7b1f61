"""
Unit tests for ImageDirectory.
"""

import pytest

from famalbum.errors import ValidationError


class TestImageDirectory:
    """Test cases for image rows and collection associations."""

    def test_register_image(self, image_directory, factory):
        """Test an image is stored with its associations."""
        image = factory.create_image(image_directory, ["c1", "c2"], name="beach")

        stored = image_directory.get_by_id(image.id)
        assert stored.collection_ids == {"c1", "c2"}
        assert stored.original_key == "images/beach/original.jpg"
        assert stored.thumbnail_key == "images/beach/thumb.jpg"

    def test_register_requires_collection(self, image_directory):
        """Test an image must belong to at least one collection."""
        with pytest.raises(ValidationError) as exc_info:
            image_directory.register_image("a.jpg", [])

        assert exc_info.value.code == "collection_required"

    def test_orphaned_by_collection(self, image_directory, factory):
        """Test only images referenced solely by the collection are orphans."""
        only_trip = factory.create_image(image_directory, ["trip"], name="only")
        factory.create_image(image_directory, ["trip", "reunion"], name="shared")
        factory.create_image(image_directory, ["reunion"], name="other")

        orphans = image_directory.get_orphaned_by_collection("trip")

        assert [image.id for image in orphans] == [only_trip.id]
        assert orphans[0].collection_ids == {"trip"}

    def test_get_by_collection(self, image_directory, factory):
        """Test every associated image is listed with its full association set."""
        shared = factory.create_image(image_directory, ["trip", "reunion"], name="shared")

        images = image_directory.get_by_collection("reunion")

        assert len(images) == 1
        assert images[0].id == shared.id
        assert images[0].collection_ids == {"trip", "reunion"}

    def test_delete_image(self, image_directory, factory):
        """Test deleting removes the row and its associations."""
        image = factory.create_image(image_directory, ["trip"])

        assert image_directory.delete_image(image.id) is True
        assert image_directory.get_by_id(image.id) is None
        assert image_directory.get_collection_ids(image.id) == set()
        assert image_directory.delete_image(image.id) is False
