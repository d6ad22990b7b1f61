"""
Unit tests for StorageService.
"""

from unittest.mock import MagicMock, patch

import pytest
from google.cloud.exceptions import Forbidden, NotFound

from famalbum.errors import ObjectStoreError
from famalbum.services.storage import StorageService


class TestStorageServiceInit:
    """Test cases for StorageService construction."""

    @patch("famalbum.services.storage.storage.Client")
    def test_init_from_environment(self, mock_client_class):
        """Test bucket and project come from the environment."""
        service = StorageService()

        assert service.bucket_name == "test-photos-bucket"
        assert service.project_id == "test-project"
        mock_client_class.assert_called_once_with(project="test-project")
        mock_client_class.return_value.bucket.assert_called_once_with("test-photos-bucket")

    def test_init_missing_bucket(self, monkeypatch):
        """Test a missing bucket name is rejected."""
        monkeypatch.delenv("GCS_PHOTOS_BUCKET")

        with pytest.raises(ObjectStoreError) as exc_info:
            StorageService()

        assert exc_info.value.code == "missing_bucket"

    def test_init_missing_project(self, monkeypatch):
        """Test a missing project id is rejected."""
        monkeypatch.delenv("GOOGLE_CLOUD_PROJECT")

        with pytest.raises(ObjectStoreError) as exc_info:
            StorageService()

        assert exc_info.value.code == "missing_project"

    @patch("famalbum.services.storage.storage.Client")
    def test_init_client_failure(self, mock_client_class):
        """Test client construction errors are wrapped."""
        mock_client_class.side_effect = Exception("no credentials")

        with pytest.raises(ObjectStoreError, match="Failed to initialize GCS client"):
            StorageService()


class TestStorageServiceOperations:
    """Test cases for blob operations."""

    def setup_method(self):
        with patch("famalbum.services.storage.storage.Client"):
            self.service = StorageService(bucket_name="bucket", project_id="project")
        self.blob = MagicMock()
        self.service.bucket = MagicMock()
        self.service.bucket.blob.return_value = self.blob

    def test_delete_file(self):
        """Test an existing object is deleted."""
        self.blob.exists.return_value = True

        self.service.delete_file("images/a/original.jpg")

        self.service.bucket.blob.assert_called_once_with("images/a/original.jpg")
        self.blob.delete.assert_called_once()

    def test_delete_missing_file(self):
        """Test a missing object is treated as deleted."""
        self.blob.exists.return_value = False

        self.service.delete_file("gone.jpg")

        self.blob.delete.assert_not_called()

    def test_delete_race_not_found(self):
        """Test NotFound between check and delete is not an error."""
        self.blob.exists.return_value = True
        self.blob.delete.side_effect = NotFound("gone")

        self.service.delete_file("gone.jpg")

    def test_delete_cloud_error(self):
        """Test other cloud errors raise ObjectStoreError."""
        self.blob.exists.return_value = True
        self.blob.delete.side_effect = Forbidden("denied")

        with pytest.raises(ObjectStoreError, match="Failed to delete object") as exc_info:
            self.service.delete_file("a.jpg")

        assert exc_info.value.details == {"key": "a.jpg"}
        assert exc_info.value.retry_suggested is True

    def test_delete_unexpected_error(self):
        """Test non-cloud errors are wrapped too."""
        self.blob.exists.side_effect = RuntimeError("socket closed")

        with pytest.raises(ObjectStoreError, match="Unexpected error deleting"):
            self.service.delete_file("a.jpg")

    def test_upload_file(self):
        """Test uploading bytes under a key."""
        assert self.service.upload_file("k.jpg", b"data", "image/jpeg") == "k.jpg"

        self.blob.upload_from_string.assert_called_once_with(b"data", content_type="image/jpeg")

    def test_file_exists(self):
        """Test existence checks."""
        self.blob.exists.return_value = True

        assert self.service.file_exists("k.jpg") is True

    def test_check_bucket_exists_error(self):
        """Test bucket check failures report False."""
        self.service.bucket.exists.side_effect = Forbidden("denied")

        assert self.service.check_bucket_exists() is False
