"""Object store service backed by Google Cloud Storage."""

import os

from google.cloud import storage  # type: ignore[attr-defined]
from google.cloud.exceptions import GoogleCloudError, NotFound

from ..errors import ObjectStoreError
from ..logging_config import get_logger

logger = get_logger(__name__)


class StorageService:
    """Blob operations on the photos bucket, addressed by object key."""

    def __init__(self, bucket_name: str | None = None, project_id: str | None = None) -> None:
        """
        Initialize the storage service.

        Args:
            bucket_name: GCS photos bucket name (defaults to GCS_PHOTOS_BUCKET environment variable)
            project_id: GCP project ID (defaults to GOOGLE_CLOUD_PROJECT environment variable)

        Raises:
            ObjectStoreError: If configuration is missing or the client cannot be created
        """
        self.bucket_name = bucket_name or os.getenv("GCS_PHOTOS_BUCKET")
        self.project_id = project_id or os.getenv("GOOGLE_CLOUD_PROJECT")

        if not self.bucket_name:
            raise ObjectStoreError("GCS_PHOTOS_BUCKET environment variable is required", code="missing_bucket")
        if not self.project_id:
            raise ObjectStoreError("GOOGLE_CLOUD_PROJECT environment variable is required", code="missing_project")

        try:
            self.client = storage.Client(project=self.project_id)
            self.bucket = self.client.bucket(self.bucket_name)
            logger.info("storage_service_initialized", bucket=self.bucket_name, project_id=self.project_id)
        except Exception as e:
            raise ObjectStoreError(f"Failed to initialize GCS client: {e}", original_exception=e) from e

    def delete_file(self, key: str) -> None:
        """
        Delete an object from the bucket.

        A missing object is logged and treated as already deleted.

        Args:
            key: Object key

        Raises:
            ObjectStoreError: If the deletion fails
        """
        try:
            blob = self.bucket.blob(key)

            if not blob.exists():
                logger.warning("object_not_found_for_deletion", key=key)
                return

            blob.delete()
            logger.info("object_deleted", key=key)

        except NotFound:
            # Removed between the existence check and the delete call
            logger.warning("object_not_found_for_deletion", key=key)
        except GoogleCloudError as e:
            raise ObjectStoreError(
                f"Failed to delete object '{key}': {e}", details={"key": key}, original_exception=e
            ) from e
        except Exception as e:
            raise ObjectStoreError(
                f"Unexpected error deleting '{key}': {e}", details={"key": key}, original_exception=e
            ) from e

    def file_exists(self, key: str) -> bool:
        """
        Check whether an object exists.

        Raises:
            ObjectStoreError: If the check fails
        """
        try:
            return bool(self.bucket.blob(key).exists())
        except GoogleCloudError as e:
            raise ObjectStoreError(
                f"Failed to check object '{key}': {e}", details={"key": key}, original_exception=e
            ) from e

    def upload_file(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        """
        Upload bytes under ``key``, overwriting any existing object.

        Returns:
            str: The object key

        Raises:
            ObjectStoreError: If the upload fails
        """
        try:
            blob = self.bucket.blob(key)
            blob.upload_from_string(data, content_type=content_type)
            logger.info("object_uploaded", key=key, size=len(data), content_type=content_type)
            return key
        except GoogleCloudError as e:
            raise ObjectStoreError(
                f"Failed to upload object '{key}': {e}", details={"key": key}, original_exception=e
            ) from e

    def check_bucket_exists(self) -> bool:
        """
        Check if the configured bucket exists and is reachable.

        Returns:
            bool: True if bucket exists
        """
        try:
            return bool(self.bucket.exists())
        except GoogleCloudError as e:
            logger.error("bucket_check_failed", bucket=self.bucket_name, error=str(e))
            return False
