"""
Unit tests for health checks.
"""

from unittest.mock import MagicMock

from famalbum.health import (
    check_database_health,
    check_environment_health,
    check_storage_health,
    get_health_status,
)
from famalbum.models.database import DatabaseManager
from famalbum.services.storage import StorageService


class TestHealthChecks:
    """Test cases for individual checks and the aggregate."""

    def test_database_healthy(self, db_manager):
        """Test an initialized database is healthy."""
        result = check_database_health(db_manager)

        assert result["status"] == "healthy"
        assert result["db_path"] == db_manager.db_path

    def test_database_incomplete_schema(self):
        """Test an empty database is unhealthy."""
        manager = DatabaseManager(":memory:")

        assert check_database_health(manager)["status"] == "unhealthy"
        manager.close()

    def test_database_connection_failure(self):
        """Test query failures are reported, not raised."""
        manager = MagicMock(spec=DatabaseManager)
        manager.execute_query.side_effect = RuntimeError("cannot open")

        result = check_database_health(manager)

        assert result["status"] == "unhealthy"
        assert "cannot open" in result["message"]

    def test_storage(self):
        """Test bucket reachability."""
        storage = MagicMock(spec=StorageService)
        storage.bucket_name = "bucket"

        storage.check_bucket_exists.return_value = True
        assert check_storage_health(storage)["status"] == "healthy"

        storage.check_bucket_exists.return_value = False
        assert check_storage_health(storage)["status"] == "unhealthy"

    def test_environment_missing_vars(self, monkeypatch):
        """Test missing variables are listed."""
        monkeypatch.delenv("GCS_PHOTOS_BUCKET")

        result = check_environment_health()

        assert result["status"] == "unhealthy"
        assert result["missing_vars"] == ["GCS_PHOTOS_BUCKET"]

    def test_aggregate(self, db_manager):
        """Test the overall status requires every check to pass."""
        storage = MagicMock(spec=StorageService)
        storage.bucket_name = "bucket"
        storage.check_bucket_exists.return_value = False

        assert get_health_status(db_manager)["status"] == "healthy"

        status = get_health_status(db_manager, storage)
        assert status["status"] == "unhealthy"
        assert set(status["checks"]) == {"environment", "database", "storage"}
