"""
Health checks for the two stores famalbum depends on.
"""

import os
import time
from typing import Any

from . import __version__
from .config import get_environment
from .logging_config import get_logger
from .models.database import DatabaseManager
from .services.storage import StorageService

logger = get_logger(__name__)


def check_database_health(db_manager: DatabaseManager) -> dict[str, Any]:
    """Check database connectivity and schema."""
    try:
        db_manager.execute_query("SELECT 1")
        if not db_manager.verify_schema():
            return {"status": "unhealthy", "message": "Database schema is incomplete", "timestamp": time.time()}

        return {
            "status": "healthy",
            "message": "Database connection successful",
            "timestamp": time.time(),
            "db_path": db_manager.db_path,
        }
    except Exception as e:
        logger.error("database_health_check_failed", error=str(e))
        return {"status": "unhealthy", "message": f"Database connection failed: {e}", "timestamp": time.time()}


def check_storage_health(storage: StorageService) -> dict[str, Any]:
    """Check that the photos bucket is reachable."""
    if not storage.check_bucket_exists():
        return {
            "status": "unhealthy",
            "message": f"Bucket not reachable: {storage.bucket_name}",
            "timestamp": time.time(),
            "bucket": storage.bucket_name,
        }

    return {
        "status": "healthy",
        "message": f"Storage connection successful to bucket: {storage.bucket_name}",
        "timestamp": time.time(),
        "bucket": storage.bucket_name,
    }


def check_environment_health() -> dict[str, Any]:
    """Check that the required environment variables are set."""
    required_env_vars = ["GOOGLE_CLOUD_PROJECT", "GCS_PHOTOS_BUCKET"]
    missing_vars = [var for var in required_env_vars if not os.getenv(var)]

    if missing_vars:
        return {
            "status": "unhealthy",
            "message": f"Missing environment variables: {', '.join(missing_vars)}",
            "timestamp": time.time(),
            "missing_vars": missing_vars,
        }

    return {"status": "healthy", "message": "Environment configuration is valid", "timestamp": time.time()}


def get_health_status(db_manager: DatabaseManager, storage: StorageService | None = None) -> dict[str, Any]:
    """
    Aggregate all checks.

    The overall status is healthy only when every individual check is.
    """
    checks = {
        "environment": check_environment_health(),
        "database": check_database_health(db_manager),
    }
    if storage is not None:
        checks["storage"] = check_storage_health(storage)

    overall = "healthy" if all(check["status"] == "healthy" for check in checks.values()) else "unhealthy"
    return {
        "status": overall,
        "version": __version__,
        "environment": get_environment(),
        "timestamp": time.time(),
        "checks": checks,
    }
