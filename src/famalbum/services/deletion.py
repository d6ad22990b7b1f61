"""
Cascading deletion of a collection across the relational and object stores.

Stages run in order::

    LOADING -> ORPHAN_SCAN -> MEDIA_PURGE -> MEMBER_DETACH -> RECORD_DELETE -> DONE

A missing collection fails in LOADING with nothing touched. MEDIA_PURGE is
best-effort per image: a failed blob or row deletion is logged, recorded on
the report and skipped, so a collection stays removable even when some blobs
cannot be deleted. MEMBER_DETACH and RECORD_DELETE share one transaction;
a failure there propagates and leaves the collection row in place, and
re-running the deletion is safe. RECORD_DELETE also removes the collection
from the related_collections list of every collection it was related to.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import duckdb

from ..errors import DatabaseError, FamAlbumError, NotFoundError, PartialFailure
from ..logging_config import get_logger, log_performance
from ..models.collection import Collection
from ..models.database import DatabaseManager
from ..models.image import ImageReference
from .images import ImageDirectory
from .repository import CollectionRepository
from .storage import StorageService
from .users import UserDirectory

logger = get_logger(__name__)


class DeletionStage(Enum):
    LOADING = "loading"
    ORPHAN_SCAN = "orphan_scan"
    MEDIA_PURGE = "media_purge"
    MEMBER_DETACH = "member_detach"
    RECORD_DELETE = "record_delete"
    DONE = "done"
    FAILED = "failed"


@dataclass
class DeletionReport:
    """Outcome of one ``delete_collection`` call."""

    collection_id: str
    stage: DeletionStage = DeletionStage.LOADING
    orphaned_image_ids: list[str] = field(default_factory=list)
    purged_image_ids: list[str] = field(default_factory=list)
    failures: list[dict[str, Any]] = field(default_factory=list)
    detached_member_ids: list[str] = field(default_factory=list)
    unlinked_collection_ids: list[str] = field(default_factory=list)
    partial_failure: PartialFailure | None = None

    @property
    def completed(self) -> bool:
        return self.stage is DeletionStage.DONE

    @property
    def media_purge_complete(self) -> bool:
        return not self.failures

    def to_dict(self) -> dict[str, Any]:
        return {
            "collection_id": self.collection_id,
            "stage": self.stage.value,
            "orphaned_image_ids": list(self.orphaned_image_ids),
            "purged_image_ids": list(self.purged_image_ids),
            "failures": [dict(failure) for failure in self.failures],
            "detached_member_ids": list(self.detached_member_ids),
            "unlinked_collection_ids": list(self.unlinked_collection_ids),
        }


class DeletionOrchestrator:
    """Runs the cascading delete of a collection."""

    def __init__(
        self,
        db_manager: DatabaseManager,
        repository: CollectionRepository,
        image_directory: ImageDirectory,
        object_store: StorageService,
        user_directory: UserDirectory,
    ):
        self.db = db_manager
        self.repository = repository
        self.image_directory = image_directory
        self.object_store = object_store
        self.user_directory = user_directory

    def _enter(self, report: DeletionReport, stage: DeletionStage) -> None:
        report.stage = stage
        logger.debug("collection_deletion_stage", collection_id=report.collection_id, stage=stage.value)

    def _fail(self, report: DeletionReport) -> DeletionStage:
        failed_stage = report.stage
        report.stage = DeletionStage.FAILED
        logger.error(
            "collection_deletion_failed",
            collection_id=report.collection_id,
            stage=failed_stage.value,
            purged_images=len(report.purged_image_ids),
        )
        return failed_stage

    def delete_collection(self, collection_id: str) -> DeletionReport:
        """
        Delete a collection, its exclusively owned images and its join rows.

        Returns:
            DeletionReport describing what was purged and which images failed

        Raises:
            NotFoundError: If the collection does not exist (nothing is changed)
            StorageFailure: If loading, the orphan scan, member detachment or
                the record delete fails
        """
        start_time = time.perf_counter()
        report = DeletionReport(collection_id=collection_id)

        try:
            collection = self.repository.get_collection(collection_id)
            if collection is None:
                raise NotFoundError(
                    "Collection not found", code="collection_not_found", details={"collection_id": collection_id}
                )

            self._enter(report, DeletionStage.ORPHAN_SCAN)
            orphans = self.image_directory.get_orphaned_by_collection(collection_id)
            report.orphaned_image_ids = [image.id for image in orphans]

            self._enter(report, DeletionStage.MEDIA_PURGE)
            self._purge_media(collection, orphans, report)

            self._enter(report, DeletionStage.MEMBER_DETACH)
            with self.db.transaction():
                self._detach_members(collection, report)

                self._enter(report, DeletionStage.RECORD_DELETE)
                self._unlink_related(collection, report)
                self.repository.delete_collection(collection_id)
        except FamAlbumError:
            self._fail(report)
            raise
        except duckdb.Error as e:
            failed_stage = self._fail(report)
            raise DatabaseError(
                f"Failed to delete collection: {e}",
                details={"operation": "delete_collection", "collection_id": collection_id, "stage": failed_stage.value},
                original_exception=e,
            ) from e

        report.stage = DeletionStage.DONE
        log_performance(
            "delete_collection",
            time.perf_counter() - start_time,
            collection_id=collection_id,
            purged_images=len(report.purged_image_ids),
            failed_images=len(report.failures),
        )
        logger.info(
            "collection_deleted",
            collection_id=collection_id,
            name=collection.name,
            orphaned_images=len(orphans),
            purged_images=len(report.purged_image_ids),
            failed_images=len(report.failures),
            detached_members=len(report.detached_member_ids),
            unlinked_collections=len(report.unlinked_collection_ids),
        )
        return report

    def _purge_media(self, collection: Collection, orphans: list[ImageReference], report: DeletionReport) -> None:
        for image in orphans:
            try:
                for key in image.blob_keys():
                    self.object_store.delete_file(key)
                self.image_directory.delete_image(image.id)
            except Exception as e:
                logger.error(
                    "orphaned_image_delete_failed",
                    collection_id=collection.id,
                    image_id=image.id,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                report.failures.append({"image_id": image.id, "error_type": type(e).__name__, "error": str(e)})
                continue

            report.purged_image_ids.append(image.id)
            logger.info("orphaned_image_deleted", collection_id=collection.id, image_id=image.id)

        if report.failures:
            report.partial_failure = PartialFailure(
                f"Failed to delete {len(report.failures)} of {len(orphans)} orphaned images",
                failures=report.failures,
                details={"collection_id": collection.id},
            )

    def _detach_members(self, collection: Collection, report: DeletionReport) -> None:
        for member_id in collection.members:
            try:
                self.user_directory.remove_from_collection(member_id, collection.id)
            except NotFoundError:
                # The user row is already gone; there is no list left to update
                logger.warning("member_missing_during_detach", collection_id=collection.id, user_id=member_id)
                continue
            report.detached_member_ids.append(member_id)

    def _unlink_related(self, collection: Collection, report: DeletionReport) -> None:
        """Drop the collection from every related collection's mirror list."""
        peer_ids = set(collection.related_collections)
        peer_ids.update(related.id for related in self.repository.fetch_related(collection.id))
        peer_ids.discard(collection.id)

        for peer_id in sorted(peer_ids):
            peer = self.repository.get_collection(peer_id)
            if peer is None or collection.id not in peer.related_collections:
                continue
            self.repository.set_related(peer_id, [cid for cid in peer.related_collections if cid != collection.id])
            report.unlinked_collection_ids.append(peer_id)
