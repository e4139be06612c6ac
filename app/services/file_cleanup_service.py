"""
Reclaims stored files that nothing references

Run once per scheduler tick:
    1. union the used ids of every collector (abort if the union is empty)
    2. find files older than the grace period outside that union
    3. batch-delete their objects from the blob store
    4. invalidate CDN entries for the confirmed keys
    5. delete database rows only for the confirmed keys

The remote object is always confirmed deleted before its row is removed.
Database queries and remote calls run on worker threads so a long run does
not block the event loop.
Keys that are not confirmed stay in both stores and come back next run.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.core.exceptions import RemoteStoreError
from app.services.blob_store_service import BlobStore
from app.services.cdn_service import CdnInvalidator
from app.services.file_record_store import FileRecordStore, chunked
from app.services.orphan_resolver import OrphanResolver
from app.services.usage_collectors import UsageCollectorRegistry
from app.utils.time_utils import utc_now

logger = logging.getLogger(__name__)


@dataclass
class CleanupReport:
    started_at: datetime
    finished_at: Optional[datetime] = None
    used_count: int = 0
    candidate_count: int = 0
    remote_deleted: int = 0
    db_deleted: int = 0
    failed_keys: List[str] = field(default_factory=list)
    invalidated_paths: int = 0
    delete_calls: int = 0
    invalidation_calls: int = 0
    aborted: Optional[str] = None

    @property
    def failed_count(self) -> int:
        return len(self.failed_keys)


class FileCleanupService:
    """Orphan resolution plus the batched remote deletion pipeline"""

    def __init__(
        self,
        db: Session,
        registry: UsageCollectorRegistry,
        blob_store: BlobStore,
        cdn: CdnInvalidator,
        grace_period_hours: Optional[int] = None,
        used_ids_batch_size: Optional[int] = None,
        delete_batch_size: Optional[int] = None,
        invalidation_batch_size: Optional[int] = None
    ):
        self.db = db
        self.blob_store = blob_store
        self.cdn = cdn
        self.store = FileRecordStore(db)
        self.grace_period_hours = grace_period_hours or settings.FILE_GRACE_PERIOD_HOURS
        self.delete_batch_size = delete_batch_size or settings.REMOTE_DELETE_BATCH_SIZE
        self.invalidation_batch_size = invalidation_batch_size or settings.CDN_INVALIDATION_BATCH_SIZE
        self.resolver = OrphanResolver(
            registry, db, batch_size=used_ids_batch_size or settings.USED_IDS_BATCH_SIZE
        )

    async def run(self, now: Optional[datetime] = None) -> CleanupReport:
        now = now or utc_now()
        report = CleanupReport(started_at=now)
        threshold = now - timedelta(hours=self.grace_period_hours)

        logger.info(f"🧹 Starting unused file cleanup (created before {threshold})")

        used_ids = await self.resolver.collect_used_ids()
        report.used_count = len(used_ids)
        if not used_ids:
            logger.warning("⚠️ No used file ids collected; skipping deletion for safety")
            return self._finish(report, aborted="empty used set")

        unused = await asyncio.to_thread(self.resolver.find_unused, used_ids, threshold)
        report.candidate_count = len(unused)
        if not unused:
            logger.info("No unused files to delete")
            return self._finish(report)

        logger.info(f"Found {len(unused)} unused files")

        id_by_key: Dict[str, int] = {record.storage_key: record.id for record in unused}
        confirmed_keys = await self._delete_remote(list(id_by_key), report)
        report.remote_deleted = len(confirmed_keys)

        if not confirmed_keys:
            logger.warning("⚠️ No remote deletes were confirmed")
            return self._finish(report)

        await self._invalidate(confirmed_keys, report)

        confirmed_ids = [id_by_key[key] for key in confirmed_keys]
        try:
            report.db_deleted = await asyncio.to_thread(self.store.bulk_delete, confirmed_ids)
        except Exception as e:
            await asyncio.to_thread(self.db.rollback)
            logger.error(
                f"❌ Remote objects deleted but rows kept for file ids {sorted(confirmed_ids)}: {e}",
                exc_info=True
            )
            return self._finish(report)

        if report.db_deleted < len(confirmed_ids):
            logger.error(
                f"Expected to delete {len(confirmed_ids)} rows after remote delete, "
                f"deleted {report.db_deleted}"
            )

        return self._finish(report)

    async def _delete_remote(self, keys: List[str], report: CleanupReport) -> List[str]:
        """Batch delete keys; return the ones the store confirmed"""
        requested = set(keys)
        confirmed: List[str] = []
        batches = chunked(keys, self.delete_batch_size)

        for number, batch in enumerate(batches, start=1):
            report.delete_calls += 1
            try:
                result = await asyncio.to_thread(self.blob_store.batch_delete, batch)
            except RemoteStoreError as e:
                logger.error(f"Remote delete batch {number}/{len(batches)} failed: {e}")
                report.failed_keys.extend(batch)
                continue

            batch_keys = set(batch)
            deleted = [key for key in result.deleted_keys if key in batch_keys and key in requested]
            confirmed.extend(deleted)

            unconfirmed = batch_keys - set(deleted)
            report.failed_keys.extend(sorted(unconfirmed))

            logger.info(
                f"Remote delete batch {number}/{len(batches)}: "
                f"deleted={len(deleted)}, failed={len(unconfirmed)}"
            )

        return confirmed

    async def _invalidate(self, keys: List[str], report: CleanupReport) -> None:
        """Best-effort CDN invalidation; entries expire by TTL anyway"""
        batches = chunked(keys, self.invalidation_batch_size)
        for number, batch in enumerate(batches, start=1):
            report.invalidation_calls += 1
            try:
                invalidation_id = await asyncio.to_thread(self.cdn.invalidate, batch)
            except Exception as e:
                logger.error(f"CDN invalidation batch {number}/{len(batches)} failed: {e}")
                continue
            if invalidation_id:
                report.invalidated_paths += len(batch)

    def _finish(self, report: CleanupReport, aborted: Optional[str] = None) -> CleanupReport:
        report.aborted = aborted
        report.finished_at = utc_now()
        logger.info(
            f"✅ File cleanup finished: candidates={report.candidate_count}, "
            f"remote_deleted={report.remote_deleted}, db_deleted={report.db_deleted}, "
            f"failed={report.failed_count}, aborted={report.aborted}"
        )
        return report
