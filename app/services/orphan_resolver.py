"""Finds stored files that no owning domain references"""
import asyncio
import logging
from datetime import datetime
from typing import List, Set

from sqlalchemy.orm import Session

from app.models.file import FileRecord
from app.services.file_record_store import FileRecordStore
from app.services.usage_collectors import UsageCollectorRegistry

logger = logging.getLogger(__name__)


class OrphanResolver:
    """Unions every collector's ids and queries files outside that union"""

    def __init__(self, registry: UsageCollectorRegistry, db: Session, batch_size: int = 1000):
        self.registry = registry
        self.db = db
        self.batch_size = batch_size

    async def collect_used_ids(self) -> Set[int]:
        """
        Union of all collectors' results

        Collectors run concurrently on worker threads and the union is built
        only after every one of them has finished. A collector that raises is
        logged and left out of the union.
        """
        collectors = list(self.registry)
        results = await asyncio.gather(
            *(asyncio.to_thread(collector.collect) for collector in collectors),
            return_exceptions=True
        )

        used: Set[int] = set()
        for collector, result in zip(collectors, results):
            name = getattr(collector, "name", type(collector).__name__)
            if isinstance(result, BaseException):
                logger.error(f"Collector {name} failed, skipping for this run: {result!r}")
                continue
            used.update(result)

        logger.info(f"Collected {len(used)} used file ids from {len(collectors)} collectors")
        return used

    def find_unused(self, used_ids: Set[int], threshold_time: datetime) -> List[FileRecord]:
        """Files older than threshold_time and absent from used_ids"""
        store = FileRecordStore(self.db)
        return store.query_unused_batched(used_ids, threshold_time, batch_size=self.batch_size)
