"""Persistence for independent file metadata"""
from sqlalchemy.orm import Session
from app.models.file import FileRecord
from app.core.exceptions import MissingFileReferenceError, NotFoundError
from typing import Iterable, List, Optional, Set
from datetime import datetime
import logging

logger = logging.getLogger(__name__)


def chunked(items: list, size: int) -> List[list]:
    """Split a list into consecutive chunks of at most `size` items"""
    if size <= 0:
        raise ValueError("chunk size must be positive")
    return [items[i:i + size] for i in range(0, len(items), size)]


class FileRecordStore:
    """Queries and mutations on the files table"""

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        original_name: str,
        storage_key: str,
        content_type: str,
        size: int,
        created_at: Optional[datetime] = None
    ) -> FileRecord:
        """
        Insert a file record after a successful remote upload

        Returns:
            The persisted FileRecord with its id assigned
        """
        record = FileRecord(
            original_name=original_name,
            storage_key=storage_key,
            content_type=content_type,
            size=size,
        )
        if created_at is not None:
            record.created_at = created_at

        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)

        logger.info(f"File record created: id={record.id}, key={record.storage_key}")
        return record

    def get(self, file_id: int) -> FileRecord:
        """Get a file record by id or raise NotFoundError"""
        record = self.db.query(FileRecord).filter(FileRecord.id == file_id).first()
        if not record:
            raise NotFoundError("file", file_id)
        return record

    def get_many(self, file_ids: Iterable[int]) -> List[FileRecord]:
        ids = list(set(file_ids))
        if not ids:
            return []
        return self.db.query(FileRecord).filter(FileRecord.id.in_(ids)).all()

    def exists_all(self, file_ids: Iterable[int]) -> int:
        """Count how many of the given (distinct) ids exist"""
        ids = list(set(file_ids))
        if not ids:
            return 0
        return self.db.query(FileRecord).filter(FileRecord.id.in_(ids)).count()

    def validate_exist(self, file_ids: Iterable[int], operation: str) -> None:
        """
        Ensure every id refers to a stored file

        Raises:
            MissingFileReferenceError: naming the operation and the missing ids
        """
        ids = set(file_ids)
        if not ids:
            return

        matched = self.exists_all(ids)
        if matched == len(ids):
            return

        found = {
            row.id for row in
            self.db.query(FileRecord.id).filter(FileRecord.id.in_(list(ids))).all()
        }
        missing = ids - found
        logger.error(f"{operation}: {len(missing)} of {len(ids)} referenced files missing: {sorted(missing)}")
        raise MissingFileReferenceError(operation, missing)

    def query_unused(self, used_ids: Set[int], threshold_time: datetime) -> List[FileRecord]:
        """
        Files created before threshold_time whose id is not in used_ids

        An empty used_ids set returns an empty list. An empty union far more
        likely means the collectors failed than that nothing is referenced.
        """
        if not used_ids:
            logger.warning("query_unused called with an empty used set, returning no files")
            return []

        return (
            self.db.query(FileRecord)
            .filter(
                FileRecord.created_at < threshold_time,
                FileRecord.id.notin_(list(used_ids))
            )
            .order_by(FileRecord.id)
            .all()
        )

    def query_unused_batched(
        self,
        used_ids: Set[int],
        threshold_time: datetime,
        batch_size: int = 1000
    ) -> List[FileRecord]:
        """
        query_unused for used sets larger than one NOT IN list

        Each chunk's query returns files not in that chunk; a file is unused
        only if it shows up in the result of every chunk.
        """
        if not used_ids:
            logger.warning("query_unused_batched called with an empty used set, returning no files")
            return []

        chunks = chunked(sorted(used_ids), batch_size)
        if len(chunks) == 1:
            return self.query_unused(set(chunks[0]), threshold_time)

        candidates = None
        records = {}
        for chunk in chunks:
            result = self.query_unused(set(chunk), threshold_time)
            ids = {record.id for record in result}
            records.update((record.id, record) for record in result)
            candidates = ids if candidates is None else candidates & ids
            if not candidates:
                break

        logger.info(f"Unused lookup over {len(chunks)} chunks: {len(candidates or ())} candidates")
        return [records[file_id] for file_id in sorted(candidates or ())]

    def bulk_delete(self, file_ids: Iterable[int]) -> int:
        """
        Delete rows by id

        Callers must have confirmed the remote delete for every id passed.
        """
        ids = list(set(file_ids))
        if not ids:
            return 0

        deleted = 0
        for chunk in chunked(ids, 1000):
            deleted += self.db.query(FileRecord).filter(
                FileRecord.id.in_(chunk)
            ).delete(synchronize_session=False)
        self.db.commit()

        logger.info(f"Bulk deleted {deleted} file records")
        return deleted
