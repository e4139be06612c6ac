"""File service for handling uploads to the blob store"""
from sqlalchemy.orm import Session
from app.models.file import FileRecord
from app.config import settings
from app.core.exceptions import ConsistencyDriftError
from app.services.blob_store_service import BlobStore
from app.services.file_record_store import FileRecordStore
from app.utils.file_validator import validate_upload, build_storage_key
from app.utils.time_utils import utc_now
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class FileService:
    """Upload and lookup of stored files"""

    def __init__(self, db: Session, blob_store: BlobStore):
        self.db = db
        self.blob_store = blob_store
        self.store = FileRecordStore(db)

    def upload_file(
        self,
        content: bytes,
        filename: Optional[str],
        content_type: Optional[str]
    ) -> FileRecord:
        """
        Validate, store remotely, then record the file

        The record is created only after the remote put succeeded. The file
        starts unreferenced; an owner must map it within the grace period.
        """
        category = validate_upload(filename, len(content))
        key = build_storage_key(category, filename, utc_now())
        content_type = content_type or "application/octet-stream"

        logger.info(f"Uploading file: name={filename}, type={content_type}, size={len(content)}")
        self.blob_store.put(key, content, content_type)

        try:
            record = self.store.create(
                original_name=filename,
                storage_key=key,
                content_type=content_type,
                size=len(content),
            )
        except Exception:
            self.db.rollback()
            # No row references the object; it stays in the bucket unowned
            logger.error(f"File record insert failed after upload, object left at {key}", exc_info=True)
            raise

        return record

    def get_file(self, file_id: int) -> FileRecord:
        return self.store.get(file_id)

    def get_file_url(self, file: FileRecord, private: bool = False) -> str:
        if private:
            return self.blob_store.presigned_get(file.storage_key, settings.PRESIGNED_URL_TTL_MINUTES)
        return self.blob_store.public_url(file.storage_key)

    def resolve_url(self, file_id: int, private: bool = False, verify: bool = False) -> str:
        """
        URL for a stored file

        With verify, the remote object is checked first; a missing object
        means the row outlived its blob.
        """
        file = self.store.get(file_id)
        if verify and not self.blob_store.exists(file.storage_key):
            logger.warning(f"Consistency drift: file {file.id} row exists but {file.storage_key} is gone")
            raise ConsistencyDriftError(file.id, file.storage_key)
        return self.get_file_url(file, private=private)
