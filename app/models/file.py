"""File storage models"""
from sqlalchemy import Column, String, Integer, BigInteger, DateTime
from app.database import Base
from app.utils.time_utils import utc_now


class FileRecord(Base):
    """Metadata for one uploaded binary, independent of any owner.

    Rows are never updated in place. They are inserted once by the upload
    endpoint and removed only by the cleanup pipeline after the remote
    object delete has been confirmed.
    """

    __tablename__ = "files"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # File information
    original_name = Column(String(255), nullable=False)
    storage_key = Column(String(500), nullable=False, unique=True)  # Object key in the bucket
    content_type = Column(String(100), nullable=False)
    size = Column(BigInteger, nullable=False)  # Bytes

    # Timestamps
    created_at = Column(DateTime, default=utc_now, nullable=False, index=True)

    def __repr__(self):
        return f"<FileRecord(id={self.id}, name={self.original_name}, key={self.storage_key})>"
