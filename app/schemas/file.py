"""Schemas for File endpoints"""
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime


class FileUploadResponse(BaseModel):
    """Response after file upload"""
    id: int
    original_name: str
    url: str  # URL to access the file
    content_type: str
    size: int
    created_at: datetime


class FileMetadataResponse(BaseModel):
    """Stored file metadata"""
    id: int
    original_name: str
    storage_key: str
    content_type: str
    size: int
    created_at: datetime

    class Config:
        from_attributes = True


class FileUrlResponse(BaseModel):
    id: int
    url: str
    private: bool
    expires_in_minutes: Optional[int] = None


class CleanupReportResponse(BaseModel):
    """Summary of one cleanup run"""
    started_at: datetime
    finished_at: Optional[datetime] = None
    used_count: int
    candidate_count: int
    remote_deleted: int
    db_deleted: int
    failed_keys: List[str]
    invalidated_paths: int
    aborted: Optional[str] = None

    class Config:
        from_attributes = True
