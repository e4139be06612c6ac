"""File API endpoints"""
from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File, Query, Request
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.config import settings
from app.core.dependencies import get_storage
from app.core.exceptions import (
    ConsistencyDriftError,
    NotFoundError,
    RemoteStoreError,
    UploadRejectedError,
)
from app.core.rate_limit import limiter
from app.database import get_db
from app.services.blob_store_service import BlobStore
from app.services.file_service import FileService
from app.schemas.file import FileUploadResponse, FileMetadataResponse, FileUrlResponse

router = APIRouter(prefix="/files", tags=["files"])


@router.post("/upload", response_model=FileUploadResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.UPLOAD_RATE_LIMIT)
async def upload_file(
    request: Request,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    storage: BlobStore = Depends(get_storage)
):
    """
    Upload one file

    The file is stored unreferenced. It must be mapped to a post or profile
    within the grace period or the cleanup job reclaims it.

    Supported: images, videos, documents, audio and archives, with per-type
    size limits.
    """
    content = await file.read()
    service = FileService(db, storage)

    try:
        record = await run_in_threadpool(
            service.upload_file, content, file.filename, file.content_type
        )
    except UploadRejectedError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except RemoteStoreError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Error storing file: {e.detail}"
        )

    return FileUploadResponse(
        id=record.id,
        original_name=record.original_name,
        url=service.get_file_url(record),
        content_type=record.content_type,
        size=record.size,
        created_at=record.created_at
    )


@router.get("/{file_id}", response_model=FileMetadataResponse)
def get_file(
    file_id: int,
    db: Session = Depends(get_db),
    storage: BlobStore = Depends(get_storage)
):
    """Get file metadata by ID"""
    try:
        return FileService(db, storage).get_file(file_id)
    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )


@router.get("/{file_id}/url", response_model=FileUrlResponse)
def get_file_url(
    file_id: int,
    private: bool = Query(False, description="Return a presigned URL"),
    verify: bool = Query(False, description="Check that the remote object still exists"),
    db: Session = Depends(get_db),
    storage: BlobStore = Depends(get_storage)
):
    """
    Resolve a URL for a stored file

    - **private**: presigned URL valid for a limited time instead of the public URL
    - **verify**: HEAD the object first; 410 if the object is gone
    """
    try:
        url = FileService(db, storage).resolve_url(file_id, private=private, verify=verify)
    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    except ConsistencyDriftError as e:
        raise HTTPException(
            status_code=status.HTTP_410_GONE,
            detail=str(e)
        )
    except RemoteStoreError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(e)
        )

    return FileUrlResponse(
        id=file_id,
        url=url,
        private=private,
        expires_in_minutes=settings.PRESIGNED_URL_TTL_MINUTES if private else None
    )
