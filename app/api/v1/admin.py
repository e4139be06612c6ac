"""Admin maintenance API endpoints"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from app.database import get_db
from app.core.dependencies import get_cdn, get_collector_registry, get_storage, require_admin_key
from app.services.blob_store_service import BlobStore
from app.services.cdn_service import CdnInvalidator
from app.services.file_cleanup_service import FileCleanupService
from app.services.usage_collectors import UsageCollectorRegistry
from app.schemas.file import CleanupReportResponse

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin_key)])


@router.post("/files/cleanup", response_model=CleanupReportResponse)
async def run_file_cleanup(
    grace_hours: Optional[int] = Query(None, ge=1, description="Override the grace period in hours"),
    db: Session = Depends(get_db),
    registry: UsageCollectorRegistry = Depends(get_collector_registry),
    storage: BlobStore = Depends(get_storage),
    cdn: CdnInvalidator = Depends(get_cdn)
):
    """
    Run the unused file cleanup now

    Same pipeline as the nightly job. Requires the X-Admin-Key header.
    """
    service = FileCleanupService(
        db,
        registry,
        storage,
        cdn,
        grace_period_hours=grace_hours
    )
    return await service.run()
