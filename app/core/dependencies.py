"""Shared FastAPI dependencies"""
import secrets

from fastapi import Header, HTTPException, status

from app.config import settings
from app.database import SessionLocal
from app.services.blob_store_service import BlobStore, get_blob_store
from app.services.cdn_service import CdnInvalidator, get_cdn_invalidator
from app.services.usage_collectors import UsageCollectorRegistry, build_default_registry


def get_storage() -> BlobStore:
    return get_blob_store()


def get_cdn() -> CdnInvalidator:
    return get_cdn_invalidator()


def require_admin_key(x_admin_key: str = Header(default="")) -> None:
    """Guard maintenance endpoints with the configured admin key"""
    if not settings.ADMIN_API_KEY:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin API is disabled"
        )
    if not secrets.compare_digest(x_admin_key, settings.ADMIN_API_KEY):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin key"
        )


def get_collector_registry() -> UsageCollectorRegistry:
    return build_default_registry(SessionLocal)
