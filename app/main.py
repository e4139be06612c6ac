"""
Blog Backend API - Main Application
"""
import logging
import sys
import traceback
import uuid
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from app.config import settings
from app.api.v1 import api_router
from app.core.exceptions import (
    ConsistencyDriftError,
    FileLifecycleError,
    MissingFileReferenceError,
    NotFoundError,
    RemoteStoreError,
    UploadRejectedError,
    ValidationError,
)
from app.core.rate_limit import limiter
from app.database import init_db

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)

# Create FastAPI application
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Blog backend with file upload and unused file cleanup",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
    redirect_slashes=False
)

# Rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# Most specific first; the first matching class in the MRO wins
_ERROR_STATUS = (
    (MissingFileReferenceError, 404),
    (NotFoundError, 404),
    (ValidationError, 400),
    (UploadRejectedError, 400),
    (ConsistencyDriftError, 410),
    (RemoteStoreError, 502),
)


@app.exception_handler(FileLifecycleError)
async def file_lifecycle_exception_handler(request: Request, exc: FileLifecycleError):
    """Map file lifecycle errors that escape a route to HTTP responses"""
    status_code = 500
    for error_class, code in _ERROR_STATUS:
        if isinstance(exc, error_class):
            status_code = code
            break

    if status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc}")
    else:
        logger.warning(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc}")

    content = {"detail": str(exc), "type": type(exc).__name__}
    if isinstance(exc, ValidationError) and exc.missing_ids:
        content["missing_ids"] = exc.missing_ids
    return JSONResponse(status_code=status_code, content=content)


# Global exception handler for unhandled exceptions
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler that:
    - In DEBUG mode: returns detailed error info for development
    - In PRODUCTION mode: returns generic error message, logs details server-side
    """
    error_id = str(uuid.uuid4())[:8]

    logger.error(
        f"[ERROR_ID: {error_id}] Unhandled exception on {request.method} {request.url.path}",
        exc_info=True
    )

    if settings.DEBUG:
        return JSONResponse(
            status_code=500,
            content={
                "detail": str(exc),
                "error_id": error_id,
                "type": type(exc).__name__,
                "path": str(request.url.path),
                "traceback": traceback.format_exc()
            }
        )
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An internal server error occurred. Please try again later.",
            "error_id": error_id
        }
    )


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event():
    """Initialize database and scheduler on startup"""
    print("=" * 70)
    print("[STARTUP] Starting Blog Backend API...")
    print("=" * 70)

    print(f"[DATABASE] {settings.DATABASE_HOST}:{settings.DATABASE_PORT}/{settings.DATABASE_NAME}")
    print(f"[STORAGE] s3://{settings.S3_BUCKET} ({settings.AWS_REGION})")
    print(f"[CDN] {settings.CLOUDFRONT_DOMAIN or 'not configured'}")
    print(f"[CLEANUP] Daily at {settings.FILE_CLEANUP_HOUR:02d}:{settings.FILE_CLEANUP_MINUTE:02d}, "
          f"grace period {settings.FILE_GRACE_PERIOD_HOURS}h")
    print(f"[DEBUG] Debug mode: {settings.DEBUG}")

    # Initialize database tables
    try:
        init_db()
        print("[OK] Database initialized successfully")
    except Exception as e:
        print(f"[ERROR] Database initialization failed: {e}")
        sys.exit(1)

    # Start background scheduler
    from app.scheduler import start_scheduler
    start_scheduler()

    print("=" * 70)
    print(f"[API] Running at: http://{settings.HOST}:{settings.PORT}")
    print(f"[DOCS] API Docs: http://{settings.HOST}:{settings.PORT}/docs")
    print("=" * 70)


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown"""
    print("[SHUTDOWN] Shutting down Blog Backend API...")

    from app.scheduler import stop_scheduler
    stop_scheduler()


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "blog-backend-api",
        "version": "1.0.0"
    }


# Include API routes
app.include_router(api_router, prefix=settings.API_V1_PREFIX)


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "message": "Welcome to Blog Backend API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "features": [
            "File upload to S3",
            "Post and profile file references",
            "Scheduled unused file cleanup"
        ]
    }


if __name__ == "__main__":
    import argparse
    import uvicorn

    parser = argparse.ArgumentParser(description="Blog Backend API")
    parser.add_argument(
        "--no-reload",
        action="store_true",
        help="Disable auto-reload on file changes"
    )
    args = parser.parse_args()

    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=not args.no_reload
    )
