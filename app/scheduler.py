"""Background scheduler for periodic tasks"""
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from app.config import settings
import logging

logger = logging.getLogger(__name__)
scheduler = AsyncIOScheduler()


def start_scheduler():
    """Start the background scheduler"""
    if not settings.SCHEDULER_ENABLED:
        logger.info("Scheduler disabled by configuration")
        return
    try:
        scheduler.start()
        logger.info("✅ Scheduler started successfully")
    except Exception as e:
        logger.error(f"❌ Failed to start scheduler: {e}")


def stop_scheduler():
    """Stop the background scheduler"""
    if not scheduler.running:
        return
    try:
        scheduler.shutdown()
        logger.info("✅ Scheduler stopped successfully")
    except Exception as e:
        logger.error(f"❌ Failed to stop scheduler: {e}")


@scheduler.scheduled_job(
    'cron',
    hour=settings.FILE_CLEANUP_HOUR,
    minute=settings.FILE_CLEANUP_MINUTE,
    id="cleanup_unused_files",
    max_instances=1
)
async def cleanup_unused_files():
    """
    Delete files no domain references and that are past the grace period
    Runs daily at 03:00 by default
    """
    try:
        from app.database import SessionLocal
        from app.services.blob_store_service import get_blob_store
        from app.services.cdn_service import get_cdn_invalidator
        from app.services.file_cleanup_service import FileCleanupService
        from app.services.usage_collectors import build_default_registry

        db = SessionLocal()
        try:
            service = FileCleanupService(
                db,
                build_default_registry(SessionLocal),
                get_blob_store(),
                get_cdn_invalidator()
            )
            await service.run()
        finally:
            db.close()

    except Exception as e:
        logger.error(f"❌ Error during unused file cleanup: {e}", exc_info=True)
