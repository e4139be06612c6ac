"""Serve the blog backend locally with uvicorn"""
import logging

import uvicorn

from app.config import settings

logger = logging.getLogger("run")


def main():
    logging.basicConfig(level=settings.LOG_LEVEL.upper())
    logger.info(
        f"Serving {settings.PROJECT_NAME} on {settings.HOST}:{settings.PORT} "
        f"(bucket={settings.S3_BUCKET}, cleanup at "
        f"{settings.FILE_CLEANUP_HOUR:02d}:{settings.FILE_CLEANUP_MINUTE:02d}, "
        f"scheduler={'on' if settings.SCHEDULER_ENABLED else 'off'})"
    )
    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )


if __name__ == "__main__":
    main()
