"""Business logic services"""
from app.services.file_cleanup_service import FileCleanupService
from app.services.file_service import FileService
from app.services.post_file_service import PostFileService
from app.services.user_file_service import UserFileService

__all__ = ["FileCleanupService", "FileService", "PostFileService", "UserFileService"]
