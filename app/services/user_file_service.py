"""File references held by user profiles"""
from sqlalchemy.orm import Session
from app.models.file_mapping import UserFile, UserFileRole
from app.services.file_mapping_service import FileMappingService
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class UserFileService(FileMappingService):
    """Profile image mapping for users"""

    model = UserFile

    def __init__(self, db: Session):
        super().__init__(db)

    def set_profile_image(self, user_id: int, file_id: int) -> UserFile:
        return self.set_singleton_mapping(user_id, file_id, UserFileRole.PROFILE)

    def remove_profile_image(self, user_id: int) -> int:
        removed = self.remove_role(user_id, UserFileRole.PROFILE)
        if not removed:
            logger.info(f"User {user_id} had no profile image to remove")
        return removed

    def get_profile_file_id(self, user_id: int) -> Optional[int]:
        return self.get_singleton_file_id(user_id, UserFileRole.PROFILE)

    def purge(self, user_id: int) -> int:
        return self.clear_all_mappings(user_id)
