"""Reference mapping models linking owners to files"""
import enum

from sqlalchemy import Column, String, Integer, DateTime, Index
from app.database import Base
from app.utils.time_utils import utc_now


class PostFileRole(str, enum.Enum):
    """Role of a file inside a post"""
    THUMBNAIL = "THUMBNAIL"  # one per post
    CONTENT = "CONTENT"  # files embedded in the body


class UserFileRole(str, enum.Enum):
    """Role of a file on a user profile"""
    PROFILE = "PROFILE"  # one per user


class FileMappingMixin:
    """Columns shared by every owner/file join table.

    Owner and file are plain ids with no foreign keys or relationships, so
    mapping rows never pull owner or file objects into the session.
    """

    # Roles that allow at most one row per owner
    SINGLETON_ROLES: frozenset = frozenset()

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(Integer, nullable=False, index=True)
    file_id = Column(Integer, nullable=False, index=True)
    role = Column(String(30), nullable=False)
    display_order = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=utc_now, nullable=False)

    def __repr__(self):
        return (
            f"<{type(self).__name__}(owner_id={self.owner_id}, file_id={self.file_id}, "
            f"role={self.role})>"
        )


class PostFile(FileMappingMixin, Base):
    """Files referenced by blog posts"""

    __tablename__ = "post_files"
    __table_args__ = (
        Index("idx_post_files_owner_role", "owner_id", "role"),
    )

    SINGLETON_ROLES = frozenset({PostFileRole.THUMBNAIL.value})


class UserFile(FileMappingMixin, Base):
    """Files referenced by user profiles"""

    __tablename__ = "user_files"
    __table_args__ = (
        Index("idx_user_files_owner_role", "owner_id", "role"),
    )

    SINGLETON_ROLES = frozenset({UserFileRole.PROFILE.value})
