"""Database models"""
from app.models.file import FileRecord
from app.models.file_mapping import PostFile, PostFileRole, UserFile, UserFileRole

__all__ = [
    "FileRecord",
    "PostFile",
    "PostFileRole",
    "UserFile",
    "UserFileRole",
]
