"""Upload validation and storage key layout"""
import os
import uuid
from datetime import datetime
from typing import Dict, Optional, Tuple

from app.config import settings
from app.core.exceptions import UploadRejectedError

MAX_FILENAME_LENGTH = 255

# category -> (allowed extensions, storage directory)
FILE_CATEGORIES: Dict[str, Tuple[frozenset, str]] = {
    "image": (frozenset({"jpg", "jpeg", "png", "gif", "webp", "svg", "bmp"}), "public/images"),
    "video": (frozenset({"mp4", "mpeg", "mov", "avi", "flv", "webm", "mkv"}), "public/videos"),
    "document": (frozenset({"pdf", "doc", "docx", "xls", "xlsx", "ppt", "pptx", "txt", "csv"}), "public/documents"),
    "audio": (frozenset({"mp3", "wav", "ogg", "flac", "aac", "m4a"}), "public/audios"),
    "archive": (frozenset({"zip", "rar", "7z", "tar", "gz"}), "public/archives"),
}


def max_size_for(category: str) -> int:
    return {
        "image": settings.MAX_IMAGE_SIZE,
        "video": settings.MAX_VIDEO_SIZE,
        "document": settings.MAX_DOCUMENT_SIZE,
        "audio": settings.MAX_AUDIO_SIZE,
        "archive": settings.MAX_ARCHIVE_SIZE,
    }[category]


def get_file_extension(filename: str) -> str:
    """Lower-case extension without the dot, or "" """
    return os.path.splitext(filename)[1].lower().lstrip(".")


def resolve_category(extension: str) -> Optional[str]:
    for category, (extensions, _) in FILE_CATEGORIES.items():
        if extension in extensions:
            return category
    return None


def validate_upload(filename: Optional[str], size: int) -> str:
    """
    Check name, extension and size of an upload

    Returns:
        The file category
    Raises:
        UploadRejectedError
    """
    if size is None or size <= 0:
        raise UploadRejectedError("File is empty")

    if not filename or not filename.strip():
        raise UploadRejectedError("File name is missing")
    if len(filename) > MAX_FILENAME_LENGTH:
        raise UploadRejectedError(f"File name is too long (max {MAX_FILENAME_LENGTH} characters)")
    if ".." in filename or "/" in filename or "\\" in filename:
        raise UploadRejectedError("File name contains forbidden characters")

    extension = get_file_extension(filename)
    if not extension:
        raise UploadRejectedError("File extension is missing")

    category = resolve_category(extension)
    if category is None:
        raise UploadRejectedError(f"File type not allowed: .{extension}")

    max_size = max_size_for(category)
    if size > max_size:
        raise UploadRejectedError(
            f"{category.capitalize()} files may be at most {max_size // 1024 // 1024}MB "
            f"(got {size / 1024 / 1024:.2f}MB)"
        )

    return category


def build_storage_key(category: str, filename: str, now: datetime) -> str:
    """<category dir>/<yyyy>/<MM>/<dd>/<uuid>.<ext>"""
    base_path = FILE_CATEGORIES[category][1]
    extension = get_file_extension(filename)
    name = f"{uuid.uuid4()}.{extension}" if extension else str(uuid.uuid4())
    return f"{base_path}/{now:%Y/%m/%d}/{name}"
