"""Exceptions raised by the file lifecycle services"""
from typing import Iterable, Optional


class FileLifecycleError(Exception):
    """Base class for file lifecycle errors"""


class ValidationError(FileLifecycleError):
    """Referenced file ids failed validation for an operation"""

    def __init__(self, operation: str, missing_ids: Iterable[int] = ()):
        self.operation = operation
        self.missing_ids = sorted(missing_ids)
        message = f"{operation}: referenced files do not exist"
        if self.missing_ids:
            message += f" (missing ids: {self.missing_ids})"
        FileLifecycleError.__init__(self, message)


class NotFoundError(FileLifecycleError):
    """Record or mapping absent on direct lookup"""

    def __init__(self, resource: str, identifier):
        self.resource = resource
        self.identifier = identifier
        FileLifecycleError.__init__(self, f"{resource} not found: {identifier}")


class MissingFileReferenceError(ValidationError, NotFoundError):
    """A mapping mutation referenced file ids that are not stored.

    Raised before any mapping row is written.
    """

    def __init__(self, operation: str, missing_ids: Iterable[int]):
        ValidationError.__init__(self, operation, missing_ids)
        self.resource = "file"
        self.identifier = self.missing_ids


class UploadRejectedError(FileLifecycleError):
    """Uploaded file failed name, extension or size checks"""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class RemoteStoreError(FileLifecycleError):
    """Blob store or CDN call failed"""

    def __init__(self, operation: str, detail: str, key: Optional[str] = None):
        self.operation = operation
        self.detail = detail
        self.key = key
        target = f" (key={key})" if key else ""
        super().__init__(f"{operation} failed{target}: {detail}")


class ConsistencyDriftError(FileLifecycleError):
    """A file row survives but its remote object is gone"""

    def __init__(self, file_id: int, storage_key: str):
        self.file_id = file_id
        self.storage_key = storage_key
        super().__init__(f"File {file_id} has no remote object at {storage_key}")
