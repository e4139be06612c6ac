"""
Usage collectors: one per owning domain

Each collector answers "which file ids does this domain reference right
now?". The registry is a fixed tuple built at startup; the cleanup pipeline
depends only on the `UsageCollector` protocol, never on concrete domains.
"""
import logging
from typing import Callable, Iterable, Protocol, Set, Tuple, Type, runtime_checkable

from sqlalchemy.orm import Session

from app.models.file_mapping import PostFile, UserFile
from app.services.file_mapping_service import FileMappingService

logger = logging.getLogger(__name__)


@runtime_checkable
class UsageCollector(Protocol):
    name: str

    def collect(self) -> Set[int]:
        """Deduplicated file ids; an empty set when nothing is referenced"""
        ...


class MappingTableCollector:
    """Collects the distinct file ids of one mapping table"""

    def __init__(self, name: str, model: Type, session_factory: Callable[[], Session]):
        self.name = name
        self.model = model
        self.session_factory = session_factory

    def collect(self) -> Set[int]:
        # Own session per call so collectors can run on worker threads
        db = self.session_factory()
        try:
            used = FileMappingService(db, self.model).collect_used_file_ids()
        finally:
            db.close()

        logger.info(f"Collector {self.name}: {len(used)} file ids in use")
        return used


class UsageCollectorRegistry:
    """Immutable list of collectors wired at startup"""

    def __init__(self, collectors: Iterable[UsageCollector]):
        self._collectors: Tuple[UsageCollector, ...] = tuple(collectors)

    @property
    def collectors(self) -> Tuple[UsageCollector, ...]:
        return self._collectors

    def __iter__(self):
        return iter(self._collectors)

    def __len__(self):
        return len(self._collectors)


def build_default_registry(session_factory: Callable[[], Session]) -> UsageCollectorRegistry:
    """Collectors for every domain that owns files"""
    return UsageCollectorRegistry([
        MappingTableCollector("post_files", PostFile, session_factory),
        MappingTableCollector("user_files", UserFile, session_factory),
    ])
