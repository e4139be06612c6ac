"""
File references embedded in rich-text bodies

Bodies carry inline directives of the form::

    ::file[id=123 path=... fileName=... size=...]::

Only the integer id matters here; the remaining attributes are display hints.
"""
import re
import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional, Set

from sqlalchemy.orm import Session

from app.services.file_mapping_service import FileMappingService

logger = logging.getLogger(__name__)

# Captures whatever follows "id=" up to the next separator so malformed ids
# are seen (and skipped) instead of silently matching a numeric prefix.
FILE_MARKER_PATTERN = re.compile(r"::file\[\s*id=([^\s\]]*)")

# Largest value the integer id columns hold
MAX_FILE_ID = 2 ** 31 - 1


def extract_references(text: Optional[str]) -> Set[int]:
    """
    Collect the file ids referenced by a body

    Returns an empty set for None or blank input. Duplicate markers collapse
    to one id; markers whose id is not an integer, or is too large to be a
    stored file id, are skipped.
    """
    if text is None or not text.strip():
        return set()

    file_ids = set()
    for match in FILE_MARKER_PATTERN.finditer(text):
        raw = match.group(1)
        if not raw.isascii() or not raw.isdigit():
            logger.warning(f"Skipping file marker with malformed id: {raw!r}")
            continue
        # Length check first; int() refuses very long digit strings
        if len(raw) > len(str(MAX_FILE_ID)) or int(raw) > MAX_FILE_ID:
            logger.warning(f"Skipping file marker with out-of-range id: {raw[:32]}")
            continue
        file_ids.add(int(raw))

    return file_ids


def has_references(text: Optional[str]) -> bool:
    return bool(extract_references(text))


@dataclass(frozen=True)
class ReferenceDiff:
    to_add: Set[int] = field(default_factory=set)
    to_remove: Set[int] = field(default_factory=set)

    @property
    def is_empty(self) -> bool:
        return not self.to_add and not self.to_remove


def compute_diff(old_ids: Iterable[int], new_ids: Iterable[int]) -> ReferenceDiff:
    """to_add = new - old, to_remove = old - new"""
    old_set, new_set = set(old_ids), set(new_ids)
    return ReferenceDiff(to_add=new_set - old_set, to_remove=old_set - new_set)


class ContentReferenceSync:
    """Keeps an owner's body-attachment mappings in step with its body text"""

    def __init__(self, db: Session, mappings: FileMappingService, role):
        self.db = db
        self.mappings = mappings
        self.role = role

    def apply_diff(
        self,
        owner_id: int,
        to_add: Set[int],
        to_remove: Set[int],
        commit: bool = True,
        validate: bool = True
    ) -> ReferenceDiff:
        """
        Remove and add mappings for one owner

        to_add is validated before anything is written. Removal and addition
        share one local transaction and are rolled back together on failure.
        With commit=False the caller owns the transaction.
        """
        to_add, to_remove = set(to_add), set(to_remove)
        if not to_add and not to_remove:
            return ReferenceDiff()

        if validate and to_add:
            self.mappings.file_store.validate_exist(
                to_add, f"attach body files to {self.mappings.domain} {owner_id}"
            )

        try:
            removed = self.mappings.remove_mappings(owner_id, to_remove, role=self.role, commit=False)
            added = self.mappings.set_multi_mapping(
                owner_id, sorted(to_add), self.role, commit=False, validate=False
            )
            if commit:
                self.db.commit()
        except Exception:
            if commit:
                self.db.rollback()
                logger.error(f"Reference diff for {self.mappings.domain} {owner_id} rolled back")
            raise

        logger.info(
            f"{self.mappings.domain} {owner_id}: body references updated "
            f"(added={added}, removed={removed})"
        )
        return ReferenceDiff(to_add=to_add, to_remove=to_remove)

    def diff_for(self, owner_id: int, text: Optional[str]) -> ReferenceDiff:
        """Diff the body's references against the stored mappings"""
        old_ids = self.mappings.get_file_ids(owner_id, self.role)
        new_ids = extract_references(text)
        diff = compute_diff(old_ids, new_ids)

        logger.info(
            f"{self.mappings.domain} {owner_id}: reference diff old={len(old_ids)} new={len(new_ids)} "
            f"add={len(diff.to_add)} remove={len(diff.to_remove)}"
        )
        return diff

    def sync(self, owner_id: int, text: Optional[str]) -> ReferenceDiff:
        """Diff the body's references against stored mappings and apply"""
        diff = self.diff_for(owner_id, text)
        return self.apply_diff(owner_id, diff.to_add, diff.to_remove)
