"""Reference mapping management for owner/file join tables"""
from sqlalchemy import func
from sqlalchemy.orm import Session
from app.models.file_mapping import FileMappingMixin
from app.services.file_record_store import FileRecordStore
from typing import Iterable, List, Optional, Set, Type
import logging

logger = logging.getLogger(__name__)


class FileMappingService:
    """
    Mutations on one domain's mapping table

    Every method that introduces file ids validates them against the files
    table first; if any id is missing nothing is written.
    """

    model: Type[FileMappingMixin]

    def __init__(self, db: Session, model: Optional[Type[FileMappingMixin]] = None):
        self.db = db
        if model is not None:
            self.model = model
        self.file_store = FileRecordStore(db)

    @property
    def domain(self) -> str:
        return self.model.__tablename__

    def _role_value(self, role) -> str:
        return getattr(role, "value", role)

    def set_singleton_mapping(
        self,
        owner_id: int,
        file_id: int,
        role,
        commit: bool = True,
        validate: bool = True
    ):
        """
        Replace the owner's file for a singleton role

        Deletes any existing row for (owner_id, role) and inserts the new one.
        """
        role = self._role_value(role)
        if role not in self.model.SINGLETON_ROLES:
            raise ValueError(f"{role} is not a singleton role for {self.domain}")

        if validate:
            self.file_store.validate_exist([file_id], f"set {role} file on {self.domain} {owner_id}")

        removed = self.db.query(self.model).filter(
            self.model.owner_id == owner_id,
            self.model.role == role
        ).delete(synchronize_session=False)

        mapping = self.model(owner_id=owner_id, file_id=file_id, role=role)
        self.db.add(mapping)

        if commit:
            self.db.commit()

        logger.info(
            f"{self.domain}: {role} mapping set for owner {owner_id} -> file {file_id} "
            f"(replaced {removed})"
        )
        return mapping

    def set_multi_mapping(
        self,
        owner_id: int,
        file_ids: Iterable[int],
        role,
        commit: bool = True,
        validate: bool = True
    ) -> int:
        """
        Insert one row per file id

        No deduplication against existing rows; callers pass only ids that
        are not mapped yet. New rows are ordered after the owner's existing
        rows for the role.
        """
        role = self._role_value(role)
        ids = list(file_ids)
        if not ids:
            logger.info(f"{self.domain}: no {role} files to map for owner {owner_id}")
            return 0

        if validate:
            self.file_store.validate_exist(ids, f"add {role} files to {self.domain} {owner_id}")

        start = self._next_display_order(owner_id, role)
        self.db.add_all([
            self.model(owner_id=owner_id, file_id=file_id, role=role, display_order=order)
            for order, file_id in enumerate(ids, start=start)
        ])

        if commit:
            self.db.commit()

        logger.info(f"{self.domain}: mapped {len(ids)} {role} files to owner {owner_id}")
        return len(ids)

    def _next_display_order(self, owner_id: int, role: str) -> int:
        current = self.db.query(func.max(self.model.display_order)).filter(
            self.model.owner_id == owner_id,
            self.model.role == role
        ).scalar()
        return 0 if current is None else current + 1

    def remove_mappings(self, owner_id: int, file_ids: Iterable[int], role=None, commit: bool = True) -> int:
        """Delete the owner's rows for the given file ids"""
        ids = list(set(file_ids))
        if not ids:
            return 0

        query = self.db.query(self.model).filter(
            self.model.owner_id == owner_id,
            self.model.file_id.in_(ids)
        )
        if role is not None:
            query = query.filter(self.model.role == self._role_value(role))

        removed = query.delete(synchronize_session=False)

        if commit:
            self.db.commit()

        logger.info(f"{self.domain}: removed {removed} mappings from owner {owner_id}")
        return removed

    def remove_role(self, owner_id: int, role, commit: bool = True) -> int:
        """Delete every row the owner has under a role"""
        removed = self.db.query(self.model).filter(
            self.model.owner_id == owner_id,
            self.model.role == self._role_value(role)
        ).delete(synchronize_session=False)

        if commit:
            self.db.commit()
        return removed

    def clear_all_mappings(self, owner_id: int, commit: bool = True) -> int:
        """Delete every mapping of an owner that is being permanently deleted"""
        removed = self.db.query(self.model).filter(
            self.model.owner_id == owner_id
        ).delete(synchronize_session=False)

        if commit:
            self.db.commit()

        logger.info(f"{self.domain}: cleared {removed} mappings of owner {owner_id}")
        return removed

    def get_file_ids(self, owner_id: int, role=None) -> Set[int]:
        query = self.db.query(self.model.file_id).filter(self.model.owner_id == owner_id)
        if role is not None:
            query = query.filter(self.model.role == self._role_value(role))
        return {row.file_id for row in query.all()}

    def get_singleton_file_id(self, owner_id: int, role) -> Optional[int]:
        row = self.db.query(self.model.file_id).filter(
            self.model.owner_id == owner_id,
            self.model.role == self._role_value(role)
        ).first()
        return row.file_id if row else None

    def get_mappings(self, owner_id: int) -> List[FileMappingMixin]:
        return (
            self.db.query(self.model)
            .filter(self.model.owner_id == owner_id)
            .order_by(self.model.role, self.model.display_order, self.model.id)
            .all()
        )

    def collect_used_file_ids(self) -> Set[int]:
        """Every file id referenced by this domain"""
        rows = self.db.query(self.model.file_id).distinct().all()
        return {row.file_id for row in rows}
