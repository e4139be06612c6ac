"""File references held by blog posts"""
from sqlalchemy.orm import Session
from app.models.file_mapping import PostFile, PostFileRole
from app.services.file_mapping_service import FileMappingService
from app.services.content_references import ContentReferenceSync, ReferenceDiff, extract_references
from typing import Optional, Set
import logging

logger = logging.getLogger(__name__)


class PostFileService(FileMappingService):
    """
    Hooks the post service calls when a post's files change

    A post owns at most one THUMBNAIL file and any number of CONTENT files,
    the latter derived from the markers in its markdown body.
    """

    model = PostFile

    def __init__(self, db: Session):
        super().__init__(db)
        self.content_sync = ContentReferenceSync(db, self, PostFileRole.CONTENT)

    def attach_on_create(
        self,
        post_id: int,
        content: Optional[str],
        thumbnail_file_id: Optional[int] = None
    ) -> Set[int]:
        """
        Register the files of a newly created post

        Every referenced id is validated first; the thumbnail and body
        mappings are then written in one commit.

        Returns:
            The body file ids that were mapped
        """
        file_ids = extract_references(content)
        referenced = set(file_ids)
        if thumbnail_file_id is not None:
            referenced.add(thumbnail_file_id)
        self.file_store.validate_exist(referenced, f"create post {post_id}")

        try:
            if thumbnail_file_id is not None:
                self.set_singleton_mapping(
                    post_id, thumbnail_file_id, PostFileRole.THUMBNAIL, commit=False, validate=False
                )
            if file_ids:
                self.set_multi_mapping(
                    post_id, sorted(file_ids), PostFileRole.CONTENT, commit=False, validate=False
                )
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.error(f"Post {post_id}: file mappings rolled back on create")
            raise

        if not file_ids:
            logger.info(f"Post {post_id} created without body file references")
        return file_ids

    def sync_on_update(
        self,
        post_id: int,
        content: Optional[str],
        thumbnail_file_id: Optional[int] = None,
        remove_thumbnail: bool = False
    ) -> ReferenceDiff:
        """
        Bring a post's mappings in line with an edit

        A new thumbnail id replaces the old one; remove_thumbnail drops it.
        Body references are diffed against the stored CONTENT rows. The new
        thumbnail and added body ids are validated before anything is
        written, and all changes land in one commit.
        """
        diff = self.content_sync.diff_for(post_id, content)

        referenced = set(diff.to_add)
        if thumbnail_file_id is not None:
            referenced.add(thumbnail_file_id)
        self.file_store.validate_exist(referenced, f"update post {post_id}")

        try:
            if thumbnail_file_id is not None:
                self.set_singleton_mapping(
                    post_id, thumbnail_file_id, PostFileRole.THUMBNAIL, commit=False, validate=False
                )
            elif remove_thumbnail:
                removed = self.remove_role(post_id, PostFileRole.THUMBNAIL, commit=False)
                logger.info(f"Post {post_id}: thumbnail removed ({removed} mappings)")

            self.content_sync.apply_diff(
                post_id, diff.to_add, diff.to_remove, commit=False, validate=False
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.error(f"Post {post_id}: file mappings rolled back on update")
            raise

        return diff

    def purge(self, post_id: int) -> int:
        """Drop every mapping of a permanently deleted post"""
        return self.clear_all_mappings(post_id)

    def get_thumbnail_file_id(self, post_id: int) -> Optional[int]:
        return self.get_singleton_file_id(post_id, PostFileRole.THUMBNAIL)

    def get_content_file_ids(self, post_id: int) -> Set[int]:
        return self.get_file_ids(post_id, PostFileRole.CONTENT)
