"""Multimedia service: categories, videos, and annotations.

Every operation is a thin composition of repository calls:

- Lookups attach the owning user to each video (and the author to each
  annotation) before returning models.
- Writes go through a Changeset; a rejected changeset is returned as a failed
  Result and the store is not written.
- ``get_video`` / ``get_user_video`` raise NotFoundError. A video owned by
  someone else is reported exactly like a missing one.

Example:
    >>> service = MultimediaService(repository)
    >>> result = await service.create_video(user, {"url": "...", "title": "...", "description": "..."})
    >>> if result.ok:
    ...     await service.annotate_video(user, result.value.id, {"body": "nice", "at": 1200})
"""

from typing import Any, List, Mapping, Optional

from reelnote.common.string_utils import slugify
from reelnote.core.db.models import Annotation, Category, User, Video
from reelnote.core.db.repository import MultimediaRepository

from .base import BaseService, NotFoundError
from .changeset import Changeset, Result
from .schemas import AnnotationInput, VideoInput

ANNOTATION_LIMIT = 500


class MultimediaService(BaseService):
    """Category, video and annotation operations over a MultimediaRepository."""

    def __init__(self, repository: MultimediaRepository):
        super().__init__(repository)

    # ==================== Categories ====================

    async def create_category(self, name: str) -> Category:
        """
        Return the category with this exact name, creating it if missing.

        The lookup and insert are separate statements. Two callers racing on
        a new name can both miss the lookup; the loser's insert then fails
        on the unique index with DuplicateRecordError.
        """
        row = await self.repository.get_by("categories", name=name)
        if row is not None:
            self.logger.debug("category_found", category_id=row["id"], name=name)
            return Category.from_row(row)

        row = await self.repository.insert("categories", {"name": name})
        self.logger.info("category_created", category_id=row["id"], name=name)
        return Category.from_row(row)

    async def list_alphabetical_categories(self) -> List[Category]:
        """All categories ordered by name."""
        rows = await self.repository.query("categories").order_by("name").execute()
        return [Category.from_row(row) for row in rows]

    # ==================== Videos ====================

    async def list_videos(self) -> List[Video]:
        """Every video, each with its owner attached."""
        rows = await self.repository.query("videos").execute()
        return await self._load_videos(rows)

    async def list_user_videos(self, user: User) -> List[Video]:
        """Videos owned by ``user``, each with its owner attached."""
        rows = await self.repository.query("videos").where("user_id", user.id).execute()
        return await self._load_videos(rows)

    async def try_get_video(self, video_id: Any) -> Optional[Video]:
        """Video by id with owner attached, or None."""
        row = await self.repository.get_by("videos", id=video_id)
        if row is None:
            return None
        return (await self._load_videos([row]))[0]

    async def try_get_user_video(self, user: User, video_id: Any) -> Optional[Video]:
        """Video by id if owned by ``user``, else None."""
        row = await self.repository.get_by("videos", id=video_id, user_id=user.id)
        if row is None:
            return None
        return (await self._load_videos([row]))[0]

    async def get_video(self, video_id: Any) -> Video:
        """
        Video by id with owner attached.

        Raises:
            NotFoundError: If no video has that id
        """
        video = await self.try_get_video(video_id)
        if video is None:
            raise NotFoundError(f"Video not found: {video_id}", "video", video_id)
        return video

    async def get_user_video(self, user: User, video_id: Any) -> Video:
        """
        Video by id, restricted to videos owned by ``user``.

        Raises:
            NotFoundError: If the video is missing or owned by another user
        """
        video = await self.try_get_user_video(user, video_id)
        if video is None:
            raise NotFoundError(f"Video not found: {video_id}", "video", video_id)
        return video

    def change_video(self, user: User, video: Video) -> Changeset:
        """Changeset over ``video`` with no input applied and the owner pinned.

        Used to pre-populate an edit form; never touches the store.
        """
        return self._video_changeset(video.to_row(), {}).put_assoc("user", user)

    async def create_video(self, user: User, attrs: Optional[Mapping[Any, Any]] = None) -> Result[Video]:
        """
        Validate ``attrs`` and insert a video owned by ``user``.

        Any owner in ``attrs`` is ignored. On validation failure the store is
        not written and the failed Result carries the changeset.
        """
        changeset = self._video_changeset({}, attrs).put_assoc("user", user)
        changeset.action = "insert"
        await self._check_category(changeset)

        if not changeset.valid:
            self.logger.info("video_create_rejected", user_id=user.id, errors=changeset.errors)
            return Result.failure(changeset)

        row = await self.repository.insert("videos", changeset.apply_changes())
        video = (await self._load_videos([row]))[0]

        self.logger.info("video_created", video_id=video.id, user_id=user.id, title=video.title)
        return Result.success(video)

    async def update_video(self, video: Video, attrs: Optional[Mapping[Any, Any]]) -> Result[Video]:
        """
        Validate ``attrs`` merged onto ``video`` and persist the changes.

        On validation failure the stored row is left unchanged. Input that
        changes nothing returns ``video`` without writing.
        """
        changeset = self._video_changeset(video.to_row(), attrs)
        changeset.action = "update"
        await self._check_category(changeset)

        if not changeset.valid:
            self.logger.info("video_update_rejected", video_id=video.id, errors=changeset.errors)
            return Result.failure(changeset)

        if not changeset.changes:
            self.logger.debug("video_update_unchanged", video_id=video.id)
            return Result.success(video)

        row = await self.repository.update("videos", video.id, changeset.changes)
        updated = (await self._load_videos([row]))[0]

        self.logger.info("video_updated", video_id=video.id, fields=sorted(changeset.changes))
        return Result.success(updated)

    async def delete_video(self, video: Video) -> Result[Video]:
        """
        Delete ``video`` and return its last stored state.

        Annotations on the video are removed by the schema's cascade.

        Raises:
            RecordNotFoundError: If the row was already deleted
            QueryError: If the store refuses the delete
        """
        row = await self.repository.delete("videos", video.id)
        self.logger.info("video_deleted", video_id=video.id)
        return Result.success(Video.from_row(row, user=video.user))

    # ==================== Annotations ====================

    async def annotate_video(
        self, user: User, video_id: Any, attrs: Optional[Mapping[Any, Any]]
    ) -> Result[Annotation]:
        """
        Validate ``attrs`` and insert an annotation by ``user`` on ``video_id``.

        The video id is not checked here; a dangling id is rejected by the
        store's foreign key and surfaces as QueryError.
        """
        changeset = Changeset.cast({"video_id": video_id}, attrs, AnnotationInput)
        changeset.action = "insert"
        changeset.put_assoc("user", user)

        if not changeset.valid:
            self.logger.info(
                "annotation_rejected",
                video_id=video_id,
                user_id=user.id,
                errors=changeset.errors,
            )
            return Result.failure(changeset)

        row = await self.repository.insert("annotations", changeset.apply_changes())
        row = await self.repository.preload_users(row)

        self.logger.info("annotation_created", annotation_id=row["id"], video_id=video_id, at=row["at"])
        return Result.success(Annotation.from_row(row))

    async def list_annotations(self, video: Video) -> List[Annotation]:
        """Up to 500 annotations of ``video`` ordered by (at, id), authors attached."""
        rows = await (
            self.repository.query("annotations")
            .where("video_id", video.id)
            .order_by("at")
            .order_by("id")
            .limit(ANNOTATION_LIMIT)
            .execute()
        )
        rows = await self.repository.preload_users(rows)
        return [Annotation.from_row(row) for row in rows]

    # ==================== Internal helpers ====================

    def _video_changeset(self, data: Mapping[str, Any], attrs: Optional[Mapping[Any, Any]]) -> Changeset:
        changeset = Changeset.cast(data, attrs, VideoInput)
        if "title" in changeset.changes:
            changeset.put_change("slug", slugify(changeset.changes["title"]))
        return changeset

    async def _check_category(self, changeset: Changeset) -> None:
        """Reject a ``category_id`` that references no category."""
        category_id = changeset.changes.get("category_id")
        if category_id is None:
            return
        if await self.repository.get_by("categories", id=category_id) is None:
            changeset.add_error("category", "does not exist")

    async def _load_videos(self, rows: List[dict]) -> List[Video]:
        rows = await self.repository.preload_users(rows)
        return [Video.from_row(row) for row in rows]
