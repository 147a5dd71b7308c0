"""Batch publish orchestration.

Publishing is split in two steps. ``batch_publish`` only fans a set of
videos out to upload tasks, one per (account, video). Uploads run elsewhere;
``complete_tasks`` is called with their outcome and archives the videos of
the tasks that succeeded.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..core.errors import NotFoundError, ReelshelfError, ValidationError
from ..core.models import (
    BatchPublishResult,
    CompletionResult,
    PublishError,
    PublishRequest,
    PublishedTask,
    TaskRequest,
    TaskStatus,
    Theme,
    UploadTask,
)
from ..core.paths import basename, join_path, parent_of, stem
from ..core.protocols import ProgressReporter, TaskSink
from ..storage.registry import StoreRegistry
from .archiver import ArchiveEngine, unique_paths
from .resolver import VideoStatusResolver, is_published_path


logger = logging.getLogger(__name__)


class BatchPublisher:
    """Creates upload tasks for accounts x videos and archives on success."""

    def __init__(
        self,
        resolver: VideoStatusResolver,
        task_sink: TaskSink,
        archiver: ArchiveEngine,
        registry: StoreRegistry,
        progress: Optional[ProgressReporter] = None,
    ):
        self._resolver = resolver
        self._tasks = task_sink
        self._archiver = archiver
        self._registry = registry
        self._progress = progress

    def batch_publish(self, theme: Theme, request: PublishRequest) -> BatchPublishResult:
        """Create one upload task per (account, video).

        Published and unpublished videos are both eligible. Tasks are created
        account by account, videos in inventory order.

        Raises:
            ValidationError: No accounts, no videos, or no requested path
                matched a video of the theme.
        """
        if not request.account_ids:
            raise ValidationError("No accounts specified")
        if not request.video_paths:
            raise ValidationError("No videos specified")

        wanted = set(unique_paths(request.video_paths))
        videos = [v for v in self._resolver.resolve(theme) if v.full_path in wanted]
        if not videos:
            raise ValidationError(
                "No videos matched the requested paths",
                {"video_paths": list(request.video_paths)},
            )

        tags = ",".join(request.tags)
        tasks: list[PublishedTask] = []
        errors: list[PublishError] = []

        if self._progress:
            self._progress.start_phase(f"Creating tasks ({theme.name})", len(request.account_ids) * len(videos))
        try:
            for account_id in request.account_ids:
                for video in videos:
                    task_request = TaskRequest(
                        account_id=account_id,
                        library_id=video.library_id,
                        resource_path=video.full_path,
                        title=request.title or stem(video.name),
                        tags=tags,
                        scheduled_at=request.scheduled_at,
                    )
                    try:
                        task = self._tasks.create_task(task_request)
                    except ReelshelfError as e:
                        logger.warning(f"Task creation failed for account {account_id}, {video.full_path}: {e.message}")
                        errors.append(PublishError(account_id, video.full_path, e.message))
                    else:
                        tasks.append(PublishedTask(
                            task_id=task.id,
                            account_id=account_id,
                            video_name=video.name,
                            video_path=video.full_path,
                            library_id=video.library_id,
                            auto_archive=request.auto_archive,
                        ))
                    if self._progress:
                        self._progress.advance_phase()
        finally:
            if self._progress:
                self._progress.end_phase()

        logger.info(
            f"Theme {theme.id}: created {len(tasks)} upload tasks for "
            f"{len(request.account_ids)} accounts x {len(videos)} videos"
        )
        return BatchPublishResult(
            tasks=tuple(tasks),
            account_count=len(request.account_ids),
            video_count=len(videos),
            errors=tuple(errors),
        )

    def complete_tasks(
        self,
        theme: Theme,
        task_ids: Iterable[int],
        succeeded: bool = True,
        auto_archive: bool = True,
    ) -> list[CompletionResult]:
        """Record upload outcomes and archive the videos of successful uploads.

        Each task is handled on its own; a failure is reported in its result
        and the remaining tasks are still processed.
        """
        status = TaskStatus.SUCCEEDED if succeeded else TaskStatus.FAILED
        results = []
        for task_id in task_ids:
            try:
                task = self._tasks.get_task(task_id)
                if task is None:
                    raise NotFoundError(f"Upload task {task_id} not found", {"task_id": task_id})
                self._tasks.update_status(task_id, status)

                if not succeeded:
                    results.append(CompletionResult(task_id, success=False, message="upload failed"))
                elif auto_archive:
                    archived, message = self._archive_published(theme, task)
                    results.append(CompletionResult(task_id, success=True, archived=archived, message=message))
                else:
                    results.append(CompletionResult(task_id, success=True))
            except ReelshelfError as e:
                logger.warning(f"Completing task {task_id} failed: {e.message}")
                results.append(CompletionResult(task_id, success=False, message=e.message))

        archived_count = sum(1 for r in results if r.archived)
        logger.info(f"Theme {theme.id}: completed {len(results)} tasks, archived {archived_count} videos")
        return results

    def _archive_published(self, theme: Theme, task: UploadTask) -> tuple[bool, Optional[str]]:
        path = task.resource_path
        if is_published_path(path, theme.archive_folder):
            return False, "already archived"

        try:
            self._archiver.archive_video(theme, task.library_id, path)
        except NotFoundError:
            # Another task for the same video may have archived it already
            target = join_path(join_path(parent_of(path), theme.archive_folder), basename(path))
            try:
                self._registry.get(task.library_id).get_info(target)
            except NotFoundError:
                raise NotFoundError(f"Video not found: {path}", {"path": path}) from None
            return False, "already archived"
        return True, None
