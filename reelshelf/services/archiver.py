"""Archive engine - moves videos in and out of a theme's archive folder."""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..core.errors import ConflictError, ReelshelfError, ValidationError
from ..core.models import ItemResult, MoveReport, Theme, VideoEntry
from ..core.paths import basename, join_path, normalize_path, parent_of
from ..core.protocols import ProgressReporter
from ..storage.registry import StoreRegistry
from .resolver import VideoStatusResolver


logger = logging.getLogger(__name__)

NOT_ELIGIBLE = "not found or not eligible"


def unique_paths(paths: Iterable[str]) -> list[str]:
    """Normalize request paths and drop repeats, keeping first occurrences."""
    seen: dict[str, None] = {}
    for path in paths:
        seen.setdefault(normalize_path(path), None)
    return list(seen)


class ArchiveEngine:
    """Archives (publishes) and unarchives videos of a theme.

    A batch resolves the theme inventory once, then processes the requested
    paths one at a time in request order. A failing item is recorded in the
    report and never stops the rest of the batch.
    """

    def __init__(
        self,
        resolver: VideoStatusResolver,
        registry: StoreRegistry,
        progress: Optional[ProgressReporter] = None,
    ):
        """Initialize the engine.

        Args:
            resolver: Resolver used to take the inventory.
            registry: Resource Store registry.
            progress: Optional reporter advanced once per requested path.
        """
        self._resolver = resolver
        self._registry = registry
        self._progress = progress

    # --- Single video ---

    def archive_video(self, theme: Theme, library_id: int, path: str) -> str:
        """Move one video into the archive folder next to it.

        Returns:
            The video's new path.
        """
        store = self._registry.get(library_id)
        path = normalize_path(path)
        archive_dir = join_path(parent_of(path), theme.archive_folder)

        try:
            info = store.get_info(archive_dir)
        except ReelshelfError:
            logger.info(f"Creating archive folder {archive_dir}")
            store.create_folder(archive_dir)
        else:
            if not info.is_folder:
                raise ConflictError(f"Archive path is not a folder: {archive_dir}", {"path": archive_dir})

        target = join_path(archive_dir, basename(path))
        store.move(path, target)
        logger.debug(f"Archived {path} -> {target}")
        return target

    def unarchive_video(self, theme: Theme, library_id: int, path: str) -> str:
        """Move one video out of its archive folder, back into the root.

        Returns:
            The video's new path.

        Raises:
            ValidationError: The video is not inside the theme's archive folder.
        """
        path = normalize_path(path)
        archive_dir = parent_of(path)
        if basename(archive_dir) != theme.archive_folder:
            raise ValidationError(
                f"{path} is not inside archive folder '{theme.archive_folder}'",
                {"path": path},
            )

        store = self._registry.get(library_id)
        target = join_path(parent_of(archive_dir), basename(path))
        store.move(path, target)
        logger.debug(f"Unarchived {path} -> {target}")
        return target

    # --- Batches ---

    def archive(self, theme: Theme, paths: Iterable[str]) -> MoveReport:
        """Archive the requested unpublished videos.

        Result entries carry normalized library paths (``videos/food/a.mp4/``
        is reported as ``/videos/food/a.mp4``).
        """
        return self._run_batch(theme, paths, "archive")

    def unarchive(self, theme: Theme, paths: Iterable[str]) -> MoveReport:
        """Unarchive the requested published videos.

        Result entries carry normalized library paths, as for ``archive``.
        """
        return self._run_batch(theme, paths, "unarchive")

    def _run_batch(self, theme: Theme, paths: Iterable[str], operation: str) -> MoveReport:
        requested = [normalize_path(path) for path in paths]
        want_published = operation == "unarchive"

        # The same folder path may exist in several libraries of one theme
        eligible: dict[str, list[VideoEntry]] = {}
        for video in self._resolver.resolve(theme):
            if video.is_published == want_published:
                eligible.setdefault(video.full_path, []).append(video)

        move = self.unarchive_video if want_published else self.archive_video
        results: list[ItemResult] = []
        seen: set[str] = set()

        if self._progress:
            self._progress.start_phase(f"{operation.capitalize()} ({theme.name})", len(requested))
        try:
            for path in requested:
                videos = [] if path in seen else eligible.get(path, [])
                seen.add(path)
                if not videos:
                    results.append(ItemResult(path=path, success=False, message=NOT_ELIGIBLE, skipped=True))
                for video in videos:
                    results.append(self._attempt(move, theme, video, operation))
                if self._progress:
                    self._progress.advance_phase()
        finally:
            if self._progress:
                self._progress.end_phase()

        report = MoveReport(operation=operation, total=len(requested), results=tuple(results))
        logger.info(
            f"Theme {theme.id} {operation}: {report.succeeded}/{report.total} moved, "
            f"{report.failed} failed ({report.skipped} not eligible)"
        )
        return report

    @staticmethod
    def _attempt(move, theme: Theme, video: VideoEntry, operation: str) -> ItemResult:
        path = video.full_path
        try:
            move(theme, video.library_id, path)
        except ReelshelfError as e:
            logger.warning(f"{operation} failed for {path}: {e.message}")
            return ItemResult(path=path, success=False, message=e.message)
        except Exception as e:
            logger.exception(f"Unexpected error during {operation} of {path}")
            return ItemResult(path=path, success=False, message=str(e))
        return ItemResult(path=path, success=True)
