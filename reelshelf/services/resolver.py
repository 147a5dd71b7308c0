"""Video status resolution.

A video's publish state is derived from where it sits and nothing else:
directly inside a theme resource root means unpublished, inside the root's
archive folder means published.
"""
from __future__ import annotations

import logging
from typing import Iterable

from ..core.errors import ReelshelfError
from ..core.models import ResourceInfo, ResourceRoot, Theme, VideoEntry
from ..core.paths import basename, join_path, normalize_path, parent_of
from ..storage.registry import StoreRegistry


logger = logging.getLogger(__name__)


def is_published_path(full_path: str, archive_folder: str) -> bool:
    """Whether a video path sits directly inside an archive folder."""
    return basename(parent_of(full_path)) == archive_folder


class VideoStatusResolver:
    """Lists the videos of a theme with their derived publish state.

    Read-only: never writes to any Resource Store.
    """

    def __init__(self, registry: StoreRegistry):
        self._registry = registry

    def resolve(self, theme: Theme) -> list[VideoEntry]:
        """Resolve every video under the theme's resource roots.

        Roots are visited in declaration order. Within a root, unpublished
        videos come first, then the published ones from the archive folder.
        A root whose folder cannot be listed is skipped with a warning.
        """
        videos: list[VideoEntry] = []
        for root in theme.resource_roots:
            videos.extend(self.resolve_root(root, theme.archive_folder))
        logger.debug(f"Theme {theme.id}: resolved {len(videos)} videos from {len(theme.resource_roots)} roots")
        return videos

    def resolve_root(self, root: ResourceRoot, archive_folder: str) -> list[VideoEntry]:
        folder = normalize_path(root.folder_path)
        try:
            store = self._registry.get(root.library_id)
            entries = store.list(folder)
        except ReelshelfError as e:
            logger.warning(f"Skipping resource root {root.library_id}:{folder}: {e.message}")
            return []

        videos = list(self._to_videos(root.library_id, folder, entries, published=False))

        archive_path = join_path(folder, archive_folder)
        try:
            archived = store.list(archive_path)
        except ReelshelfError as e:
            # Archive folder not created yet
            logger.debug(f"No archive folder at {root.library_id}:{archive_path}: {e.message}")
            archived = []
        videos.extend(self._to_videos(root.library_id, archive_path, archived, published=True))
        return videos

    @staticmethod
    def _to_videos(
        library_id: int,
        directory: str,
        entries: Iterable[ResourceInfo],
        published: bool,
    ) -> Iterable[VideoEntry]:
        for info in sorted((e for e in entries if e.is_video), key=lambda e: e.name):
            yield VideoEntry(
                name=info.name,
                library_id=library_id,
                library_path=directory,
                is_published=published,
                size=info.size,
                modified_time=info.modified_time,
            )
