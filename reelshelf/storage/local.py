"""Resource Store backed by a local directory."""
from __future__ import annotations

import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import Iterable

from ..core.errors import BackendError, ConflictError, NotFoundError, ValidationError
from ..core.models import ResourceInfo, ResourceType
from ..core.paths import extension, join_path, normalize_path, parent_of, validate_segment
from .base import BaseResourceStore, classify


logger = logging.getLogger(__name__)


class LocalResourceStore(BaseResourceStore):
    """Library rooted at a directory on this machine.

    Library path ``/videos/food`` maps to ``<base_path>/videos/food``.
    Nothing outside ``base_path`` is ever touched.
    """

    def __init__(self, base_path: Path, allowed_extensions: Iterable[str] = ()):
        """Initialize the store.

        Args:
            base_path: Root directory of the library.
            allowed_extensions: Optional extension whitelist for listings.
        """
        super().__init__(allowed_extensions)
        self._base_path = Path(base_path).expanduser().resolve()

    @property
    def base_path(self) -> Path:
        return self._base_path

    def resolve(self, path: str) -> Path:
        """Map a library path to a host path inside ``base_path``."""
        relative = normalize_path(path).lstrip("/")
        full = (self._base_path / relative).resolve()
        if full != self._base_path and not full.is_relative_to(self._base_path):
            raise ValidationError(f"Path escapes library root: {path}")
        return full

    def _info(self, library_path: str, host_path: Path) -> ResourceInfo:
        stat = host_path.stat()
        name = host_path.name if library_path != "/" else ""
        if host_path.is_dir():
            return ResourceInfo(
                name=name,
                path=library_path,
                type=ResourceType.FOLDER,
                modified_time=datetime.fromtimestamp(stat.st_mtime),
            )
        return ResourceInfo(
            name=name,
            path=library_path,
            type=classify(name),
            size=stat.st_size,
            modified_time=datetime.fromtimestamp(stat.st_mtime),
            extension=extension(name) or None,
        )

    def check_connection(self) -> bool:
        return self._base_path.is_dir()

    def list(self, path: str) -> list[ResourceInfo]:
        directory = self.resolve(path)
        if not directory.is_dir():
            raise NotFoundError(f"Folder not found: {path}", {"path": path})

        entries = []
        try:
            children = list(directory.iterdir())
        except OSError as e:
            raise BackendError(f"Cannot list {path}: {e}", {"path": path}) from e

        for child in children:
            child_path = join_path(path, child.name)
            try:
                entries.append(self._info(child_path, child))
            except OSError as e:
                # Vanished or unreadable between iterdir() and stat()
                logger.warning(f"Cannot stat {child}: {e}")
        return self._finish_listing(entries)

    def get_info(self, path: str) -> ResourceInfo:
        host_path = self.resolve(path)
        if not host_path.exists():
            raise NotFoundError(f"Path not found: {path}", {"path": path})
        try:
            return self._info(normalize_path(path), host_path)
        except OSError as e:
            raise BackendError(f"Cannot stat {path}: {e}", {"path": path}) from e

    def create_folder(self, path: str) -> None:
        host_path = self.resolve(path)
        try:
            host_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise BackendError(f"Cannot create folder {path}: {e}", {"path": path}) from e
        logger.debug(f"Created folder {path}")

    def move(self, source_path: str, target_path: str) -> None:
        source = self.resolve(source_path)
        target = self.resolve(target_path)

        if not source.exists():
            raise NotFoundError(f"Source not found: {source_path}", {"path": source_path})
        if target.exists():
            raise ConflictError(f"Target already exists: {target_path}", {"path": target_path})

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(source), str(target))
        except OSError as e:
            raise BackendError(
                f"Cannot move {source_path} -> {target_path}: {e}",
                {"source": source_path, "target": target_path},
            ) from e
        logger.debug(f"Moved {source_path} -> {target_path}")

    def rename(self, path: str, new_name: str) -> str:
        new_name = validate_segment(new_name, "new name")
        target_path = join_path(parent_of(path), new_name)
        self.move(path, target_path)
        return target_path
