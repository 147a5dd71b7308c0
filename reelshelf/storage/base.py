"""Shared behaviour for Resource Store backends."""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Iterable

from ..core.models import ResourceInfo, ResourceType
from ..core.paths import extension


logger = logging.getLogger(__name__)


VIDEO_EXTENSIONS = frozenset({
    ".mp4", ".avi", ".mov", ".mkv", ".flv", ".wmv", ".webm", ".m4v", ".mpg", ".mpeg",
})
IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp", ".svg", ".ico"})
AUDIO_EXTENSIONS = frozenset({".mp3", ".wav", ".flac", ".aac", ".ogg", ".wma", ".m4a"})


def classify(name: str) -> ResourceType:
    """Classify a file by extension."""
    ext = extension(name)
    if ext in VIDEO_EXTENSIONS:
        return ResourceType.VIDEO
    if ext in IMAGE_EXTENSIONS:
        return ResourceType.IMAGE
    if ext in AUDIO_EXTENSIONS:
        return ResourceType.AUDIO
    return ResourceType.OTHER


def is_hidden(name: str) -> bool:
    return name.startswith(".")


def sort_resources(resources: Iterable[ResourceInfo]) -> list[ResourceInfo]:
    """Folders first, then files, each group by name."""
    ordered = sorted(resources, key=lambda r: r.name)
    return [r for r in ordered if r.is_folder] + [r for r in ordered if not r.is_folder]


class BaseResourceStore(ABC):
    """Base class for Resource Store backends.

    Subclasses implement the raw operations; this class holds the listing
    policy (hidden entries dropped, only folders and media kept, stable order).
    """

    CAPABILITIES: frozenset[str] = frozenset({"rename"})

    def __init__(self, allowed_extensions: Iterable[str] = ()):
        self._allowed_extensions = frozenset(e.lower() for e in allowed_extensions)

    def capabilities(self) -> frozenset[str]:
        return self.CAPABILITIES

    def _keep(self, info: ResourceInfo) -> bool:
        """Listing filter applied to every raw entry."""
        if is_hidden(info.name):
            return False
        if info.is_folder:
            return True
        if info.type == ResourceType.OTHER:
            return False
        if self._allowed_extensions and (info.extension or "") not in self._allowed_extensions:
            return False
        return True

    def _finish_listing(self, entries: Iterable[ResourceInfo]) -> list[ResourceInfo]:
        return sort_resources(e for e in entries if self._keep(e))

    @abstractmethod
    def list(self, path: str) -> list[ResourceInfo]:
        ...

    @abstractmethod
    def get_info(self, path: str) -> ResourceInfo:
        ...

    @abstractmethod
    def create_folder(self, path: str) -> None:
        ...

    @abstractmethod
    def move(self, source_path: str, target_path: str) -> None:
        ...

    @abstractmethod
    def rename(self, path: str, new_name: str) -> str:
        ...

    @abstractmethod
    def check_connection(self) -> bool:
        ...
