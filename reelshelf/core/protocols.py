"""Protocol definitions (interfaces) for dependency injection."""
from __future__ import annotations

from abc import abstractmethod
from typing import Any, Optional, Protocol, Sequence

from .models import (
    Library,
    LibraryType,
    ResourceInfo,
    ResourceRoot,
    TaskRequest,
    TaskStatus,
    Theme,
    UploadTask,
)


class ResourceStore(Protocol):
    """Interface for one storage library (local directory, WebDAV share, ...).

    Paths are library paths (``/videos/food``), never host paths.

    Implementations:
    - LocalResourceStore: a directory on this machine
    - WebDAVResourceStore: a remote WebDAV collection
    """

    @abstractmethod
    def list(self, path: str) -> list[ResourceInfo]:
        """List the first level of ``path``. Hidden entries are excluded.

        Raises:
            NotFoundError: ``path`` does not exist.
        """
        ...

    @abstractmethod
    def get_info(self, path: str) -> ResourceInfo:
        """Describe a single entry.

        Raises:
            NotFoundError: ``path`` does not exist.
        """
        ...

    @abstractmethod
    def create_folder(self, path: str) -> None:
        """Create a folder and any missing parents."""
        ...

    @abstractmethod
    def move(self, source_path: str, target_path: str) -> None:
        """Move an entry, creating missing target parents.

        Raises:
            NotFoundError: source does not exist.
            ConflictError: target already exists.
        """
        ...

    @abstractmethod
    def rename(self, path: str, new_name: str) -> str:
        """Rename an entry in place. Returns the new path."""
        ...

    @abstractmethod
    def check_connection(self) -> bool:
        """Whether the backend is reachable and its root is a folder."""
        ...

    @abstractmethod
    def capabilities(self) -> frozenset[str]:
        """Optional operations this backend supports (e.g. ``"rename"``)."""
        ...


class TaskSink(Protocol):
    """Interface for the upload task system of record."""

    @abstractmethod
    def create_task(self, request: TaskRequest) -> UploadTask:
        """Create a pending upload task."""
        ...

    @abstractmethod
    def get_task(self, task_id: int) -> Optional[UploadTask]:
        """Get a task by id."""
        ...

    @abstractmethod
    def update_status(self, task_id: int, status: TaskStatus) -> None:
        """Record the outcome of an upload."""
        ...


class ThemeRepository(Protocol):
    """Interface for theme persistence (the theme registry)."""

    @abstractmethod
    def create(
        self,
        name: str,
        description: Optional[str] = None,
        archive_folder_name: Optional[str] = None,
    ) -> Theme:
        ...

    @abstractmethod
    def get(self, theme_id: int) -> Optional[Theme]:
        ...

    @abstractmethod
    def list_all(self) -> list[Theme]:
        ...

    @abstractmethod
    def update(
        self,
        theme_id: int,
        name: Optional[str] = None,
        description: Optional[str] = None,
        archive_folder_name: Optional[str] = None,
    ) -> None:
        ...

    @abstractmethod
    def delete(self, theme_id: int) -> bool:
        ...

    @abstractmethod
    def set_accounts(self, theme_id: int, account_ids: Sequence[int]) -> None:
        ...

    @abstractmethod
    def add_account(self, theme_id: int, account_id: int) -> None:
        ...

    @abstractmethod
    def remove_account(self, theme_id: int, account_id: int) -> bool:
        ...

    @abstractmethod
    def add_resource_root(self, theme_id: int, library_id: int, folder_path: str) -> ResourceRoot:
        ...

    @abstractmethod
    def remove_resource_root(self, root_id: int) -> bool:
        ...

    @abstractmethod
    def set_resource_roots(self, theme_id: int, roots: Sequence[ResourceRoot]) -> None:
        ...


class LibraryRepository(Protocol):
    """Interface for the catalog of configured libraries."""

    @abstractmethod
    def create(
        self,
        name: str,
        library_type: LibraryType,
        config: dict[str, Any],
        is_active: bool = True,
    ) -> Library:
        ...

    @abstractmethod
    def get_library(self, library_id: int) -> Optional[Library]:
        ...

    @abstractmethod
    def list_all(self) -> list[Library]:
        ...

    @abstractmethod
    def set_active(self, library_id: int, is_active: bool) -> bool:
        ...

    @abstractmethod
    def delete(self, library_id: int) -> bool:
        ...


class ProgressReporter(Protocol):
    """Interface for progress reporting during batch operations."""

    @abstractmethod
    def start_phase(self, name: str, total: int) -> None:
        """Start a new processing phase."""
        ...

    @abstractmethod
    def advance_phase(self, amount: int = 1) -> None:
        """Advance the current phase by an amount."""
        ...

    @abstractmethod
    def end_phase(self) -> None:
        """Complete current phase."""
        ...
