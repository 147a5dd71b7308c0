"""Domain models - immutable data classes."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from .paths import join_path


DEFAULT_ARCHIVE_FOLDER = "published"


class ResourceType(Enum):
    """Kind of entry a Resource Store reports."""
    VIDEO = "video"
    IMAGE = "image"
    AUDIO = "audio"
    FOLDER = "folder"
    OTHER = "other"


class TaskStatus(Enum):
    """Lifecycle of an upload task as seen by the task sink."""
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class LibraryType(str, Enum):
    """Supported Resource Store backends."""
    LOCAL = "local"
    WEBDAV = "webdav"


@dataclass(frozen=True, slots=True)
class ResourceInfo:
    """One entry returned by a Resource Store."""
    name: str
    path: str
    type: ResourceType
    size: Optional[int] = None
    modified_time: Optional[datetime] = None
    extension: Optional[str] = None

    @property
    def is_folder(self) -> bool:
        return self.type == ResourceType.FOLDER

    @property
    def is_video(self) -> bool:
        return self.type == ResourceType.VIDEO


@dataclass(frozen=True, slots=True)
class ResourceRoot:
    """A (library, folder) pair a theme watches for videos."""
    library_id: int
    folder_path: str
    id: Optional[int] = None

    @property
    def key(self) -> tuple[int, str]:
        return (self.library_id, self.folder_path)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "libraryId": self.library_id, "folderPath": self.folder_path}


@dataclass(frozen=True, slots=True)
class Theme:
    """A named content series: linked accounts plus resource roots."""
    id: int
    name: str
    description: Optional[str] = None
    archive_folder_name: Optional[str] = DEFAULT_ARCHIVE_FOLDER
    account_ids: tuple[int, ...] = field(default_factory=tuple)
    resource_roots: tuple[ResourceRoot, ...] = field(default_factory=tuple)
    created_at: Optional[datetime] = None

    @property
    def archive_folder(self) -> str:
        """Archive folder name, falling back to the default when unset."""
        return self.archive_folder_name or DEFAULT_ARCHIVE_FOLDER

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "archiveFolderName": self.archive_folder,
            "accountIds": list(self.account_ids),
            "resourceRoots": [root.to_dict() for root in self.resource_roots],
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True, slots=True)
class VideoEntry:
    """A video found under a theme resource root.

    Never persisted. ``is_published`` reflects where the file sat when the
    listing was taken and nothing else.
    """
    name: str
    library_id: int
    library_path: str
    is_published: bool
    size: Optional[int] = None
    modified_time: Optional[datetime] = None

    @property
    def full_path(self) -> str:
        return join_path(self.library_path, self.name)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": ResourceType.VIDEO.value,
            "path": self.full_path,
            "fullPath": self.full_path,
            "libraryId": self.library_id,
            "libraryPath": self.library_path,
            "isPublished": self.is_published,
            "size": self.size,
            "modifiedTime": self.modified_time.isoformat() if self.modified_time else None,
        }


@dataclass(frozen=True, slots=True)
class ItemResult:
    """Outcome for one requested path (or one matching video) in a batch move.

    ``path`` is the normalized library path, not the caller's raw string.
    """
    path: str
    success: bool
    message: Optional[str] = None
    skipped: bool = False

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"path": self.path, "success": self.success}
        if self.message:
            data["message"] = self.message
        return data


@dataclass(frozen=True, slots=True)
class MoveReport:
    """Partial-success report of a batch archive or unarchive."""
    operation: str  # "archive" or "unarchive"
    total: int
    results: tuple[ItemResult, ...] = field(default_factory=tuple)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.results if r.skipped)

    def to_dict(self) -> dict[str, Any]:
        done_key = "archived" if self.operation == "archive" else "unarchived"
        return {
            "total": self.total,
            done_key: self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "results": [r.to_dict() for r in self.results],
        }


@dataclass(frozen=True, slots=True)
class PublishRequest:
    """Input of a batch publish: accounts x videos."""
    account_ids: tuple[int, ...]
    video_paths: tuple[str, ...]
    auto_archive: bool = True
    title: Optional[str] = None
    tags: tuple[str, ...] = field(default_factory=tuple)
    scheduled_at: Optional[datetime] = None


@dataclass(frozen=True, slots=True)
class TaskRequest:
    """What the orchestrator asks the task sink to create."""
    account_id: int
    library_id: int
    resource_path: str
    title: str
    tags: str = ""
    scheduled_at: Optional[datetime] = None


@dataclass(frozen=True, slots=True)
class UploadTask:
    """An upload task record owned by the task sink."""
    id: int
    account_id: int
    library_id: int
    resource_path: str
    title: str
    tags: str = ""
    scheduled_at: Optional[datetime] = None
    status: TaskStatus = TaskStatus.PENDING
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "accountId": self.account_id,
            "libraryId": self.library_id,
            "resourcePath": self.resource_path,
            "title": self.title,
            "tags": self.tags,
            "scheduledAt": self.scheduled_at.isoformat() if self.scheduled_at else None,
            "status": self.status.value,
        }


@dataclass(frozen=True, slots=True)
class PublishedTask:
    """A task created by a batch publish."""
    task_id: int
    account_id: int
    video_name: str
    video_path: str
    library_id: int
    auto_archive: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "taskId": self.task_id,
            "accountId": self.account_id,
            "videoName": self.video_name,
            "videoPath": self.video_path,
            "libraryId": self.library_id,
            "autoArchive": self.auto_archive,
        }


@dataclass(frozen=True, slots=True)
class PublishError:
    """A task that could not be created."""
    account_id: int
    video_path: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"accountId": self.account_id, "videoPath": self.video_path, "message": self.message}


@dataclass(frozen=True, slots=True)
class BatchPublishResult:
    """Fan-out result of a batch publish."""
    tasks: tuple[PublishedTask, ...]
    account_count: int
    video_count: int
    errors: tuple[PublishError, ...] = field(default_factory=tuple)

    @property
    def total_tasks(self) -> int:
        return len(self.tasks)

    def to_dict(self) -> dict[str, Any]:
        return {
            "tasks": [t.to_dict() for t in self.tasks],
            "totalTasks": self.total_tasks,
            "accountCount": self.account_count,
            "videoCount": self.video_count,
            "errors": [e.to_dict() for e in self.errors],
        }


@dataclass(frozen=True, slots=True)
class CompletionResult:
    """Outcome of recording one finished upload task."""
    task_id: int
    success: bool
    archived: bool = False
    message: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "taskId": self.task_id,
            "success": self.success,
            "archived": self.archived,
        }
        if self.message:
            data["message"] = self.message
        return data


@dataclass(frozen=True, slots=True)
class ThemeStatistics:
    """Published vs. unpublished counts for a theme."""
    published: int = 0
    unpublished: int = 0

    @property
    def total(self) -> int:
        return self.published + self.unpublished

    def to_dict(self) -> dict[str, int]:
        return {"published": self.published, "unpublished": self.unpublished}


@dataclass(frozen=True, slots=True)
class Library:
    """A configured Resource Store."""
    id: int
    name: str
    type: LibraryType
    config: dict[str, Any] = field(default_factory=dict)
    is_active: bool = True

    def to_dict(self, include_secrets: bool = False) -> dict[str, Any]:
        config = dict(self.config)
        if not include_secrets and "password" in config:
            config["password"] = "***"
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "config": config,
            "isActive": self.is_active,
        }
