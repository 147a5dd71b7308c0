"""Core domain models, errors and protocols."""
from .errors import (
    ReelshelfError,
    ValidationError,
    NotFoundError,
    ConflictError,
    BackendError,
)
from .protocols import (
    ResourceStore,
    TaskSink,
    ThemeRepository,
    LibraryRepository,
    ProgressReporter,
)
from .models import (
    DEFAULT_ARCHIVE_FOLDER,
    ResourceType,
    TaskStatus,
    LibraryType,
    ResourceInfo,
    ResourceRoot,
    Theme,
    VideoEntry,
    ItemResult,
    MoveReport,
    PublishRequest,
    TaskRequest,
    UploadTask,
    BatchPublishResult,
    CompletionResult,
    ThemeStatistics,
    Library,
)
from .config import AppSettings, LocalLibraryConfig, WebDAVLibraryConfig, load_settings

__all__ = [
    # Errors
    "ReelshelfError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "BackendError",
    # Protocols
    "ResourceStore",
    "TaskSink",
    "ThemeRepository",
    "LibraryRepository",
    "ProgressReporter",
    # Models
    "DEFAULT_ARCHIVE_FOLDER",
    "ResourceType",
    "TaskStatus",
    "LibraryType",
    "ResourceInfo",
    "ResourceRoot",
    "Theme",
    "VideoEntry",
    "ItemResult",
    "MoveReport",
    "PublishRequest",
    "TaskRequest",
    "UploadTask",
    "BatchPublishResult",
    "CompletionResult",
    "ThemeStatistics",
    "Library",
    # Config
    "AppSettings",
    "LocalLibraryConfig",
    "WebDAVLibraryConfig",
    "load_settings",
]
