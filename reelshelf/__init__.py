"""Theme libraries of social videos across local and WebDAV storage.

Publish state is positional: a video directly inside a theme resource root
is unpublished, one inside the root's archive folder is published.
"""

__version__ = "1.0.0"

# Core exports
from .core.errors import ReelshelfError, ValidationError, NotFoundError, ConflictError, BackendError
from .core.models import Theme, VideoEntry, MoveReport, PublishRequest, BatchPublishResult, ThemeStatistics
from .core.protocols import ResourceStore, TaskSink, ProgressReporter

# Storage exports
from .storage.local import LocalResourceStore
from .storage.webdav import WebDAVResourceStore
from .storage.registry import StoreFactory, StoreRegistry

# Service exports
from .services.resolver import VideoStatusResolver
from .services.archiver import ArchiveEngine
from .services.publisher import BatchPublisher
from .services.statistics import StatisticsAggregator
from .services.app_context import AppContext, create_app_context

# API exports
from .api import ThemeApi

__all__ = [
    # Core
    "ReelshelfError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "BackendError",
    "Theme",
    "VideoEntry",
    "MoveReport",
    "PublishRequest",
    "BatchPublishResult",
    "ThemeStatistics",
    "ResourceStore",
    "TaskSink",
    "ProgressReporter",
    # Storage
    "LocalResourceStore",
    "WebDAVResourceStore",
    "StoreFactory",
    "StoreRegistry",
    # Services
    "VideoStatusResolver",
    "ArchiveEngine",
    "BatchPublisher",
    "StatisticsAggregator",
    "AppContext",
    "create_app_context",
    # API
    "ThemeApi",
]
