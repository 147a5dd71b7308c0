"""Service layer - theme library business logic."""
from .resolver import VideoStatusResolver, is_published_path
from .archiver import ArchiveEngine
from .publisher import BatchPublisher
from .statistics import StatisticsAggregator
from .themes import ThemeService
from .libraries import LibraryService
from .app_context import AppContext, create_app_context

__all__ = [
    "VideoStatusResolver",
    "is_published_path",
    "ArchiveEngine",
    "BatchPublisher",
    "StatisticsAggregator",
    "ThemeService",
    "LibraryService",
    "AppContext",
    "create_app_context",
]
