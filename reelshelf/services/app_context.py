"""Application context - wires storage, persistence and services together.

Every CLI command and API call runs against one context. The context owns
the database connection and the store registry and closes both on exit.
"""
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console

from ..core.config import AppSettings, load_settings
from ..core.protocols import ProgressReporter
from ..persistence.database import (
    Database,
    SQLiteLibraryRepository,
    SQLiteTaskSink,
    SQLiteThemeRepository,
)
from ..storage.registry import StoreFactory, StoreRegistry
from .archiver import ArchiveEngine
from .libraries import LibraryService
from .publisher import BatchPublisher
from .resolver import VideoStatusResolver
from .statistics import StatisticsAggregator
from .themes import ThemeService


logger = logging.getLogger(__name__)


class AppContext:
    """Application context managing all services for a command.

    Usage:
        with AppContext(settings) as ctx:
            theme = ctx.themes.get(1)
            report = ctx.archiver.archive(theme, ["/videos/food/a.mp4"])

    Or without context manager:
        ctx = AppContext(settings)
        ctx.initialize(console)
        try:
            # Use services...
        finally:
            ctx.shutdown()
    """

    def __init__(
        self,
        settings: AppSettings,
        progress: Optional[ProgressReporter] = None,
        factory: Optional[StoreFactory] = None,
    ):
        """Initialize application context.

        Args:
            settings: Application settings.
            progress: Reporter for batch progress (archive, publish).
            factory: Store factory (default: local + WebDAV).
        """
        self._settings = settings
        self._progress = progress
        self._factory = factory
        self._console: Optional[Console] = None

        self._db: Optional[Database] = None
        self._registry: Optional[StoreRegistry] = None
        self._theme_repo: Optional[SQLiteThemeRepository] = None
        self._library_repo: Optional[SQLiteLibraryRepository] = None
        self._tasks: Optional[SQLiteTaskSink] = None
        self._resolver: Optional[VideoStatusResolver] = None
        self._archiver: Optional[ArchiveEngine] = None
        self._publisher: Optional[BatchPublisher] = None
        self._statistics: Optional[StatisticsAggregator] = None
        self._themes: Optional[ThemeService] = None
        self._libraries: Optional[LibraryService] = None

        self._initialized = False

    def initialize(self, console: Optional[Console] = None) -> None:
        """Open the database and build the services.

        Args:
            console: Rich console for startup output in verbose mode
        """
        if self._initialized:
            return

        self._console = console or Console(stderr=True)

        def log(msg: str):
            if self._settings.verbose and self._console:
                self._console.print(msg)
            logger.debug(msg.replace('[', '').replace(']', ''))

        log(f"  [cyan]• Database:[/cyan] {self._settings.db_path}")
        self._db = Database(self._settings.db_path)
        self._theme_repo = SQLiteThemeRepository(self._db)
        self._library_repo = SQLiteLibraryRepository(self._db)
        self._tasks = SQLiteTaskSink(self._db)

        log("  [cyan]• Store registry[/cyan]")
        factory = self._factory or StoreFactory.default(webdav_timeout=self._settings.webdav_timeout)
        self._registry = StoreRegistry(self._library_repo, factory)

        self._resolver = VideoStatusResolver(self._registry)
        self._archiver = ArchiveEngine(self._resolver, self._registry, self._progress)
        self._publisher = BatchPublisher(
            self._resolver, self._tasks, self._archiver, self._registry, self._progress,
        )
        self._statistics = StatisticsAggregator(self._resolver)
        self._themes = ThemeService(
            self._theme_repo, self._registry, self._settings.default_archive_folder,
        )
        self._libraries = LibraryService(self._library_repo, self._registry)

        self._initialized = True

    def _require(self, service):
        if not self._initialized:
            self.initialize()
        return service()

    @property
    def settings(self) -> AppSettings:
        return self._settings

    @property
    def db(self) -> Database:
        return self._require(lambda: self._db)

    @property
    def registry(self) -> StoreRegistry:
        return self._require(lambda: self._registry)

    @property
    def tasks(self) -> SQLiteTaskSink:
        return self._require(lambda: self._tasks)

    @property
    def resolver(self) -> VideoStatusResolver:
        return self._require(lambda: self._resolver)

    @property
    def archiver(self) -> ArchiveEngine:
        return self._require(lambda: self._archiver)

    @property
    def publisher(self) -> BatchPublisher:
        return self._require(lambda: self._publisher)

    @property
    def statistics(self) -> StatisticsAggregator:
        return self._require(lambda: self._statistics)

    @property
    def themes(self) -> ThemeService:
        return self._require(lambda: self._themes)

    @property
    def libraries(self) -> LibraryService:
        return self._require(lambda: self._libraries)

    def shutdown(self) -> None:
        """Close stores and the database."""
        if self._registry:
            self._registry.invalidate()
            self._registry = None

        if self._db:
            self._db.close()
            self._db = None

        self._initialized = False
        logger.debug("AppContext shut down")

    def __enter__(self) -> "AppContext":
        if not self._initialized:
            self.initialize()
        return self

    def __exit__(self, *args) -> None:
        self.shutdown()


def create_app_context(
    db_path: Optional[Path] = None,
    config_path: Optional[Path] = None,
    verbose: bool = False,
    progress: Optional[ProgressReporter] = None,
) -> AppContext:
    """Create an application context from settings file, environment and flags.

    Args:
        db_path: SQLite database path (overrides settings)
        config_path: Optional JSON settings file
        verbose: Enable verbose output
        progress: Reporter for batch progress

    Returns:
        Configured AppContext instance
    """
    settings = load_settings(config_path).with_overrides(
        db_path=db_path,
        verbose=verbose or None,
    )
    return AppContext(settings, progress=progress)
