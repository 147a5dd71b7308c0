"""Resource Store factory and per-library instance registry."""
from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from ..core.config import LocalLibraryConfig, WebDAVLibraryConfig, parse_library_config
from ..core.errors import NotFoundError, ValidationError
from ..core.models import Library, LibraryType
from ..core.protocols import LibraryRepository, ResourceStore
from .local import LocalResourceStore
from .webdav import WebDAVResourceStore


logger = logging.getLogger(__name__)

StoreBuilder = Callable[[dict[str, Any]], ResourceStore]


def _build_local(raw: dict[str, Any]) -> ResourceStore:
    config = parse_library_config(LibraryType.LOCAL, raw)
    assert isinstance(config, LocalLibraryConfig)
    return LocalResourceStore(config.base_path, config.allowed_extensions)


def _build_webdav(raw: dict[str, Any], default_timeout: Optional[float] = None) -> ResourceStore:
    if default_timeout is not None and "timeout" not in raw:
        raw = {**raw, "timeout": default_timeout}
    config = parse_library_config(LibraryType.WEBDAV, raw)
    assert isinstance(config, WebDAVLibraryConfig)
    return WebDAVResourceStore(
        url=config.url,
        username=config.username,
        password=config.password,
        base_path=config.base_path,
        timeout=config.timeout,
    )


class StoreFactory:
    """Creates Resource Stores from a backend type and its raw config."""

    def __init__(self) -> None:
        self._builders: dict[LibraryType, StoreBuilder] = {}

    @classmethod
    def default(cls, webdav_timeout: Optional[float] = None) -> "StoreFactory":
        """Factory with the local and WebDAV backends registered.

        Args:
            webdav_timeout: Timeout for WebDAV libraries whose config has none.
        """
        factory = cls()
        factory.register(LibraryType.LOCAL, _build_local)
        factory.register(LibraryType.WEBDAV, lambda raw: _build_webdav(raw, webdav_timeout))
        return factory

    def register(self, library_type: LibraryType, builder: StoreBuilder) -> None:
        self._builders[library_type] = builder

    def is_supported(self, library_type: LibraryType) -> bool:
        return library_type in self._builders

    @property
    def supported_types(self) -> list[LibraryType]:
        return list(self._builders)

    def create(self, library_type: LibraryType, config: dict[str, Any]) -> ResourceStore:
        builder = self._builders.get(library_type)
        if builder is None:
            raise ValidationError(f"Unsupported library type: {library_type.value}")
        return builder(config)


class StoreRegistry:
    """Caches one Resource Store per library id.

    Owned by the application context and passed to the services that need
    it. The cache only changes through ``get``, ``register_instance`` and
    ``invalidate``.
    """

    def __init__(
        self,
        libraries: Optional[LibraryRepository] = None,
        factory: Optional[StoreFactory] = None,
    ):
        """Initialize the registry.

        Args:
            libraries: Catalog used to look up library configs.
            factory: Store factory (default: local + WebDAV).
        """
        self._libraries = libraries
        self._factory = factory or StoreFactory.default()
        self._instances: dict[int, ResourceStore] = {}

    @property
    def factory(self) -> StoreFactory:
        return self._factory

    def get(self, library_id: int) -> ResourceStore:
        """Get the store for a library, creating it on first use.

        Raises:
            NotFoundError: Unknown library.
            ValidationError: Library is inactive or misconfigured.
        """
        store = self._instances.get(library_id)
        if store is not None:
            return store

        library = self._lookup(library_id)
        if not library.is_active:
            raise ValidationError(f"Library {library.name} is not active")

        store = self._factory.create(library.type, library.config)
        self._instances[library_id] = store
        logger.debug(f"Opened {library.type.value} library {library_id} ({library.name})")
        return store

    def _lookup(self, library_id: int) -> Library:
        library = self._libraries.get_library(library_id) if self._libraries else None
        if library is None:
            raise NotFoundError(f"Library {library_id} not found", {"library_id": library_id})
        return library

    def register_instance(self, library_id: int, store: ResourceStore) -> None:
        """Pin a ready-made store for a library id."""
        self._instances[library_id] = store

    def invalidate(self, library_id: Optional[int] = None) -> None:
        """Drop one cached store, or all of them."""
        targets = [library_id] if library_id is not None else list(self._instances)
        for key in targets:
            store = self._instances.pop(key, None)
            close = getattr(store, "close", None)
            if callable(close):
                close()

    def __contains__(self, library_id: int) -> bool:
        return library_id in self._instances
