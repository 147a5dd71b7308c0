"""Library catalog management."""
from __future__ import annotations

import logging
from typing import Any

from ..core.config import parse_library_config
from ..core.errors import BackendError, NotFoundError, ValidationError
from ..core.models import Library, LibraryType
from ..core.protocols import LibraryRepository
from ..storage.registry import StoreRegistry


logger = logging.getLogger(__name__)


class LibraryService:
    """Registers Resource Store libraries and keeps the registry in step."""

    def __init__(self, libraries: LibraryRepository, registry: StoreRegistry):
        self._libraries = libraries
        self._registry = registry

    def add(
        self,
        name: str,
        library_type: LibraryType,
        config: dict[str, Any],
        check_connection: bool = True,
    ) -> Library:
        """Validate a library config, test it and store it.

        Raises:
            ValidationError: Bad name, type or config.
            BackendError: The backend could not be reached.
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Library name must not be empty")
        if not self._registry.factory.is_supported(library_type):
            raise ValidationError(f"Unsupported library type: {library_type.value}")

        parsed = parse_library_config(library_type, config)
        normalized = parsed.model_dump(mode="json", exclude_unset=True)

        if check_connection:
            store = self._registry.factory.create(library_type, normalized)
            try:
                if not store.check_connection():
                    raise BackendError(f"Cannot connect to {library_type.value} library {name}")
            finally:
                close = getattr(store, "close", None)
                if callable(close):
                    close()

        library = self._libraries.create(name, library_type, normalized)
        logger.info(f"Registered {library_type.value} library {library.id} ({name})")
        return library

    def get(self, library_id: int) -> Library:
        library = self._libraries.get_library(library_id)
        if library is None:
            raise NotFoundError(f"Library {library_id} not found", {"library_id": library_id})
        return library

    def list(self) -> list[Library]:
        return self._libraries.list_all()

    def test(self, library_id: int) -> bool:
        """Check that a registered library is reachable."""
        self.get(library_id)
        self._registry.invalidate(library_id)
        return self._registry.get(library_id).check_connection()

    def set_active(self, library_id: int, is_active: bool) -> Library:
        if not self._libraries.set_active(library_id, is_active):
            raise NotFoundError(f"Library {library_id} not found", {"library_id": library_id})
        self._registry.invalidate(library_id)
        return self.get(library_id)

    def remove(self, library_id: int) -> None:
        if not self._libraries.delete(library_id):
            raise NotFoundError(f"Library {library_id} not found", {"library_id": library_id})
        self._registry.invalidate(library_id)
        logger.info(f"Removed library {library_id}")
