"""Tests for the store factory and registry."""
import pytest

from reelshelf.core.errors import NotFoundError, ValidationError
from reelshelf.core.models import LibraryType
from reelshelf.persistence.database import SQLiteLibraryRepository
from reelshelf.storage.local import LocalResourceStore
from reelshelf.storage.registry import StoreFactory, StoreRegistry
from reelshelf.storage.webdav import WebDAVResourceStore


class TestStoreFactory:
    """Tests for StoreFactory."""

    def test_default_types(self):
        factory = StoreFactory.default()
        assert set(factory.supported_types) == {LibraryType.LOCAL, LibraryType.WEBDAV}

    def test_create_local(self, tmp_path):
        store = StoreFactory.default().create(LibraryType.LOCAL, {"base_path": str(tmp_path)})
        assert isinstance(store, LocalResourceStore)
        assert store.base_path == tmp_path.resolve()

    def test_create_webdav(self):
        store = StoreFactory.default().create(LibraryType.WEBDAV, {"url": "https://dav.example.com"})
        assert isinstance(store, WebDAVResourceStore)
        store.close()

    def test_unsupported(self, tmp_path):
        factory = StoreFactory()
        assert not factory.is_supported(LibraryType.LOCAL)
        with pytest.raises(ValidationError):
            factory.create(LibraryType.LOCAL, {"base_path": str(tmp_path)})

    def test_invalid_config(self):
        with pytest.raises(ValidationError):
            StoreFactory.default().create(LibraryType.LOCAL, {})


class TestStoreRegistry:
    """Tests for StoreRegistry caching."""

    @pytest.fixture
    def libraries(self, database):
        return SQLiteLibraryRepository(database)

    def test_get_creates_once(self, libraries, tmp_path):
        library = libraries.create("disk", LibraryType.LOCAL, {"base_path": str(tmp_path)})
        registry = StoreRegistry(libraries)
        first = registry.get(library.id)
        assert registry.get(library.id) is first
        assert library.id in registry

    def test_unknown_library(self, libraries):
        with pytest.raises(NotFoundError):
            StoreRegistry(libraries).get(99)

    def test_no_catalog(self):
        with pytest.raises(NotFoundError):
            StoreRegistry().get(1)

    def test_inactive_library(self, libraries, tmp_path):
        library = libraries.create("disk", LibraryType.LOCAL, {"base_path": str(tmp_path)}, is_active=False)
        with pytest.raises(ValidationError, match="not active"):
            StoreRegistry(libraries).get(library.id)

    def test_invalidate(self, libraries, tmp_path):
        library = libraries.create("disk", LibraryType.LOCAL, {"base_path": str(tmp_path)})
        registry = StoreRegistry(libraries)
        first = registry.get(library.id)
        registry.invalidate(library.id)
        assert library.id not in registry
        assert registry.get(library.id) is not first

    def test_invalidate_all_closes(self):
        closed = []

        class ClosingStore:
            def close(self):
                closed.append(True)

        registry = StoreRegistry()
        registry.register_instance(1, ClosingStore())
        registry.register_instance(2, ClosingStore())
        registry.invalidate()
        assert closed == [True, True]
        assert 1 not in registry

    def test_webdav_default_timeout(self):
        factory = StoreFactory.default(webdav_timeout=7.5)
        store = factory.create(LibraryType.WEBDAV, {"url": "https://dav.example.com"})
        assert store._client.timeout.read == 7.5
        store.close()
