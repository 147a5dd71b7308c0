"""Shared pytest fixtures."""
from pathlib import Path

import pytest

from reelshelf.core.models import ResourceRoot, Theme
from reelshelf.persistence.database import Database, SQLiteTaskSink
from reelshelf.services.archiver import ArchiveEngine
from reelshelf.services.publisher import BatchPublisher
from reelshelf.services.resolver import VideoStatusResolver
from reelshelf.storage.local import LocalResourceStore
from reelshelf.storage.registry import StoreRegistry

from .fixtures import build_tree


FOOD_TREE = {
    "videos/food/a.mp4": b"aaaa",
    "videos/food/b.mp4": b"bbbbbbbb",
    "videos/food/cover.jpg": b"jpg",
    "videos/food/notes.txt": "not media",
    "videos/food/.hidden.mp4": b"hidden",
    "videos/food/published/c.mp4": b"cc",
}


@pytest.fixture
def food_library(tmp_path: Path) -> Path:
    """Library root whose /videos/food holds a.mp4, b.mp4 and published/c.mp4."""
    return build_tree(tmp_path / "library", FOOD_TREE)


@pytest.fixture
def store(food_library: Path) -> LocalResourceStore:
    return LocalResourceStore(food_library)


@pytest.fixture
def registry(store) -> StoreRegistry:
    registry = StoreRegistry()
    registry.register_instance(1, store)
    return registry


@pytest.fixture
def theme() -> Theme:
    return Theme(
        id=1,
        name="Food",
        account_ids=(1, 2),
        resource_roots=(ResourceRoot(library_id=1, folder_path="/videos/food", id=1),),
    )


@pytest.fixture
def resolver(registry) -> VideoStatusResolver:
    return VideoStatusResolver(registry)


@pytest.fixture
def archiver(resolver, registry) -> ArchiveEngine:
    return ArchiveEngine(resolver, registry)


@pytest.fixture
def database():
    db = Database(":memory:")
    yield db
    db.close()


@pytest.fixture
def task_sink(database) -> SQLiteTaskSink:
    return SQLiteTaskSink(database)


@pytest.fixture
def publisher(resolver, task_sink, archiver, registry) -> BatchPublisher:
    return BatchPublisher(resolver, task_sink, archiver, registry)
