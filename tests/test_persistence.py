"""Tests for the SQLite theme registry, library catalog and task sink."""
import pytest
from pathlib import Path
from datetime import datetime

from reelshelf.core.errors import ConflictError, NotFoundError
from reelshelf.core.models import LibraryType, ResourceRoot, TaskRequest, TaskStatus
from reelshelf.persistence.database import (
    Database,
    SQLiteLibraryRepository,
    SQLiteTaskSink,
    SQLiteThemeRepository,
)


class TestDatabase:
    """Tests for the database file."""

    def test_create_database(self, tmp_path: Path):
        """Test database file and parent folder are created."""
        db_path = tmp_path / "nested" / "reelshelf.db"
        db = Database(db_path)
        assert db_path.exists()
        db.close()

    def test_closed(self, tmp_path: Path):
        with Database(tmp_path / "x.db") as db:
            pass
        with pytest.raises(RuntimeError):
            db.conn

    def test_reopen_keeps_data(self, tmp_path: Path):
        db_path = tmp_path / "x.db"
        with Database(db_path) as db:
            SQLiteThemeRepository(db).create("Food")
        with Database(db_path) as db:
            assert [t.name for t in SQLiteThemeRepository(db).list_all()] == ["Food"]


class TestSQLiteThemeRepository:
    """Tests for theme persistence."""

    @pytest.fixture
    def repo(self, database):
        return SQLiteThemeRepository(database)

    def test_create_and_get(self, repo):
        theme = repo.create("Food", "Cooking clips")
        assert theme.id > 0
        assert theme.name == "Food"
        assert theme.description == "Cooking clips"
        assert theme.archive_folder_name == "published"
        assert isinstance(theme.created_at, datetime)
        assert repo.get(theme.id) == theme

    def test_get_nonexistent(self, repo):
        assert repo.get(404) is None

    def test_custom_archive_folder(self, repo):
        assert repo.create("Food", archive_folder_name="done").archive_folder == "done"

    def test_update(self, repo):
        theme = repo.create("Food")
        repo.update(theme.id, name="Cooking", archive_folder_name="posted")
        updated = repo.get(theme.id)
        assert updated.name == "Cooking"
        assert updated.archive_folder_name == "posted"
        assert updated.description is None

    def test_update_missing(self, repo):
        with pytest.raises(NotFoundError):
            repo.update(404, name="x")

    def test_accounts(self, repo):
        theme = repo.create("Food")
        repo.set_accounts(theme.id, [3, 1, 3])
        assert repo.get(theme.id).account_ids == (1, 3)

        repo.add_account(theme.id, 2)
        repo.add_account(theme.id, 2)
        assert repo.get(theme.id).account_ids == (1, 2, 3)

        assert repo.remove_account(theme.id, 1) is True
        assert repo.remove_account(theme.id, 1) is False
        assert repo.get(theme.id).account_ids == (2, 3)

    def test_resource_roots_keep_order(self, repo):
        theme = repo.create("Food")
        repo.add_resource_root(theme.id, 2, "/z")
        repo.add_resource_root(theme.id, 1, "/a")
        roots = repo.get(theme.id).resource_roots
        assert [r.key for r in roots] == [(2, "/z"), (1, "/a")]
        assert all(r.id for r in roots)

    def test_duplicate_root_conflicts(self, repo):
        theme = repo.create("Food")
        repo.add_resource_root(theme.id, 1, "/videos/food")
        with pytest.raises(ConflictError):
            repo.add_resource_root(theme.id, 1, "/videos/food")
        # Same folder in another theme is fine
        other = repo.create("Other")
        repo.add_resource_root(other.id, 1, "/videos/food")

    def test_set_resource_roots(self, repo):
        theme = repo.create("Food")
        repo.add_resource_root(theme.id, 1, "/old")
        repo.set_resource_roots(theme.id, [ResourceRoot(1, "/a"), ResourceRoot(2, "/b")])
        assert [r.key for r in repo.get(theme.id).resource_roots] == [(1, "/a"), (2, "/b")]

    def test_remove_resource_root(self, repo):
        theme = repo.create("Food")
        root = repo.add_resource_root(theme.id, 1, "/a")
        assert repo.remove_resource_root(root.id) is True
        assert repo.remove_resource_root(root.id) is False
        assert repo.get(theme.id).resource_roots == ()

    def test_delete_cascades(self, repo, database):
        """Test deleting a theme removes its accounts and roots."""
        theme = repo.create("Food")
        repo.add_account(theme.id, 1)
        repo.add_resource_root(theme.id, 1, "/a")
        assert repo.delete(theme.id) is True
        assert repo.get(theme.id) is None
        assert repo.delete(theme.id) is False

        count = database.conn.execute("SELECT COUNT(*) FROM theme_resource_roots").fetchone()[0]
        assert count == 0
        count = database.conn.execute("SELECT COUNT(*) FROM theme_accounts").fetchone()[0]
        assert count == 0

    def test_list_all(self, repo):
        repo.create("A")
        repo.create("B")
        assert [t.name for t in repo.list_all()] == ["A", "B"]


class TestSQLiteLibraryRepository:
    """Tests for the library catalog."""

    @pytest.fixture
    def repo(self, database):
        return SQLiteLibraryRepository(database)

    def test_create_and_get(self, repo):
        library = repo.create("nas", LibraryType.WEBDAV, {"url": "https://nas/dav", "password": "pw"})
        fetched = repo.get_library(library.id)
        assert fetched.type == LibraryType.WEBDAV
        assert fetched.config == {"url": "https://nas/dav", "password": "pw"}
        assert fetched.is_active is True

    def test_set_active_and_delete(self, repo):
        library = repo.create("disk", LibraryType.LOCAL, {"base_path": "/srv"})
        assert repo.set_active(library.id, False) is True
        assert repo.get_library(library.id).is_active is False
        assert repo.delete(library.id) is True
        assert repo.get_library(library.id) is None
        assert repo.set_active(library.id, True) is False


class TestSQLiteTaskSink:
    """Tests for upload task records."""

    def test_create_task(self, task_sink):
        task = task_sink.create_task(TaskRequest(
            account_id=1,
            library_id=2,
            resource_path="/videos/food/a.mp4",
            title="a",
            tags="food,cooking",
            scheduled_at=datetime(2024, 6, 1, 9, 30),
        ))
        assert task.id > 0
        assert task.status == TaskStatus.PENDING
        assert task.scheduled_at == datetime(2024, 6, 1, 9, 30)
        assert task_sink.get_task(task.id) == task

    def test_update_status(self, task_sink):
        task = task_sink.create_task(TaskRequest(1, 1, "/a.mp4", "a"))
        task_sink.update_status(task.id, TaskStatus.SUCCEEDED)
        assert task_sink.get_task(task.id).status == TaskStatus.SUCCEEDED
        assert [t.id for t in task_sink.list_tasks(TaskStatus.SUCCEEDED)] == [task.id]
        assert task_sink.list_tasks(TaskStatus.PENDING) == []

    def test_update_missing(self, task_sink):
        with pytest.raises(NotFoundError):
            task_sink.update_status(99, TaskStatus.FAILED)
