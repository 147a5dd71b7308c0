"""SQLite-backed theme registry, library catalog and upload task sink."""
from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Sequence

from ..core.errors import ConflictError, NotFoundError
from ..core.models import (
    Library,
    LibraryType,
    ResourceRoot,
    TaskRequest,
    TaskStatus,
    Theme,
    UploadTask,
)


logger = logging.getLogger(__name__)


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


class Database:
    """Owns the SQLite connection and the schema.

    Repositories share one ``Database``; closing it closes them all.
    """

    def __init__(self, db_path: Path | str):
        """Open (and create if needed) the database.

        Args:
            db_path: Path to SQLite database file, or ``":memory:"``.
        """
        self._db_path = str(db_path)
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn: Optional[sqlite3.Connection] = None
        self._init_database()

    @property
    def path(self) -> str:
        return self._db_path

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Database is closed")
        return self._conn

    def _init_database(self) -> None:
        """Create tables if they don't exist."""
        self._conn = sqlite3.connect(self._db_path)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")

        cursor = self._conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS libraries (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                type TEXT NOT NULL,
                config TEXT NOT NULL,
                is_active INTEGER NOT NULL DEFAULT 1,
                created_at TEXT DEFAULT CURRENT_TIMESTAMP
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS themes (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                description TEXT,
                archive_folder_name TEXT DEFAULT 'published',
                created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                updated_at TEXT DEFAULT CURRENT_TIMESTAMP
            )
        """)

        # Account ids reference an external account system; no FK on them
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS theme_accounts (
                theme_id INTEGER NOT NULL REFERENCES themes(id) ON DELETE CASCADE,
                account_id INTEGER NOT NULL,
                PRIMARY KEY (theme_id, account_id)
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS theme_resource_roots (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                theme_id INTEGER NOT NULL REFERENCES themes(id) ON DELETE CASCADE,
                library_id INTEGER NOT NULL,
                folder_path TEXT NOT NULL,
                UNIQUE (theme_id, library_id, folder_path)
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS upload_tasks (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                account_id INTEGER NOT NULL,
                library_id INTEGER NOT NULL,
                resource_path TEXT NOT NULL,
                title TEXT NOT NULL,
                tags TEXT DEFAULT '',
                scheduled_at TEXT,
                status TEXT NOT NULL DEFAULT 'pending',
                created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                updated_at TEXT DEFAULT CURRENT_TIMESTAMP
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_upload_tasks_status
            ON upload_tasks(status)
        """)

        self._conn.commit()

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, *args) -> None:
        self.close()


class SQLiteThemeRepository:
    """Theme registry: themes, linked accounts and resource roots."""

    def __init__(self, db: Database):
        self._db = db

    def create(
        self,
        name: str,
        description: Optional[str] = None,
        archive_folder_name: Optional[str] = None,
    ) -> Theme:
        cursor = self._db.conn.cursor()
        cursor.execute(
            "INSERT INTO themes (name, description, archive_folder_name) VALUES (?, ?, ?)",
            (name, description, archive_folder_name or "published"),
        )
        self._db.conn.commit()
        theme = self.get(cursor.lastrowid or 0)
        assert theme is not None
        return theme

    def get(self, theme_id: int) -> Optional[Theme]:
        cursor = self._db.conn.cursor()
        cursor.execute("SELECT * FROM themes WHERE id = ?", (theme_id,))
        row = cursor.fetchone()
        return self._row_to_theme(row) if row else None

    def list_all(self) -> list[Theme]:
        cursor = self._db.conn.cursor()
        cursor.execute("SELECT * FROM themes ORDER BY id")
        return [self._row_to_theme(row) for row in cursor.fetchall()]

    def update(
        self,
        theme_id: int,
        name: Optional[str] = None,
        description: Optional[str] = None,
        archive_folder_name: Optional[str] = None,
    ) -> None:
        changes = {
            key: value
            for key, value in (
                ("name", name),
                ("description", description),
                ("archive_folder_name", archive_folder_name),
            )
            if value is not None
        }
        if not changes:
            return
        assignments = ", ".join(f"{key} = ?" for key in changes)
        cursor = self._db.conn.cursor()
        cursor.execute(
            f"UPDATE themes SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            (*changes.values(), theme_id),
        )
        self._db.conn.commit()
        if cursor.rowcount == 0:
            raise NotFoundError(f"Theme {theme_id} not found", {"theme_id": theme_id})

    def delete(self, theme_id: int) -> bool:
        """Delete a theme and its relations. Files and accounts are untouched."""
        cursor = self._db.conn.cursor()
        cursor.execute("DELETE FROM themes WHERE id = ?", (theme_id,))
        self._db.conn.commit()
        return cursor.rowcount > 0

    # --- Accounts ---

    def set_accounts(self, theme_id: int, account_ids: Sequence[int]) -> None:
        cursor = self._db.conn.cursor()
        cursor.execute("DELETE FROM theme_accounts WHERE theme_id = ?", (theme_id,))
        cursor.executemany(
            "INSERT OR IGNORE INTO theme_accounts (theme_id, account_id) VALUES (?, ?)",
            [(theme_id, account_id) for account_id in account_ids],
        )
        self._db.conn.commit()

    def add_account(self, theme_id: int, account_id: int) -> None:
        cursor = self._db.conn.cursor()
        cursor.execute(
            "INSERT OR IGNORE INTO theme_accounts (theme_id, account_id) VALUES (?, ?)",
            (theme_id, account_id),
        )
        self._db.conn.commit()

    def remove_account(self, theme_id: int, account_id: int) -> bool:
        cursor = self._db.conn.cursor()
        cursor.execute(
            "DELETE FROM theme_accounts WHERE theme_id = ? AND account_id = ?",
            (theme_id, account_id),
        )
        self._db.conn.commit()
        return cursor.rowcount > 0

    # --- Resource roots ---

    def add_resource_root(self, theme_id: int, library_id: int, folder_path: str) -> ResourceRoot:
        cursor = self._db.conn.cursor()
        try:
            cursor.execute(
                "INSERT INTO theme_resource_roots (theme_id, library_id, folder_path) VALUES (?, ?, ?)",
                (theme_id, library_id, folder_path),
            )
        except sqlite3.IntegrityError as e:
            self._db.conn.rollback()
            raise ConflictError(
                f"Resource root already linked: library {library_id} {folder_path}",
                {"theme_id": theme_id, "library_id": library_id, "folder_path": folder_path},
            ) from e
        self._db.conn.commit()
        return ResourceRoot(library_id=library_id, folder_path=folder_path, id=cursor.lastrowid)

    def remove_resource_root(self, root_id: int) -> bool:
        cursor = self._db.conn.cursor()
        cursor.execute("DELETE FROM theme_resource_roots WHERE id = ?", (root_id,))
        self._db.conn.commit()
        return cursor.rowcount > 0

    def set_resource_roots(self, theme_id: int, roots: Sequence[ResourceRoot]) -> None:
        cursor = self._db.conn.cursor()
        cursor.execute("DELETE FROM theme_resource_roots WHERE theme_id = ?", (theme_id,))
        cursor.executemany(
            "INSERT OR IGNORE INTO theme_resource_roots (theme_id, library_id, folder_path) VALUES (?, ?, ?)",
            [(theme_id, root.library_id, root.folder_path) for root in roots],
        )
        self._db.conn.commit()

    def _row_to_theme(self, row: sqlite3.Row) -> Theme:
        cursor = self._db.conn.cursor()
        cursor.execute(
            "SELECT account_id FROM theme_accounts WHERE theme_id = ? ORDER BY account_id",
            (row["id"],),
        )
        account_ids = tuple(r[0] for r in cursor.fetchall())
        cursor.execute(
            "SELECT id, library_id, folder_path FROM theme_resource_roots WHERE theme_id = ? ORDER BY id",
            (row["id"],),
        )
        roots = tuple(
            ResourceRoot(library_id=r["library_id"], folder_path=r["folder_path"], id=r["id"])
            for r in cursor.fetchall()
        )
        return Theme(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            archive_folder_name=row["archive_folder_name"],
            account_ids=account_ids,
            resource_roots=roots,
            created_at=_parse_datetime(row["created_at"]),
        )


class SQLiteLibraryRepository:
    """Catalog of configured Resource Store libraries."""

    def __init__(self, db: Database):
        self._db = db

    def create(self, name: str, library_type: LibraryType, config: dict[str, Any], is_active: bool = True) -> Library:
        cursor = self._db.conn.cursor()
        cursor.execute(
            "INSERT INTO libraries (name, type, config, is_active) VALUES (?, ?, ?, ?)",
            (name, library_type.value, json.dumps(config, default=str), int(is_active)),
        )
        self._db.conn.commit()
        library = self.get_library(cursor.lastrowid or 0)
        assert library is not None
        return library

    def get_library(self, library_id: int) -> Optional[Library]:
        cursor = self._db.conn.cursor()
        cursor.execute("SELECT * FROM libraries WHERE id = ?", (library_id,))
        row = cursor.fetchone()
        return self._row_to_library(row) if row else None

    def list_all(self) -> list[Library]:
        cursor = self._db.conn.cursor()
        cursor.execute("SELECT * FROM libraries ORDER BY id")
        return [self._row_to_library(row) for row in cursor.fetchall()]

    def set_active(self, library_id: int, is_active: bool) -> bool:
        cursor = self._db.conn.cursor()
        cursor.execute("UPDATE libraries SET is_active = ? WHERE id = ?", (int(is_active), library_id))
        self._db.conn.commit()
        return cursor.rowcount > 0

    def delete(self, library_id: int) -> bool:
        cursor = self._db.conn.cursor()
        cursor.execute("DELETE FROM libraries WHERE id = ?", (library_id,))
        self._db.conn.commit()
        return cursor.rowcount > 0

    @staticmethod
    def _row_to_library(row: sqlite3.Row) -> Library:
        return Library(
            id=row["id"],
            name=row["name"],
            type=LibraryType(row["type"]),
            config=json.loads(row["config"]) if row["config"] else {},
            is_active=bool(row["is_active"]),
        )


class SQLiteTaskSink:
    """Upload task system of record."""

    def __init__(self, db: Database):
        self._db = db

    def create_task(self, request: TaskRequest) -> UploadTask:
        cursor = self._db.conn.cursor()
        cursor.execute("""
            INSERT INTO upload_tasks (
                account_id, library_id, resource_path, title, tags, scheduled_at, status
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
        """, (
            request.account_id,
            request.library_id,
            request.resource_path,
            request.title,
            request.tags,
            request.scheduled_at.isoformat() if request.scheduled_at else None,
            TaskStatus.PENDING.value,
        ))
        self._db.conn.commit()
        task = self.get_task(cursor.lastrowid or 0)
        assert task is not None
        return task

    def get_task(self, task_id: int) -> Optional[UploadTask]:
        cursor = self._db.conn.cursor()
        cursor.execute("SELECT * FROM upload_tasks WHERE id = ?", (task_id,))
        row = cursor.fetchone()
        return self._row_to_task(row) if row else None

    def list_tasks(self, status: Optional[TaskStatus] = None) -> list[UploadTask]:
        cursor = self._db.conn.cursor()
        if status is None:
            cursor.execute("SELECT * FROM upload_tasks ORDER BY id")
        else:
            cursor.execute("SELECT * FROM upload_tasks WHERE status = ? ORDER BY id", (status.value,))
        return [self._row_to_task(row) for row in cursor.fetchall()]

    def update_status(self, task_id: int, status: TaskStatus) -> None:
        cursor = self._db.conn.cursor()
        cursor.execute(
            "UPDATE upload_tasks SET status = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            (status.value, task_id),
        )
        self._db.conn.commit()
        if cursor.rowcount == 0:
            raise NotFoundError(f"Upload task {task_id} not found", {"task_id": task_id})

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> UploadTask:
        return UploadTask(
            id=row["id"],
            account_id=row["account_id"],
            library_id=row["library_id"],
            resource_path=row["resource_path"],
            title=row["title"],
            tags=row["tags"] or "",
            scheduled_at=_parse_datetime(row["scheduled_at"]),
            status=TaskStatus(row["status"]),
            created_at=_parse_datetime(row["created_at"]),
        )
