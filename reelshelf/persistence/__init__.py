"""SQLite persistence for themes, libraries and upload tasks."""
from .database import Database, SQLiteLibraryRepository, SQLiteTaskSink, SQLiteThemeRepository

__all__ = ["Database", "SQLiteLibraryRepository", "SQLiteTaskSink", "SQLiteThemeRepository"]
