"""Configuration models with validation."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, List, Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator

from .errors import ValidationError
from .models import DEFAULT_ARCHIVE_FOLDER, LibraryType
from .paths import normalize_path, validate_segment


DEFAULT_DB_PATH = Path("~/.reelshelf/reelshelf.db")


class LocalLibraryConfig(BaseModel):
    """A directory on this machine."""
    base_path: Path = Field(..., description="Root directory of the library")
    allowed_extensions: List[str] = Field(
        default_factory=list,
        description="Only list files with these extensions (empty = all media)",
    )

    @field_validator("base_path")
    @classmethod
    def expand_base_path(cls, value: Path) -> Path:
        return value.expanduser().resolve()

    @field_validator("allowed_extensions")
    @classmethod
    def normalize_extensions(cls, value: List[str]) -> List[str]:
        return [ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in value]


class WebDAVLibraryConfig(BaseModel):
    """A remote WebDAV collection."""
    url: str = Field(..., description="Server URL, e.g. https://dav.example.com/remote.php/dav")
    username: str = Field(default="", description="Basic auth user")
    password: str = Field(default="", description="Basic auth password")
    base_path: str = Field(default="/", description="Collection used as the library root")
    timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")

    @field_validator("url")
    @classmethod
    def strip_url(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if not value.startswith(("http://", "https://")):
            raise ValueError("url must start with http:// or https://")
        return value

    @field_validator("base_path")
    @classmethod
    def normalize_base(cls, value: str) -> str:
        return normalize_path(value)


class AppSettings(BaseModel):
    """Application settings.

    Values come from an optional JSON settings file, then environment
    variables, then CLI flags (highest priority).
    """
    db_path: Path = Field(default=DEFAULT_DB_PATH, validate_default=True, description="SQLite database path")
    default_archive_folder: str = Field(
        default=DEFAULT_ARCHIVE_FOLDER,
        description="Archive folder name for new themes",
    )
    webdav_timeout: float = Field(default=30.0, gt=0, description="Default WebDAV timeout (s)")
    verbose: bool = Field(default=False, description="Debug logging")

    @field_validator("db_path")
    @classmethod
    def expand_db_path(cls, value: Path) -> Path:
        return value.expanduser()

    @field_validator("default_archive_folder")
    @classmethod
    def check_archive_folder(cls, value: str) -> str:
        try:
            return validate_segment(value, "archive folder name")
        except ValidationError as e:
            raise ValueError(e.message) from e

    def with_overrides(self, **kwargs: Any) -> "AppSettings":
        """Create new settings with non-None values overridden."""
        current = self.model_dump()
        current.update({k: v for k, v in kwargs.items() if v is not None})
        return AppSettings(**current)


ENV_OVERRIDES = {
    "REELSHELF_DB": "db_path",
    "REELSHELF_ARCHIVE_FOLDER": "default_archive_folder",
    "REELSHELF_WEBDAV_TIMEOUT": "webdav_timeout",
}


def load_settings(path: Optional[Path] = None, environ: Optional[dict[str, str]] = None) -> AppSettings:
    """Load settings from an optional JSON file and the environment.

    Raises:
        ValidationError: The file is missing or holds invalid values.
    """
    environ = os.environ if environ is None else environ
    data: dict[str, Any] = {}

    if path is not None:
        if not path.exists():
            raise ValidationError(f"Settings file not found: {path}")
        try:
            data = AppSettings.model_validate_json(path.read_text(encoding="utf-8")).model_dump(
                exclude_unset=True
            )
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid settings file {path}: {e}") from e

    for env_name, field_name in ENV_OVERRIDES.items():
        if environ.get(env_name):
            data[field_name] = environ[env_name]

    try:
        return AppSettings(**data)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid settings: {e}") from e


def parse_library_config(library_type: LibraryType, raw: dict[str, Any]) -> BaseModel:
    """Validate a raw library config dict for its backend type."""
    model = LocalLibraryConfig if library_type == LibraryType.LOCAL else WebDAVLibraryConfig
    try:
        return model(**raw)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid {library_type.value} library config: {e}") from e
