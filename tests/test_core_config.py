"""Tests for core configuration."""
import json
from pathlib import Path

import pytest

from reelshelf.core.config import (
    AppSettings,
    LocalLibraryConfig,
    WebDAVLibraryConfig,
    load_settings,
    parse_library_config,
)
from reelshelf.core.errors import ValidationError
from reelshelf.core.models import LibraryType
from reelshelf.services.app_context import AppContext


class TestAppSettings:
    """Tests for AppSettings."""

    def test_defaults(self):
        settings = AppSettings()
        assert settings.default_archive_folder == "published"
        assert settings.webdav_timeout == 30.0
        assert settings.db_path == Path("~/.reelshelf/reelshelf.db").expanduser()

    def test_default_db_path_opens_under_home(self, tmp_path, monkeypatch):
        """Test the default database lands in the home directory, not a literal '~' folder."""
        home = tmp_path / "home"
        workdir = tmp_path / "work"
        workdir.mkdir()
        monkeypatch.setenv("HOME", str(home))
        monkeypatch.chdir(workdir)

        with AppContext(AppSettings()) as ctx:
            assert ctx.settings.db_path == home / ".reelshelf" / "reelshelf.db"
            ctx.themes.list()

        assert (home / ".reelshelf" / "reelshelf.db").exists()
        assert not (workdir / "~").exists()

    def test_invalid_archive_folder(self):
        """Test archive folder must be a single path segment."""
        with pytest.raises(ValueError):
            AppSettings(default_archive_folder="a/b")

    def test_with_overrides_ignores_none(self, tmp_path):
        settings = AppSettings(webdav_timeout=5).with_overrides(db_path=tmp_path / "x.db", verbose=None)
        assert settings.db_path == tmp_path / "x.db"
        assert settings.webdav_timeout == 5
        assert settings.verbose is False


class TestLoadSettings:
    """Tests for settings loading."""

    def test_no_file_no_env(self):
        settings = load_settings(environ={})
        assert settings.default_archive_folder == "published"

    def test_file_values(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"default_archive_folder": "done", "webdav_timeout": 12}))
        settings = load_settings(path, environ={})
        assert settings.default_archive_folder == "done"
        assert settings.webdav_timeout == 12

    def test_environment_overrides_file(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"default_archive_folder": "done"}))
        settings = load_settings(path, environ={
            "REELSHELF_ARCHIVE_FOLDER": "posted",
            "REELSHELF_DB": str(tmp_path / "env.db"),
        })
        assert settings.default_archive_folder == "posted"
        assert settings.db_path == tmp_path / "env.db"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ValidationError, match="not found"):
            load_settings(tmp_path / "missing.json", environ={})

    def test_invalid_file(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"webdav_timeout": -1}))
        with pytest.raises(ValidationError):
            load_settings(path, environ={})


class TestLibraryConfigs:
    """Tests for library config models."""

    def test_local_extensions_normalized(self, tmp_path):
        config = LocalLibraryConfig(base_path=tmp_path, allowed_extensions=["MP4", ".mov"])
        assert config.allowed_extensions == [".mp4", ".mov"]
        assert config.base_path == tmp_path.resolve()

    def test_webdav_url(self):
        config = WebDAVLibraryConfig(url=" https://dav.example.com/dav/ ", base_path="media//videos/")
        assert config.url == "https://dav.example.com/dav"
        assert config.base_path == "/media/videos"

    def test_webdav_rejects_bad_url(self):
        with pytest.raises(ValueError):
            WebDAVLibraryConfig(url="ftp://example.com")

    def test_parse_library_config(self, tmp_path):
        config = parse_library_config(LibraryType.LOCAL, {"base_path": str(tmp_path)})
        assert isinstance(config, LocalLibraryConfig)

    def test_parse_library_config_invalid(self):
        with pytest.raises(ValidationError, match="webdav"):
            parse_library_config(LibraryType.WEBDAV, {"username": "me"})
