"""Theme management: the registry of themes, accounts and resource roots."""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..core.errors import NotFoundError, ReelshelfError, ValidationError
from ..core.models import DEFAULT_ARCHIVE_FOLDER, ResourceRoot, Theme
from ..core.paths import basename, normalize_path, validate_segment
from ..core.protocols import ThemeRepository
from ..storage.registry import StoreRegistry


logger = logging.getLogger(__name__)


class ThemeService:
    """Validated theme CRUD on top of a ThemeRepository.

    Resource roots are checked against their library once, when added.
    """

    def __init__(
        self,
        themes: ThemeRepository,
        registry: StoreRegistry,
        default_archive_folder: str = DEFAULT_ARCHIVE_FOLDER,
    ):
        self._themes = themes
        self._registry = registry
        self._default_archive_folder = default_archive_folder

    def create(
        self,
        name: str,
        description: Optional[str] = None,
        archive_folder_name: Optional[str] = None,
        account_ids: Iterable[int] = (),
        resource_roots: Iterable[tuple[int, str]] = (),
    ) -> Theme:
        """Create a theme, optionally with accounts and resource roots."""
        name = self._check_name(name)
        archive_folder = validate_segment(
            archive_folder_name or self._default_archive_folder, "archive folder name"
        )
        roots = [self._check_root(library_id, path, archive_folder) for library_id, path in resource_roots]

        theme = self._themes.create(name, description, archive_folder)
        if account_ids:
            self._themes.set_accounts(theme.id, list(account_ids))
        if roots:
            self._themes.set_resource_roots(theme.id, roots)
        logger.info(f"Created theme {theme.id} ({name})")
        return self.get(theme.id)

    def get(self, theme_id: int) -> Theme:
        """Get a theme.

        Raises:
            NotFoundError: Unknown theme id.
        """
        theme = self._themes.get(theme_id)
        if theme is None:
            raise NotFoundError(f"Theme {theme_id} not found", {"theme_id": theme_id})
        return theme

    def list(self) -> list[Theme]:
        return self._themes.list_all()

    def update(
        self,
        theme_id: int,
        name: Optional[str] = None,
        description: Optional[str] = None,
        archive_folder_name: Optional[str] = None,
        account_ids: Optional[Iterable[int]] = None,
    ) -> Theme:
        theme = self.get(theme_id)
        if name is not None:
            name = self._check_name(name)
        if archive_folder_name is not None:
            archive_folder_name = validate_segment(archive_folder_name, "archive folder name")
            for root in theme.resource_roots:
                self._check_not_archive(root.folder_path, archive_folder_name)

        self._themes.update(theme_id, name, description, archive_folder_name)
        if account_ids is not None:
            self._themes.set_accounts(theme_id, list(account_ids))
        return self.get(theme_id)

    def delete(self, theme_id: int) -> None:
        """Delete a theme. Its files and accounts are left alone."""
        if not self._themes.delete(theme_id):
            raise NotFoundError(f"Theme {theme_id} not found", {"theme_id": theme_id})
        logger.info(f"Deleted theme {theme_id}")

    # --- Accounts ---

    def add_account(self, theme_id: int, account_id: int) -> Theme:
        self.get(theme_id)
        self._themes.add_account(theme_id, account_id)
        return self.get(theme_id)

    def remove_account(self, theme_id: int, account_id: int) -> Theme:
        self.get(theme_id)
        if not self._themes.remove_account(theme_id, account_id):
            raise NotFoundError(
                f"Account {account_id} is not linked to theme {theme_id}",
                {"theme_id": theme_id, "account_id": account_id},
            )
        return self.get(theme_id)

    # --- Resource roots ---

    def add_resource_root(self, theme_id: int, library_id: int, folder_path: str) -> ResourceRoot:
        """Link a library folder to a theme.

        Raises:
            ValidationError: The folder does not exist or is not a folder.
            ConflictError: The folder is already linked to this theme.
        """
        theme = self.get(theme_id)
        root = self._check_root(library_id, folder_path, theme.archive_folder)
        added = self._themes.add_resource_root(theme_id, root.library_id, root.folder_path)
        logger.info(f"Theme {theme_id}: added resource root {library_id}:{root.folder_path}")
        return added

    def remove_resource_root(self, theme_id: int, root_id: int) -> None:
        theme = self.get(theme_id)
        if not any(root.id == root_id for root in theme.resource_roots):
            raise NotFoundError(
                f"Resource root {root_id} not found in theme {theme_id}",
                {"theme_id": theme_id, "root_id": root_id},
            )
        self._themes.remove_resource_root(root_id)

    # --- Validation ---

    @staticmethod
    def _check_name(name: str) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Theme name must not be empty")
        return name

    @staticmethod
    def _check_not_archive(folder_path: str, archive_folder: str) -> None:
        # Videos directly in such a root would read as published
        if basename(folder_path) == archive_folder:
            raise ValidationError(
                f"Resource root {folder_path} is named like the archive folder '{archive_folder}'",
                {"folder_path": folder_path},
            )

    def _check_root(self, library_id: int, folder_path: str, archive_folder: str) -> ResourceRoot:
        folder = normalize_path(folder_path)
        self._check_not_archive(folder, archive_folder)

        store = self._registry.get(library_id)
        try:
            info = store.get_info(folder)
        except NotFoundError as e:
            raise ValidationError(
                f"Folder not found in library {library_id}: {folder}",
                {"library_id": library_id, "folder_path": folder},
            ) from e
        except ReelshelfError as e:
            raise ValidationError(
                f"Cannot check folder {folder} in library {library_id}: {e.message}",
                {"library_id": library_id, "folder_path": folder},
            ) from e
        if not info.is_folder:
            raise ValidationError(f"Not a folder: {folder}", {"library_id": library_id, "folder_path": folder})
        return ResourceRoot(library_id=library_id, folder_path=folder)
