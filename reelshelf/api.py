"""Theme API - request validation and ``{code, message, data}`` envelopes.

Each ``ThemeApi`` method corresponds to one route of the theme HTTP surface
(noted in its docstring) and never raises: failures come back as error
envelopes with the status code of the underlying error.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError

from .core.errors import ReelshelfError, ValidationError
from .core.models import PublishRequest
from .services.app_context import AppContext


logger = logging.getLogger(__name__)


def success(data: Any = None, message: str = "Success") -> dict[str, Any]:
    return {"code": 200, "message": message, "data": data}


def error(message: str, code: int = 400) -> dict[str, Any]:
    return {"code": code, "message": message}


# --- Request bodies ---


class _Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class CreateThemeBody(_Body):
    name: str
    description: Optional[str] = None
    archive_folder_name: Optional[str] = Field(default=None, alias="archiveFolderName")
    account_ids: List[int] = Field(default_factory=list, alias="accountIds")


class UpdateThemeBody(_Body):
    name: Optional[str] = None
    description: Optional[str] = None
    archive_folder_name: Optional[str] = Field(default=None, alias="archiveFolderName")
    account_ids: Optional[List[int]] = Field(default=None, alias="accountIds")


class AccountBody(_Body):
    account_id: int = Field(alias="accountId")


class ResourceRootBody(_Body):
    library_id: int = Field(alias="libraryId")
    folder_path: str = Field(alias="folderPath")


class VideoPathsBody(_Body):
    video_paths: List[str] = Field(default_factory=list, alias="videoPaths")


class BatchPublishBody(_Body):
    account_ids: List[int] = Field(default_factory=list, alias="accountIds")
    video_paths: List[str] = Field(default_factory=list, alias="videoPaths")
    auto_archive: bool = Field(default=True, alias="autoArchive")
    title: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    scheduled_at: Optional[datetime] = Field(default=None, alias="scheduledAt")


class CompleteTasksBody(_Body):
    task_ids: List[int] = Field(default_factory=list, alias="taskIds")
    succeeded: bool = True
    auto_archive: bool = Field(default=True, alias="autoArchive")


def parse_body(model: type[BaseModel], body: Optional[dict[str, Any]]) -> Any:
    """Validate a request body.

    Raises:
        ValidationError: The body is missing fields or has wrong types.
    """
    try:
        return model.model_validate(body or {})
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'body'}: {err['msg']}" for err in e.errors()
        )
        raise ValidationError(f"Invalid request body: {problems}") from e


def _check_id(value: Any, what: str = "theme id") -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"Invalid {what}: {value!r}")
    return value


class ThemeApi:
    """In-process theme API over an application context."""

    def __init__(self, ctx: AppContext):
        self._ctx = ctx

    def _call(self, handler: Callable[[], tuple[Any, str]]) -> dict[str, Any]:
        try:
            data, message = handler()
        except ReelshelfError as e:
            logger.debug(f"Request failed ({e.code}): {e.message}")
            return error(e.message, e.code)
        except Exception as e:
            logger.exception("Unhandled error in theme API")
            return error(str(e) or "Internal server error", 500)
        return success(data, message)

    def _theme(self, theme_id: Any):
        return self._ctx.themes.get(_check_id(theme_id))

    # --- Themes ---

    def create_theme(self, body: dict[str, Any]) -> dict[str, Any]:
        """POST /themes"""
        def handler():
            req = parse_body(CreateThemeBody, body)
            theme = self._ctx.themes.create(
                req.name, req.description, req.archive_folder_name, req.account_ids,
            )
            return theme.to_dict(), "Theme created"
        return self._call(handler)

    def list_themes(self) -> dict[str, Any]:
        """GET /themes"""
        return self._call(lambda: ([t.to_dict() for t in self._ctx.themes.list()], "Success"))

    def get_theme(self, theme_id: int) -> dict[str, Any]:
        """GET /themes/:id"""
        return self._call(lambda: (self._theme(theme_id).to_dict(), "Success"))

    def update_theme(self, theme_id: int, body: dict[str, Any]) -> dict[str, Any]:
        """PUT /themes/:id"""
        def handler():
            req = parse_body(UpdateThemeBody, body)
            theme = self._ctx.themes.update(
                _check_id(theme_id), req.name, req.description, req.archive_folder_name, req.account_ids,
            )
            return theme.to_dict(), "Theme updated"
        return self._call(handler)

    def delete_theme(self, theme_id: int) -> dict[str, Any]:
        """DELETE /themes/:id"""
        def handler():
            self._ctx.themes.delete(_check_id(theme_id))
            return None, "Theme deleted"
        return self._call(handler)

    def add_account(self, theme_id: int, body: dict[str, Any]) -> dict[str, Any]:
        """POST /themes/:id/accounts"""
        def handler():
            req = parse_body(AccountBody, body)
            self._ctx.themes.add_account(_check_id(theme_id), req.account_id)
            return None, "Account added"
        return self._call(handler)

    def remove_account(self, theme_id: int, account_id: int) -> dict[str, Any]:
        """DELETE /themes/:id/accounts/:accountId"""
        def handler():
            self._ctx.themes.remove_account(_check_id(theme_id), _check_id(account_id, "account id"))
            return None, "Account removed"
        return self._call(handler)

    def add_resource_root(self, theme_id: int, body: dict[str, Any]) -> dict[str, Any]:
        """POST /themes/:id/resources"""
        def handler():
            req = parse_body(ResourceRootBody, body)
            root = self._ctx.themes.add_resource_root(_check_id(theme_id), req.library_id, req.folder_path)
            return root.to_dict(), "Resource root added"
        return self._call(handler)

    def remove_resource_root(self, theme_id: int, root_id: int) -> dict[str, Any]:
        """DELETE /themes/:id/resources/:rootId"""
        def handler():
            self._ctx.themes.remove_resource_root(_check_id(theme_id), _check_id(root_id, "resource root id"))
            return None, "Resource root removed"
        return self._call(handler)

    # --- Videos ---

    def list_videos(self, theme_id: int) -> dict[str, Any]:
        """GET /themes/:id/videos"""
        def handler():
            videos = self._ctx.resolver.resolve(self._theme(theme_id))
            return [v.to_dict() for v in videos], "Success"
        return self._call(handler)

    def statistics(self, theme_id: int) -> dict[str, Any]:
        """GET /themes/:id/statistics"""
        def handler():
            return self._ctx.statistics.statistics(self._theme(theme_id)).to_dict(), "Success"
        return self._call(handler)

    def batch_publish(self, theme_id: int, body: dict[str, Any]) -> dict[str, Any]:
        """POST /themes/:id/batch-publish"""
        def handler():
            req = parse_body(BatchPublishBody, body)
            theme = self._theme(theme_id)
            result = self._ctx.publisher.batch_publish(theme, PublishRequest(
                account_ids=tuple(req.account_ids),
                video_paths=tuple(req.video_paths),
                auto_archive=req.auto_archive,
                title=req.title,
                tags=tuple(req.tags),
                scheduled_at=req.scheduled_at,
            ))
            return result.to_dict(), "Batch publish tasks created"
        return self._call(handler)

    def archive(self, theme_id: int, body: dict[str, Any]) -> dict[str, Any]:
        """POST /themes/:id/videos/archive"""
        def handler():
            req = parse_body(VideoPathsBody, body)
            if not req.video_paths:
                raise ValidationError("Missing video paths")
            report = self._ctx.archiver.archive(self._theme(theme_id), req.video_paths)
            return report.to_dict(), f"Archive finished: {report.succeeded}/{report.total} succeeded"
        return self._call(handler)

    def unarchive(self, theme_id: int, body: dict[str, Any]) -> dict[str, Any]:
        """POST /themes/:id/videos/unarchive"""
        def handler():
            req = parse_body(VideoPathsBody, body)
            if not req.video_paths:
                raise ValidationError("Missing video paths")
            report = self._ctx.archiver.unarchive(self._theme(theme_id), req.video_paths)
            return report.to_dict(), f"Unarchive finished: {report.succeeded}/{report.total} succeeded"
        return self._call(handler)

    def complete_tasks(self, theme_id: int, body: dict[str, Any]) -> dict[str, Any]:
        """POST /themes/:id/tasks/complete"""
        def handler():
            req = parse_body(CompleteTasksBody, body)
            if not req.task_ids:
                raise ValidationError("Missing task ids")
            results = self._ctx.publisher.complete_tasks(
                self._theme(theme_id), req.task_ids, req.succeeded, req.auto_archive,
            )
            archived = sum(1 for r in results if r.archived)
            return [r.to_dict() for r in results], f"Completed {len(results)} tasks, archived {archived}"
        return self._call(handler)
