"""CLI with subcommand groups: library, theme, task."""
from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from .api import error, success
from .core.errors import ReelshelfError, ValidationError
from .core.models import LibraryType, PublishRequest
from .logging.rich_logger import QuietReporter, RichReporter, configure_logging
from .services.app_context import AppContext, create_app_context


def _iso_datetime(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"not an ISO date/time: {value}") from e


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="reelshelf",
        description="Theme libraries of social videos: browse, archive, batch publish.",
    )

    # Global options
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Path to database file (default: ~/.reelshelf/reelshelf.db)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON settings file",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print {code, message, data} responses as JSON",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress non-essential output",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # ============ LIBRARY commands ============
    library_parser = subparsers.add_parser("library", help="Manage storage libraries")
    library_sub = library_parser.add_subparsers(dest="action", required=True)

    add_lib = library_sub.add_parser("add", help="Register a local or WebDAV library")
    add_lib.add_argument("name", help="Display name")
    add_lib.add_argument(
        "--type",
        dest="library_type",
        choices=[t.value for t in LibraryType],
        default=LibraryType.LOCAL.value,
        help="Backend type (default: local)",
    )
    add_lib.add_argument("--path", type=Path, help="Local: root directory")
    add_lib.add_argument(
        "--ext",
        dest="extensions",
        nargs="+",
        default=None,
        help="Local: only list these extensions",
    )
    add_lib.add_argument("--url", help="WebDAV: server URL")
    add_lib.add_argument("--username", default=None, help="WebDAV: user")
    add_lib.add_argument("--password", default=None, help="WebDAV: password")
    add_lib.add_argument("--base-path", default=None, help="WebDAV: collection used as root")
    add_lib.add_argument("--timeout", type=float, default=None, help="WebDAV: request timeout (s)")
    add_lib.add_argument(
        "--no-check",
        action="store_true",
        help="Skip the connection test",
    )

    library_sub.add_parser("list", help="List libraries")

    test_lib = library_sub.add_parser("test", help="Test a library connection")
    test_lib.add_argument("library_id", type=int)

    remove_lib = library_sub.add_parser("remove", help="Remove a library from the catalog")
    remove_lib.add_argument("library_id", type=int)

    # ============ THEME commands ============
    theme_parser = subparsers.add_parser("theme", help="Manage themes and their videos")
    theme_sub = theme_parser.add_subparsers(dest="action", required=True)

    create = theme_sub.add_parser("create", help="Create a theme")
    create.add_argument("name")
    create.add_argument("--description", default=None)
    create.add_argument("--archive-folder", default=None, help="Archive folder name (default: published)")
    create.add_argument("--account", dest="accounts", type=int, nargs="+", default=[], help="Linked account ids")

    theme_sub.add_parser("list", help="List themes")

    show = theme_sub.add_parser("show", help="Show a theme")
    show.add_argument("theme_id", type=int)

    update = theme_sub.add_parser("update", help="Update a theme")
    update.add_argument("theme_id", type=int)
    update.add_argument("--name", default=None)
    update.add_argument("--description", default=None)
    update.add_argument("--archive-folder", default=None)

    delete = theme_sub.add_parser("delete", help="Delete a theme (files are kept)")
    delete.add_argument("theme_id", type=int)

    for action, help_text in (("add-account", "Link an account"), ("remove-account", "Unlink an account")):
        account = theme_sub.add_parser(action, help=help_text)
        account.add_argument("theme_id", type=int)
        account.add_argument("account_id", type=int)

    add_root = theme_sub.add_parser("add-root", help="Add a library folder to a theme")
    add_root.add_argument("theme_id", type=int)
    add_root.add_argument("library_id", type=int)
    add_root.add_argument("folder", help="Folder path inside the library, e.g. /videos/food")

    remove_root = theme_sub.add_parser("remove-root", help="Remove a resource root")
    remove_root.add_argument("theme_id", type=int)
    remove_root.add_argument("root_id", type=int)

    videos = theme_sub.add_parser("videos", help="List a theme's videos")
    videos.add_argument("theme_id", type=int)
    status = videos.add_mutually_exclusive_group()
    status.add_argument("--published", action="store_true", help="Only published videos")
    status.add_argument("--unpublished", action="store_true", help="Only unpublished videos")

    stats = theme_sub.add_parser("stats", help="Published / unpublished counts")
    stats.add_argument("theme_id", type=int)

    for action, help_text in (
        ("archive", "Move videos into the archive folder"),
        ("unarchive", "Move videos out of the archive folder"),
    ):
        move = theme_sub.add_parser(action, help=help_text)
        move.add_argument("theme_id", type=int)
        move.add_argument("paths", nargs="+", help="Video paths (fullPath as listed by 'videos')")

    publish = theme_sub.add_parser("publish", help="Create upload tasks for accounts x videos")
    publish.add_argument("theme_id", type=int)
    publish.add_argument("--accounts", type=int, nargs="+", default=None, help="Account ids (default: theme accounts)")
    publish.add_argument("--videos", nargs="+", required=True, help="Video paths")
    publish.add_argument("--title", default=None, help="Title (default: file name without extension)")
    publish.add_argument("--tags", nargs="+", default=[], help="Tags")
    publish.add_argument("--scheduled-at", type=_iso_datetime, default=None, help="ISO date/time")
    publish.add_argument(
        "--no-archive",
        dest="auto_archive",
        action="store_false",
        help="Do not archive videos when their uploads succeed",
    )

    # ============ TASK commands ============
    task_parser = subparsers.add_parser("task", help="Upload task outcomes")
    task_sub = task_parser.add_subparsers(dest="action", required=True)

    complete = task_sub.add_parser("complete", help="Record finished uploads and archive their videos")
    complete.add_argument("theme_id", type=int)
    complete.add_argument("task_ids", type=int, nargs="+")
    complete.add_argument("--failed", action="store_true", help="Uploads failed (nothing is archived)")
    complete.add_argument(
        "--no-archive",
        dest="auto_archive",
        action="store_false",
        help="Record success without archiving",
    )

    return parser


def _emit(args: argparse.Namespace, data: Any, message: str = "Success") -> None:
    if args.json:
        print(json.dumps(success(data, message), ensure_ascii=False, default=str))


def cmd_library(args: argparse.Namespace, ctx: AppContext, reporter) -> int:
    """Handle the library commands."""
    service = ctx.libraries

    if args.action == "add":
        library_type = LibraryType(args.library_type)
        if library_type == LibraryType.LOCAL:
            if args.path is None:
                raise ValidationError("--path is required for local libraries")
            config: dict[str, Any] = {"base_path": str(args.path)}
            if args.extensions:
                config["allowed_extensions"] = args.extensions
        else:
            if not args.url:
                raise ValidationError("--url is required for WebDAV libraries")
            config = {"url": args.url}
            for key in ("username", "password", "base_path", "timeout"):
                if getattr(args, key) is not None:
                    config[key] = getattr(args, key)

        library = service.add(args.name, library_type, config, check_connection=not args.no_check)
        _emit(args, library.to_dict(), "Library added")
        reporter.success(f"Added library {library.id} ({library.name})")
        return 0

    if args.action == "list":
        libraries = service.list()
        _emit(args, [library.to_dict() for library in libraries])
        if not args.json:
            reporter.print_libraries(libraries)
        return 0

    if args.action == "test":
        ok = service.test(args.library_id)
        _emit(args, {"libraryId": args.library_id, "connected": ok})
        if ok:
            reporter.success(f"Library {args.library_id} is reachable")
            return 0
        reporter.error(f"Library {args.library_id} is not reachable")
        return 1

    service.remove(args.library_id)
    _emit(args, None, "Library removed")
    reporter.success(f"Removed library {args.library_id}")
    return 0


def cmd_theme(args: argparse.Namespace, ctx: AppContext, reporter) -> int:
    """Handle the theme commands."""
    themes = ctx.themes
    action = args.action

    if action == "create":
        theme = themes.create(args.name, args.description, args.archive_folder, args.accounts)
        _emit(args, theme.to_dict(), "Theme created")
        reporter.success(f"Created theme {theme.id} ({theme.name})")
        return 0

    if action == "list":
        all_themes = themes.list()
        _emit(args, [t.to_dict() for t in all_themes])
        if not args.json:
            reporter.print_themes(all_themes)
        return 0

    if action == "delete":
        themes.delete(args.theme_id)
        _emit(args, None, "Theme deleted")
        reporter.success(f"Deleted theme {args.theme_id}")
        return 0

    theme = themes.get(args.theme_id)

    if action in ("show", "update", "add-account", "remove-account", "remove-root"):
        if action == "update":
            theme = themes.update(theme.id, args.name, args.description, args.archive_folder)
        elif action == "add-account":
            theme = themes.add_account(theme.id, args.account_id)
        elif action == "remove-account":
            theme = themes.remove_account(theme.id, args.account_id)
        elif action == "remove-root":
            themes.remove_resource_root(theme.id, args.root_id)
            theme = themes.get(theme.id)
        _emit(args, theme.to_dict())
        if not args.json:
            reporter.print_theme(theme)
        return 0

    if action == "add-root":
        root = themes.add_resource_root(theme.id, args.library_id, args.folder)
        _emit(args, root.to_dict(), "Resource root added")
        reporter.success(f"Added resource root {root.id}: library {root.library_id} {root.folder_path}")
        return 0

    if action == "videos":
        videos = ctx.resolver.resolve(theme)
        if args.published or args.unpublished:
            videos = [v for v in videos if v.is_published == args.published]
        _emit(args, [v.to_dict() for v in videos])
        if not args.json:
            reporter.print_videos(videos)
        return 0

    if action == "stats":
        stats = ctx.statistics.statistics(theme)
        _emit(args, stats.to_dict())
        if not args.json:
            reporter.print_statistics(stats)
        return 0

    if action in ("archive", "unarchive"):
        if action == "archive":
            report = ctx.archiver.archive(theme, args.paths)
        else:
            report = ctx.archiver.unarchive(theme, args.paths)
        _emit(args, report.to_dict(), f"{action.capitalize()} finished: {report.succeeded}/{report.total} succeeded")
        if not args.json:
            reporter.print_move_report(report)
        return 0 if report.failed == 0 else 1

    # publish
    request = PublishRequest(
        account_ids=tuple(args.accounts if args.accounts is not None else theme.account_ids),
        video_paths=tuple(args.videos),
        auto_archive=args.auto_archive,
        title=args.title,
        tags=tuple(args.tags),
        scheduled_at=args.scheduled_at,
    )
    result = ctx.publisher.batch_publish(theme, request)
    _emit(args, result.to_dict(), "Batch publish tasks created")
    if not args.json:
        reporter.print_publish_result(result)
    return 0 if not result.errors else 1


def cmd_task(args: argparse.Namespace, ctx: AppContext, reporter) -> int:
    """Handle the task commands."""
    theme = ctx.themes.get(args.theme_id)
    results = ctx.publisher.complete_tasks(
        theme, args.task_ids, succeeded=not args.failed, auto_archive=args.auto_archive,
    )
    archived = sum(1 for r in results if r.archived)
    _emit(args, [r.to_dict() for r in results], f"Completed {len(results)} tasks, archived {archived}")
    if not args.json:
        reporter.print_completions(results)
    if args.failed:
        return 0 if all(r.message == "upload failed" for r in results) else 1
    return 0 if all(r.success for r in results) else 1


COMMANDS = {
    "library": cmd_library,
    "theme": cmd_theme,
    "task": cmd_task,
}


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Create reporter
    if getattr(args, 'quiet', False) or getattr(args, 'json', False):
        reporter = QuietReporter()
    else:
        reporter = RichReporter(verbose=getattr(args, 'verbose', False))

    # No command specified - show help
    if not args.command:
        parser.print_help()
        return 0

    configure_logging(verbose=args.verbose, quiet=args.quiet or args.json)

    try:
        ctx = create_app_context(
            db_path=args.db,
            config_path=args.config,
            verbose=args.verbose,
            progress=None if args.json else reporter,
        )
        with ctx:
            return COMMANDS[args.command](args, ctx, reporter)

    except KeyboardInterrupt:
        # Clean exit on Ctrl+C - no stack trace
        return 130
    except ReelshelfError as e:
        if args.json:
            print(json.dumps(error(e.message, e.code), ensure_ascii=False))
        else:
            reporter.error(e.message)
        return 1
    except Exception as e:
        if args.json:
            print(json.dumps(error(str(e), 500), ensure_ascii=False))
        else:
            reporter.error(f"Error: {e}")
        if getattr(args, 'verbose', False):
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
