"""Rich-based terminal reporting and logging setup."""
from __future__ import annotations

import logging
import sys
import time
from collections import deque
from typing import Iterable, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import (
    Progress,
    ProgressColumn,
    SpinnerColumn,
    TextColumn,
    BarColumn,
    TimeElapsedColumn,
    MofNCompleteColumn,
    TaskID,
    Task,
)
from rich.table import Table
from rich.panel import Panel
from rich.text import Text

from ..core.models import (
    BatchPublishResult,
    CompletionResult,
    Library,
    MoveReport,
    Theme,
    ThemeStatistics,
    VideoEntry,
)


def configure_logging(verbose: bool = False, quiet: bool = False, console: Optional[Console] = None) -> None:
    """Route the ``reelshelf`` loggers through a RichHandler on stderr.

    Args:
        verbose: Show debug messages.
        quiet: Only show errors.
    """
    level = logging.DEBUG if verbose else logging.ERROR if quiet else logging.WARNING
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=verbose,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    package_logger = logging.getLogger("reelshelf")
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
    package_logger.propagate = False

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def _size(value: Optional[int]) -> str:
    if value is None:
        return "-"
    size = float(value)
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024:
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


class ItemsPerSecondColumn(ProgressColumn):
    """Renders items per second as a rolling average."""

    def __init__(self, window_size: int = 10):
        super().__init__()
        self._samples: deque[tuple[float, int]] = deque(maxlen=window_size)
        self._last_completed = 0
        self._start_time: Optional[float] = None

    def render(self, task: Task) -> Text:
        completed = int(task.completed)
        current_time = time.time()

        if self._start_time is None:
            self._start_time = current_time
            self._last_completed = completed
            return Text("-- it/s", style="magenta")

        if completed > self._last_completed:
            self._samples.append((current_time, completed))
            self._last_completed = completed

        if len(self._samples) >= 2:
            oldest_time, oldest_completed = self._samples[0]
            newest_time, newest_completed = self._samples[-1]
            if newest_time > oldest_time:
                speed = (newest_completed - oldest_completed) / (newest_time - oldest_time)
                return Text(f"{speed:.1f} it/s", style="magenta")

        elapsed = current_time - self._start_time
        if elapsed > 0 and completed > 0:
            return Text(f"{completed / elapsed:.1f} it/s", style="magenta")
        return Text("-- it/s", style="magenta")


class RichReporter:
    """Terminal reporter using Rich.

    Implements the ProgressReporter protocol and renders command results.
    """

    def __init__(
        self,
        verbose: bool = False,
        quiet: bool = False,
        console: Optional[Console] = None,
    ):
        """Initialize the reporter.

        Args:
            verbose: Enable verbose output.
            quiet: Suppress all non-essential output.
            console: Console for results (default: stdout).
        """
        self._console = console or Console()
        self._err_console = Console(stderr=True) if console is None else console
        self._verbose = verbose
        self._quiet = quiet
        self._progress: Optional[Progress] = None
        self._current_task_id: Optional[TaskID] = None

    @property
    def console(self) -> Console:
        return self._console

    # --- Phase Management ---

    def start_phase(self, name: str, total: int) -> None:
        """Start a new phase with a progress bar."""
        if self._quiet or total <= 0:
            return

        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(bar_width=40),
            MofNCompleteColumn(),
            TextColumn("[cyan]•"),
            ItemsPerSecondColumn(),
            TextColumn("[cyan]•"),
            TimeElapsedColumn(),
            console=self._err_console,
            transient=True,
        )
        self._progress.start()
        self._current_task_id = self._progress.add_task(name, total=total)

    def advance_phase(self, amount: int = 1) -> None:
        if self._progress and self._current_task_id is not None:
            self._progress.advance(self._current_task_id, amount)

    def end_phase(self) -> None:
        if self._progress:
            self._progress.stop()
            self._progress = None
            self._current_task_id = None

    # --- Messages ---

    def info(self, message: str) -> None:
        if not self._quiet:
            self._err_console.print(f"[blue]ℹ[/blue] {message}")

    def success(self, message: str) -> None:
        if not self._quiet:
            self._err_console.print(f"[green]✓[/green] {message}")

    def warning(self, message: str) -> None:
        self._err_console.print(f"[yellow]⚠[/yellow] {message}")

    def error(self, message: str) -> None:
        self._err_console.print(f"[red]✗[/red] {message}", style="red")

    def debug(self, message: str) -> None:
        if self._verbose:
            self._err_console.print(f"[dim]  {message}[/dim]")

    # --- Results ---

    def print_header(self, title: str) -> None:
        if self._quiet:
            return
        self._console.print(Panel(Text(title, style="bold cyan"), border_style="cyan"))

    def print_libraries(self, libraries: Iterable[Library]) -> None:
        table = Table(title="Libraries", header_style="bold")
        table.add_column("ID", justify="right", style="cyan")
        table.add_column("Name")
        table.add_column("Type")
        table.add_column("Location")
        table.add_column("Active", justify="center")
        for library in libraries:
            location = " ".join(
                str(library.config[key]) for key in ("url", "base_path") if library.config.get(key)
            )
            table.add_row(
                str(library.id),
                library.name,
                library.type.value,
                str(location),
                "[green]yes[/green]" if library.is_active else "[dim]no[/dim]",
            )
        self._console.print(table)

    def print_themes(self, themes: Iterable[Theme]) -> None:
        table = Table(title="Themes", header_style="bold")
        table.add_column("ID", justify="right", style="cyan")
        table.add_column("Name")
        table.add_column("Archive folder")
        table.add_column("Accounts", justify="right")
        table.add_column("Roots", justify="right")
        for theme in themes:
            table.add_row(
                str(theme.id),
                theme.name,
                theme.archive_folder,
                str(len(theme.account_ids)),
                str(len(theme.resource_roots)),
            )
        self._console.print(table)

    def print_theme(self, theme: Theme) -> None:
        table = Table(title=f"Theme {theme.id}: {theme.name}", show_header=False)
        table.add_column("Field", style="cyan")
        table.add_column("Value")
        table.add_row("Description", theme.description or "")
        table.add_row("Archive folder", theme.archive_folder)
        table.add_row("Accounts", ", ".join(str(a) for a in theme.account_ids) or "-")
        for root in theme.resource_roots:
            table.add_row(f"Root #{root.id}", f"library {root.library_id}: {root.folder_path}")
        self._console.print(table)

    def print_videos(self, videos: Iterable[VideoEntry]) -> None:
        table = Table(title="Videos", header_style="bold")
        table.add_column("Path")
        table.add_column("Library", justify="right")
        table.add_column("Size", justify="right")
        table.add_column("Status")
        for video in videos:
            table.add_row(
                video.full_path,
                str(video.library_id),
                _size(video.size),
                "[green]published[/green]" if video.is_published else "[yellow]unpublished[/yellow]",
            )
        self._console.print(table)

    def print_statistics(self, stats: ThemeStatistics) -> None:
        table = Table(title="Statistics", show_header=False)
        table.add_column("Metric", style="cyan")
        table.add_column("Count", style="green", justify="right")
        table.add_row("Published", str(stats.published))
        table.add_row("Unpublished", str(stats.unpublished))
        table.add_row("Total", str(stats.total))
        self._console.print(table)

    def print_move_report(self, report: MoveReport) -> None:
        verb = "Archived" if report.operation == "archive" else "Unarchived"
        for result in report.results:
            if result.success:
                self._console.print(f"  [green]✓[/green] {result.path}")
            else:
                self._console.print(f"  [red]✗[/red] {result.path} [dim]({result.message})[/dim]")

        table = Table(title=f"{report.operation.capitalize()} Complete", show_header=False)
        table.add_column("Metric", style="cyan")
        table.add_column("Count", style="green", justify="right")
        table.add_row("Requested", str(report.total))
        table.add_row(verb, str(report.succeeded))
        table.add_row("Failed", str(report.failed))
        if report.skipped:
            table.add_row("Not eligible", str(report.skipped))
        self._console.print(table)

    def print_publish_result(self, result: BatchPublishResult) -> None:
        table = Table(title="Upload Tasks", header_style="bold")
        table.add_column("Task", justify="right", style="cyan")
        table.add_column("Account", justify="right")
        table.add_column("Video")
        table.add_column("Auto-archive", justify="center")
        for task in result.tasks:
            table.add_row(
                str(task.task_id),
                str(task.account_id),
                task.video_path,
                "yes" if task.auto_archive else "no",
            )
        self._console.print(table)
        for error in result.errors:
            self.error(f"account {error.account_id}, {error.video_path}: {error.message}")
        self.success(
            f"{result.total_tasks} tasks for {result.account_count} accounts x {result.video_count} videos"
        )

    def print_completions(self, results: Iterable[CompletionResult]) -> None:
        for result in results:
            if result.success:
                note = "archived" if result.archived else (result.message or "recorded")
                self._console.print(f"  [green]✓[/green] task {result.task_id}: {note}")
            else:
                self._console.print(f"  [red]✗[/red] task {result.task_id}: {result.message}")

    # --- Context Managers ---

    def __enter__(self) -> "RichReporter":
        return self

    def __exit__(self, *args) -> None:
        self.end_phase()


class QuietReporter(RichReporter):
    """Reporter that only shows errors and warnings, as plain text."""

    def __init__(self) -> None:
        super().__init__(quiet=True)

    def start_phase(self, name: str, total: int) -> None:
        pass

    def advance_phase(self, amount: int = 1) -> None:
        pass

    def end_phase(self) -> None:
        pass

    def warning(self, message: str) -> None:
        print(f"WARNING: {message}", file=sys.stderr)

    def error(self, message: str) -> None:
        print(f"ERROR: {message}", file=sys.stderr)
