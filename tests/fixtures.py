"""Test helpers: library trees, an in-memory WebDAV server and failing wrappers.

The helpers here are plain classes and functions; pytest fixtures built on
them live in ``conftest.py``.
"""
from __future__ import annotations

import posixpath
from email.utils import format_datetime
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union
from urllib.parse import quote, unquote, urlsplit

import httpx

from reelshelf.core.errors import BackendError
from reelshelf.core.models import TaskRequest, TaskStatus, UploadTask


def build_tree(base: Path, files: dict[str, Union[bytes, str]]) -> Path:
    """Create ``files`` (relative path -> content) under ``base``.

    A key ending in ``/`` creates an empty folder.
    """
    base.mkdir(parents=True, exist_ok=True)
    for relative, content in files.items():
        target = base / relative
        if relative.endswith("/"):
            target.mkdir(parents=True, exist_ok=True)
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            content = content.encode("utf-8")
        target.write_bytes(content)
    return base


def list_files(base: Path) -> list[str]:
    """All files under ``base`` as sorted posix paths relative to it."""
    return sorted(p.relative_to(base).as_posix() for p in base.rglob("*") if p.is_file())


class FakeDavServer:
    """Minimal in-memory WebDAV server for ``httpx.MockTransport``.

    Supports PROPFIND (depth 0 and 1), MKCOL and MOVE with the status codes
    a real server answers. Paths are decoded server paths without a
    trailing slash.
    """

    LASTMOD = format_datetime(datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc), usegmt=True)

    def __init__(self, root: str = "/dav"):
        self.folders: set[str] = {"/"}
        self.files: dict[str, int] = {}
        self.requests: list[tuple[str, str]] = []
        self.failures: dict[tuple[str, str], int] = {}
        self.add_folder(root)

    # --- Setup ---

    def add_folder(self, path: str) -> None:
        path = path.rstrip("/") or "/"
        while path not in self.folders:
            self.folders.add(path)
            path = posixpath.dirname(path)

    def add_file(self, path: str, size: int = 1024) -> None:
        self.add_folder(posixpath.dirname(path))
        self.files[path] = size

    def fail(self, method: str, path: str, status: int = 500) -> None:
        """Answer ``method`` on ``path`` with ``status`` from now on."""
        self.failures[(method, path)] = status

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    # --- Request handling ---

    def exists(self, path: str) -> bool:
        return path in self.folders or path in self.files

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = unquote(request.url.path).rstrip("/") or "/"
        self.requests.append((request.method, path))

        status = self.failures.get((request.method, path))
        if status is not None:
            return httpx.Response(status)

        handler = getattr(self, f"_do_{request.method.lower()}", None)
        if handler is None:
            return httpx.Response(405)
        return handler(request, path)

    def _children(self, path: str) -> list[str]:
        prefix = path.rstrip("/") + "/"
        candidates = list(self.folders) + list(self.files)
        return sorted(
            p for p in candidates
            if p != path and p.startswith(prefix) and "/" not in p[len(prefix):]
        )

    def _entry(self, path: str) -> str:
        if path in self.folders:
            href = quote(path.rstrip("/") + "/")
            props = "<d:resourcetype><d:collection/></d:resourcetype>"
        else:
            href = quote(path)
            props = f"<d:resourcetype/><d:getcontentlength>{self.files[path]}</d:getcontentlength>"
        return (
            f"<d:response><d:href>{href}</d:href><d:propstat><d:prop>"
            f"{props}<d:getlastmodified>{self.LASTMOD}</d:getlastmodified>"
            "</d:prop><d:status>HTTP/1.1 200 OK</d:status></d:propstat></d:response>"
        )

    def _do_propfind(self, request: httpx.Request, path: str) -> httpx.Response:
        if not self.exists(path):
            return httpx.Response(404)
        paths = [path]
        if request.headers.get("Depth") == "1" and path in self.folders:
            paths += self._children(path)
        body = (
            '<?xml version="1.0" encoding="utf-8"?><d:multistatus xmlns:d="DAV:">'
            + "".join(self._entry(p) for p in paths)
            + "</d:multistatus>"
        )
        return httpx.Response(207, content=body.encode("utf-8"))

    def _do_mkcol(self, request: httpx.Request, path: str) -> httpx.Response:
        if self.exists(path):
            return httpx.Response(405)
        if posixpath.dirname(path) not in self.folders:
            return httpx.Response(409)
        self.folders.add(path)
        return httpx.Response(201)

    def _do_move(self, request: httpx.Request, path: str) -> httpx.Response:
        if not self.exists(path):
            return httpx.Response(404)
        destination = unquote(urlsplit(request.headers["Destination"]).path).rstrip("/")
        if self.exists(destination):
            return httpx.Response(412 if request.headers.get("Overwrite") == "F" else 204)
        if posixpath.dirname(destination) not in self.folders:
            return httpx.Response(409)

        if path in self.files:
            self.files[destination] = self.files.pop(path)
        else:
            prefix = path + "/"
            self.folders = {destination + p[len(path):] if p == path or p.startswith(prefix) else p
                            for p in self.folders}
            self.files = {(destination + p[len(path):] if p.startswith(prefix) else p): size
                          for p, size in self.files.items()}
        return httpx.Response(201)


class FailingStore:
    """Wraps a Resource Store and fails moves of selected source paths."""

    def __init__(self, store, fail_moves: Optional[set[str]] = None, fail_lists: Optional[set[str]] = None):
        self._store = store
        self.fail_moves = set(fail_moves or ())
        self.fail_lists = set(fail_lists or ())
        self.moves: list[tuple[str, str]] = []

    def move(self, source_path: str, target_path: str) -> None:
        if source_path in self.fail_moves:
            raise BackendError(f"Injected failure moving {source_path}", {"path": source_path})
        self._store.move(source_path, target_path)
        self.moves.append((source_path, target_path))

    def list(self, path: str):
        if path in self.fail_lists:
            raise BackendError(f"Injected failure listing {path}", {"path": path})
        return self._store.list(path)

    def __getattr__(self, name):
        return getattr(self._store, name)


class RecordingProgress:
    """ProgressReporter that records every call."""

    def __init__(self):
        self.calls: list[tuple] = []

    def start_phase(self, name: str, total: int) -> None:
        self.calls.append(("start", name, total))

    def advance_phase(self, amount: int = 1) -> None:
        self.calls.append(("advance", amount))

    def end_phase(self) -> None:
        self.calls.append(("end",))

    @property
    def advanced(self) -> int:
        return sum(call[1] for call in self.calls if call[0] == "advance")


class FailingTaskSink:
    """Task sink wrapper refusing tasks for selected accounts."""

    def __init__(self, sink, fail_accounts: set[int]):
        self._sink = sink
        self.fail_accounts = fail_accounts

    def create_task(self, request: TaskRequest) -> UploadTask:
        if request.account_id in self.fail_accounts:
            raise BackendError(f"Account {request.account_id} is not logged in")
        return self._sink.create_task(request)

    def get_task(self, task_id: int) -> Optional[UploadTask]:
        return self._sink.get_task(task_id)

    def update_status(self, task_id: int, status: TaskStatus) -> None:
        self._sink.update_status(task_id, status)
