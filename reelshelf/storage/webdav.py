"""Resource Store backed by a WebDAV collection."""
from __future__ import annotations

import logging
import posixpath
import xml.etree.ElementTree as ET
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Iterable, Optional
from urllib.parse import quote, unquote, urlsplit

import httpx

from ..core.errors import BackendError, ConflictError, NotFoundError
from ..core.models import ResourceInfo, ResourceType
from ..core.paths import extension, join_path, normalize_path, parent_of, validate_segment
from .base import BaseResourceStore, classify


logger = logging.getLogger(__name__)

DAV_NS = "{DAV:}"

PROPFIND_BODY = (
    '<?xml version="1.0" encoding="utf-8"?>'
    '<d:propfind xmlns:d="DAV:"><d:prop>'
    "<d:resourcetype/><d:getcontentlength/><d:getlastmodified/>"
    "</d:prop></d:propfind>"
)


def _parse_lastmod(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None


class WebDAVResourceStore(BaseResourceStore):
    """Library rooted at a collection on a WebDAV server.

    Library path ``/videos/food`` maps to
    ``<url path><base_path>/videos/food`` on the server.
    """

    def __init__(
        self,
        url: str,
        username: str = "",
        password: str = "",
        base_path: str = "/",
        timeout: float = 30.0,
        allowed_extensions: Iterable[str] = (),
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize the store.

        Args:
            url: Server URL including any DAV prefix.
            username: Basic auth user (empty for anonymous).
            password: Basic auth password.
            base_path: Collection used as the library root.
            timeout: Per-request timeout in seconds.
            allowed_extensions: Optional extension whitelist for listings.
            transport: Custom httpx transport (tests).
        """
        super().__init__(allowed_extensions)
        parts = urlsplit(url.rstrip("/"))
        self._origin = f"{parts.scheme}://{parts.netloc}"
        self._prefix = parts.path.rstrip("/")
        self._base_path = normalize_path(base_path)
        self._client = httpx.Client(
            base_url=self._origin,
            auth=(username, password) if username else None,
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    # --- Path mapping ---

    def _server_path(self, path: str) -> str:
        """Absolute server path for a library path."""
        library_path = normalize_path(path)
        if self._base_path != "/":
            library_path = normalize_path(self._base_path + library_path)
        return self._prefix + library_path

    def _url(self, path: str, collection: bool = False) -> str:
        server_path = self._server_path(path)
        if collection and not server_path.endswith("/"):
            server_path += "/"
        return quote(server_path)

    def _library_path(self, href: str) -> str:
        """Map a multistatus href back to a library path."""
        server_path = unquote(urlsplit(href).path)
        root = self._prefix + (self._base_path if self._base_path != "/" else "")
        if root and server_path.startswith(root):
            server_path = server_path[len(root):]
        return normalize_path(server_path)

    # --- HTTP ---

    def _request(self, method: str, path: str, collection: bool = False, **kwargs) -> httpx.Response:
        try:
            return self._client.request(method, self._url(path, collection), **kwargs)
        except httpx.TimeoutException as e:
            raise BackendError(f"WebDAV {method} timed out: {path}", {"path": path}) from e
        except httpx.HTTPError as e:
            raise BackendError(f"WebDAV {method} failed for {path}: {e}", {"path": path}) from e

    def _raise_for(self, response: httpx.Response, method: str, path: str) -> None:
        status = response.status_code
        if status < 400:
            return
        context = {"path": path, "status": status}
        if status == 404:
            raise NotFoundError(f"Path not found: {path}", context)
        if status in (409, 412):
            raise ConflictError(f"WebDAV {method} conflict on {path} ({status})", context)
        raise BackendError(f"WebDAV {method} failed for {path} ({status})", context)

    def _propfind(self, path: str, depth: str) -> list[ResourceInfo]:
        response = self._request(
            "PROPFIND",
            path,
            collection=depth == "1",
            content=PROPFIND_BODY,
            headers={"Depth": depth, "Content-Type": "application/xml; charset=utf-8"},
        )
        self._raise_for(response, "PROPFIND", path)
        try:
            root = ET.fromstring(response.content)
        except ET.ParseError as e:
            raise BackendError(f"Malformed PROPFIND response for {path}", {"path": path}) from e

        entries = []
        for node in root.iter(f"{DAV_NS}response"):
            href = node.findtext(f"{DAV_NS}href")
            if not href:
                continue
            library_path = self._library_path(href)
            prop = node.find(f".//{DAV_NS}prop")
            is_folder = prop is not None and prop.find(f"{DAV_NS}resourcetype/{DAV_NS}collection") is not None
            name = posixpath.basename(library_path)
            size_text = prop.findtext(f"{DAV_NS}getcontentlength") if prop is not None else None
            lastmod = _parse_lastmod(prop.findtext(f"{DAV_NS}getlastmodified") if prop is not None else None)

            if is_folder:
                entries.append(ResourceInfo(
                    name=name, path=library_path, type=ResourceType.FOLDER, modified_time=lastmod,
                ))
            else:
                entries.append(ResourceInfo(
                    name=name,
                    path=library_path,
                    type=classify(name),
                    size=int(size_text) if size_text and size_text.isdigit() else None,
                    modified_time=lastmod,
                    extension=extension(name) or None,
                ))
        return entries

    # --- ResourceStore ---

    def check_connection(self) -> bool:
        try:
            return self.get_info("/").is_folder
        except (NotFoundError, BackendError) as e:
            logger.warning(f"WebDAV connection test failed for {self._origin}: {e}")
            return False

    def list(self, path: str) -> list[ResourceInfo]:
        directory = normalize_path(path)
        entries = self._propfind(directory, "1")
        # The collection itself is part of a depth-1 answer
        children = [e for e in entries if e.path != directory]
        return self._finish_listing(children)

    def get_info(self, path: str) -> ResourceInfo:
        entries = self._propfind(path, "0")
        if not entries:
            raise NotFoundError(f"Path not found: {path}", {"path": path})
        return entries[0]

    def exists(self, path: str) -> bool:
        try:
            self.get_info(path)
        except NotFoundError:
            return False
        return True

    def create_folder(self, path: str) -> None:
        # MKCOL is not recursive; create each missing ancestor in order
        current = "/"
        for segment in normalize_path(path).strip("/").split("/"):
            if not segment:
                continue
            current = join_path(current, segment)
            response = self._request("MKCOL", current, collection=True)
            # 405: already exists
            if response.status_code in (201, 405):
                continue
            self._raise_for(response, "MKCOL", current)
        logger.debug(f"Created folder {path}")

    def move(self, source_path: str, target_path: str) -> None:
        source = self.get_info(source_path)
        if self.exists(target_path):
            raise ConflictError(f"Target already exists: {target_path}", {"path": target_path})

        target_dir = parent_of(target_path)
        if not self.exists(target_dir):
            self.create_folder(target_dir)

        response = self._request(
            "MOVE",
            source_path,
            collection=source.is_folder,
            headers={
                "Destination": self._origin + self._url(target_path, source.is_folder),
                "Overwrite": "F",
            },
        )
        self._raise_for(response, "MOVE", source_path)
        logger.debug(f"Moved {source_path} -> {target_path}")

    def rename(self, path: str, new_name: str) -> str:
        new_name = validate_segment(new_name, "new name")
        target_path = join_path(parent_of(path), new_name)
        self.move(path, target_path)
        return target_path
