"""Library path helpers.

Library paths are posix strings relative to a Resource Store root, always
starting with ``/`` (``/videos/food``). They are never host filesystem paths.
"""
from __future__ import annotations

import posixpath

from .errors import ValidationError


def normalize_path(path: str) -> str:
    """Normalize a library path: posix separators, leading slash, no trailing slash."""
    path = (path or "").strip().replace("\\", "/")
    return posixpath.normpath("/" + path.lstrip("/"))


def join_path(directory: str, name: str) -> str:
    """Join a directory and an entry name with exactly one slash."""
    directory = normalize_path(directory)
    if directory == "/":
        return "/" + name
    return f"{directory}/{name}"


def parent_of(path: str) -> str:
    """Directory containing ``path``."""
    return posixpath.dirname(normalize_path(path)) or "/"


def basename(path: str) -> str:
    return posixpath.basename(normalize_path(path))


def stem(name: str) -> str:
    """Filename without its extension (``clip.final.mp4`` -> ``clip.final``)."""
    return posixpath.splitext(posixpath.basename(name))[0]


def extension(name: str) -> str:
    return posixpath.splitext(name)[1].lower()


def validate_segment(name: str, what: str = "folder name") -> str:
    """Validate a single path segment such as an archive folder name."""
    value = (name or "").strip()
    if not value:
        raise ValidationError(f"{what} must not be empty")
    if "/" in value or "\\" in value or value in {".", ".."}:
        raise ValidationError(f"{what} must be a single path segment: {value!r}")
    return value
