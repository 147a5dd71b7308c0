"""Exception hierarchy shared by services, storage backends and the API layer."""
from __future__ import annotations

from typing import Any, Optional


class ReelshelfError(Exception):
    """Base exception for all reelshelf errors.

    Attributes:
        message: Human readable description.
        code: Status code reported in API envelopes.
        context: Extra details for logging.
    """

    code: int = 500

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class ValidationError(ReelshelfError):
    """Missing or malformed input. Never retryable without changed input."""

    code = 400


class NotFoundError(ReelshelfError):
    """A theme, library, task or path does not exist."""

    code = 404


class ConflictError(ReelshelfError):
    """Target already exists (move, rename, duplicate resource root)."""

    code = 409


class BackendError(ReelshelfError):
    """Storage I/O failure: network, permission, disk, timeout."""

    code = 502
