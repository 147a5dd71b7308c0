"""Resource Store backends."""
from .base import BaseResourceStore, classify, VIDEO_EXTENSIONS
from .local import LocalResourceStore
from .webdav import WebDAVResourceStore
from .registry import StoreFactory, StoreRegistry

__all__ = [
    "BaseResourceStore",
    "classify",
    "VIDEO_EXTENSIONS",
    "LocalResourceStore",
    "WebDAVResourceStore",
    "StoreFactory",
    "StoreRegistry",
]
