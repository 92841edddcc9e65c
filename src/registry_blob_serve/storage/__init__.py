"""Blob store backends."""

from .base import BlobStore, object_key
from .file import FileBlobStore
from .http import HttpBlobStore
from .memory import MemoryBlobStore

__all__ = [
    "BlobStore",
    "FileBlobStore",
    "HttpBlobStore",
    "MemoryBlobStore",
    "object_key",
]
