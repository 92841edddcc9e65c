"""Registry blob serve - publish image content to a blob store and serve it by digest."""

__version__ = "0.1.0"

from .core.types import Descriptor, StoreConfig
from .exceptions import (
    ConfigError,
    ConflictError,
    ModelError,
    NotFoundError,
    RegistryError,
    StoreError,
    TarReadError,
    ValidationError,
)
from .model import Blob, Image, Index
from .serve import error_middleware, serve, serve_blob
from .storage import BlobStore, FileBlobStore, HttpBlobStore, MemoryBlobStore
from .tar import load_image_from_tar, load_index_from_tar
from .writer import BlobWriter, ConflictPolicy, write_image, write_index

__all__ = [
    "Blob",
    "BlobStore",
    "BlobWriter",
    "ConfigError",
    "ConflictError",
    "ConflictPolicy",
    "Descriptor",
    "FileBlobStore",
    "HttpBlobStore",
    "Image",
    "Index",
    "MemoryBlobStore",
    "ModelError",
    "NotFoundError",
    "RegistryError",
    "StoreConfig",
    "StoreError",
    "TarReadError",
    "ValidationError",
    "error_middleware",
    "load_image_from_tar",
    "load_index_from_tar",
    "serve",
    "serve_blob",
    "write_image",
    "write_index",
]
