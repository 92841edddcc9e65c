"""FileBlobStore: filesystem-backed blob storage with JSON metadata files."""

import asyncio
import json
import uuid
from pathlib import Path
from typing import Dict, Optional, Union

import aiofiles
import aiofiles.os

from ..core.types import Descriptor
from ..exceptions import ModelError, NotFoundError, StoreError, ValidationError
from .base import BLOB_PREFIX, BlobStore, object_key

META_DIR = "meta"
META_SUFFIX = ".json"


class FileBlobStore(BlobStore):
    """Blob store that keeps objects under ``<root>/blobs/``.

    Bytes are stored in ``<root>/blobs/<name>`` and metadata in
    ``<root>/meta/<name>.json``, so no object name can collide with another
    object's metadata. Both files are written to temporary files first and
    renamed into place while holding a per-name lock; concurrent writers of
    one name never leave bytes from one write next to metadata from another.
    """

    def __init__(self, root: Union[str, Path], base_url: Optional[str] = None) -> None:
        """Initialize the store.

        Args:
            root: Store root directory, created on first write
            base_url: Optional public URL serving ``<root>``; redirects use
                local paths when omitted
        """
        self.root = Path(root).resolve()
        self.base_url = base_url.rstrip("/") if base_url else None
        self._locks: Dict[str, asyncio.Lock] = {}

    def _path(self, name: str) -> Path:
        if not name or name in (".", "..") or "/" in name or "\\" in name:
            raise ValidationError(f"Invalid object name: {name!r}")
        return self.root / BLOB_PREFIX / name

    def _meta_path(self, name: str) -> Path:
        self._path(name)
        return self.root / META_DIR / f"{name}{META_SUFFIX}"

    def _lock(self, name: str) -> asyncio.Lock:
        lock = self._locks.get(name)
        if lock is None:
            lock = self._locks[name] = asyncio.Lock()
        return lock

    async def exists(self, name: str) -> Descriptor:
        meta_path = self._meta_path(name)
        try:
            async with aiofiles.open(meta_path, "rb") as f:
                meta = json.loads(await f.read())
        except FileNotFoundError:
            raise NotFoundError(name) from None
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Failed to read metadata for {name}: {e}") from e

        try:
            return Descriptor.from_dict(meta)
        except ModelError as e:
            raise StoreError(f"Corrupt metadata for {name}: {e}") from e

    async def write(
        self, name: str, digest: str, media_type: str, content: bytes
    ) -> None:
        path = self._path(name)
        meta_path = self._meta_path(name)
        suffix = f".{uuid.uuid4().hex}.tmp"
        meta = Descriptor(digest=digest, media_type=media_type, size=len(content))

        try:
            await aiofiles.os.makedirs(path.parent, exist_ok=True)
            await aiofiles.os.makedirs(meta_path.parent, exist_ok=True)
            async with aiofiles.open(f"{path}{suffix}", "wb") as f:
                await f.write(content)
            async with aiofiles.open(f"{meta_path}{suffix}", "w") as f:
                await f.write(json.dumps(meta.to_dict()))
            async with self._lock(name):
                await aiofiles.os.replace(f"{path}{suffix}", path)
                await aiofiles.os.replace(f"{meta_path}{suffix}", meta_path)
        except OSError as e:
            raise StoreError(f"Failed to write {object_key(name)}: {e}") from e

    def resolve_location(self, digest: str) -> str:
        if self.base_url:
            return f"{self.base_url}/{object_key(digest)}"
        return str(self.root / BLOB_PREFIX / digest)

    async def read(self, name: str) -> bytes:
        """Return stored bytes for a key.

        Raises:
            NotFoundError: If the key is absent
            StoreError: If the object cannot be read
        """
        try:
            async with aiofiles.open(self._path(name), "rb") as f:
                return await f.read()
        except FileNotFoundError:
            raise NotFoundError(name) from None
        except OSError as e:
            raise StoreError(f"Failed to read {object_key(name)}: {e}") from e
