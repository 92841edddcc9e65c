"""MemoryBlobStore: dict-based blob storage for development and testing."""

import asyncio
from typing import Dict, List, Tuple

from ..core.types import Descriptor
from ..exceptions import NotFoundError
from .base import BlobStore, object_key


class MemoryBlobStore(BlobStore):
    """In-memory blob store for development and testing."""

    def __init__(self, base_url: str = "") -> None:
        self.base_url = base_url.rstrip("/")
        self._objects: Dict[str, Tuple[bytes, Descriptor]] = {}

    async def exists(self, name: str) -> Descriptor:
        await asyncio.sleep(0)
        try:
            return self._objects[name][1]
        except KeyError:
            raise NotFoundError(name) from None

    async def write(
        self, name: str, digest: str, media_type: str, content: bytes
    ) -> None:
        # Yield once so concurrent writes interleave like real I/O
        await asyncio.sleep(0)
        data = bytes(content)
        self._objects[name] = (
            data,
            Descriptor(digest=digest, media_type=media_type, size=len(data)),
        )

    def resolve_location(self, digest: str) -> str:
        return f"{self.base_url}/{object_key(digest)}"

    def keys(self) -> List[str]:
        """Return stored keys in insertion order."""
        return list(self._objects)

    def read(self, name: str) -> bytes:
        """Return stored bytes for a key.

        Raises:
            NotFoundError: If the key is absent
        """
        try:
            return self._objects[name][0]
        except KeyError:
            raise NotFoundError(name) from None

    def __len__(self) -> int:
        return len(self._objects)

    def __contains__(self, name: object) -> bool:
        return name in self._objects
