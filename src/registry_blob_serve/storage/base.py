"""BlobStore: interface for content-addressed object storage backends."""

from abc import ABC, abstractmethod

from ..core.types import Descriptor

BLOB_PREFIX = "blobs"

# Metadata header names persisted with every object
META_CONTENT_LENGTH = "Content-Length"
META_CONTENT_TYPE = "Content-Type"
META_DOCKER_CONTENT_DIGEST = "Docker-Content-Digest"


def object_key(name: str) -> str:
    """Return the object key for a digest or alias name."""
    return f"{BLOB_PREFIX}/{name}"


class BlobStore(ABC):
    """Durable key/value storage keyed by digest or alias name.

    Each object carries three pieces of metadata: digest, media type and
    size. Implementations must allow concurrent writes to different names
    and treat repeated writes of the same content as harmless.
    """

    async def __aenter__(self) -> "BlobStore":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Release backend resources."""

    @abstractmethod
    async def exists(self, name: str) -> Descriptor:
        """Look up stored metadata for a key.

        Raises:
            NotFoundError: If the key is absent
            StoreError: On transport or authentication failure
        """

    @abstractmethod
    async def write(
        self, name: str, digest: str, media_type: str, content: bytes
    ) -> None:
        """Store content under a key with digest and media type metadata.

        The digest is recorded as given; it is not checked against content.

        Raises:
            StoreError: On transport or authentication failure
        """

    @abstractmethod
    def resolve_location(self, digest: str) -> str:
        """Map a digest to the URL or path retrieval requests redirect to."""
