"""Async publishing of images and indexes into a blob store."""

import asyncio
import enum
import logging
import time
from typing import Awaitable, Iterable, Optional

from .exceptions import ConflictError, NotFoundError
from .model import Blob, Image, Index
from .storage.base import BlobStore
from .utils.concurrency import gather_first_error
from .utils.digest import ensure_aliases

logger = logging.getLogger(__name__)


class ConflictPolicy(str, enum.Enum):
    """How digest-keyed writes treat a key that is already present.

    OVERWRITE always writes. WRITE_ONCE skips keys whose stored digest matches
    and raises ConflictError when it differs. Aliases are always overwritten.
    """

    OVERWRITE = "overwrite"
    WRITE_ONCE = "write-once"


class BlobWriter:
    """Writes image and index content into a BlobStore.

    Referenced blobs are always written before the manifest that references
    them. Sibling writes fan out concurrently.
    """

    def __init__(
        self,
        store: BlobStore,
        conflict_policy: ConflictPolicy = ConflictPolicy.OVERWRITE,
        max_concurrency: Optional[int] = None,
        fail_fast: bool = False,
    ) -> None:
        """Initialize the writer.

        Args:
            store: Destination blob store
            conflict_policy: Handling of digest keys that already exist
            max_concurrency: Upper bound on concurrent store writes
            fail_fast: Cancel in-flight sibling writes on the first failure
        """
        if max_concurrency is not None and max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self.store = store
        self.conflict_policy = ConflictPolicy(conflict_policy)
        self.fail_fast = fail_fast
        self._semaphore = (
            asyncio.Semaphore(max_concurrency) if max_concurrency else None
        )

    async def write_image(self, image: Image, aliases: Iterable[str] = ()) -> None:
        """Write config, layers and manifest of an image.

        Args:
            image: Image to publish
            aliases: Extra names the manifest is also stored under

        Raises:
            StoreError: If any blob write fails
            ConflictError: If WRITE_ONCE finds different content under a digest
            ValidationError: If an alias is malformed
        """
        aliases = ensure_aliases(aliases)

        await self.write_blob(image.config)

        await self._fan_out(self.write_blob(layer) for layer in image.layers)

        await self._write_manifest(image.manifest, aliases)

    async def write_index(self, index: Index, aliases: Iterable[str] = ()) -> None:
        """Write every referenced image, then the index manifest.

        Args:
            index: Index to publish
            aliases: Extra names the index manifest is also stored under

        Raises:
            ModelError: If a referenced image cannot be resolved
            StoreError: If any blob write fails
        """
        aliases = ensure_aliases(aliases)

        async def write_referenced(digest: str) -> None:
            await self.write_image(index.image(digest))

        await self._fan_out(
            write_referenced(descriptor.digest) for descriptor in index.manifests
        )

        await self._write_manifest(index.manifest, aliases)

    async def write_blob(self, blob: Blob) -> None:
        """Write a blob under its own digest, honouring the conflict policy."""
        if self.conflict_policy is ConflictPolicy.WRITE_ONCE:
            try:
                existing = await self.store.exists(blob.digest)
            except NotFoundError:
                pass
            else:
                if existing.digest != blob.digest:
                    raise ConflictError(blob.digest, existing.digest, blob.digest)
                logger.debug("Skipping %s, already present", blob.digest)
                return

        await self._put(blob.digest, blob)

    async def _write_manifest(self, manifest: Blob, aliases: tuple) -> None:
        await self.write_blob(manifest)
        await self._fan_out(self._put(alias, manifest) for alias in aliases)

    async def _put(self, name: str, blob: Blob) -> None:
        if self._semaphore is None:
            await self._timed_write(name, blob)
            return
        async with self._semaphore:
            await self._timed_write(name, blob)

    async def _timed_write(self, name: str, blob: Blob) -> None:
        start = time.monotonic()
        try:
            await self.store.write(name, blob.digest, blob.media_type, blob.data)
        except Exception as e:
            logger.warning("write(%s) failed: %s", name, e)
            raise
        logger.debug(
            "write(%s) %s took %.3fs", name, blob.media_type, time.monotonic() - start
        )

    async def _fan_out(self, aws: Iterable[Awaitable[None]]) -> None:
        await gather_first_error(aws, fail_fast=self.fail_fast)


async def write_image(
    store: BlobStore, image: Image, aliases: Iterable[str] = ()
) -> None:
    """Publish an image with a default BlobWriter."""
    await BlobWriter(store).write_image(image, aliases)


async def write_index(
    store: BlobStore, index: Index, aliases: Iterable[str] = ()
) -> None:
    """Publish an index with a default BlobWriter."""
    await BlobWriter(store).write_index(index, aliases)
