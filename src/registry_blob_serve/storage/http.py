"""HttpBlobStore: OSS-style object store accessed over aiohttp."""

import asyncio
import base64
import hashlib
import hmac
from email.utils import formatdate
from typing import Dict, Optional

import aiohttp

from ..core.session import create_session
from ..core.types import Descriptor, StoreConfig
from ..exceptions import NotFoundError, StoreError
from ..utils.digest import validate_digest
from .base import META_CONTENT_LENGTH, META_CONTENT_TYPE, BlobStore, object_key

SIGNED_HEADER_PREFIX = "x-oss-"


def sign_request(
    config: StoreConfig, method: str, key: str, headers: Dict[str, str]
) -> str:
    """Compute an OSS header signature (v1) for a request.

    Args:
        config: Store configuration holding the credentials
        method: HTTP method
        key: Object key within the bucket
        headers: Request headers, including Date and Content-Type

    Returns:
        Authorization header value
    """
    lowered = {name.lower(): value for name, value in headers.items()}
    canonical_headers = "".join(
        f"{name}:{lowered[name]}\n"
        for name in sorted(lowered)
        if name.startswith(SIGNED_HEADER_PREFIX)
    )
    string_to_sign = "\n".join(
        [
            method.upper(),
            lowered.get("content-md5", ""),
            lowered.get("content-type", ""),
            lowered.get("date", ""),
            f"{canonical_headers}/{config.bucket}/{key}",
        ]
    )
    signature = hmac.new(
        config.access_key_secret.encode("utf-8"),
        string_to_sign.encode("utf-8"),
        hashlib.sha1,
    ).digest()
    return f"OSS {config.access_key_id}:{base64.b64encode(signature).decode('ascii')}"


class HttpBlobStore(BlobStore):
    """Blob store backed by an OSS/S3-style bucket.

    Objects are stored at ``<endpoint_url>/blobs/<name>`` with the digest and
    media type kept as user metadata headers.
    """

    def __init__(
        self,
        config: StoreConfig,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        """Initialize the store.

        Args:
            config: Store connection parameters
            session: Optional shared session; the store does not close it
        """
        self.config = config
        self.session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "HttpBlobStore":
        await self._get_session()
        return self

    async def close(self) -> None:
        """Close the session if this store created it."""
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()
        if self._owns_session:
            self.session = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = await create_session(timeout=self.config.timeout)
            self._owns_session = True
        return self.session

    def _url(self, key: str) -> str:
        return f"{self.config.endpoint_url}/{key}"

    def _meta(self, name: str) -> str:
        return f"{self.config.meta_prefix}{name}"

    def _headers(self, method: str, key: str, headers: Dict[str, str]) -> Dict[str, str]:
        headers = dict(headers)
        headers["Date"] = formatdate(usegmt=True)
        if self.config.has_credentials:
            headers["Authorization"] = sign_request(self.config, method, key, headers)
        return headers

    async def exists(self, name: str) -> Descriptor:
        key = object_key(name)
        session = await self._get_session()
        try:
            async with session.head(
                self._url(key), headers=self._headers("HEAD", key, {})
            ) as resp:
                if resp.status == 404:
                    raise NotFoundError(name)
                if resp.status >= 400:
                    raise StoreError(f"HEAD {key} failed with status {resp.status}")
                headers = resp.headers
        except aiohttp.ClientError as e:
            raise StoreError(f"Failed to check {key}: {e}") from e
        except asyncio.TimeoutError as e:
            raise StoreError(f"Timed out checking {key}") from e

        digest = headers.get(self._meta("docker-content-digest"), "")
        if not validate_digest(digest):
            raise StoreError(f"Object {key} has invalid digest metadata: {digest!r}")

        media_type = headers.get(self._meta("content-type")) or headers.get(
            META_CONTENT_TYPE, "application/octet-stream"
        )
        try:
            size = int(headers.get(META_CONTENT_LENGTH, "0"))
        except ValueError as e:
            raise StoreError(f"Object {key} has invalid size: {e}") from e

        return Descriptor(digest=digest, media_type=media_type, size=size)

    async def write(
        self, name: str, digest: str, media_type: str, content: bytes
    ) -> None:
        key = object_key(name)
        session = await self._get_session()
        headers = self._headers(
            "PUT",
            key,
            {
                META_CONTENT_TYPE: media_type,
                self._meta("content-type"): media_type,
                self._meta("docker-content-digest"): digest,
            },
        )
        try:
            async with session.put(self._url(key), data=content, headers=headers) as resp:
                if resp.status >= 400:
                    body = await resp.text()
                    raise StoreError(
                        f"PUT {key} failed with status {resp.status}: {body[:200]}"
                    )
        except aiohttp.ClientError as e:
            raise StoreError(f"Failed to write {key}: {e}") from e
        except asyncio.TimeoutError as e:
            raise StoreError(f"Timed out writing {key}") from e

    def resolve_location(self, digest: str) -> str:
        return f"{self.config.location_base}/{object_key(digest)}"
