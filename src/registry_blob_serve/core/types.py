"""Core value types shared across the store, model and writer layers."""

import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from ..exceptions import ConfigError, ModelError

DEFAULT_ENDPOINT = "oss-cn-beijing.aliyuncs.com"
DEFAULT_BUCKET = "nydus-demo"


@dataclass(frozen=True)
class Descriptor:
    """Digest, media type and size of a blob, without its bytes."""

    digest: str
    media_type: str
    size: int

    def to_dict(self) -> Dict[str, Any]:
        """Render the descriptor in its manifest JSON form."""
        return {
            "mediaType": self.media_type,
            "digest": self.digest,
            "size": self.size,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Descriptor":
        """Parse a manifest JSON descriptor.

        Raises:
            ModelError: If a required field is missing or mistyped
        """
        try:
            digest = data["digest"]
            media_type = data["mediaType"]
            size = data["size"]
        except (KeyError, TypeError) as e:
            raise ModelError(f"Invalid descriptor {data!r}: missing {e}") from e

        if not isinstance(digest, str) or not isinstance(media_type, str):
            raise ModelError(f"Invalid descriptor {data!r}")
        if not isinstance(size, int) or isinstance(size, bool) or size < 0:
            raise ModelError(f"Invalid descriptor size: {size!r}")
        return cls(digest=digest, media_type=media_type, size=size)


@dataclass(frozen=True)
class StoreConfig:
    """Connection parameters for an HTTP object store.

    Attributes:
        endpoint: Store endpoint host (e.g., oss-cn-beijing.aliyuncs.com)
        bucket: Bucket name
        access_key_id: Access key ID, requests are unsigned when empty
        access_key_secret: Access key secret
        public_url: Base URL used for retrieval redirects
        meta_prefix: Prefix of user metadata headers
        scheme: URL scheme for the endpoint
        path_style: Address the bucket as a path instead of a subdomain
        timeout: Request timeout in seconds
    """

    endpoint: str = DEFAULT_ENDPOINT
    bucket: str = DEFAULT_BUCKET
    access_key_id: str = ""
    access_key_secret: str = ""
    public_url: Optional[str] = None
    meta_prefix: str = "x-oss-meta-"
    scheme: str = "https"
    path_style: bool = False
    timeout: int = 300

    @property
    def endpoint_url(self) -> str:
        """Base URL of the bucket, virtual-hosted unless path_style is set."""
        if self.path_style:
            return f"{self.scheme}://{self.endpoint}/{self.bucket}"
        return f"{self.scheme}://{self.bucket}.{self.endpoint}"

    @property
    def location_base(self) -> str:
        """Base URL that retrieval requests are redirected to."""
        return (self.public_url or self.endpoint_url).rstrip("/")

    @property
    def has_credentials(self) -> bool:
        return bool(self.access_key_id and self.access_key_secret)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "StoreConfig":
        """Build a configuration from environment variables.

        Environment Variables:
            ENDPOINT: Store endpoint. Default: oss-cn-beijing.aliyuncs.com
            BUCKET: Bucket name. Default: nydus-demo
            ACCESS_KEY_ID: Access key ID. Default: empty
            ACCESS_KEY_SECRET: Access key secret. Default: empty
            PUBLIC_URL: Redirect base URL. Default: https://<bucket>.<endpoint>
            STORE_TIMEOUT: Request timeout in seconds. Default: 300

        Raises:
            ConfigError: If STORE_TIMEOUT is not a positive integer
        """
        env = os.environ if environ is None else environ
        raw_timeout = env.get("STORE_TIMEOUT") or "300"
        try:
            timeout = int(raw_timeout)
        except ValueError:
            raise ConfigError(f"Invalid STORE_TIMEOUT: {raw_timeout!r}") from None
        if timeout <= 0:
            raise ConfigError(f"STORE_TIMEOUT must be positive, got {timeout}")

        return cls(
            endpoint=env.get("ENDPOINT") or DEFAULT_ENDPOINT,
            bucket=env.get("BUCKET") or DEFAULT_BUCKET,
            access_key_id=env.get("ACCESS_KEY_ID", ""),
            access_key_secret=env.get("ACCESS_KEY_SECRET", ""),
            public_url=env.get("PUBLIC_URL") or None,
            timeout=timeout,
        )
