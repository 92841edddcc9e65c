"""Serving contract for published manifests and blobs.

A manifest request always publishes the content first, then answers with
either the manifest metadata (HEAD) or a redirect to the stored blob.
"""

import logging
from typing import Iterable, Union

from aiohttp import hdrs, web

from .exceptions import (
    ConflictError,
    ModelError,
    NotFoundError,
    RegistryError,
    StoreError,
    ValidationError,
)
from .model import Image, Index
from .storage.base import (
    META_CONTENT_LENGTH,
    META_CONTENT_TYPE,
    META_DOCKER_CONTENT_DIGEST,
    BlobStore,
)
from .utils.digest import ensure_digest
from .writer import BlobWriter

logger = logging.getLogger(__name__)

Content = Union[Image, Index]


def redirect(location: str) -> web.Response:
    """Build a 303 See Other response pointing at location."""
    return web.Response(status=303, headers={hdrs.LOCATION: location})


def describe(content: Content) -> web.Response:
    """Build a bodiless response carrying the content's metadata headers."""
    return web.Response(
        status=200,
        headers={
            META_DOCKER_CONTENT_DIGEST: content.digest,
            META_CONTENT_TYPE: content.media_type,
            META_CONTENT_LENGTH: str(content.size),
        },
    )


async def serve(
    request: web.Request,
    writer: BlobWriter,
    content: Content,
    aliases: Iterable[str] = (),
) -> web.Response:
    """Publish content and answer a manifest request for it.

    Args:
        request: Incoming request; HEAD selects the metadata response
        writer: Writer bound to the destination store
        content: Image or index to publish and serve
        aliases: Extra names the manifest is also stored under

    Returns:
        200 with Content-Length, Content-Type and Docker-Content-Digest for
        HEAD, otherwise a 303 redirect to the stored manifest blob

    Raises:
        ModelError: If content is neither an image nor an index
        StoreError: If publishing fails; no response is produced
    """
    if isinstance(content, Index):
        await writer.write_index(content, aliases)
    elif isinstance(content, Image):
        await writer.write_image(content, aliases)
    else:
        raise ModelError(f"Cannot serve {type(content).__name__}")

    if request.method == hdrs.METH_HEAD:
        logger.info("Describing %s (%s)", content.digest, content.media_type)
        return describe(content)

    logger.info("Redirecting to %s", content.digest)
    return redirect(writer.store.resolve_location(content.digest))


def serve_blob(request: web.Request, store: BlobStore, digest: str) -> web.Response:
    """Redirect a blob request to the blob's stored location.

    Raises:
        ValidationError: If digest is malformed
    """
    ensure_digest(digest)
    return redirect(store.resolve_location(digest))


def _error_response(status: int, code: str, error: Exception) -> web.Response:
    return web.json_response(
        {"errors": [{"code": code, "message": str(error)}]}, status=status
    )


@web.middleware
async def error_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Translate registry errors into registry-style JSON error responses."""
    try:
        return await handler(request)
    except ValidationError as e:
        return _error_response(400, e.code, e)
    except NotFoundError as e:
        return _error_response(404, "BLOB_UNKNOWN", e)
    except ConflictError as e:
        return _error_response(409, "DENIED", e)
    except ModelError as e:
        logger.error("Invalid content for %s: %s", request.path, e)
        return _error_response(500, "MANIFEST_INVALID", e)
    except StoreError as e:
        logger.error("Store failure for %s: %s", request.path, e)
        return _error_response(502, "UNAVAILABLE", e)
    except RegistryError as e:
        logger.error("Unhandled registry error for %s: %s", request.path, e)
        return _error_response(500, "UNKNOWN", e)
