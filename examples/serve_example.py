"""Example registry front end serving images loaded from a docker save tar.

Usage:
    python examples/serve_example.py image.tar [port]

Set ENDPOINT, BUCKET, ACCESS_KEY_ID and ACCESS_KEY_SECRET to publish into an
OSS bucket; without BUCKET the example publishes into a local directory.
"""

import logging
import os
import sys

from aiohttp import web

# Add parent directory to path
sys.path.insert(0, "src")

from registry_blob_serve import (
    BlobWriter,
    FileBlobStore,
    HttpBlobStore,
    StoreConfig,
    error_middleware,
    serve,
    serve_blob,
)
from registry_blob_serve.tar import TarImageReader, aliases_from_repo_tags

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_app(tar_path: str) -> web.Application:
    """Build an application serving the first image of tar_path."""
    if os.getenv("BUCKET"):
        store = HttpBlobStore(StoreConfig.from_env())
    else:
        store = FileBlobStore("./blob-store", base_url="http://localhost:8081")
    writer = BlobWriter(store, max_concurrency=8)
    app = web.Application(middlewares=[error_middleware])
    loaded = {}

    async def load_image(app: web.Application) -> None:
        async with TarImageReader(tar_path) as reader:
            loaded["image"] = await reader.read_image()
            loaded["aliases"] = aliases_from_repo_tags(await reader.repo_tags())
        logger.info("Loaded %s with aliases %s", loaded["image"].digest, loaded["aliases"])

    async def close_store(app: web.Application) -> None:
        await store.close()

    async def manifest(request: web.Request) -> web.Response:
        return await serve(request, writer, loaded["image"], aliases=loaded["aliases"])

    async def blob(request: web.Request) -> web.Response:
        return serve_blob(request, store, request.match_info["digest"])

    app.on_startup.append(load_image)
    app.on_cleanup.append(close_store)
    app.router.add_get("/v2/{name:.+}/manifests/{reference}", manifest)
    app.router.add_get("/v2/{name:.+}/blobs/{digest}", blob)
    return app


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)
    port = int(sys.argv[2]) if len(sys.argv) > 2 else 8080
    web.run_app(create_app(sys.argv[1]), port=port)
