"""Test helpers: image builders, instrumented stores and a fake object store."""

import asyncio
import gzip
import io
import json
import tarfile
from typing import Dict, Iterable, List, Tuple

from aiohttp import web

from registry_blob_serve.exceptions import StoreError
from registry_blob_serve.model import Blob, Image, Index, media_types
from registry_blob_serve.storage import MemoryBlobStore
from registry_blob_serve.utils.digest import calculate_digest


def make_image(name: str, layer_count: int) -> Image:
    """Build an image with a distinct config and layer_count distinct layers."""
    config = Blob.from_bytes(
        json.dumps({"architecture": "amd64", "os": "linux", "name": name}).encode(),
        media_types.OCI_IMAGE_CONFIG,
    )
    layers = [
        Blob.from_bytes(f"{name} layer {i}".encode(), media_types.OCI_IMAGE_LAYER)
        for i in range(layer_count)
    ]
    return Image.build(config, layers)


def make_index(*images: Image) -> Index:
    return Index.build(list(images))


class InstrumentedStore(MemoryBlobStore):
    """Memory store that can fail or delay selected writes and records order."""

    def __init__(
        self,
        fail_names: Iterable[str] = (),
        delay: float = 0.0,
        delay_names: Iterable[str] = (),
    ) -> None:
        super().__init__()
        self.fail_names = set(fail_names)
        self.delay = delay
        self.delay_names = set(delay_names)
        self.started: List[str] = []
        self.finished: List[str] = []
        self.write_count = 0
        self.in_flight = 0
        self.max_in_flight = 0

    async def write(
        self, name: str, digest: str, media_type: str, content: bytes
    ) -> None:
        self.write_count += 1
        self.started.append(name)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if name in self.fail_names:
                raise StoreError(f"injected failure writing {name}")
            if self.delay and (not self.delay_names or name in self.delay_names):
                await asyncio.sleep(self.delay)
            await super().write(name, digest, media_type, content)
            self.finished.append(name)
        finally:
            self.in_flight -= 1


class FakeObjectStore:
    """In-process OSS-style bucket served by aiohttp.web."""

    def __init__(self, bucket: str = "test-bucket") -> None:
        self.bucket = bucket
        self.objects: Dict[str, Tuple[bytes, Dict[str, str]]] = {}
        self.requests: List[Tuple[str, str, Dict[str, str]]] = []
        self.fail_status = 0

        self.app = web.Application()
        path = f"/{bucket}/blobs/{{name}}"
        self.app.router.add_put(path, self.put_object)
        self.app.router.add_route("HEAD", path, self.head_object)

    async def put_object(self, request: web.Request) -> web.Response:
        name = request.match_info["name"]
        self.requests.append(("PUT", name, dict(request.headers)))
        if self.fail_status:
            return web.Response(status=self.fail_status, text="injected")
        self.objects[name] = (await request.read(), dict(request.headers))
        return web.Response(status=200)

    async def head_object(self, request: web.Request) -> web.Response:
        name = request.match_info["name"]
        self.requests.append(("HEAD", name, dict(request.headers)))
        if self.fail_status:
            return web.Response(status=self.fail_status)
        if name not in self.objects:
            return web.Response(status=404)

        data, headers = self.objects[name]
        response_headers = {
            key: value
            for key, value in headers.items()
            if key.lower().startswith("x-oss-meta-")
        }
        response_headers["Content-Type"] = headers.get(
            "Content-Type", "application/octet-stream"
        )
        return web.Response(body=data, headers=response_headers)


def build_docker_tar(
    path, images: List[Dict], gzip_layers: bool = False
) -> List[Tuple[bytes, List[bytes]]]:
    """Write a docker save style tar with one manifest entry per image.

    Each item of images holds "config" (dict), "layers" (list of bytes) and
    optional "tags". Returns the (config bytes, layer bytes) that were stored.
    """
    manifest = []
    stored = []
    files: Dict[str, bytes] = {}

    for image in images:
        config_bytes = json.dumps(image["config"]).encode("utf-8")
        config_path = f"blobs/sha256/{calculate_digest(config_bytes).split(':')[1]}"
        files[config_path] = config_bytes

        layer_paths = []
        layer_bytes = []
        for layer in image["layers"]:
            data = gzip.compress(layer, mtime=0) if gzip_layers else layer
            layer_path = f"blobs/sha256/{calculate_digest(data).split(':')[1]}"
            files[layer_path] = data
            layer_paths.append(layer_path)
            layer_bytes.append(data)

        manifest.append(
            {
                "Config": config_path,
                "RepoTags": image.get("tags", []),
                "Layers": layer_paths,
            }
        )
        stored.append((config_bytes, layer_bytes))

    files["manifest.json"] = json.dumps(manifest).encode("utf-8")

    with tarfile.open(path, "w") as tar:
        for name, data in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, fileobj=io.BytesIO(data))

    return stored
