"""Test configuration and fixtures."""

import pytest
import pytest_asyncio
from aiohttp.test_utils import TestServer

from registry_blob_serve import BlobWriter, HttpBlobStore, MemoryBlobStore, StoreConfig
from tests.helpers import FakeObjectStore, make_image, make_index


@pytest.fixture
def store():
    """Empty in-memory blob store."""
    return MemoryBlobStore(base_url="https://blobs.example.com")


@pytest.fixture
def writer(store):
    return BlobWriter(store)


@pytest.fixture
def image_a():
    """Image with a single layer."""
    return make_image("a", 1)


@pytest.fixture
def image_b():
    """Image with two layers."""
    return make_image("b", 2)


@pytest.fixture
def index(image_a, image_b):
    return make_index(image_a, image_b)


@pytest_asyncio.fixture
async def fake_oss():
    """Fake OSS bucket running on a local test server."""
    fake = FakeObjectStore()
    async with TestServer(fake.app) as server:
        fake.server = server
        yield fake


@pytest.fixture
def oss_config(fake_oss):
    """Store configuration pointing at the fake bucket."""
    return StoreConfig(
        endpoint=f"{fake_oss.server.host}:{fake_oss.server.port}",
        bucket=fake_oss.bucket,
        scheme="http",
        path_style=True,
        public_url="https://cdn.example.com",
        timeout=10,
    )


@pytest_asyncio.fixture
async def http_store(oss_config):
    async with HttpBlobStore(oss_config) as store:
        yield store

