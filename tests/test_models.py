"""Tests for the image model."""

import json

import pytest

from registry_blob_serve.core.types import Descriptor
from registry_blob_serve.exceptions import ModelError
from registry_blob_serve.model import Blob, Image, Index, media_types
from registry_blob_serve.utils.digest import calculate_digest
from tests.helpers import make_image


def test_blob_from_bytes_computes_digest_and_size():
    blob = Blob.from_bytes(b"layer", media_types.OCI_IMAGE_LAYER)
    assert blob.digest == calculate_digest(b"layer")
    assert blob.size == 5
    assert blob.descriptor() == Descriptor(
        digest=blob.digest, media_type=media_types.OCI_IMAGE_LAYER, size=5
    )


def test_blob_rejects_mismatched_digest():
    with pytest.raises(ModelError, match="Digest mismatch"):
        Blob(data=b"one", media_type="text/plain", digest=calculate_digest(b"two"))


def test_blob_rejects_malformed_digest():
    with pytest.raises(ModelError, match="Invalid digest"):
        Blob(data=b"one", media_type="text/plain", digest="sha256:xyz")


def test_image_build_renders_manifest():
    """Test that the manifest references config and layers in order."""
    image = make_image("app", 2)
    manifest = json.loads(image.manifest.data)

    assert manifest["schemaVersion"] == 2
    assert manifest["mediaType"] == media_types.OCI_IMAGE_MANIFEST
    assert manifest["config"]["digest"] == image.config.digest
    assert [layer["digest"] for layer in manifest["layers"]] == [
        layer.digest for layer in image.layers
    ]
    assert image.digest == calculate_digest(image.manifest.data)
    assert image.media_type == media_types.OCI_IMAGE_MANIFEST
    assert image.size == len(image.manifest.data)


def test_image_build_with_docker_media_type_and_annotations():
    config = Blob.from_bytes(b"{}", media_types.DOCKER_IMAGE_CONFIG)
    image = Image.build(
        config,
        [],
        media_type=media_types.DOCKER_MANIFEST_V2,
        annotations={"org.opencontainers.image.title": "empty"},
    )
    manifest = json.loads(image.manifest.data)
    assert image.media_type == media_types.DOCKER_MANIFEST_V2
    assert manifest["layers"] == []
    assert manifest["annotations"] == {"org.opencontainers.image.title": "empty"}


def test_image_rejects_index_media_type():
    image = make_image("app", 1)
    wrong = Blob.from_bytes(image.manifest.data, media_types.OCI_IMAGE_INDEX)
    with pytest.raises(ModelError, match="Not an image manifest"):
        Image(config=image.config, layers=image.layers, manifest=wrong)


def test_image_from_manifest_resolves_blobs():
    built = make_image("app", 2)
    blobs = {blob.digest: blob.data for blob in (built.config, *built.layers)}

    parsed = Image.from_manifest(built.manifest, blobs)

    assert parsed == built


def test_image_from_manifest_missing_blob():
    built = make_image("app", 2)
    blobs = {built.config.digest: built.config.data}
    with pytest.raises(ModelError, match="not available"):
        Image.from_manifest(built.manifest, blobs)


def test_image_from_manifest_size_mismatch():
    config = Blob.from_bytes(b"{}", media_types.OCI_IMAGE_CONFIG)
    manifest = {
        "schemaVersion": 2,
        "mediaType": media_types.OCI_IMAGE_MANIFEST,
        "config": {**config.descriptor().to_dict(), "size": 99},
        "layers": [],
    }
    manifest_blob = Blob.from_bytes(
        json.dumps(manifest).encode(), media_types.OCI_IMAGE_MANIFEST
    )
    with pytest.raises(ModelError, match="Size mismatch"):
        Image.from_manifest(manifest_blob, {config.digest: config.data})


@pytest.mark.parametrize(
    "raw",
    [b"not json", b"[]", b'{"layers": []}', b'{"config": {"digest": "x"}}'],
)
def test_image_from_manifest_malformed(raw):
    manifest = Blob.from_bytes(raw, media_types.OCI_IMAGE_MANIFEST)
    with pytest.raises(ModelError):
        Image.from_manifest(manifest, {})


def test_index_build_lists_images_in_order(image_a, image_b):
    index = Index.build(
        [image_a, image_b],
        platforms=[{"os": "linux", "architecture": "amd64"}, None],
    )
    raw = json.loads(index.manifest.data)

    assert index.media_type == media_types.OCI_IMAGE_INDEX
    assert [d.digest for d in index.manifests] == [image_a.digest, image_b.digest]
    assert raw["manifests"][0]["platform"] == {"os": "linux", "architecture": "amd64"}
    assert "platform" not in raw["manifests"][1]
    assert index.image(image_b.digest) is image_b


def test_index_build_rejects_platform_count_mismatch(image_a):
    with pytest.raises(ModelError, match="platforms"):
        Index.build([image_a], platforms=[])


def test_index_image_unknown_digest(index):
    with pytest.raises(ModelError, match="has no image"):
        index.image(calculate_digest(b"unknown"))


def test_index_from_manifest_pairs_images(index, image_a, image_b):
    rebuilt = Index.from_manifest(index.manifest, [image_b, image_a])
    assert rebuilt.manifests == index.manifests
    assert rebuilt.image(image_a.digest) is image_a


def test_index_requires_manifests_list():
    manifest = Blob.from_bytes(b'{"schemaVersion": 2}', media_types.OCI_IMAGE_INDEX)
    with pytest.raises(ModelError, match="manifests list"):
        Index(manifest=manifest)


def test_descriptor_from_dict_rejects_bad_size():
    with pytest.raises(ModelError):
        Descriptor.from_dict({"digest": "sha256:x", "mediaType": "a", "size": -1})
