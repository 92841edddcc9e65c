"""OCI and Docker media types."""

OCI_IMAGE_MANIFEST = "application/vnd.oci.image.manifest.v1+json"
OCI_IMAGE_INDEX = "application/vnd.oci.image.index.v1+json"
OCI_IMAGE_CONFIG = "application/vnd.oci.image.config.v1+json"
OCI_IMAGE_LAYER = "application/vnd.oci.image.layer.v1.tar+gzip"
OCI_IMAGE_LAYER_UNCOMPRESSED = "application/vnd.oci.image.layer.v1.tar"

DOCKER_MANIFEST_V2 = "application/vnd.docker.distribution.manifest.v2+json"
DOCKER_MANIFEST_LIST = "application/vnd.docker.distribution.manifest.list.v2+json"
DOCKER_IMAGE_CONFIG = "application/vnd.docker.container.image.v1+json"
DOCKER_IMAGE_LAYER = "application/vnd.docker.image.rootfs.diff.tar.gzip"

JSON = "application/json"

IMAGE_MANIFEST_TYPES = frozenset({OCI_IMAGE_MANIFEST, DOCKER_MANIFEST_V2})
INDEX_MANIFEST_TYPES = frozenset({OCI_IMAGE_INDEX, DOCKER_MANIFEST_LIST})


def is_image_manifest(media_type: str) -> bool:
    return media_type in IMAGE_MANIFEST_TYPES


def is_index_manifest(media_type: str) -> bool:
    return media_type in INDEX_MANIFEST_TYPES
