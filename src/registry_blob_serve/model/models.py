"""Content-addressed image model: blobs, images and indexes."""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..core.types import Descriptor
from ..exceptions import ModelError
from ..utils.digest import calculate_digest, validate_digest
from . import media_types


def _render_json(data: Dict[str, Any]) -> bytes:
    return json.dumps(data, separators=(",", ":")).encode("utf-8")


def _parse_json(blob: "Blob") -> Dict[str, Any]:
    try:
        data = json.loads(blob.data)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ModelError(f"Malformed manifest {blob.digest}: {e}") from e
    if not isinstance(data, dict):
        raise ModelError(f"Malformed manifest {blob.digest}: expected a JSON object")
    return data


@dataclass(frozen=True)
class Blob:
    """Immutable bytes with a declared media type and matching digest."""

    data: bytes
    media_type: str
    digest: str

    def __post_init__(self) -> None:
        if not isinstance(self.data, (bytes, bytearray)):
            raise ModelError("Blob data must be bytes")
        object.__setattr__(self, "data", bytes(self.data))
        if not validate_digest(self.digest):
            raise ModelError(f"Invalid digest format: {self.digest}")
        algorithm = self.digest.split(":", 1)[0]
        actual = calculate_digest(self.data, algorithm)
        if actual != self.digest:
            raise ModelError(f"Digest mismatch: declared {self.digest}, computed {actual}")

    @classmethod
    def from_bytes(
        cls, data: bytes, media_type: str, algorithm: str = "sha256"
    ) -> "Blob":
        """Create a blob, computing its digest from the bytes."""
        try:
            digest = calculate_digest(data, algorithm)
        except ValueError as e:
            raise ModelError(str(e)) from e
        return cls(data=data, media_type=media_type, digest=digest)

    @property
    def size(self) -> int:
        return len(self.data)

    def descriptor(self) -> Descriptor:
        return Descriptor(digest=self.digest, media_type=self.media_type, size=self.size)


@dataclass(frozen=True)
class Image:
    """A config blob, ordered layer blobs and the manifest referencing them.

    The image's own digest, media type and size are those of its manifest.
    """

    config: Blob
    layers: Tuple[Blob, ...]
    manifest: Blob

    def __post_init__(self) -> None:
        object.__setattr__(self, "layers", tuple(self.layers))
        if not media_types.is_image_manifest(self.manifest.media_type):
            raise ModelError(
                f"Not an image manifest media type: {self.manifest.media_type}"
            )

    @property
    def digest(self) -> str:
        return self.manifest.digest

    @property
    def media_type(self) -> str:
        return self.manifest.media_type

    @property
    def size(self) -> int:
        return self.manifest.size

    def descriptor(self) -> Descriptor:
        return self.manifest.descriptor()

    @classmethod
    def build(
        cls,
        config: Blob,
        layers: Sequence[Blob],
        media_type: str = media_types.OCI_IMAGE_MANIFEST,
        annotations: Optional[Mapping[str, str]] = None,
    ) -> "Image":
        """Render a manifest for the given config and layers.

        Args:
            config: Image configuration blob
            layers: Layer blobs, base layer first
            media_type: Manifest media type (OCI or Docker v2)
            annotations: Optional manifest annotations

        Returns:
            Image whose manifest references config and layers by digest
        """
        manifest: Dict[str, Any] = {
            "schemaVersion": 2,
            "mediaType": media_type,
            "config": config.descriptor().to_dict(),
            "layers": [layer.descriptor().to_dict() for layer in layers],
        }
        if annotations:
            manifest["annotations"] = dict(annotations)
        return cls(
            config=config,
            layers=tuple(layers),
            manifest=Blob.from_bytes(_render_json(manifest), media_type),
        )

    @classmethod
    def from_manifest(cls, manifest: Blob, blobs: Mapping[str, bytes]) -> "Image":
        """Assemble an image from manifest bytes and a digest-to-bytes mapping.

        Raises:
            ModelError: If the manifest is malformed or references content
                that is missing from ``blobs`` or does not match its descriptor
        """
        data = _parse_json(manifest)
        if "config" not in data or not isinstance(data.get("layers", []), list):
            raise ModelError(f"Manifest {manifest.digest} lacks config or layers")

        config = _resolve(Descriptor.from_dict(data["config"]), blobs)
        layers = [
            _resolve(Descriptor.from_dict(entry), blobs)
            for entry in data.get("layers", [])
        ]
        return cls(config=config, layers=tuple(layers), manifest=manifest)


def _resolve(descriptor: Descriptor, blobs: Mapping[str, bytes]) -> Blob:
    try:
        data = blobs[descriptor.digest]
    except KeyError:
        raise ModelError(f"Referenced blob not available: {descriptor.digest}") from None

    blob = Blob(data=data, media_type=descriptor.media_type, digest=descriptor.digest)
    if blob.size != descriptor.size:
        raise ModelError(
            f"Size mismatch for {descriptor.digest}: "
            f"declared {descriptor.size}, actual {blob.size}"
        )
    return blob


@dataclass(frozen=True)
class Index:
    """An index manifest and the per-platform images it references."""

    manifest: Blob
    images: Mapping[str, Image] = field(default_factory=dict)
    _manifests: Tuple[Descriptor, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not media_types.is_index_manifest(self.manifest.media_type):
            raise ModelError(
                f"Not an index manifest media type: {self.manifest.media_type}"
            )
        object.__setattr__(self, "images", dict(self.images))

        entries = _parse_json(self.manifest).get("manifests")
        if not isinstance(entries, list):
            raise ModelError(f"Index {self.manifest.digest} lacks a manifests list")
        object.__setattr__(
            self, "_manifests", tuple(Descriptor.from_dict(entry) for entry in entries)
        )

    @property
    def manifests(self) -> List[Descriptor]:
        """Descriptors of the referenced image manifests, in index order."""
        return list(self._manifests)

    @property
    def digest(self) -> str:
        return self.manifest.digest

    @property
    def media_type(self) -> str:
        return self.manifest.media_type

    @property
    def size(self) -> int:
        return self.manifest.size

    def descriptor(self) -> Descriptor:
        return self.manifest.descriptor()

    def image(self, digest: str) -> Image:
        """Resolve a referenced manifest digest to its image.

        Raises:
            ModelError: If the index does not carry that image
        """
        try:
            return self.images[digest]
        except KeyError:
            raise ModelError(f"Index {self.digest} has no image {digest}") from None

    @classmethod
    def build(
        cls,
        images: Sequence[Image],
        media_type: str = media_types.OCI_IMAGE_INDEX,
        platforms: Optional[Sequence[Optional[Mapping[str, Any]]]] = None,
    ) -> "Index":
        """Render an index manifest listing the given images in order.

        Args:
            images: Images to reference
            media_type: Index media type (OCI index or Docker manifest list)
            platforms: Optional platform object per image (e.g.
                ``{"os": "linux", "architecture": "amd64"}``)
        """
        if platforms is not None and len(platforms) != len(images):
            raise ModelError("platforms must match images one to one")

        entries = []
        for position, image in enumerate(images):
            entry = image.descriptor().to_dict()
            if platforms is not None and platforms[position]:
                entry["platform"] = dict(platforms[position])
            entries.append(entry)

        manifest = {"schemaVersion": 2, "mediaType": media_type, "manifests": entries}
        return cls(
            manifest=Blob.from_bytes(_render_json(manifest), media_type),
            images={image.digest: image for image in images},
        )

    @classmethod
    def from_manifest(cls, manifest: Blob, images: Iterable[Image]) -> "Index":
        """Pair index manifest bytes with the images it references."""
        return cls(manifest=manifest, images={image.digest: image for image in images})
