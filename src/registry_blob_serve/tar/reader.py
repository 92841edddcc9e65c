"""Docker tar file reader producing image model values."""

import asyncio
import json
import tarfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..exceptions import TarReadError
from ..model import Blob, Image, Index, media_types
from .models import TarManifestEntry

GZIP_MAGIC = b"\x1f\x8b"


def _layer_media_type(data: bytes) -> str:
    if data[:2] == GZIP_MAGIC:
        return media_types.OCI_IMAGE_LAYER
    return media_types.OCI_IMAGE_LAYER_UNCOMPRESSED


class TarImageReader:
    """Async reader for docker save tar files."""

    def __init__(self, tar_path: Union[str, Path]) -> None:
        """Initialize tar reader.

        Args:
            tar_path: Path to the tar file

        Raises:
            TarReadError: If the file does not exist
        """
        self.tar_path = Path(tar_path)
        if not self.tar_path.exists():
            raise TarReadError(f"Tar file not found: {tar_path}")
        self._tar_file: Optional[tarfile.TarFile] = None

    async def __aenter__(self) -> "TarImageReader":
        """Enter async context manager."""
        loop = asyncio.get_running_loop()
        try:
            self._tar_file = await loop.run_in_executor(
                None, tarfile.open, str(self.tar_path), "r"
            )
        except (tarfile.TarError, OSError) as e:
            raise TarReadError(f"Cannot read tar file: {e}") from e
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context manager."""
        await self.close()

    async def close(self) -> None:
        """Close the tar file."""
        if self._tar_file:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._tar_file.close)
            self._tar_file = None

    async def _read(self, filename: str) -> bytes:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._extract_file_content, filename)

    async def get_manifest(self) -> List[TarManifestEntry]:
        """Parse manifest.json from the tar file.

        Returns:
            One entry per image in the archive

        Raises:
            TarReadError: If manifest.json is missing or malformed
        """
        try:
            entries = json.loads(await self._read("manifest.json"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise TarReadError(f"Invalid JSON in manifest.json: {e}") from e

        if not isinstance(entries, list) or not entries:
            raise TarReadError("manifest.json must be a non-empty array")

        result = []
        for entry in entries:
            if (
                not isinstance(entry, dict)
                or not isinstance(entry.get("Config"), str)
                or not isinstance(entry.get("Layers"), list)
            ):
                raise TarReadError(f"Invalid manifest entry: {entry!r}")
            result.append(
                TarManifestEntry(
                    config_path=entry["Config"],
                    layer_paths=list(entry["Layers"]),
                    repo_tags=list(entry.get("RepoTags") or []),
                )
            )
        return result

    async def read_image(self, position: int = 0) -> Image:
        """Build an image from one archive entry.

        Args:
            position: Index of the entry in manifest.json

        Returns:
            Image with an OCI manifest referencing the archive's config and layers

        Raises:
            TarReadError: If the entry or any of its files cannot be read
        """
        entries = await self.get_manifest()
        try:
            entry = entries[position]
        except IndexError:
            raise TarReadError(f"No image at position {position}") from None
        return await self._read_entry(entry)

    async def read_images(self) -> List[Image]:
        """Build an image for every archive entry, in manifest order."""
        return [await self._read_entry(entry) for entry in await self.get_manifest()]

    async def read_index(self) -> Index:
        """Build an index over every image in the archive.

        Platforms are taken from each image config's os/architecture/variant.
        """
        images = await self.read_images()
        platforms = [_platform(image.config) for image in images]
        return Index.build(images, platforms=platforms)

    async def repo_tags(self, position: int = 0) -> List[str]:
        """Return the RepoTags of one archive entry."""
        entries = await self.get_manifest()
        try:
            return entries[position].repo_tags
        except IndexError:
            raise TarReadError(f"No image at position {position}") from None

    async def _read_entry(self, entry: TarManifestEntry) -> Image:
        config_data = await self._read(entry.config_path)
        config = Blob.from_bytes(config_data, media_types.OCI_IMAGE_CONFIG)

        layers = []
        for layer_path in entry.layer_paths:
            data = await self._read(layer_path)
            layers.append(Blob.from_bytes(data, _layer_media_type(data)))

        return Image.build(config, layers)

    def _extract_file_content(self, filename: str) -> bytes:
        """Extract file content from tar (sync helper).

        Args:
            filename: Name of file to extract

        Returns:
            File content as bytes

        Raises:
            TarReadError: If file cannot be extracted
        """
        if not self._tar_file:
            raise TarReadError("Tar file not opened")

        try:
            member = self._tar_file.getmember(filename)
            file_obj = self._tar_file.extractfile(member)
            if file_obj is None:
                raise TarReadError(f"Could not extract {filename}")

            with file_obj:
                return file_obj.read()
        except KeyError:
            raise TarReadError(f"File {filename} not found in tar") from None
        except (tarfile.TarError, OSError) as e:
            raise TarReadError(f"Failed to extract {filename}: {e}") from e


def _platform(config: Blob) -> Dict[str, Any]:
    try:
        data = json.loads(config.data)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise TarReadError(f"Invalid image config {config.digest}: {e}") from e
    if not isinstance(data, dict):
        raise TarReadError(f"Invalid image config {config.digest}")

    platform = {
        "architecture": data.get("architecture", "amd64"),
        "os": data.get("os", "linux"),
    }
    if data.get("variant"):
        platform["variant"] = data["variant"]
    return platform


async def load_image_from_tar(tar_path: Union[str, Path], position: int = 0) -> Image:
    """Read one image from a docker save tar file."""
    async with TarImageReader(tar_path) as reader:
        return await reader.read_image(position)


async def load_index_from_tar(tar_path: Union[str, Path]) -> Index:
    """Read every image of a docker save tar file into an index."""
    async with TarImageReader(tar_path) as reader:
        return await reader.read_index()
