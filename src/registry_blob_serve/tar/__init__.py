"""Loading images from docker save archives."""

from .reader import TarImageReader, load_image_from_tar, load_index_from_tar
from .tags import aliases_from_repo_tags, parse_repository_tag

__all__ = [
    "TarImageReader",
    "aliases_from_repo_tags",
    "load_image_from_tar",
    "load_index_from_tar",
    "parse_repository_tag",
]
