"""Data models for tar file handling."""

from dataclasses import dataclass, field
from typing import List


@dataclass
class TarManifestEntry:
    """One image entry of a docker save manifest.json."""

    config_path: str
    layer_paths: List[str]
    repo_tags: List[str] = field(default_factory=list)
