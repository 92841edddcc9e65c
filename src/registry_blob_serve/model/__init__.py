"""Image model: content-addressed blobs, images and indexes."""

from . import media_types
from .models import Blob, Image, Index

__all__ = ["Blob", "Image", "Index", "media_types"]
