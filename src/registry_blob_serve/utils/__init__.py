"""Utility functions for registry blob serving."""

from .concurrency import gather_first_error
from .digest import calculate_digest, ensure_digest, validate_digest

__all__ = ["calculate_digest", "ensure_digest", "gather_first_error", "validate_digest"]
