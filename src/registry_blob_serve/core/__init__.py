"""Core types and session helpers."""

from .session import create_session
from .types import Descriptor, StoreConfig

__all__ = ["Descriptor", "StoreConfig", "create_session"]
