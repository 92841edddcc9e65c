"""Digest calculation and validation utilities."""

import hashlib
import re
from typing import Iterable, Union

from ..exceptions import ValidationError

# Regex pattern for valid digest format (algorithm:hex)
DIGEST_PATTERN = re.compile(r"^[a-z0-9]+:[a-f0-9]+$")

# Tag-style alias names
ALIAS_PATTERN = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9._-]{0,127}$")

SUPPORTED_ALGORITHMS = {"sha256": 64, "sha384": 96, "sha512": 128}


def calculate_digest(data: Union[bytes, bytearray], algorithm: str = "sha256") -> str:
    """Calculate digest of data.

    Args:
        data: Data to hash
        algorithm: Hash algorithm (default: sha256)

    Returns:
        Digest string in format "algorithm:hex"

    Raises:
        ValueError: If algorithm is not supported
        ValueError: If data is not bytes-like
    """
    if not isinstance(data, (bytes, bytearray)):
        raise ValueError("Data must be bytes or bytearray")

    if algorithm not in SUPPORTED_ALGORITHMS:
        raise ValueError(f"Unsupported algorithm: {algorithm}")

    hasher = hashlib.new(algorithm)
    hasher.update(data)
    return f"{algorithm}:{hasher.hexdigest()}"


def validate_digest(digest: str) -> bool:
    """Validate digest format.

    Args:
        digest: Digest string to validate

    Returns:
        True if valid digest format
    """
    if not isinstance(digest, str):
        return False

    if not DIGEST_PATTERN.match(digest):
        return False

    algorithm, hex_part = digest.split(":", 1)
    expected_length = SUPPORTED_ALGORITHMS.get(algorithm)
    return expected_length is not None and len(hex_part) == expected_length


def verify_digest(data: Union[bytes, bytearray], expected_digest: str) -> bool:
    """Verify data matches expected digest.

    Args:
        data: Data to verify
        expected_digest: Expected digest string

    Returns:
        True if data matches digest

    Raises:
        ValidationError: If digest format is invalid
    """
    ensure_digest(expected_digest)

    algorithm, _ = expected_digest.split(":", 1)
    actual_digest = calculate_digest(data, algorithm)
    return actual_digest == expected_digest


def ensure_digest(digest: str) -> str:
    """Return digest unchanged, raising ValidationError if it is malformed."""
    if not validate_digest(digest):
        raise ValidationError(f"Invalid digest format: {digest}", code="DIGEST_INVALID")
    return digest


def validate_alias(alias: str) -> bool:
    """Check that an alias is a valid tag-style name."""
    return isinstance(alias, str) and bool(ALIAS_PATTERN.match(alias))


def ensure_aliases(aliases: Union[str, Iterable[str]]) -> tuple[str, ...]:
    """Validate every alias and return them as a tuple.

    Raises:
        ValidationError: If any alias is not a valid tag name
    """
    if isinstance(aliases, str):
        aliases = (aliases,)
    result = tuple(aliases)
    for alias in result:
        if not validate_alias(alias):
            raise ValidationError(f"Invalid alias: {alias!r}", code="TAG_INVALID")
    return result
