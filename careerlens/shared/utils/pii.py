"""PII handling utilities.

Student identifiers never leave the submission pipeline in raw form. Analytics
records only ever carry a truncated one-way hash of the profile id.
"""
import hashlib

# Hex characters kept from the SHA-256 digest
PROFILE_HASH_LENGTH = 16


def hash_identifier(value: str, length: int = PROFILE_HASH_LENGTH) -> str:
    """Hash an identifier for safe storage in analytics records.

    Uses unsalted SHA-256 so that the same profile id always maps to the
    same hash across processes and restarts.

    Args:
        value: The identifier to hash (profile ID, etc.)
        length: Number of hex characters to keep

    Returns:
        Lowercase hex prefix of the digest

    Raises:
        TypeError: If value is not a string
        ValueError: If length is outside 1-64

    Example:
        >>> hash_identifier("profile_123")
        'a1b2c3d4e5f6a7b8'  # 16-char hex string
    """
    if not isinstance(value, str):
        raise TypeError(f"Identifier must be a string, got {type(value).__name__}")

    if length <= 0 or length > 64:
        raise ValueError(f"Hash length must be 1-64, got {length}")

    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:length]
