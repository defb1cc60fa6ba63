"""Shared utilities for CareerLens platform."""
from .pii import hash_identifier, PROFILE_HASH_LENGTH
from .numeric import round_half_up, safe_percentage, safe_mean

__all__ = [
    "hash_identifier",
    "PROFILE_HASH_LENGTH",
    "round_half_up",
    "safe_percentage",
    "safe_mean",
]
