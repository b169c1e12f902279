"""
Cryptographic primitives for CatBridge.

SHA-256 digests and program-derived addresses.
"""

from .hashing import Address, Hash, SHA256Hasher, derive_address, u16_le, u64_le

__all__ = [
    "Address",
    "Hash",
    "SHA256Hasher",
    "derive_address",
    "u16_le",
    "u64_le",
]
