"""
Hashing and deterministic address derivation for CatBridge.

Every persisted bridge resource (configuration, emitter records, replay
slots, vaults, outbound message slots) lives at an address derived from a
program id and a list of seeds, so the same inputs always name the same
resource.
"""

from dataclasses import dataclass
from typing import Union

from cryptography.hazmat.primitives import hashes

MAX_SEEDS = 16
MAX_SEED_LENGTH = 32
DERIVATION_MARKER = b"ProgramDerivedAddress"


@dataclass(frozen=True)
class Hash:
    """Immutable 32-byte digest."""

    value: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.value, (bytes, bytearray)):
            raise TypeError("Hash value must be bytes")
        if len(self.value) != 32:
            raise ValueError("Hash must be exactly 32 bytes")
        object.__setattr__(self, "value", bytes(self.value))

    def __str__(self) -> str:
        return self.value.hex()

    def __repr__(self) -> str:
        return f"Hash('{self.value.hex()}')"

    def __bytes__(self) -> bytes:
        return self.value

    @classmethod
    def from_hex(cls, hex_string: str) -> "Hash":
        """Create a Hash from a hexadecimal string."""
        if hex_string.startswith("0x"):
            hex_string = hex_string[2:]
        return cls(bytes.fromhex(hex_string))

    @classmethod
    def zero(cls) -> "Hash":
        return cls(b"\x00" * 32)

    def to_hex(self) -> str:
        return self.value.hex()


@dataclass(frozen=True, repr=False)
class Address(Hash):
    """32-byte account or contract identity."""

    def __repr__(self) -> str:
        return f"Address('{self.value.hex()}')"

    def is_zero(self) -> bool:
        return not any(self.value)

    @classmethod
    def from_int(cls, value: int) -> "Address":
        """Left-pad an integer into a 32-byte big-endian address."""
        return cls(value.to_bytes(32, byteorder="big"))

    @classmethod
    def from_foreign(cls, raw: bytes) -> "Address":
        """Left-pad a shorter foreign address (e.g. a 20-byte EVM address)."""
        if len(raw) > 32:
            raise ValueError("Foreign address longer than 32 bytes")
        return cls(raw.rjust(32, b"\x00"))


class SHA256Hasher:
    """SHA-256 helpers backed by ``cryptography``."""

    @staticmethod
    def hash(data: Union[bytes, str]) -> Hash:
        """
        Hash data using SHA-256.

        Args:
            data: Data to hash (bytes or string)

        Returns:
            Hash object containing the SHA-256 digest
        """
        if isinstance(data, str):
            data = data.encode("utf-8")

        digest = hashes.Hash(hashes.SHA256())
        digest.update(data)
        return Hash(digest.finalize())

    @staticmethod
    def hash_parts(*parts: bytes) -> Hash:
        """Hash the concatenation of ``parts`` without building it first."""
        digest = hashes.Hash(hashes.SHA256())
        for part in parts:
            digest.update(part)
        return Hash(digest.finalize())


def _seed_bytes(seed: Union[bytes, Hash, str]) -> bytes:
    if isinstance(seed, Hash):
        return seed.value
    if isinstance(seed, str):
        return seed.encode("utf-8")
    return bytes(seed)


def derive_address(program_id: Address, *seeds: Union[bytes, Hash, str]) -> Address:
    """
    Derive the address of a program-owned resource.

    Args:
        program_id: Address of the owning program
        seeds: Up to 16 seeds of at most 32 bytes each

    Returns:
        The derived address; identical inputs always give the same address
    """
    if len(seeds) > MAX_SEEDS:
        raise ValueError(f"At most {MAX_SEEDS} seeds are allowed")

    raw = [_seed_bytes(seed) for seed in seeds]
    for seed in raw:
        if len(seed) > MAX_SEED_LENGTH:
            raise ValueError(f"Seed longer than {MAX_SEED_LENGTH} bytes")

    digest = SHA256Hasher.hash_parts(*raw, program_id.value, DERIVATION_MARKER)
    return Address(digest.value)


def u16_le(value: int) -> bytes:
    return value.to_bytes(2, byteorder="little")


def u64_le(value: int) -> bytes:
    return value.to_bytes(8, byteorder="little")
