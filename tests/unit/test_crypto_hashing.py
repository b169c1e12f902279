"""
Unit tests for digests and address derivation.
"""

import hashlib

import pytest

from catbridge.crypto import Address, Hash, SHA256Hasher, derive_address, u16_le, u64_le

PROGRAM = Address.from_int(0xB1D6E)


class TestHash:
    """Test the Hash class."""

    def test_length(self):
        """Test that only 32-byte digests are accepted."""
        with pytest.raises(ValueError):
            Hash(b"short")
        with pytest.raises(TypeError):
            Hash("00" * 32)

    def test_hex_round_trip(self):
        """Test hex conversion with and without prefix."""
        digest = SHA256Hasher.hash(b"catbridge")
        assert Hash.from_hex(digest.to_hex()) == digest
        assert Hash.from_hex("0x" + digest.to_hex()) == digest
        assert str(digest) == digest.to_hex()

    def test_matches_hashlib(self):
        """Test the digest value against a reference implementation."""
        assert SHA256Hasher.hash("abc").value == hashlib.sha256(b"abc").digest()

    def test_hash_parts(self):
        """Test that hashing parts equals hashing their concatenation."""
        assert SHA256Hasher.hash_parts(b"ab", b"", b"c") == SHA256Hasher.hash(b"abc")


class TestAddress:
    """Test the Address class."""

    def test_from_int(self):
        """Test big-endian left padding."""
        address = Address.from_int(1)
        assert address.value == bytes(31) + b"\x01"
        assert not address.is_zero()
        assert Address.zero().is_zero()

    def test_from_foreign(self):
        """Test padding a 20-byte foreign address."""
        raw = bytes(range(20))
        assert Address.from_foreign(raw).value == bytes(12) + raw
        with pytest.raises(ValueError):
            Address.from_foreign(bytes(33))

    def test_distinct_from_hash(self):
        """Test that an address never equals a digest with the same bytes."""
        value = bytes(range(32))
        assert Address(value) != Hash(value)
        assert isinstance(Address.zero(), Address)


class TestDeriveAddress:
    """Test program-derived addresses."""

    def test_deterministic(self):
        """Test that the same seeds give the same address."""
        assert derive_address(PROGRAM, b"config") == derive_address(PROGRAM, "config")

    def test_layout(self):
        """Test the digest input: seeds, then program id, then the marker."""
        expected = hashlib.sha256(
            b"sent" + u64_le(7) + PROGRAM.value + b"ProgramDerivedAddress"
        ).digest()
        assert derive_address(PROGRAM, b"sent", u64_le(7)).value == expected

    def test_seeds_and_program_separate(self):
        """Test that seeds and programs partition the address space."""
        other = Address.from_int(0xB1D6F)
        assert derive_address(PROGRAM, b"a") != derive_address(PROGRAM, b"b")
        assert derive_address(PROGRAM, b"a") != derive_address(other, b"a")
        assert derive_address(PROGRAM, u16_le(1)) != derive_address(PROGRAM, u16_le(256))

    def test_hash_seed(self):
        """Test that digests can be used as seeds."""
        mint = Address.from_int(0x70C)
        assert derive_address(PROGRAM, mint) == derive_address(PROGRAM, mint.value)

    def test_seed_limits(self):
        """Test the seed count and length limits."""
        with pytest.raises(ValueError):
            derive_address(PROGRAM, bytes(33))
        with pytest.raises(ValueError):
            derive_address(PROGRAM, *([b"s"] * 17))

    def test_little_endian_helpers(self):
        """Test integer seed encodings."""
        assert u16_le(0x0102) == b"\x02\x01"
        assert u64_le(1) == b"\x01" + bytes(7)
