"""
Unit tests for the payload codec.
"""

import pytest

from catbridge.bridge.bridge_types import PayloadVariant
from catbridge.bridge.codec import PAYLOAD_SIZE, BridgePayload, decode_payload, encode_payload
from catbridge.bridge.wide import WideAmount
from catbridge.crypto import Address
from catbridge.errors import PayloadError


@pytest.fixture
def payload():
    """Fixture for a transfer payload with distinct field values."""
    return BridgePayload(
        amount=WideAmount(150_000_000),
        token_decimals=9,
        source_chain_id=1,
        source_token_address=Address.from_int(0x11),
        source_account_address=Address.from_int(0x22),
        dest_chain_id=2,
        dest_token_address=Address.from_int(0x33),
        dest_account_address=Address.from_int(0x44),
    )


class TestPayloadLayout:
    """Test the byte layout of encoded payloads."""

    def test_size(self, payload):
        """Test that an encoded payload is 226 bytes."""
        assert PAYLOAD_SIZE == 226
        assert len(encode_payload(payload)) == PAYLOAD_SIZE

    def test_field_offsets(self, payload):
        """Test every field lands at its fixed offset."""
        data = payload.encode()
        assert data[0] == PayloadVariant.CROSS_CHAIN_TRANSFER == 1
        assert int.from_bytes(data[1:33], "big") == 150_000_000
        assert data[33] == 9
        assert data[34:66] == Address.from_int(0x11).value
        assert data[66:98] == Address.from_int(0x22).value
        assert int.from_bytes(data[98:130], "big") == 1
        assert data[130:162] == Address.from_int(0x33).value
        assert data[162:194] == Address.from_int(0x44).value
        assert int.from_bytes(data[194:226], "big") == 2

    def test_ints_are_coerced(self, payload):
        """Test that plain int chain ids become wide amounts."""
        assert payload.source_chain_id == WideAmount(1)
        assert payload.dest_chain_id == WideAmount(2)

    def test_decimals_must_fit_a_byte(self):
        """Test that token_decimals above 255 are rejected."""
        with pytest.raises(PayloadError):
            BridgePayload(
                amount=1,
                token_decimals=256,
                source_chain_id=1,
                source_token_address=Address.zero(),
                source_account_address=Address.zero(),
                dest_chain_id=2,
                dest_token_address=Address.zero(),
                dest_account_address=Address.zero(),
            )


class TestDecode:
    """Test decoding and its failure modes."""

    def test_round_trip(self, payload):
        """Test that decoding an encoded payload gives it back."""
        assert decode_payload(encode_payload(payload)) == payload

    def test_accepts_bytearray(self, payload):
        """Test decoding from a mutable buffer."""
        assert decode_payload(bytearray(payload.encode())) == payload

    def test_empty(self):
        """Test that an empty buffer is a payload error."""
        with pytest.raises(PayloadError) as exc_info:
            decode_payload(b"")
        assert exc_info.value.length == 0

    def test_unknown_tag(self, payload):
        """Test that a reserved tag is rejected and named."""
        data = b"\x02" + payload.encode()[1:]
        with pytest.raises(PayloadError) as exc_info:
            decode_payload(data)
        assert exc_info.value.tag == 2

    def test_zero_tag(self, payload):
        """Test that tag zero is not a valid variant."""
        with pytest.raises(PayloadError):
            decode_payload(b"\x00" + payload.encode()[1:])

    def test_short_buffer(self, payload):
        """Test that a truncated payload is rejected."""
        with pytest.raises(PayloadError) as exc_info:
            decode_payload(payload.encode()[:-1])
        assert exc_info.value.length == PAYLOAD_SIZE - 1

    def test_trailing_bytes(self, payload):
        """Test that extra bytes after the payload are rejected."""
        with pytest.raises(PayloadError):
            decode_payload(payload.encode() + b"\x00")
