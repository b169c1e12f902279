"""
Wire codec for cross-chain transfer payloads.

Layout (big-endian, 226 bytes)::

    offset  width  field
         0      1  variant tag
         1     32  amount (wire precision, 8 decimals)
        33      1  token_decimals
        34     32  source_token_address
        66     32  source_account_address
        98     32  source_chain_id
       130     32  dest_token_address
       162     32  dest_account_address
       194     32  dest_chain_id
"""

import struct
from dataclasses import dataclass
from typing import Union

from ..crypto import Address
from ..errors import PayloadError
from .bridge_types import PayloadVariant
from .wide import WideAmount

_LAYOUT = struct.Struct(">B32sB32s32s32s32s32s32s")
PAYLOAD_SIZE = _LAYOUT.size


@dataclass(frozen=True)
class BridgePayload:
    """Cross-chain transfer payload."""

    amount: WideAmount
    token_decimals: int
    source_chain_id: WideAmount
    source_token_address: Address
    source_account_address: Address
    dest_chain_id: WideAmount
    dest_token_address: Address
    dest_account_address: Address

    def __post_init__(self) -> None:
        if not 0 <= self.token_decimals <= 0xFF:
            raise PayloadError(f"token_decimals out of range: {self.token_decimals}")
        for name in ("amount", "source_chain_id", "dest_chain_id"):
            value = getattr(self, name)
            if not isinstance(value, WideAmount):
                object.__setattr__(self, name, WideAmount.of(value))

    @property
    def variant(self) -> PayloadVariant:
        return PayloadVariant.CROSS_CHAIN_TRANSFER

    def encode(self) -> bytes:
        return encode_payload(self)


def encode_payload(payload: BridgePayload) -> bytes:
    return _LAYOUT.pack(
        payload.variant,
        payload.amount.to_bytes(),
        payload.token_decimals,
        payload.source_token_address.value,
        payload.source_account_address.value,
        payload.source_chain_id.to_bytes(),
        payload.dest_token_address.value,
        payload.dest_account_address.value,
        payload.dest_chain_id.to_bytes(),
    )


def decode_payload(data: Union[bytes, bytearray, memoryview]) -> BridgePayload:
    """Decode payload bytes, raising :class:`PayloadError` on any malformation."""
    data = bytes(data)
    if not data:
        raise PayloadError("Empty payload", length=0)

    tag = data[0]
    try:
        variant = PayloadVariant(tag)
    except ValueError:
        raise PayloadError(
            f"Unknown payload variant {tag}", tag=tag, length=len(data)
        ) from None

    if variant is not PayloadVariant.CROSS_CHAIN_TRANSFER:
        raise PayloadError(f"Unexpected payload variant {variant.name}", tag=tag)

    if len(data) != PAYLOAD_SIZE:
        raise PayloadError(
            f"Payload must be {PAYLOAD_SIZE} bytes, got {len(data)}",
            tag=tag,
            length=len(data),
        )

    (
        _,
        amount,
        token_decimals,
        source_token,
        source_account,
        source_chain,
        dest_token,
        dest_account,
        dest_chain,
    ) = _LAYOUT.unpack(data)

    return BridgePayload(
        amount=WideAmount.from_bytes(amount),
        token_decimals=token_decimals,
        source_chain_id=WideAmount.from_bytes(source_chain),
        source_token_address=Address(source_token),
        source_account_address=Address(source_account),
        dest_chain_id=WideAmount.from_bytes(dest_chain),
        dest_token_address=Address(dest_token),
        dest_account_address=Address(dest_account),
    )
