"""
Decimal normalization between native token precision and wire precision.

Amounts on the wire always carry 8 decimal places. A token with more native
decimals loses the digits below 8 decimals ("dust") when normalized; this is
a deterministic floor and the loss is always less than ``10 ** (d - 8)``.
Tokens with 8 or fewer decimals round-trip exactly.
"""

from .wide import U64_MAX, IntLike, WideAmount
from ..errors import ArithmeticError

WIRE_DECIMALS = 8
MAX_DECIMALS = 255


def _check_decimals(decimals: int) -> None:
    if not 0 <= decimals <= MAX_DECIMALS:
        raise ArithmeticError(
            f"Token decimals must fit in a byte, got {decimals}",
            operation="decimals",
            value=decimals,
        )


def _check_native(amount: int, native_bits: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise TypeError(f"Native amount must be an int, got {type(amount).__name__}")
    if amount < 0 or amount >= (1 << native_bits):
        raise ArithmeticError(
            f"Native amount outside u{native_bits}", operation="native", value=amount
        )


def normalize(amount_native: int, decimals: int, native_bits: int = 64) -> WideAmount:
    """Scale a native amount to wire precision, flooring any dust."""
    _check_decimals(decimals)
    _check_native(amount_native, native_bits)

    wide = WideAmount(amount_native)
    if decimals > WIRE_DECIMALS:
        return wide.floor_div(10 ** (decimals - WIRE_DECIMALS))
    return wide.checked_mul(10 ** (WIRE_DECIMALS - decimals))


def denormalize(amount_wire: IntLike, decimals: int, native_bits: int = 64) -> int:
    """Scale a wire amount back to native precision, narrowed to ``native_bits``."""
    _check_decimals(decimals)

    wide = WideAmount.of(amount_wire)
    if decimals > WIRE_DECIMALS:
        scaled = wide.checked_mul(10 ** (decimals - WIRE_DECIMALS))
    else:
        scaled = wide.floor_div(10 ** (WIRE_DECIMALS - decimals))
    return scaled.to_native(native_bits)


def dust(amount_native: int, decimals: int) -> int:
    """Native units that :func:`normalize` drops for ``amount_native``."""
    _check_decimals(decimals)
    if decimals <= WIRE_DECIMALS:
        return 0
    return amount_native % (10 ** (decimals - WIRE_DECIMALS))


def truncate(amount_native: int, decimals: int) -> int:
    """Largest amount not above ``amount_native`` that normalizes without dust."""
    return amount_native - dust(amount_native, decimals)


__all__ = [
    "WIRE_DECIMALS",
    "U64_MAX",
    "normalize",
    "denormalize",
    "dust",
    "truncate",
]
