"""
Fixed-width 256-bit unsigned amounts.

Cross-chain amounts and chain ids travel as 32-byte big-endian integers.
Python ints never overflow on their own, so every operation here checks the
256-bit range explicitly, and narrowing to a native width is a checked call
rather than a silent truncation.
"""

from dataclasses import dataclass
from typing import Union

from ..errors import ArithmeticError

WIDE_BITS = 256
WIDE_BYTES = WIDE_BITS // 8
WIDE_MAX = (1 << WIDE_BITS) - 1
U64_MAX = (1 << 64) - 1

IntLike = Union[int, "WideAmount"]


def _as_int(value: IntLike) -> int:
    if isinstance(value, WideAmount):
        return value.value
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Expected int or WideAmount, got {type(value).__name__}")
    return value


@dataclass(frozen=True, order=True)
class WideAmount:
    """Unsigned 256-bit integer."""

    value: int = 0

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError("WideAmount value must be an int")
        if self.value < 0:
            raise ArithmeticError(
                "WideAmount cannot be negative", operation="construct", value=self.value
            )
        if self.value > WIDE_MAX:
            raise ArithmeticError(
                "Value exceeds 256 bits", operation="construct", value=self.value
            )

    def __int__(self) -> int:
        return self.value

    def __index__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)

    @classmethod
    def of(cls, value: IntLike) -> "WideAmount":
        return value if isinstance(value, WideAmount) else cls(_as_int(value))

    @classmethod
    def from_bytes(cls, data: bytes) -> "WideAmount":
        if len(data) != WIDE_BYTES:
            raise ValueError(f"WideAmount needs exactly {WIDE_BYTES} bytes, got {len(data)}")
        return cls(int.from_bytes(data, byteorder="big"))

    def to_bytes(self) -> bytes:
        return self.value.to_bytes(WIDE_BYTES, byteorder="big")

    def checked_add(self, other: IntLike) -> "WideAmount":
        result = self.value + _as_int(other)
        if result > WIDE_MAX or result < 0:
            raise ArithmeticError("256-bit addition overflow", operation="add", value=result)
        return WideAmount(result)

    def checked_sub(self, other: IntLike) -> "WideAmount":
        result = self.value - _as_int(other)
        if result < 0:
            raise ArithmeticError("256-bit subtraction underflow", operation="sub", value=result)
        return WideAmount(result)

    def checked_mul(self, other: IntLike) -> "WideAmount":
        result = self.value * _as_int(other)
        if result > WIDE_MAX or result < 0:
            raise ArithmeticError(
                "256-bit multiplication overflow", operation="mul", value=result
            )
        return WideAmount(result)

    def floor_div(self, other: IntLike) -> "WideAmount":
        divisor = _as_int(other)
        if divisor <= 0:
            raise ArithmeticError("Division by zero", operation="div", value=divisor)
        return WideAmount(self.value // divisor)

    def fits(self, bits: int) -> bool:
        return self.value < (1 << bits)

    def to_native(self, bits: int = 64) -> int:
        """Narrow to an unsigned ``bits``-wide integer; raises if it does not fit."""
        if not self.fits(bits):
            raise ArithmeticError(
                f"Value does not fit in u{bits}", operation="downcast", value=self.value
            )
        return self.value

    def to_u64(self) -> int:
        return self.to_native(64)

    def is_zero(self) -> bool:
        return self.value == 0
