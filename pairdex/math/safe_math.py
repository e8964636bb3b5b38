"""
Checked unsigned-integer arithmetic.

Every balance, reserve and share computation in the engine goes through these
helpers so that a result outside its declared width aborts the transition
instead of silently wrapping. The price accumulators are the only values that
wrap, and they do so explicitly with `wrapping_add` / `wrapping_mul`.
"""

from __future__ import annotations

from ..constants import UINT32_MAX, UINT112_MAX, UINT224_MAX, UINT256_MAX
from ..exceptions import ArithmeticOverflowError, ArithmeticUnderflowError

_WIDTH_MAX = {
    32: UINT32_MAX,
    112: UINT112_MAX,
    224: UINT224_MAX,
    256: UINT256_MAX,
}


def max_value(bits: int) -> int:
    """Largest value representable by an unsigned integer of *bits* width."""
    try:
        return _WIDTH_MAX[bits]
    except KeyError:
        raise ValueError(f"Unsupported integer width: {bits}") from None


def require_uint(value: int, bits: int = 256, what: str = "value") -> int:
    """Return *value* unchanged if it fits the width, raise otherwise."""
    if value < 0:
        raise ArithmeticUnderflowError(f"{what} {value} is negative")
    if value > max_value(bits):
        raise ArithmeticOverflowError(f"OVERFLOW: {what} {value} exceeds uint{bits}")
    return value


def add(x: int, y: int, bits: int = 256) -> int:
    z = x + y
    if z > max_value(bits):
        raise ArithmeticOverflowError(f"ds-math-add-overflow: {x} + {y} exceeds uint{bits}")
    return z


def sub(x: int, y: int, bits: int = 256) -> int:
    z = x - y
    if z < 0:
        raise ArithmeticUnderflowError(f"ds-math-sub-underflow: {x} - {y}")
    if z > max_value(bits):
        raise ArithmeticOverflowError(f"ds-math-sub-overflow: {x} - {y} exceeds uint{bits}")
    return z


def mul(x: int, y: int, bits: int = 256) -> int:
    z = x * y
    if z > max_value(bits):
        raise ArithmeticOverflowError(f"ds-math-mul-overflow: {x} * {y} exceeds uint{bits}")
    return z


def wrapping_add(x: int, y: int, bits: int = 256) -> int:
    """Modular addition, used only by the price accumulators."""
    return (x + y) & max_value(bits)


def wrapping_sub(x: int, y: int, bits: int = 256) -> int:
    """Modular subtraction (elapsed time across the uint32 timestamp wrap)."""
    return (x - y) & max_value(bits)


def wrapping_mul(x: int, y: int, bits: int = 256) -> int:
    return (x * y) & max_value(bits)
