"""
UQ112x112 binary fixed-point numbers.

A UQ112x112 value is an unsigned 224-bit integer whose low 112 bits are the
fractional part: range [0, 2**112 - 1], resolution 1 / 2**112. Used only to
feed the price accumulators; never for settlement amounts.
"""

from __future__ import annotations

from ..constants import Q112, RESOLUTION
from ..exceptions import PreconditionViolation
from .safe_math import require_uint


def encode(y: int) -> int:
    """Encode a uint112 as a UQ112x112 (never overflows)."""
    require_uint(y, 112, "uq112x112 operand")
    return y * Q112


def uqdiv(x: int, y: int) -> int:
    """Divide a UQ112x112 by a uint112, returning a UQ112x112 (floor)."""
    if y == 0:
        raise PreconditionViolation("uqdiv: division by zero")
    require_uint(x, 224, "uq112x112 numerator")
    require_uint(y, 112, "uq112x112 denominator")
    return x // y


def fraction(numerator: int, denominator: int) -> int:
    """n / d as a UQ112x112."""
    return uqdiv(encode(numerator), denominator)


def decode(x: int) -> int:
    """Integer part of a UQ112x112 (or of a UQ112x112 scaled by an amount)."""
    return x >> RESOLUTION
