"""
Integer math for the pair engine.

Provides:
  - safe_math  : checked add / sub / mul over uint32/112/224/256
  - uq112x112  : fixed-point encoding for the price accumulators
  - sqrt       : integer square root for the share formulas
"""

import math

from . import safe_math, uq112x112
from .safe_math import add, mul, require_uint, sub, wrapping_add, wrapping_mul, wrapping_sub


def sqrt(y: int) -> int:
    """floor(sqrt(y)) for a non-negative integer."""
    require_uint(y, 256, "sqrt operand")
    return math.isqrt(y)


__all__ = [
    "safe_math",
    "uq112x112",
    "add",
    "sub",
    "mul",
    "require_uint",
    "wrapping_add",
    "wrapping_sub",
    "wrapping_mul",
    "sqrt",
]
