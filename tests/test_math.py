"""
Test suite for Pairdex integer math

Covers:
  - Checked add / sub / mul and width bounds
  - Modular (wrapping) helpers used by the price accumulators
  - UQ112x112 encode / uqdiv / decode
  - Integer square root
"""

import pytest

from pairdex.constants import Q112, UINT32_MAX, UINT112_MAX, UINT224_MAX, UINT256_MAX
from pairdex.exceptions import (
    ArithmeticBoundsError,
    ArithmeticOverflowError,
    ArithmeticUnderflowError,
    PreconditionViolation,
)
from pairdex.math import safe_math, sqrt, uq112x112


# ============================================================================
#  CHECKED ARITHMETIC
# ============================================================================

class TestSafeMath:
    """ds-math style checked operations."""

    def test_add(self):
        assert safe_math.add(2, 3) == 5

    def test_add_overflow(self):
        with pytest.raises(ArithmeticOverflowError, match="add-overflow"):
            safe_math.add(UINT256_MAX, 1)

    def test_add_at_boundary(self):
        assert safe_math.add(UINT256_MAX - 1, 1) == UINT256_MAX

    def test_sub(self):
        assert safe_math.sub(10, 4) == 6

    def test_sub_underflow(self):
        with pytest.raises(ArithmeticUnderflowError, match="sub-underflow"):
            safe_math.sub(1, 2)

    def test_mul(self):
        assert safe_math.mul(6, 7) == 42

    def test_mul_overflow(self):
        with pytest.raises(ArithmeticOverflowError, match="mul-overflow"):
            safe_math.mul(2 ** 128, 2 ** 128)

    def test_mul_by_zero(self):
        assert safe_math.mul(UINT256_MAX, 0) == 0

    def test_narrow_width(self):
        assert safe_math.add(UINT112_MAX - 1, 1, bits=112) == UINT112_MAX
        with pytest.raises(ArithmeticOverflowError):
            safe_math.add(UINT112_MAX, 1, bits=112)

    def test_common_base(self):
        with pytest.raises(ArithmeticBoundsError):
            safe_math.sub(0, 1)

    def test_unsupported_width(self):
        with pytest.raises(ValueError, match="Unsupported"):
            safe_math.max_value(64)


class TestRequireUint:

    def test_in_range(self):
        assert safe_math.require_uint(UINT112_MAX, 112) == UINT112_MAX

    def test_overflow(self):
        with pytest.raises(ArithmeticOverflowError, match="OVERFLOW"):
            safe_math.require_uint(UINT112_MAX + 1, 112, "balance0")

    def test_negative(self):
        with pytest.raises(ArithmeticUnderflowError, match="negative"):
            safe_math.require_uint(-1)

    def test_width_maxima(self):
        assert safe_math.max_value(32) == UINT32_MAX == 2 ** 32 - 1
        assert safe_math.max_value(224) == UINT224_MAX == 2 ** 224 - 1


class TestWrappingMath:
    """Accumulator arithmetic wraps instead of failing."""

    def test_wrapping_add(self):
        assert safe_math.wrapping_add(UINT256_MAX, 2) == 1

    def test_wrapping_mul(self):
        assert safe_math.wrapping_mul(2 ** 255, 2) == 0

    def test_wrapping_sub_across_timestamp_wrap(self):
        # 2**32 - 1 -> 9 (after wrap) is 10 seconds
        assert safe_math.wrapping_sub(9, UINT32_MAX, 32) == 10

    def test_wrapping_sub_no_wrap(self):
        assert safe_math.wrapping_sub(100, 40, 32) == 60


# ============================================================================
#  UQ112x112
# ============================================================================

class TestUQ112x112:

    def test_encode(self):
        assert uq112x112.encode(1) == Q112 == 2 ** 112

    def test_encode_max(self):
        assert uq112x112.encode(UINT112_MAX) == UINT112_MAX * 2 ** 112
        assert uq112x112.encode(UINT112_MAX) <= UINT224_MAX

    def test_encode_rejects_wide_operand(self):
        with pytest.raises(ArithmeticOverflowError):
            uq112x112.encode(UINT112_MAX + 1)

    def test_uqdiv(self):
        assert uq112x112.uqdiv(uq112x112.encode(10), 4) == (10 * 2 ** 112) // 4

    def test_uqdiv_by_zero(self):
        with pytest.raises(PreconditionViolation, match="division by zero"):
            uq112x112.uqdiv(uq112x112.encode(1), 0)

    def test_fraction_matches_reference_price_encoding(self):
        # reserve1 / reserve0 as UQ112x112, as consumers compute it
        reserve0, reserve1 = 3 * 10 ** 18, 5 * 10 ** 18
        assert uq112x112.fraction(reserve1, reserve0) == reserve1 * 2 ** 112 // reserve0

    def test_decode(self):
        assert uq112x112.decode(uq112x112.encode(7)) == 7
        assert uq112x112.decode(uq112x112.fraction(1, 2)) == 0


# ============================================================================
#  SQRT
# ============================================================================

class TestSqrt:

    @pytest.mark.parametrize("y,expected", [
        (0, 0),
        (1, 1),
        (3, 1),
        (4, 2),
        (10 ** 36, 10 ** 18),
        (4 * 10 ** 36, 2 * 10 ** 18),
        (10 ** 36 - 1, 10 ** 18 - 1),
    ])
    def test_floor_sqrt(self, y, expected):
        assert sqrt(y) == expected

    def test_sqrt_max(self):
        assert sqrt(UINT256_MAX) == 2 ** 128 - 1

    def test_sqrt_negative(self):
        with pytest.raises(ArithmeticUnderflowError):
            sqrt(-4)
