"""
Pairdex quoting library.

Pure functions over reserves, using the same 0.30% fee arithmetic the
pair enforces in swap(). A swap sized with get_amount_out() always passes
the pair's invariant check.
"""

from __future__ import annotations

from typing import Tuple

from ..constants import SWAP_FEE_DENOMINATOR, SWAP_FEE_NUMERATOR
from ..crypto import normalize_address
from ..exceptions import InsufficientInputAmountError, InsufficientLiquidityError, InsufficientOutputAmountError
from ..math import add, mul, sub
from .factory import PairFactory, pair_for, sort_tokens

_FEE_KEEP = SWAP_FEE_DENOMINATOR - SWAP_FEE_NUMERATOR  # 997


def get_reserves(factory: PairFactory, token_a: str, token_b: str) -> Tuple[int, int]:
    """Reserves of the (token_a, token_b) pair, in the caller's order."""
    token0, _ = sort_tokens(token_a, token_b)
    pair = factory.get_pair_contract(token_a, token_b)
    if pair is None:
        raise InsufficientLiquidityError(f"INSUFFICIENT_LIQUIDITY: no pair for {token_a}/{token_b}")
    reserve0, reserve1, _ = pair.get_reserves()
    if normalize_address(token_a) == token0:
        return reserve0, reserve1
    return reserve1, reserve0


def quote(amount_a: int, reserve_a: int, reserve_b: int) -> int:
    """Equivalent amount of B for *amount_a* at the current reserve ratio (no fee)."""
    if amount_a <= 0:
        raise InsufficientInputAmountError("INSUFFICIENT_AMOUNT")
    if reserve_a <= 0 or reserve_b <= 0:
        raise InsufficientLiquidityError("INSUFFICIENT_LIQUIDITY")
    return mul(amount_a, reserve_b) // reserve_a


def get_amount_out(amount_in: int, reserve_in: int, reserve_out: int) -> int:
    """Maximum output for *amount_in*, net of the swap fee."""
    if amount_in <= 0:
        raise InsufficientInputAmountError("INSUFFICIENT_INPUT_AMOUNT")
    if reserve_in <= 0 or reserve_out <= 0:
        raise InsufficientLiquidityError("INSUFFICIENT_LIQUIDITY")
    amount_in_with_fee = mul(amount_in, _FEE_KEEP)
    numerator = mul(amount_in_with_fee, reserve_out)
    denominator = add(mul(reserve_in, SWAP_FEE_DENOMINATOR), amount_in_with_fee)
    return numerator // denominator


def get_amount_in(amount_out: int, reserve_in: int, reserve_out: int) -> int:
    """Minimum input that buys *amount_out*, net of the swap fee."""
    if amount_out <= 0:
        raise InsufficientOutputAmountError("INSUFFICIENT_OUTPUT_AMOUNT")
    if reserve_in <= 0 or reserve_out <= 0:
        raise InsufficientLiquidityError("INSUFFICIENT_LIQUIDITY")
    if amount_out >= reserve_out:
        raise InsufficientLiquidityError(
            f"INSUFFICIENT_LIQUIDITY: output {amount_out} drains reserve {reserve_out}"
        )
    numerator = mul(mul(reserve_in, amount_out), SWAP_FEE_DENOMINATOR)
    denominator = mul(sub(reserve_out, amount_out), _FEE_KEEP)
    return numerator // denominator + 1


__all__ = [
    "sort_tokens",
    "pair_for",
    "get_reserves",
    "quote",
    "get_amount_out",
    "get_amount_in",
]
