"""
Pairdex TWAP Oracle  (fixed-window consumer of the pair accumulators)

Time-weighted average prices from two snapshots of a pair's cumulative
prices:
  - average = (cumulative_now - cumulative_then) / elapsed, UQ112x112
  - Differences are taken modulo 2**256 and elapsed time modulo 2**32, so
    wrapped accumulators still give the correct average
  - Counterfactual cumulatives: no pair transition needed to observe "now"

Security features:
  - Minimum window (period) before a new average is accepted
  - Refuses to start on an empty pair
  - Bounded observation history
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..constants import RESOLUTION
from ..crypto import normalize_address
from ..exceptions import OracleError
from ..logger import get_logger
from ..math import uq112x112, wrapping_add, wrapping_mul, wrapping_sub
from .pair import ReservePair

logger = get_logger(__name__)

MAX_OBSERVATIONS = 1024


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PriceObservation:
    """Cumulative prices of a pair as of a (uint32) timestamp."""
    timestamp: int
    price0_cumulative: int
    price1_cumulative: int


def current_cumulative_prices(pair: ReservePair) -> Tuple[int, int, int]:
    """
    (price0_cumulative, price1_cumulative, block_timestamp) as if the pair
    had been synced at the current block timestamp. Does not touch the pair.
    """
    block_timestamp = pair.context.block_timestamp()
    price0_cumulative = pair.price0_cumulative_last
    price1_cumulative = pair.price1_cumulative_last

    reserve0, reserve1, block_timestamp_last = pair.get_reserves()
    if block_timestamp_last != block_timestamp and reserve0 != 0 and reserve1 != 0:
        time_elapsed = wrapping_sub(block_timestamp, block_timestamp_last, 32)
        price0_cumulative = wrapping_add(
            price0_cumulative, wrapping_mul(uq112x112.fraction(reserve1, reserve0), time_elapsed)
        )
        price1_cumulative = wrapping_add(
            price1_cumulative, wrapping_mul(uq112x112.fraction(reserve0, reserve1), time_elapsed)
        )
    return price0_cumulative, price1_cumulative, block_timestamp


# ---------------------------------------------------------------------------
# TWAP Oracle
# ---------------------------------------------------------------------------

class TWAPOracle:
    """
    Fixed-window average price of one pair.

    update() may be called at most once per *period*; consult() prices an
    amount of either asset at the average of the last completed window.
    """

    def __init__(self, pair: ReservePair, period: int, max_observations: int = MAX_OBSERVATIONS):
        if period <= 0:
            raise OracleError(f"Oracle period must be positive, got {period}")
        reserve0, reserve1, block_timestamp_last = pair.get_reserves()
        if reserve0 == 0 or reserve1 == 0:
            raise OracleError(f"NO_RESERVES: pair {pair.address} is empty")

        self.pair = pair
        self.period = period
        self.max_observations = max_observations
        self.price0_average: Optional[int] = None  # UQ112x112
        self.price1_average: Optional[int] = None
        self._observations: List[PriceObservation] = [PriceObservation(
            timestamp=block_timestamp_last,
            price0_cumulative=pair.price0_cumulative_last,
            price1_cumulative=pair.price1_cumulative_last,
        )]

    @property
    def observation_count(self) -> int:
        return len(self._observations)

    @property
    def latest(self) -> PriceObservation:
        return self._observations[-1]

    def get_observations(self, count: int = 50) -> List[PriceObservation]:
        return self._observations[-count:]

    # -- Recording ----------------------------------------------------------

    def update(self) -> PriceObservation:
        """
        Close the current window and record a new observation.

        Raises:
            OracleError: fewer than *period* seconds since the last observation
        """
        price0_cumulative, price1_cumulative, block_timestamp = current_cumulative_prices(self.pair)
        previous = self._observations[-1]
        time_elapsed = wrapping_sub(block_timestamp, previous.timestamp, 32)
        if time_elapsed < self.period:
            raise OracleError(
                f"PERIOD_NOT_ELAPSED: {time_elapsed}s since last observation, period is {self.period}s"
            )

        self.price0_average = wrapping_sub(price0_cumulative, previous.price0_cumulative) // time_elapsed
        self.price1_average = wrapping_sub(price1_cumulative, previous.price1_cumulative) // time_elapsed

        observation = PriceObservation(block_timestamp, price0_cumulative, price1_cumulative)
        self._observations.append(observation)
        if len(self._observations) > self.max_observations:
            self._observations = self._observations[-self.max_observations:]

        logger.debug(
            f"Oracle update on {self.pair.address}: window {time_elapsed}s, "
            f"avg0={self.price0_average} avg1={self.price1_average}"
        )
        return observation

    # -- Queries ------------------------------------------------------------

    def consult(self, token: str, amount_in: int) -> int:
        """Amount of the other asset worth *amount_in* of *token* at the window average."""
        if self.price0_average is None or self.price1_average is None:
            raise OracleError("No completed window yet: call update() first")
        token = normalize_address(token)
        if token == self.pair.token0:
            return (self.price0_average * amount_in) >> RESOLUTION
        if token == self.pair.token1:
            return (self.price1_average * amount_in) >> RESOLUTION
        raise OracleError(f"INVALID_TOKEN: {token} is not in pair {self.pair.address}")

    def __repr__(self) -> str:
        return f"<TWAPOracle pair={self.pair.address} period={self.period} observations={len(self._observations)}>"
