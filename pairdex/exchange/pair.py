"""
Pairdex Reserve Pair  (constant-product state machine)

One pool of two assets:
  - mint / burn / swap / sync / skim transitions over custodial balances
  - Constant-product invariant with a 0.30% input fee
  - Flash swaps: outputs are sent before the invariant is checked
  - UQ112x112 price accumulators (wrap at 2**256)
  - Protocol fee: 1/6 of root-k growth minted as shares to feeTo

Security features:
  - Reentrancy lock held for the whole transition, released on every path
  - Journaled transitions: any failure restores reserves, shares, balances
  - Checked arithmetic for every balance / share computation
  - Reserves bounded to uint112
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional, Protocol, Tuple

from ..chain import ChainContext
from ..constants import (
    MINIMUM_LIQUIDITY,
    PROTOCOL_FEE_DIVISOR,
    SWAP_FEE_DENOMINATOR,
    SWAP_FEE_NUMERATOR,
    ZERO_ADDRESS,
)
from ..crypto.address import is_zero_address, normalize_address
from ..exceptions import (
    AuthorizationError,
    InsufficientInputAmountError,
    InsufficientLiquidityError,
    InsufficientOutputAmountError,
    InsufficientOutputReserveError,
    InvariantViolationError,
    PairdexException,
    PreconditionViolation,
    ReentrancyError,
)
from ..logger import get_logger
from ..math import add, mul, require_uint, sqrt, sub, uq112x112, wrapping_add, wrapping_mul, wrapping_sub
from ..tokens import Token
from .events import BurnEvent, MintEvent, PairEvent, SwapEvent, SyncEvent
from .journal import atomic
from .ledger import LiquidityLedger

if TYPE_CHECKING:
    from .factory import PairFactory

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Flash-swap callee interface
# ---------------------------------------------------------------------------

class FlashSwapCallee(Protocol):
    """
    Recipient-side handler invoked by swap() when callback data is supplied.

    By the time it returns, the pair's balances must satisfy the post-fee
    invariant or the enclosing swap is rolled back.
    """

    def on_flash_swap(
        self,
        pair: "ReservePair",
        sender: str,
        amount0_out: int,
        amount1_out: int,
        data: bytes,
    ) -> None: ...


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------

@dataclass
class PairState:
    """
    Last-synchronized snapshot of a pair.

    token0 < token1 (canonical ordering).
    """
    token0: str = ZERO_ADDRESS
    token1: str = ZERO_ADDRESS

    # uint112 reserves + uint32 timestamp of their last update
    reserve0: int = 0
    reserve1: int = 0
    block_timestamp_last: int = 0

    # UQ112x112 time integrals of reserve1/reserve0 and reserve0/reserve1
    price0_cumulative_last: int = 0
    price1_cumulative_last: int = 0

    # reserve0 * reserve1 as of the last liquidity event; None while the fee switch is off
    k_last: Optional[int] = None


# ---------------------------------------------------------------------------
# Reserve pair
# ---------------------------------------------------------------------------

class ReservePair:
    """
    Constant-product pair engine.

    Deposits are made by transferring assets to ``pair.address`` first; the
    transitions then account for whatever custodial balance exceeds the
    recorded reserves.
    """

    MINIMUM_LIQUIDITY = MINIMUM_LIQUIDITY

    def __init__(self, address: str, factory: "PairFactory", context: ChainContext):
        self.address = normalize_address(address)
        self.factory = factory
        self.context = context
        self.state = PairState()

        self._events: List[PairEvent] = []
        self.ledger = LiquidityLedger(self.address, context, self._events)

        self._token0: Optional[Token] = None
        self._token1: Optional[Token] = None

        self._locked: bool = False             # reentrancy guard
        self._mutex = threading.RLock()        # serializes transitions across threads

    # -- Initialization -----------------------------------------------------

    def initialize(self, caller: str, token0: str, token1: str) -> None:
        """Bind the pair to its canonically ordered assets. Factory only, once."""
        if normalize_address(caller) != self.factory.address:
            raise AuthorizationError("FORBIDDEN: only the factory can initialize a pair")
        if self._token0 is not None:
            raise PreconditionViolation("Pair already initialized")

        self._token0 = self.context.tokens.get_or_raise(token0)
        self._token1 = self.context.tokens.get_or_raise(token1)
        self.state.token0 = self._token0.address
        self.state.token1 = self._token1.address

    # -- Read-only views ----------------------------------------------------

    @property
    def token0(self) -> str:
        return self.state.token0

    @property
    def token1(self) -> str:
        return self.state.token1

    @property
    def price0_cumulative_last(self) -> int:
        return self.state.price0_cumulative_last

    @property
    def price1_cumulative_last(self) -> int:
        return self.state.price1_cumulative_last

    @property
    def k_last(self) -> Optional[int]:
        return self.state.k_last

    @property
    def total_shares(self) -> int:
        return self.ledger.total_shares

    @property
    def events(self) -> List[PairEvent]:
        return list(self._events)

    @property
    def is_locked(self) -> bool:
        return self._locked

    def get_reserves(self) -> Tuple[int, int, int]:
        """(reserve0, reserve1, block_timestamp_last)."""
        return self.state.reserve0, self.state.reserve1, self.state.block_timestamp_last

    def balances(self) -> Tuple[int, int]:
        """Current custodial balances of both assets."""
        return self._require_token0().balance_of(self.address), self._require_token1().balance_of(self.address)

    # -- Transitions ----------------------------------------------------------

    def mint(self, sender: str, to: str) -> int:
        """
        Mint shares for the assets transferred in since the last sync.

        Returns:
            Shares minted to *to*

        Raises:
            InsufficientLiquidityError: deposit would mint zero shares
        """
        with self._transition("mint"):
            reserve0, reserve1, _ = self.get_reserves()
            balance0, balance1 = self.balances()
            amount0 = sub(balance0, reserve0)
            amount1 = sub(balance1, reserve1)

            fee_on = self._mint_fee(reserve0, reserve1)
            total = self.ledger.total_shares  # must be read after _mint_fee
            if total == 0:
                root = sqrt(mul(amount0, amount1))
                if root <= MINIMUM_LIQUIDITY:
                    raise InsufficientLiquidityError(
                        f"INSUFFICIENT_LIQUIDITY_MINTED: initial sqrt(k)={root} "
                        f"does not exceed the locked minimum {MINIMUM_LIQUIDITY}"
                    )
                liquidity = sub(root, MINIMUM_LIQUIDITY)
                # permanently lock the first MINIMUM_LIQUIDITY shares
                self.ledger.mint_shares(ZERO_ADDRESS, MINIMUM_LIQUIDITY)
            else:
                if reserve0 == 0 or reserve1 == 0:
                    raise InsufficientLiquidityError("INSUFFICIENT_LIQUIDITY: empty reserve with shares outstanding")
                liquidity = min(
                    mul(amount0, total) // reserve0,
                    mul(amount1, total) // reserve1,
                )
            if liquidity <= 0:
                raise InsufficientLiquidityError("INSUFFICIENT_LIQUIDITY_MINTED")

            self.ledger.mint_shares(to, liquidity)
            self._update(balance0, balance1, reserve0, reserve1)
            if fee_on:
                self.state.k_last = mul(self.state.reserve0, self.state.reserve1)

            self._emit(MintEvent(self.address, normalize_address(sender), amount0, amount1))
            logger.debug(f"Mint: {sender} deposited {amount0}/{amount1}, {liquidity} shares -> {to}")
            return liquidity

    def burn(self, sender: str, to: str) -> Tuple[int, int]:
        """
        Burn the shares held in the pair's own custody and pay out both assets.

        Returns:
            (amount0, amount1) transferred to *to*

        Raises:
            InsufficientLiquidityError: either payout would be zero
        """
        with self._transition("burn"):
            reserve0, reserve1, _ = self.get_reserves()
            token0, token1 = self._require_token0(), self._require_token1()
            balance0, balance1 = self.balances()
            liquidity = self.ledger.balance_of(self.address)

            fee_on = self._mint_fee(reserve0, reserve1)
            total = self.ledger.total_shares  # must be read after _mint_fee
            if total == 0:
                raise InsufficientLiquidityError("INSUFFICIENT_LIQUIDITY_BURNED: no shares outstanding")
            # balances, not reserves, so donations are paid out pro rata
            amount0 = mul(liquidity, balance0) // total
            amount1 = mul(liquidity, balance1) // total
            if amount0 == 0 or amount1 == 0:
                raise InsufficientLiquidityError(
                    f"INSUFFICIENT_LIQUIDITY_BURNED: {liquidity} shares redeem {amount0}/{amount1}"
                )

            self.ledger.burn_shares(self.address, liquidity)
            token0.transfer(self.address, to, amount0)
            token1.transfer(self.address, to, amount1)

            balance0, balance1 = self.balances()
            self._update(balance0, balance1, reserve0, reserve1)
            if fee_on:
                self.state.k_last = mul(self.state.reserve0, self.state.reserve1)

            self._emit(BurnEvent(self.address, normalize_address(sender), amount0, amount1, normalize_address(to)))
            logger.debug(f"Burn: {liquidity} shares redeemed for {amount0}/{amount1} -> {to}")
            return amount0, amount1

    def swap(
        self,
        sender: str,
        amount0_out: int,
        amount1_out: int,
        to: str,
        data: bytes = b"",
    ) -> Tuple[int, int]:
        """
        Send the requested outputs to *to*, then require the inputs paid in
        (before the call or during the flash-swap callback) to keep
        (balance0*1000 - in0*3) * (balance1*1000 - in1*3) >= reserve0*reserve1*1000**2.

        Returns:
            (amount0_in, amount1_in)
        """
        with self._transition("swap"):
            if amount0_out <= 0 and amount1_out <= 0:
                raise InsufficientOutputAmountError("INSUFFICIENT_OUTPUT_AMOUNT: both outputs are zero")
            require_uint(amount0_out, 256, "amount0_out")
            require_uint(amount1_out, 256, "amount1_out")

            reserve0, reserve1, _ = self.get_reserves()
            if amount0_out >= reserve0 or amount1_out >= reserve1:
                raise InsufficientOutputReserveError(
                    f"INSUFFICIENT_LIQUIDITY: outputs {amount0_out}/{amount1_out} "
                    f"vs reserves {reserve0}/{reserve1}"
                )

            token0, token1 = self._require_token0(), self._require_token1()
            to = normalize_address(to)
            if to in (token0.address, token1.address):
                raise PreconditionViolation(f"INVALID_TO: recipient {to} is one of the pair's assets")

            # optimistic transfers; the invariant is checked after the callback
            if amount0_out > 0:
                token0.transfer(self.address, to, amount0_out)
            if amount1_out > 0:
                token1.transfer(self.address, to, amount1_out)
            if data:
                self._invoke_callee(to, sender, amount0_out, amount1_out, data)

            balance0, balance1 = self.balances()
            amount0_in = balance0 - (reserve0 - amount0_out) if balance0 > reserve0 - amount0_out else 0
            amount1_in = balance1 - (reserve1 - amount1_out) if balance1 > reserve1 - amount1_out else 0
            if amount0_in == 0 and amount1_in == 0:
                raise InsufficientInputAmountError("INSUFFICIENT_INPUT_AMOUNT: nothing was paid in")

            balance0_adjusted = sub(mul(balance0, SWAP_FEE_DENOMINATOR), mul(amount0_in, SWAP_FEE_NUMERATOR))
            balance1_adjusted = sub(mul(balance1, SWAP_FEE_DENOMINATOR), mul(amount1_in, SWAP_FEE_NUMERATOR))
            k_before = mul(mul(reserve0, reserve1), SWAP_FEE_DENOMINATOR ** 2)
            if mul(balance0_adjusted, balance1_adjusted) < k_before:
                raise InvariantViolationError(
                    f"K: post-fee product {balance0_adjusted * balance1_adjusted} < {k_before}"
                )

            self._update(balance0, balance1, reserve0, reserve1)
            self._emit(SwapEvent(
                self.address, normalize_address(sender),
                amount0_in, amount1_in, amount0_out, amount1_out, to,
            ))
            logger.debug(
                f"Swap: in {amount0_in}/{amount1_in} out {amount0_out}/{amount1_out} -> {to}"
            )
            return amount0_in, amount1_in

    def skim(self, to: str) -> Tuple[int, int]:
        """Send custodial balances in excess of the reserves to *to*."""
        with self._transition("skim"):
            token0, token1 = self._require_token0(), self._require_token1()
            reserve0, reserve1, _ = self.get_reserves()
            balance0, balance1 = self.balances()
            excess0 = sub(balance0, reserve0)
            excess1 = sub(balance1, reserve1)
            token0.transfer(self.address, to, excess0)
            token1.transfer(self.address, to, excess1)
            logger.debug(f"Skim: {excess0}/{excess1} -> {to}")
            return excess0, excess1

    def sync(self) -> None:
        """Force reserves to match custodial balances."""
        with self._transition("sync"):
            reserve0, reserve1, _ = self.get_reserves()
            balance0, balance1 = self.balances()
            self._update(balance0, balance1, reserve0, reserve1)

    # -- Internal -------------------------------------------------------------

    @contextmanager
    def _transition(self, name: str) -> Iterator[None]:
        """Hold the lock and journal for the duration of one transition."""
        with self._mutex:
            if self._locked:
                raise ReentrancyError(f"LOCKED: {name} entered while a transition is in progress")
            self._locked = True
            try:
                with atomic(self, self.ledger, self._require_token0(), self._require_token1()):
                    yield
            except PairdexException as e:
                logger.warning(f"{name} rejected on {self.address}: {e}")
                raise
            finally:
                self._locked = False

    def _update(self, balance0: int, balance1: int, reserve0: int, reserve1: int) -> None:
        """Write new reserves; on the first call per timestamp, accumulate prices."""
        require_uint(balance0, 112, "balance0")
        require_uint(balance1, 112, "balance1")

        block_timestamp = self.context.block_timestamp()
        time_elapsed = wrapping_sub(block_timestamp, self.state.block_timestamp_last, 32)
        if time_elapsed > 0 and reserve0 != 0 and reserve1 != 0:
            # wrapping is intended: consumers only use differences
            self.state.price0_cumulative_last = wrapping_add(
                self.state.price0_cumulative_last,
                wrapping_mul(uq112x112.fraction(reserve1, reserve0), time_elapsed),
            )
            self.state.price1_cumulative_last = wrapping_add(
                self.state.price1_cumulative_last,
                wrapping_mul(uq112x112.fraction(reserve0, reserve1), time_elapsed),
            )

        self.state.reserve0 = balance0
        self.state.reserve1 = balance1
        self.state.block_timestamp_last = block_timestamp
        self._emit(SyncEvent(self.address, balance0, balance1))

    def _mint_fee(self, reserve0: int, reserve1: int) -> bool:
        """Mint the protocol's share of root-k growth since k_last. Returns whether the switch is on."""
        fee_to = self.factory.fee_to
        fee_on = not is_zero_address(fee_to)
        k_last = self.state.k_last
        if fee_on:
            if k_last:
                root_k = sqrt(mul(reserve0, reserve1))
                root_k_last = sqrt(k_last)
                if root_k > root_k_last:
                    numerator = mul(self.ledger.total_shares, sub(root_k, root_k_last))
                    denominator = add(mul(root_k, PROTOCOL_FEE_DIVISOR), root_k_last)
                    liquidity = numerator // denominator
                    if liquidity > 0:
                        self.ledger.mint_shares(fee_to, liquidity)
                        logger.debug(f"Protocol fee: {liquidity} shares -> {fee_to}")
        elif k_last is not None:
            self.state.k_last = None
        return fee_on

    def _invoke_callee(self, to: str, sender: str, amount0_out: int, amount1_out: int, data: bytes) -> None:
        callee = self.context.contract_at(to)
        handler = getattr(callee, "on_flash_swap", None)
        if handler is None:
            raise PreconditionViolation(f"Recipient {to} has no flash-swap handler")
        handler(self, normalize_address(sender), amount0_out, amount1_out, data)

    def _emit(self, event: PairEvent) -> None:
        self._events.append(event)

    def _require_token0(self) -> Token:
        if self._token0 is None:
            raise PreconditionViolation("Pair not initialized")
        return self._token0

    def _require_token1(self) -> Token:
        if self._token1 is None:
            raise PreconditionViolation("Pair not initialized")
        return self._token1

    # -- Rollback support ---------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        return {"state": replace(self.state), "event_count": len(self._events)}

    def restore(self, snapshot: Dict[str, Any]) -> None:
        self.state = snapshot["state"]
        del self._events[snapshot["event_count"]:]

    # -- Serialization ------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "factory": self.factory.address,
            "token0": self.state.token0,
            "token1": self.state.token1,
            "reserve0": self.state.reserve0,
            "reserve1": self.state.reserve1,
            "blockTimestampLast": self.state.block_timestamp_last,
            "price0CumulativeLast": self.state.price0_cumulative_last,
            "price1CumulativeLast": self.state.price1_cumulative_last,
            "kLast": self.state.k_last,
            "totalSupply": self.ledger.total_shares,
        }

    def __repr__(self) -> str:
        return (
            f"<ReservePair {self.address} "
            f"reserves={self.state.reserve0}/{self.state.reserve1} "
            f"shares={self.ledger.total_shares}>"
        )
