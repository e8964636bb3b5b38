"""
Pairdex Pair Factory

Permissionless creation of one reserve pair per unordered asset set:
  - Canonical ordering (numerically smaller address is token0)
  - CREATE2 pair addresses, predictable off-line via pair_for()
  - Injected PairRegistry: map keyed by (token0, token1) + append-only list
  - feeTo / feeToSetter authority for the protocol-fee switch
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from eth_utils import to_canonical_address

from ..chain import ChainContext
from ..constants import PAIR_INIT_CODE_HASH, ZERO_ADDRESS
from ..crypto import (
    address_to_int,
    generate_contract_address_create2,
    is_zero_address,
    keccak256,
    normalize_address,
)
from ..exceptions import (
    AuthorizationError,
    DuplicatePairError,
    IdenticalAddressesError,
    PreconditionViolation,
    ZeroAddressError,
)
from ..logger import get_logger
from .events import FeeToChangedEvent, FeeToSetterChangedEvent, PairCreatedEvent, PairEvent
from .pair import ReservePair

if TYPE_CHECKING:
    from ..config import PairdexConfig

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Ordering / address derivation
# ---------------------------------------------------------------------------

def sort_tokens(token_a: str, token_b: str) -> Tuple[str, str]:
    """
    Canonical (token0, token1) ordering of two distinct, non-null assets.

    Raises:
        IdenticalAddressesError: both identifiers name the same asset
        ZeroAddressError: either identifier is the null address
    """
    token_a = normalize_address(token_a)
    token_b = normalize_address(token_b)
    if token_a == token_b:
        raise IdenticalAddressesError(f"IDENTICAL_ADDRESSES: {token_a}")
    if address_to_int(token_a) < address_to_int(token_b):
        token0, token1 = token_a, token_b
    else:
        token0, token1 = token_b, token_a
    # only token0 needs checking: the null address sorts first
    if is_zero_address(token0):
        raise ZeroAddressError("ZERO_ADDRESS: a pair asset is the null address")
    return token0, token1


def pair_salt(token0: str, token1: str) -> bytes:
    """keccak256(token0 ‖ token1) over the raw 20-byte addresses."""
    return keccak256(to_canonical_address(token0) + to_canonical_address(token1))


def pair_for(factory: str, token_a: str, token_b: str) -> str:
    """Address the factory deploys (or deployed) the pair at, without any lookup."""
    token0, token1 = sort_tokens(token_a, token_b)
    return generate_contract_address_create2(
        normalize_address(factory), pair_salt(token0, token1), PAIR_INIT_CODE_HASH,
    )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class PairRegistry:
    """
    Repository of created pairs.

    Both lookups and the check-then-insert happen under one lock, so two
    concurrent creations of the same pair cannot both succeed.
    """

    def __init__(self) -> None:
        self._pairs: Dict[Tuple[str, str], ReservePair] = {}
        self._all_pairs: List[ReservePair] = []
        self._lock = threading.Lock()

    def get(self, token0: str, token1: str) -> Optional[ReservePair]:
        with self._lock:
            return self._pairs.get((token0, token1))

    def insert(self, token0: str, token1: str, pair: ReservePair) -> int:
        """Record *pair*; returns the new pair count."""
        with self._lock:
            if (token0, token1) in self._pairs:
                raise DuplicatePairError(f"PAIR_EXISTS: {token0}/{token1}")
            self._pairs[(token0, token1)] = pair
            self._all_pairs.append(pair)
            return len(self._all_pairs)

    def at(self, index: int) -> ReservePair:
        with self._lock:
            if index < 0 or index >= len(self._all_pairs):
                raise IndexError(f"Pair index {index} out of range ({len(self._all_pairs)} pairs)")
            return self._all_pairs[index]

    def all(self) -> List[ReservePair]:
        with self._lock:
            return list(self._all_pairs)

    def __len__(self) -> int:
        return len(self._all_pairs)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

class PairFactory:
    """
    Creates and indexes reserve pairs; holds the protocol-fee switch.

    Args:
        context: Shared execution context (tokens, clock, chain id)
        fee_to_setter: Identity allowed to change feeTo / feeToSetter
        deployer: Account whose CREATE nonce places the factory (defaults to fee_to_setter)
        registry: Pair repository (a fresh one when omitted)
    """

    def __init__(
        self,
        context: ChainContext,
        fee_to_setter: str,
        deployer: Optional[str] = None,
        registry: Optional[PairRegistry] = None,
    ) -> None:
        self.context = context
        self.fee_to_setter = normalize_address(fee_to_setter)
        self.fee_to = ZERO_ADDRESS
        self.registry = registry if registry is not None else PairRegistry()
        self.address = context.next_address(deployer or self.fee_to_setter)
        self._events: List[PairEvent] = []
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: "PairdexConfig", context: Optional[ChainContext] = None) -> "PairFactory":
        """Build a factory (and a context, if none is given) from loaded configuration."""
        if context is None:
            context = ChainContext(chain_id=config.engine.chain_id)
        factory = cls(context, config.factory.fee_to_setter)
        if config.factory.fee_to:
            factory.fee_to = normalize_address(config.factory.fee_to)
            logger.info(f"Protocol fee enabled at startup: feeTo={factory.fee_to}")
        return factory

    # -- Queries ------------------------------------------------------------

    @property
    def events(self) -> List[PairEvent]:
        return list(self._events)

    def get_pair(self, token_a: str, token_b: str) -> Optional[str]:
        """Pair address for the unordered set, or None."""
        pair = self.get_pair_contract(token_a, token_b)
        return pair.address if pair is not None else None

    def get_pair_contract(self, token_a: str, token_b: str) -> Optional[ReservePair]:
        token0, token1 = sort_tokens(token_a, token_b)
        return self.registry.get(token0, token1)

    def all_pairs(self, index: int) -> str:
        return self.registry.at(index).address

    def all_pairs_length(self) -> int:
        return len(self.registry)

    # -- Creation -----------------------------------------------------------

    def create_pair(self, token_a: str, token_b: str) -> ReservePair:
        """
        Deploy the pair for (token_a, token_b).

        Raises:
            IdenticalAddressesError, ZeroAddressError: invalid asset identifiers
            PreconditionViolation: an asset is not a deployed token
            DuplicatePairError: the pair already exists
        """
        token0, token1 = sort_tokens(token_a, token_b)
        for token in (token0, token1):
            if not self.context.tokens.exists(token):
                raise PreconditionViolation(f"Asset {token} is not a deployed token")

        address = generate_contract_address_create2(
            self.address, pair_salt(token0, token1), PAIR_INIT_CODE_HASH,
        )
        pair = ReservePair(address, self, self.context)
        pair.initialize(self.address, token0, token1)

        pair_count = self.registry.insert(token0, token1, pair)
        self._events.append(PairCreatedEvent(self.address, token0, token1, pair.address, pair_count))
        logger.info(f"PairCreated: {token0}/{token1} at {pair.address} (#{pair_count})")
        return pair

    # -- Fee switch ---------------------------------------------------------

    def set_fee_to(self, caller: str, fee_to: str) -> None:
        """Point protocol fees at *fee_to*; the null address switches them off."""
        fee_to = normalize_address(fee_to)
        with self._lock:
            self._require_setter(caller)
            previous, self.fee_to = self.fee_to, fee_to
            self._events.append(FeeToChangedEvent(self.address, previous, fee_to))
        state = "off" if is_zero_address(fee_to) else "on"
        logger.info(f"FeeToChanged: {previous} -> {fee_to} (protocol fee {state})")

    def set_fee_to_setter(self, caller: str, fee_to_setter: str) -> None:
        """Hand authority to *fee_to_setter*; the null address revokes it for good."""
        fee_to_setter = normalize_address(fee_to_setter)
        with self._lock:
            self._require_setter(caller)
            previous, self.fee_to_setter = self.fee_to_setter, fee_to_setter
            self._events.append(FeeToSetterChangedEvent(self.address, previous, fee_to_setter))
        logger.info(f"FeeToSetterChanged: {previous} -> {fee_to_setter}")

    def _require_setter(self, caller: str) -> None:
        caller = normalize_address(caller)
        # a revoked setter is the null address, which no caller can match
        if is_zero_address(self.fee_to_setter) or caller != self.fee_to_setter:
            raise AuthorizationError(f"FORBIDDEN: {caller} is not the feeToSetter")

    def __repr__(self) -> str:
        return f"<PairFactory {self.address} pairs={len(self.registry)}>"
