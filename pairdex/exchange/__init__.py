"""
Pairdex Exchange Engine

Components:
  - ReservePair     (constant-product state machine, flash swaps)
  - LiquidityLedger (per-pair share token with EIP-2612 permit)
  - PairFactory     (deterministic pair creation, protocol-fee switch)
  - Quoting library (fee-aware amount in / amount out)
  - TWAP Oracle     (fixed-window averages over the price accumulators)
"""

from .events import (
    PairEvent,
    TransferEvent,
    ApprovalEvent,
    SyncEvent,
    MintEvent,
    BurnEvent,
    SwapEvent,
    PairCreatedEvent,
    FeeToChangedEvent,
    FeeToSetterChangedEvent,
)
from .journal import Journaled, atomic
from .ledger import LiquidityLedger
from .pair import FlashSwapCallee, PairState, ReservePair
from .factory import PairFactory, PairRegistry, pair_for, sort_tokens
from .library import get_amount_in, get_amount_out, get_reserves, quote
from .oracle import PriceObservation, TWAPOracle, current_cumulative_prices

__all__ = [
    # Events
    "PairEvent",
    "TransferEvent",
    "ApprovalEvent",
    "SyncEvent",
    "MintEvent",
    "BurnEvent",
    "SwapEvent",
    "PairCreatedEvent",
    "FeeToChangedEvent",
    "FeeToSetterChangedEvent",
    # Journal
    "Journaled",
    "atomic",
    # Pair
    "LiquidityLedger",
    "FlashSwapCallee",
    "PairState",
    "ReservePair",
    # Factory
    "PairFactory",
    "PairRegistry",
    "pair_for",
    "sort_tokens",
    # Library
    "get_amount_in",
    "get_amount_out",
    "get_reserves",
    "quote",
    # Oracle
    "PriceObservation",
    "TWAPOracle",
    "current_cumulative_prices",
]
