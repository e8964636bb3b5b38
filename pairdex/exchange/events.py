"""
Pair and factory events.

Append-only records of every committed transition. Events emitted by a
transition that later aborts are discarded with the rest of its effects.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class PairEvent:
    """Base class: every event carries the emitting contract's address."""
    address: str

    @property
    def name(self) -> str:
        return type(self).__name__.removesuffix("Event")

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["event"] = self.name
        return data


# ---------------------------------------------------------------------------
# Liquidity ledger
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TransferEvent(PairEvent):
    sender: str
    recipient: str
    value: int


@dataclass(frozen=True)
class ApprovalEvent(PairEvent):
    owner: str
    spender: str
    value: int


# ---------------------------------------------------------------------------
# Reserve state machine
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SyncEvent(PairEvent):
    reserve0: int
    reserve1: int


@dataclass(frozen=True)
class MintEvent(PairEvent):
    sender: str
    amount0: int
    amount1: int


@dataclass(frozen=True)
class BurnEvent(PairEvent):
    sender: str
    amount0: int
    amount1: int
    recipient: str


@dataclass(frozen=True)
class SwapEvent(PairEvent):
    sender: str
    amount0_in: int
    amount1_in: int
    amount0_out: int
    amount1_out: int
    recipient: str


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PairCreatedEvent(PairEvent):
    token0: str
    token1: str
    pair: str
    pair_count: int


@dataclass(frozen=True)
class FeeToChangedEvent(PairEvent):
    previous: str
    current: str


@dataclass(frozen=True)
class FeeToSetterChangedEvent(PairEvent):
    previous: str
    current: str
