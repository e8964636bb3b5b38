"""
Transition journal.

A transition touches several independent objects (the pair's snapshot, its
liquidity ledger, both asset tokens). Each of them exposes
``snapshot() -> state`` and ``restore(state)``; the journal captures all of
them on entry and restores every one if the transition raises, so the caller
observes either the full effect or none of it.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, List, Protocol, Tuple

from ..logger import get_logger

logger = get_logger(__name__)


class Journaled(Protocol):
    """Anything whose state can be captured and put back."""

    def snapshot(self) -> Any: ...
    def restore(self, snapshot: Any) -> None: ...


@contextmanager
def atomic(*participants: Journaled) -> Iterator[None]:
    """
    Run the body with all-or-nothing semantics over *participants*.

    Participants are restored in reverse order of capture, then the original
    exception propagates unchanged.
    """
    captured: List[Tuple[Journaled, Any]] = [(p, p.snapshot()) for p in participants]
    try:
        yield
    except BaseException:
        for participant, state in reversed(captured):
            participant.restore(state)
        logger.debug("Transition rolled back (%d participants restored)", len(captured))
        raise
