"""
Liquidity Ledger  (pair share token)

Fungible sub-ledger of proportional ownership of one pair's reserves:
  - mint_shares / burn_shares: called only by the owning pair
  - transfer_shares / approve / transfer_from: open to every holder
  - permit: EIP-2612 signed approvals (EIP-712 digest, secp256k1)
  - Transfer / Approval events for every change

Invariant: sum(balances) == total_shares.
"""

from __future__ import annotations

from typing import Any, Dict, List, Tuple

from eth_abi import encode

from ..chain import ChainContext
from ..constants import (
    EIP712_DOMAIN_TYPEHASH,
    INFINITE_ALLOWANCE,
    LP_TOKEN_DECIMALS,
    LP_TOKEN_NAME,
    LP_TOKEN_SYMBOL,
    LP_TOKEN_VERSION,
    PERMIT_TYPEHASH,
    ZERO_ADDRESS,
)
from ..crypto import keccak256, normalize_address, recover_typed_data_signer
from ..crypto.address import is_zero_address
from ..exceptions import InvalidSignatureError, PermitExpiredError
from ..logger import get_logger
from ..math import safe_math
from .events import ApprovalEvent, PairEvent, TransferEvent

logger = get_logger(__name__)


class LiquidityLedger:
    """
    Share balances of a single pair.

    The ledger lives at the pair's address: the pair's own balance is the
    custody slot that burn() reads.
    """

    name = LP_TOKEN_NAME
    symbol = LP_TOKEN_SYMBOL
    decimals = LP_TOKEN_DECIMALS

    def __init__(self, address: str, context: ChainContext, events: List[PairEvent]):
        """
        Args:
            address: Address of the owning pair
            context: Execution context (chain id, clock)
            events: Event log shared with the owning pair
        """
        self.address = normalize_address(address)
        self._context = context
        self._events = events
        self._total_shares: int = 0
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}  # (owner, spender)
        self._nonces: Dict[str, int] = {}

        self.domain_separator = keccak256(encode(
            ["bytes32", "bytes32", "bytes32", "uint256", "address"],
            [
                EIP712_DOMAIN_TYPEHASH,
                keccak256(self.name.encode()),
                keccak256(LP_TOKEN_VERSION.encode()),
                context.chain_id,
                self.address,
            ],
        ))

    # ── Read-only views ───────────────────────────────────────────────

    @property
    def total_shares(self) -> int:
        return self._total_shares

    def balance_of(self, holder: str) -> int:
        return self._balances.get(normalize_address(holder), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((normalize_address(owner), normalize_address(spender)), 0)

    def nonce_of(self, owner: str) -> int:
        return self._nonces.get(normalize_address(owner), 0)

    def holders(self) -> Dict[str, int]:
        return {h: b for h, b in self._balances.items() if b > 0}

    # ── Supply changes (pair only) ────────────────────────────────────

    def mint_shares(self, holder: str, amount: int) -> TransferEvent:
        holder = normalize_address(holder)
        safe_math.require_uint(amount, 256, "amount")
        self._total_shares = safe_math.add(self._total_shares, amount)
        self._balances[holder] = safe_math.add(self._balances.get(holder, 0), amount)
        return self._emit_transfer(ZERO_ADDRESS, holder, amount)

    def burn_shares(self, holder: str, amount: int) -> TransferEvent:
        holder = normalize_address(holder)
        safe_math.require_uint(amount, 256, "amount")
        self._balances[holder] = safe_math.sub(self._balances.get(holder, 0), amount)
        self._total_shares = safe_math.sub(self._total_shares, amount)
        return self._emit_transfer(holder, ZERO_ADDRESS, amount)

    # ── Holder operations ─────────────────────────────────────────────

    def transfer_shares(self, sender: str, recipient: str, amount: int) -> TransferEvent:
        sender = normalize_address(sender)
        recipient = normalize_address(recipient)
        safe_math.require_uint(amount, 256, "amount")
        sender_balance = safe_math.sub(self._balances.get(sender, 0), amount)
        self._balances[sender] = sender_balance
        self._balances[recipient] = safe_math.add(self._balances.get(recipient, 0), amount)
        return self._emit_transfer(sender, recipient, amount)

    def approve(self, owner: str, spender: str, amount: int) -> ApprovalEvent:
        owner = normalize_address(owner)
        spender = normalize_address(spender)
        safe_math.require_uint(amount, 256, "allowance")
        self._allowances[(owner, spender)] = amount
        event = ApprovalEvent(self.address, owner, spender, amount)
        self._events.append(event)
        logger.debug(f"Approval: {owner} -> {spender} {amount} shares")
        return event

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> TransferEvent:
        """Pull *amount* shares from *owner* using spender's allowance."""
        spender = normalize_address(spender)
        owner = normalize_address(owner)
        safe_math.require_uint(amount, 256, "amount")
        allow = self._allowances.get((owner, spender), 0)
        remaining = allow if allow == INFINITE_ALLOWANCE else safe_math.sub(allow, amount)
        event = self.transfer_shares(owner, recipient, amount)
        self._allowances[(owner, spender)] = remaining
        return event

    def permit(
        self,
        owner: str,
        spender: str,
        value: int,
        deadline: int,
        v: int,
        r: int,
        s: int,
    ) -> ApprovalEvent:
        """
        Approve via an owner signature instead of an owner call (EIP-2612).

        Raises:
            PermitExpiredError: deadline is before the current block timestamp
            InvalidSignatureError: signer is null or is not *owner*
        """
        if deadline < self._context.block_timestamp():
            raise PermitExpiredError(f"EXPIRED: permit deadline {deadline} has passed")

        owner = normalize_address(owner)
        spender = normalize_address(spender)
        nonce = self._nonces.get(owner, 0)
        struct_hash = self.permit_struct_hash(owner, spender, value, nonce, deadline)

        signer = recover_typed_data_signer(self.domain_separator, struct_hash, v, r, s)
        if is_zero_address(signer) or signer != owner:
            raise InvalidSignatureError("INVALID_SIGNATURE: permit signer does not match owner")

        self._nonces[owner] = nonce + 1
        return self.approve(owner, spender, value)

    @staticmethod
    def permit_struct_hash(owner: str, spender: str, value: int, nonce: int, deadline: int) -> bytes:
        return keccak256(encode(
            ["bytes32", "address", "address", "uint256", "uint256", "uint256"],
            [PERMIT_TYPEHASH, owner, spender, value, nonce, deadline],
        ))

    # ── Internal ──────────────────────────────────────────────────────

    def _emit_transfer(self, sender: str, recipient: str, amount: int) -> TransferEvent:
        event = TransferEvent(self.address, sender, recipient, amount)
        self._events.append(event)
        logger.debug(f"Transfer: {sender} -> {recipient} {amount} shares")
        return event

    # ── Rollback support ──────────────────────────────────────────────

    def snapshot(self) -> Dict[str, Any]:
        return {
            "total_shares": self._total_shares,
            "balances": dict(self._balances),
            "allowances": dict(self._allowances),
            "nonces": dict(self._nonces),
        }

    def restore(self, snapshot: Dict[str, Any]) -> None:
        self._total_shares = snapshot["total_shares"]
        self._balances = snapshot["balances"]
        self._allowances = snapshot["allowances"]
        self._nonces = snapshot["nonces"]

    def __repr__(self) -> str:
        return f"<LiquidityLedger {self.address} total_shares={self._total_shares}>"
