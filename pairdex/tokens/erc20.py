"""
Fungible Asset Token

Implements the token primitive each reserve is denominated in:
  - ERC-20–style interface (transfer, approve, transfer_from, balance_of)
  - Deployer faucet (mint) for seeding test and simulation accounts
  - Append-only event log (Transfer / Approval)
  - snapshot / restore so an aborted pair transition can roll back the
    balances it touched

Pairs only ever push funds out with transfer(); deposits are the depositor's
own transfer() into the pair's address.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from ..constants import INFINITE_ALLOWANCE, TOKEN_DEFAULT_DECIMALS, TOKEN_MAX_DECIMALS, ZERO_ADDRESS
from ..crypto.address import normalize_address
from ..exceptions import ArithmeticBoundsError, PairdexException
from ..logger import get_logger
from ..math import safe_math

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class TokenError(PairdexException):
    """Base exception for token operations."""


class InsufficientBalanceError(TokenError):
    """Raised when sender balance is too low."""


class InsufficientAllowanceError(TokenError):
    """Raised when spender allowance is too low."""


# ══════════════════════════════════════════════════════════════════════
#  EVENTS
# ══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TokenTransferEvent:
    """Emitted on every successful transfer, mint and burn."""
    token: str
    sender: str
    recipient: str
    amount: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Transfer",
            "token": self.token,
            "from": self.sender,
            "to": self.recipient,
            "value": self.amount,
        }


@dataclass(frozen=True)
class TokenApprovalEvent:
    """Emitted on every successful approve."""
    token: str
    owner: str
    spender: str
    amount: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Approval",
            "token": self.token,
            "owner": self.owner,
            "spender": self.spender,
            "value": self.amount,
        }


# ══════════════════════════════════════════════════════════════════════
#  TOKEN
# ══════════════════════════════════════════════════════════════════════

class Token:
    """
    Fungible asset token.

    Mirrors ERC-20 semantics:
        - balance_of(address) → int
        - transfer(sender, recipient, amount)
        - approve(owner, spender, amount)
        - transfer_from(spender, owner, recipient, amount)
        - total_supply → int
    """

    def __init__(
        self,
        address: str,
        name: str,
        symbol: str,
        decimals: int = TOKEN_DEFAULT_DECIMALS,
        total_supply: int = 0,
        deployer: str = ZERO_ADDRESS,
    ):
        """
        Args:
            address: Address the token is deployed at
            name: Human-readable token name
            symbol: Short ticker
            decimals: Fractional digits (display only)
            total_supply: Initial minted supply, credited to the deployer
            deployer: Address of deploying account
        """
        if not name:
            raise TokenError("Token name cannot be empty")
        if not symbol:
            raise TokenError("Token symbol cannot be empty")
        if decimals < 0 or decimals > TOKEN_MAX_DECIMALS:
            raise TokenError(f"Decimals must be 0-{TOKEN_MAX_DECIMALS}, got {decimals}")
        try:
            safe_math.require_uint(total_supply, 256, "total supply")
        except ArithmeticBoundsError as e:
            raise TokenError(str(e)) from e

        self.address = normalize_address(address)
        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self.deployer = normalize_address(deployer)

        self._total_supply = total_supply
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}  # (owner, spender)
        self._events: List[Any] = []

        if total_supply > 0:
            self._balances[self.deployer] = total_supply
            self._events.append(
                TokenTransferEvent(self.address, ZERO_ADDRESS, self.deployer, total_supply)
            )

        logger.info(f"Token deployed: {symbol} ({name}) at {self.address}, supply={total_supply}")

    # ── Read-only views ───────────────────────────────────────────────

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, address: str) -> int:
        return self._balances.get(normalize_address(address), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((normalize_address(owner), normalize_address(spender)), 0)

    @property
    def events(self) -> List[Any]:
        return list(self._events)

    # ── Core ERC-20 operations ────────────────────────────────────────

    def transfer(self, sender: str, recipient: str, amount: int) -> TokenTransferEvent:
        """Move *amount* from *sender* to *recipient*."""
        sender = normalize_address(sender)
        recipient = normalize_address(recipient)
        self._move(sender, recipient, amount)

        event = TokenTransferEvent(self.address, sender, recipient, amount)
        self._events.append(event)
        logger.debug(f"Transfer: {sender} -> {recipient} {amount} {self.symbol}")
        return event

    def approve(self, owner: str, spender: str, amount: int) -> TokenApprovalEvent:
        """Set spender allowance."""
        owner = normalize_address(owner)
        spender = normalize_address(spender)
        if amount < 0 or amount > INFINITE_ALLOWANCE:
            raise TokenError(f"Allowance {amount} out of range")

        self._allowances[(owner, spender)] = amount
        event = TokenApprovalEvent(self.address, owner, spender, amount)
        self._events.append(event)
        logger.debug(f"Approve: {owner} -> {spender} allowance={amount} {self.symbol}")
        return event

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> TokenTransferEvent:
        """Transfer on behalf of *owner* using spender's allowance."""
        spender = normalize_address(spender)
        owner = normalize_address(owner)
        recipient = normalize_address(recipient)

        allow = self._allowances.get((owner, spender), 0)
        if allow < amount:
            raise InsufficientAllowanceError(
                f"Allowance {allow} < transfer amount {amount}"
            )

        self._move(owner, recipient, amount)
        if allow != INFINITE_ALLOWANCE:
            self._allowances[(owner, spender)] = allow - amount

        event = TokenTransferEvent(self.address, owner, recipient, amount)
        self._events.append(event)
        logger.debug(
            f"transferFrom: spender={spender} {owner} -> {recipient} {amount} {self.symbol}"
        )
        return event

    def mint(self, operator: str, recipient: str, amount: int) -> TokenTransferEvent:
        """Deployer-only faucet."""
        if normalize_address(operator) != self.deployer:
            raise TokenError(f"{operator} is not the deployer of {self.symbol}")
        if amount < 0:
            raise TokenError("Mint amount cannot be negative")
        recipient = normalize_address(recipient)
        try:
            self._total_supply = safe_math.add(self._total_supply, amount)
        except ArithmeticBoundsError as e:
            raise TokenError(f"Minting {amount} would exceed max supply") from e
        self._balances[recipient] = self._balances.get(recipient, 0) + amount

        event = TokenTransferEvent(self.address, ZERO_ADDRESS, recipient, amount)
        self._events.append(event)
        logger.debug(f"Mint: {amount} {self.symbol} -> {recipient}")
        return event

    def _move(self, sender: str, recipient: str, amount: int) -> None:
        if amount < 0:
            raise TokenError("Transfer amount cannot be negative")
        bal = self._balances.get(sender, 0)
        if bal < amount:
            raise InsufficientBalanceError(
                f"{sender} balance {bal} < transfer amount {amount}"
            )
        self._balances[sender] = bal - amount
        self._balances[recipient] = self._balances.get(recipient, 0) + amount

    # ── Rollback support ──────────────────────────────────────────────

    def snapshot(self) -> Dict[str, Any]:
        """Capture current state for potential restore."""
        return {
            "total_supply": self._total_supply,
            "balances": dict(self._balances),
            "allowances": dict(self._allowances),
            "event_count": len(self._events),
        }

    def restore(self, snapshot: Dict[str, Any]) -> None:
        """Restore state from snapshot; events emitted since are dropped."""
        self._total_supply = snapshot["total_supply"]
        self._balances = snapshot["balances"]
        self._allowances = snapshot["allowances"]
        del self._events[snapshot["event_count"]:]

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "totalSupply": self._total_supply,
            "deployer": self.deployer,
            "holders": len([b for b in self._balances.values() if b > 0]),
        }

    def __repr__(self) -> str:
        return f"<Token {self.symbol} {self.address} supply={self._total_supply}>"


# ══════════════════════════════════════════════════════════════════════
#  TOKEN REGISTRY
# ══════════════════════════════════════════════════════════════════════

class TokenRegistry:
    """
    Registry of deployed tokens, keyed by checksum address.

    Pairs resolve their two asset identifiers through it.
    """

    def __init__(self, max_tokens: int = 10_000):
        self._tokens: Dict[str, Token] = {}
        self._max_tokens = max_tokens

    # ── Deploy ────────────────────────────────────────────────────────

    def deploy(self, token: Token) -> Token:
        """
        Register a new token.

        Raises TokenError if the address is already taken or registry is full.
        """
        if token.address in self._tokens:
            raise TokenError(f"Token already registered at {token.address}")
        if len(self._tokens) >= self._max_tokens:
            raise TokenError("Token registry is full")

        self._tokens[token.address] = token
        logger.info(f"Token registered: {token.symbol} at {token.address}")
        return token

    # ── Lookup ────────────────────────────────────────────────────────

    def get(self, address: str) -> Optional[Token]:
        return self._tokens.get(normalize_address(address))

    def get_or_raise(self, address: str) -> Token:
        token = self.get(address)
        if token is None:
            raise TokenError(f"No token deployed at {address}")
        return token

    def exists(self, address: str) -> bool:
        return normalize_address(address) in self._tokens

    # ── Enumeration ───────────────────────────────────────────────────

    def list_tokens(self) -> List[str]:
        return list(self._tokens.keys())

    def all_tokens(self) -> List[Token]:
        return list(self._tokens.values())

    @property
    def count(self) -> int:
        return len(self._tokens)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tokenCount": len(self._tokens),
            "maxTokens": self._max_tokens,
            "tokens": {a: t.to_dict() for a, t in self._tokens.items()},
        }

    def __repr__(self) -> str:
        return f"<TokenRegistry tokens={len(self._tokens)}>"
