"""
Pairdex Execution Context

What a pair or factory would otherwise read from its host chain:
  - chain id (bound into permit signatures)
  - the current block timestamp (truncated to uint32)
  - the token registry that resolves asset identifiers
  - the contract registry that resolves flash-swap callees
  - per-deployer nonces for reproducible CREATE addresses
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Dict, Optional

from .constants import PAIRDEX_CHAIN_ID, TIMESTAMP_MODULUS, TOKEN_DEFAULT_DECIMALS
from .crypto.address import generate_contract_address, normalize_address
from .logger import get_logger
from .tokens import Token, TokenRegistry

logger = get_logger(__name__)


class ChainContext:
    """
    Shared host state for every pair created by a factory.

    Args:
        chain_id: Chain id committed to by permit signatures
        clock: Zero-argument callable returning wall-clock seconds
        tokens: Token registry (a fresh one when omitted)
    """

    def __init__(
        self,
        chain_id: Optional[int] = None,
        clock: Optional[Callable[[], float]] = None,
        tokens: Optional[TokenRegistry] = None,
    ) -> None:
        self.chain_id = int(PAIRDEX_CHAIN_ID) if chain_id is None else chain_id
        self._clock = clock or time.time
        self.tokens = tokens if tokens is not None else TokenRegistry()
        self._contracts: Dict[str, Any] = {}
        self._nonces: Dict[str, int] = {}
        self._nonce_lock = threading.Lock()

    # -- Time ---------------------------------------------------------------

    def block_timestamp(self) -> int:
        """Current timestamp modulo 2**32."""
        return int(self._clock()) % TIMESTAMP_MODULUS

    # -- Addresses ----------------------------------------------------------

    def next_address(self, deployer: str) -> str:
        """CREATE address for the deployer's next deployment (consumes the nonce)."""
        deployer = normalize_address(deployer)
        with self._nonce_lock:
            nonce = self._nonces.get(deployer, 0)
            self._nonces[deployer] = nonce + 1
        return generate_contract_address(deployer, nonce)

    # -- Tokens -------------------------------------------------------------

    def deploy_token(
        self,
        deployer: str,
        name: str,
        symbol: str,
        total_supply: int = 0,
        decimals: int = TOKEN_DEFAULT_DECIMALS,
    ) -> Token:
        """Deploy a token at the deployer's next CREATE address and register it."""
        token = Token(
            address=self.next_address(deployer),
            name=name,
            symbol=symbol,
            decimals=decimals,
            total_supply=total_supply,
            deployer=deployer,
        )
        return self.tokens.deploy(token)

    def token_at(self, address: str) -> Optional[Token]:
        return self.tokens.get(address)

    # -- Contracts ----------------------------------------------------------

    def register_contract(self, address: str, contract: Any) -> None:
        """Bind an object (e.g. a flash-swap callee) to an address."""
        self._contracts[normalize_address(address)] = contract
        logger.debug("Contract registered at %s: %s", address, type(contract).__name__)

    def contract_at(self, address: str) -> Optional[Any]:
        return self._contracts.get(normalize_address(address))

    def __repr__(self) -> str:
        return f"<ChainContext chain_id={self.chain_id} tokens={self.tokens.count}>"
