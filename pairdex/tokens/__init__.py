"""
Pairdex Asset Tokens

Provides:
  - Token         : ERC-20–style fungible asset a reserve is denominated in
  - TokenRegistry : deploy / lookup by address
"""

from .erc20 import (
    Token,
    TokenRegistry,
    TokenTransferEvent,
    TokenApprovalEvent,
    TokenError,
    InsufficientBalanceError,
    InsufficientAllowanceError,
)

__all__ = [
    "Token",
    "TokenRegistry",
    "TokenTransferEvent",
    "TokenApprovalEvent",
    "TokenError",
    "InsufficientBalanceError",
    "InsufficientAllowanceError",
]
