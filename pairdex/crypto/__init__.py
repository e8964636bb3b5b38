"""
Pairdex crypto helpers.

Provides:
  - keccak256                          : Keccak-256 digest
  - normalize_address / address_to_int : checksum + canonical ordering
  - generate_contract_address[_create2]: CREATE / CREATE2 derivation
  - sign_typed_data / recover_typed_data_signer : EIP-712 signatures
"""

from .hashing import keccak256
from .address import (
    address_to_int,
    generate_contract_address,
    generate_contract_address_create2,
    is_zero_address,
    normalize_address,
    require_nonzero,
)
from .signing import recover_typed_data_signer, sign_typed_data, typed_data_digest

__all__ = [
    "keccak256",
    "address_to_int",
    "generate_contract_address",
    "generate_contract_address_create2",
    "is_zero_address",
    "normalize_address",
    "require_nonzero",
    "recover_typed_data_signer",
    "sign_typed_data",
    "typed_data_digest",
]
