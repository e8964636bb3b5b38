"""
Address Generation and Ordering

Ethereum-compatible address helpers: checksum normalisation, the null
identity, canonical ordering, and CREATE / CREATE2 contract addresses.
"""

import rlp
from eth_utils import is_address, to_canonical_address, to_checksum_address

from ..constants import ZERO_ADDRESS
from ..exceptions import ZeroAddressError
from .hashing import keccak256


def normalize_address(address: str) -> str:
    """
    Validate and checksum an address.

    Raises:
        ValueError: If *address* is not a 20-byte hex address
    """
    if not isinstance(address, str) or not is_address(address):
        raise ValueError(f"Invalid address: {address!r}")
    return to_checksum_address(address)


def is_zero_address(address: str) -> bool:
    """True for the null identity (any casing)."""
    return address is None or address.lower() == ZERO_ADDRESS


def require_nonzero(address: str, what: str = "address") -> str:
    if is_zero_address(address):
        raise ZeroAddressError(f"ZERO_ADDRESS: {what} is the null address")
    return normalize_address(address)


def address_to_int(address: str) -> int:
    """Numeric value of an address, the key for canonical ordering."""
    return int.from_bytes(to_canonical_address(address), "big")


def generate_contract_address(sender: str, nonce: int) -> str:
    """
    Generate contract address using CREATE opcode logic.

    Address = keccak256(rlp([sender, nonce]))[-20:]

    Args:
        sender: Deployer address
        nonce: Deployer nonce

    Returns:
        Contract address (Ethereum checksum format)
    """
    rlp_encoded = rlp.encode([to_canonical_address(sender), nonce])
    address_bytes = keccak256(rlp_encoded)[-20:]
    return to_checksum_address('0x' + address_bytes.hex())


def generate_contract_address_create2(sender: str, salt: bytes, init_code_hash: bytes) -> str:
    """
    Generate contract address using CREATE2 opcode logic.

    Address = keccak256(0xff + sender + salt + init_code_hash)[-20:]

    Args:
        sender: Creating contract address
        salt: 32-byte salt
        init_code_hash: keccak256 of the creation template

    Returns:
        Contract address (Ethereum checksum format)
    """
    if len(salt) != 32:
        raise ValueError(f"CREATE2 salt must be 32 bytes, got {len(salt)}")
    if len(init_code_hash) != 32:
        raise ValueError(f"init code hash must be 32 bytes, got {len(init_code_hash)}")

    data = b'\xff' + to_canonical_address(sender) + salt + init_code_hash
    address_bytes = keccak256(data)[-20:]
    return to_checksum_address('0x' + address_bytes.hex())
