"""
Pairdex Crypto Hashing Module

keccak256 is the only hash the engine needs: pair addresses, token addresses
and EIP-712 permit digests are all derived from it.
"""

from typing import Union

from eth_utils import keccak


def keccak256(data: Union[bytes, str]) -> bytes:
    """
    Compute Keccak-256 hash (Ethereum standard).

    Args:
        data: Input bytes or hex string

    Returns:
        32-byte hash
    """
    if isinstance(data, str):
        if data.startswith('0x') or data.startswith('0X'):
            data = bytes.fromhex(data[2:])
        else:
            data = bytes.fromhex(data)
    return keccak(data)
