"""
Pairdex Crypto Signing Module

EIP-712 typed-data signing and signer recovery over secp256k1, used by the
liquidity ledger's permit.
"""

from typing import Tuple

from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError

from ..constants import ZERO_ADDRESS
from .hashing import keccak256


def typed_data_digest(domain_separator: bytes, struct_hash: bytes) -> bytes:
    """EIP-712: keccak256(0x19 0x01 domainSeparator structHash)."""
    return keccak256(b'\x19\x01' + domain_separator + struct_hash)


def sign_typed_data(private_key: bytes, domain_separator: bytes, struct_hash: bytes) -> Tuple[int, int, int]:
    """
    Sign typed data (EIP-712 style).

    Args:
        private_key: 32-byte secp256k1 private key
        domain_separator: EIP-712 domain separator
        struct_hash: Hash of the struct to sign

    Returns:
        (v, r, s) with v in {27, 28}
    """
    signature = keys.PrivateKey(private_key).sign_msg_hash(
        typed_data_digest(domain_separator, struct_hash)
    )
    return signature.v + 27, signature.r, signature.s


def recover_typed_data_signer(
    domain_separator: bytes,
    struct_hash: bytes,
    v: int,
    r: int,
    s: int,
) -> str:
    """
    Recover the checksum address that signed the typed data.

    Mirrors ecrecover: an unrecoverable signature yields the null address
    rather than raising, so callers compare against the expected signer.
    """
    # Normalize v to 0/1
    if v >= 27:
        v -= 27
    try:
        signature = keys.Signature(vrs=(v, r, s))
        public_key = signature.recover_public_key_from_msg_hash(
            typed_data_digest(domain_separator, struct_hash)
        )
    except (BadSignature, ValidationError):
        return ZERO_ADDRESS
    return public_key.to_checksum_address()
