"""
Stake Ledger Hash Functions

SHA3-256 per NIST FIPS 202, and the mapping of a seed onto the
election random range.
"""

from __future__ import annotations
from typing import Union

from Crypto.Hash import SHA3_256

from stakeledger.constants import HASH_SIZE


def sha3_256(data: Union[bytes, bytearray, memoryview]) -> bytes:
    """
    SHA3-256 hash function per NIST FIPS 202.

    Args:
        data: Input data to hash

    Returns:
        bytes: 32-byte hash output
    """
    hasher = SHA3_256.new()
    hasher.update(bytes(data))
    return hasher.digest()


def rand_from_digest(digest: bytes) -> int:
    """Interpret a 32-byte digest as a big-endian integer in [0, HASH_MAX]."""
    if len(digest) != HASH_SIZE:
        raise ValueError(f"Digest must be {HASH_SIZE} bytes, got {len(digest)}")
    return int.from_bytes(digest, "big")


def rand_from_seed(seed: Union[bytes, bytearray, memoryview]) -> int:
    """
    Derive an election random value from an externally supplied seed.

    The result always lies in [0, HASH_MAX].
    """
    return rand_from_digest(sha3_256(seed))
