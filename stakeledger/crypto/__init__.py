"""
Stake Ledger Cryptographic Primitives
"""

from stakeledger.crypto.hash import sha3_256, rand_from_digest, rand_from_seed

__all__ = [
    "sha3_256",
    "rand_from_digest",
    "rand_from_seed",
]
