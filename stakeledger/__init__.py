"""
Stake Ledger
Stake-weighted leader election and staking ledger

Stake accrues voting power as it ages; leaders are drawn by weighted
lottery over that power, seeded by an external random value.
"""

__version__ = "0.1.0"
__author__ = "Stake Ledger Team"

from stakeledger.constants import PROTOCOL_VERSION, HASH_MAX

__all__ = [
    "PROTOCOL_VERSION",
    "HASH_MAX",
    "__version__",
]
