"""
Stake Ledger Node
"""

from stakeledger.node.config import NodeConfig, LedgerConfig, setup_logging
from stakeledger.node.host import HostLedger, HostError

__all__ = [
    "NodeConfig",
    "LedgerConfig",
    "setup_logging",
    "HostLedger",
    "HostError",
]
