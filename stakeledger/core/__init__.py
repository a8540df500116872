"""
Stake Ledger Core Data Structures
"""

from stakeledger.core.types import Address
from stakeledger.core.context import CallContext
from stakeledger.core.state import (
    Stake,
    WithdrawRequest,
    ElectionResult,
    LedgerConfig,
    LedgerState,
)

__all__ = [
    # Types
    "Address",
    "CallContext",
    # State
    "Stake",
    "WithdrawRequest",
    "ElectionResult",
    "LedgerConfig",
    "LedgerState",
]
