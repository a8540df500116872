"""
Stake Ledger State Machine

State transitions for deposits, withdrawals, elections and slashing.
"""

from stakeledger.state.machine import (
    StakeLedger,
    apply_deposit,
    apply_request_withdraw,
    apply_withdraw,
    apply_election,
    apply_punish,
    query_computed_leader,
)
from stakeledger.state.withdrawals import (
    extract_eligible_withdrawals,
    decrease_stake,
)
from stakeledger.state.guard import (
    SystemCallerGuard,
)
from stakeledger.state.storage import (
    LedgerStorage,
)

__all__ = [
    # Machine
    "StakeLedger",
    "apply_deposit",
    "apply_request_withdraw",
    "apply_withdraw",
    "apply_election",
    "apply_punish",
    "query_computed_leader",
    # Withdrawals
    "extract_eligible_withdrawals",
    "decrease_stake",
    # Guard
    "SystemCallerGuard",
    # Storage
    "LedgerStorage",
]
