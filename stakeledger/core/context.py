"""
Stake Ledger Call Context

Per-call values injected by the host ledger.
"""

from __future__ import annotations
from dataclasses import dataclass

from stakeledger.core.types import Address


@dataclass(frozen=True)
class CallContext:
    """
    Host-provided context of one externally triggered call.

    - height: current block height (monotonically non-decreasing)
    - caller: identity of the calling participant
    - value: tokens attached to the call
    """
    height: int
    caller: Address
    value: int = 0

    def __post_init__(self):
        if self.height < 0:
            raise ValueError(f"Block height must be non-negative, got {self.height}")
