"""
Stake Ledger Valuation Engine

Converts stake entries into voting power.

Formula: power = value + age²  (age >= deposit_delay)
         power = 0             (age <  deposit_delay)
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Iterable, List

from stakeledger.constants import MAX_VALUATION_AGE, MAX_POWER
from stakeledger.core.state import LedgerState, Stake
from stakeledger.core.types import Address

logger = logging.getLogger(__name__)


def valuate(stake: Stake, current_height: int, deposit_delay: int) -> int:
    """
    Compute the voting power of one stake entry.

    Freshly deposited stake carries no weight until it is deposit_delay
    blocks old. Past the grace period the entry is worth its value plus
    a quadratic age bonus.

    Age is capped at MAX_VALUATION_AGE before squaring and the result
    saturates at MAX_POWER.

    Args:
        stake: Stake entry
        current_height: Current block height
        deposit_delay: Grace period in blocks

    Returns:
        Voting power as integer
    """
    age = max(0, current_height - stake.created)
    if age < deposit_delay:
        return 0

    age = min(age, MAX_VALUATION_AGE)
    return min(stake.value + age * age, MAX_POWER)


def total_power(stakes: Iterable[Stake], current_height: int, deposit_delay: int) -> int:
    """Sum of valuations over a participant's entries."""
    return sum(valuate(s, current_height, deposit_delay) for s in stakes)


@dataclass(frozen=True)
class Candidate:
    """Derived election candidate; computed on demand, never stored."""
    address: Address
    power: int

    def sort_key(self) -> tuple:
        """Total order: ascending power, ties by ascending address."""
        return (self.power, self.address.data)

    def to_dict(self) -> dict:
        return {"address": self.address.hex(), "power": self.power}


def collect_candidates(state: LedgerState, current_height: int) -> List[Candidate]:
    """
    Build the candidate list from the ledger.

    Every participant with at least one stake entry is a candidate,
    including those whose power is still zero. No ordering guarantee.
    """
    deposit_delay = state.config.deposit_delay
    candidates = []
    for address, entries in state.stakes.items():
        if not entries:
            continue
        candidates.append(
            Candidate(address, total_power(entries, current_height, deposit_delay))
        )
    return candidates


def voting_power(state: LedgerState, address: Address, current_height: int) -> int:
    """Current voting power of one participant."""
    return total_power(
        state.get_stakes(address),
        current_height,
        state.config.deposit_delay,
    )


def get_valuation_info() -> dict:
    """Get information about stake valuation."""
    return {
        "formula": "power = value + min(age, max_age)^2 if age >= deposit_delay else 0",
        "max_age": MAX_VALUATION_AGE,
        "max_power": MAX_POWER,
    }
