"""
Stake Ledger Leader Selection

Weighted random draw over candidate voting power.

Process:
1. total_power = Σ candidate.power
2. Sort candidates ascending by (power, address)
3. shot = total_power × rand / HASH_MAX, mapped into [0, total_power)
4. Walk the sorted list; the first candidate whose power exceeds the
   remaining shot wins, otherwise its power is subtracted

Given the same candidate set and the same rand, every executor computes
the same winner.
"""

from __future__ import annotations
import logging
from typing import List, Sequence

from stakeledger.constants import HASH_MAX
from stakeledger.consensus.valuation import Candidate
from stakeledger.errors import InvalidParameterError, NoEligibleCandidateError

logger = logging.getLogger(__name__)


def sort_candidates(candidates: Sequence[Candidate]) -> List[Candidate]:
    """Sort candidates into the deterministic election order."""
    return sorted(candidates, key=Candidate.sort_key)


def compute_shot(total_power: int, rand: int, hash_max: int = HASH_MAX) -> int:
    """
    Map a random value into [0, total_power).

    rand == hash_max would land exactly on total_power, so the shot is
    clamped to the last unit of power.

    Args:
        total_power: Sum of candidate powers
        rand: Random value in [0, hash_max]
        hash_max: Upper bound of the random range

    Returns:
        Shot as integer
    """
    if hash_max <= 0:
        raise InvalidParameterError("hash_max", f"must be positive, got {hash_max}")
    if rand < 0 or rand > hash_max:
        raise InvalidParameterError("rand", f"must be in [0, {hash_max}]")

    if total_power <= 0:
        return 0

    shot = total_power * rand // hash_max
    return min(shot, total_power - 1)


def select_leader(
    candidates: Sequence[Candidate],
    rand: int,
    hash_max: int = HASH_MAX
) -> Candidate:
    """
    Pick the election winner.

    Args:
        candidates: Candidate list (any order)
        rand: Externally supplied random value in [0, hash_max]
        hash_max: Upper bound of the random range

    Returns:
        Winning candidate

    Raises:
        InvalidParameterError: If rand is out of range
        NoEligibleCandidateError: If no candidate has positive power
    """
    ordered = sort_candidates(candidates)
    power_sum = sum(c.power for c in ordered)
    remaining = compute_shot(power_sum, rand, hash_max)

    for candidate in ordered:
        if candidate.power > remaining:
            logger.debug(
                f"Leader selected: {candidate.address.short()} "
                f"(power {candidate.power} of {power_sum})"
            )
            return candidate
        remaining -= candidate.power

    logger.warning(f"No eligible candidate among {len(ordered)}")
    raise NoEligibleCandidateError(len(ordered))


def win_probabilities(candidates: Sequence[Candidate]) -> dict:
    """
    Expected win probability of each candidate: power / total_power.

    Returns:
        Mapping of address hex to probability
    """
    power_sum = sum(c.power for c in candidates)
    if power_sum == 0:
        return {c.address.hex(): 0.0 for c in candidates}
    return {c.address.hex(): c.power / power_sum for c in candidates}
