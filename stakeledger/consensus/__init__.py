"""
Stake Ledger Consensus

Stake valuation and weighted leader selection.
"""

from stakeledger.consensus.valuation import (
    valuate,
    total_power,
    voting_power,
    collect_candidates,
    get_valuation_info,
    Candidate,
)
from stakeledger.consensus.election import (
    compute_shot,
    select_leader,
    sort_candidates,
    win_probabilities,
)

__all__ = [
    # Valuation
    "valuate",
    "total_power",
    "voting_power",
    "collect_candidates",
    "get_valuation_info",
    "Candidate",
    # Election
    "compute_shot",
    "select_leader",
    "sort_candidates",
    "win_probabilities",
]
