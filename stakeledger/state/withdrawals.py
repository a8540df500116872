"""
Stake Ledger Withdrawals

Maturation filter for withdrawal requests and the stake reduction walk.
"""

from __future__ import annotations
import logging
from typing import List, Sequence, Tuple

from stakeledger.consensus.valuation import valuate
from stakeledger.core.state import Stake, WithdrawRequest
from stakeledger.errors import InvariantViolationError

logger = logging.getLogger(__name__)


def extract_eligible_withdrawals(
    requests: Sequence[WithdrawRequest],
    current_height: int,
    withdraw_delay: int
) -> Tuple[int, List[WithdrawRequest]]:
    """
    Split requests into matured and still pending.

    A request is matured once current_height - created > withdraw_delay.

    Args:
        requests: Pending requests, oldest first
        current_height: Current block height
        withdraw_delay: Maturation period in blocks

    Returns:
        (matured_total, remaining) with remaining in original order
    """
    matured_total = 0
    remaining = []
    for request in requests:
        if current_height - request.created > withdraw_delay:
            matured_total += request.value
        else:
            remaining.append(request.copy())
    return matured_total, remaining


def decrease_stake(
    stakes: Sequence[Stake],
    amount: int,
    current_height: int,
    deposit_delay: int
) -> List[Stake]:
    """
    Remove amount tokens from stake, lowest valuation first.

    Entries are visited in ascending valuation order (ties keep their
    position). Entries worth no more than the remaining amount are
    consumed entirely; the first larger entry is reduced and the walk
    stops. Surviving entries keep their original order.

    Args:
        stakes: Participant's stake entries
        amount: Tokens to remove
        current_height: Height used for valuation
        deposit_delay: Grace period used for valuation

    Returns:
        New list of stake entries

    Raises:
        InvariantViolationError: If the entries hold less than amount
    """
    result = [s.copy() for s in stakes]
    if amount <= 0:
        return result

    order = sorted(
        range(len(result)),
        key=lambda i: valuate(result[i], current_height, deposit_delay)
    )

    remaining = amount
    removed = set()
    for i in order:
        entry = result[i]
        if entry.value > remaining:
            entry.value -= remaining
            remaining = 0
            break
        remaining -= entry.value
        removed.add(i)
        if remaining == 0:
            break

    if remaining > 0:
        logger.critical(
            f"Stake reduction of {amount} exceeds available stake "
            f"(short by {remaining})"
        )
        raise InvariantViolationError(
            "Stake reduction exceeds available stake",
            {"amount": amount, "shortfall": remaining},
        )

    return [s for i, s in enumerate(result) if i not in removed]
