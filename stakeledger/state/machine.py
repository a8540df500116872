"""
Stake Ledger State Machine

State transitions: deposit, request_withdraw, withdraw, elect_leader, punish.

Every apply_* function works on a copy of the given state and returns
the new state; the caller commits it only when the call succeeded, so a
failing call leaves the ledger exactly as it was.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from stakeledger.constants import HASH_MAX
from stakeledger.consensus.election import select_leader
from stakeledger.consensus.valuation import (
    Candidate,
    collect_candidates,
    voting_power,
)
from stakeledger.core.context import CallContext
from stakeledger.core.state import (
    ElectionResult,
    LedgerState,
    Stake,
    WithdrawRequest,
)
from stakeledger.core.types import Address
from stakeledger.errors import InsufficientStakeError, InvalidAmountError
from stakeledger.state.guard import SystemCallerGuard
from stakeledger.state.withdrawals import (
    decrease_stake,
    extract_eligible_withdrawals,
)

logger = logging.getLogger(__name__)

# Host primitive paying tokens out of the ledger
TransferFn = Callable[[Address, int], None]


def apply_deposit(state: LedgerState, ctx: CallContext) -> LedgerState:
    """
    Lock the value attached to the call as a new stake entry.

    Raises:
        InvalidAmountError: If the attached value is not positive
    """
    if ctx.value <= 0:
        raise InvalidAmountError(ctx.value)

    new_state = state.copy()
    entries = new_state.get_stakes(ctx.caller)
    new_state.set_stakes(ctx.caller, entries + [Stake(ctx.value, ctx.height)])

    logger.debug(
        f"Deposit {ctx.value} from {ctx.caller.short()} at height {ctx.height}"
    )
    return new_state


def apply_request_withdraw(
    state: LedgerState,
    ctx: CallContext,
    amount: int
) -> LedgerState:
    """
    Record a withdrawal request dated to the current height.

    The request must be covered by stake not already requested.

    Raises:
        InvalidAmountError: If amount is not positive
        InsufficientStakeError: If staked - requested < amount
    """
    if amount <= 0:
        raise InvalidAmountError(amount)

    available = state.staked_tokens(ctx.caller) - state.requested_withdrawals(ctx.caller)
    if available < amount:
        raise InsufficientStakeError(amount, available)

    new_state = state.copy()
    entries = new_state.get_requests(ctx.caller)
    new_state.set_requests(
        ctx.caller,
        entries + [WithdrawRequest(amount, ctx.height)]
    )

    logger.debug(
        f"Withdraw request {amount} from {ctx.caller.short()} at height {ctx.height}"
    )
    return new_state


def apply_withdraw(
    state: LedgerState,
    ctx: CallContext,
    transfer: TransferFn
) -> Tuple[LedgerState, int]:
    """
    Pay out matured withdrawal requests.

    Per request maturation:
    1. Split requests into matured total and remainder
    2. Shrink stake by the matured total (lowest valuation first)
    3. Transfer the matured total to the caller

    The transfer runs last so that a failing reduction never leaves
    tokens paid out.

    Returns:
        (new_state, amount_paid)

    Raises:
        InvariantViolationError: If stake cannot cover the payout
    """
    config = state.config
    matured_total, remaining = extract_eligible_withdrawals(
        state.get_requests(ctx.caller),
        ctx.height,
        config.withdraw_delay,
    )

    new_state = state.copy()
    new_state.set_requests(ctx.caller, remaining)
    new_state.set_stakes(
        ctx.caller,
        decrease_stake(
            new_state.get_stakes(ctx.caller),
            matured_total,
            ctx.height,
            config.deposit_delay,
        )
    )

    if matured_total > 0:
        transfer(ctx.caller, matured_total)

    logger.debug(
        f"Withdraw by {ctx.caller.short()} at height {ctx.height}: "
        f"paid {matured_total}, pending {len(remaining)}"
    )
    return new_state, matured_total


def query_computed_leader(state: LedgerState, height: int) -> Optional[Address]:
    """Cached leader if it was elected at this exact height."""
    if state.election is not None and state.election.is_valid_at(height):
        return state.election.leader
    return None


def apply_election(
    state: LedgerState,
    ctx: CallContext,
    rand: int,
    hash_max: int = HASH_MAX
) -> Tuple[LedgerState, Address]:
    """
    Elect the leader for the current height.

    The first successful election at a height is final: later calls at
    the same height return the cached leader without a new draw.

    On success the winner's stake is replaced by a single entry worth
    their pre-election total, dated to the current height.

    Returns:
        (new_state, leader)

    Raises:
        InvalidParameterError: If rand is out of range
        NoEligibleCandidateError: If no candidate has positive power
    """
    cached = query_computed_leader(state, ctx.height)
    if cached is not None:
        logger.debug(
            f"Leader for height {ctx.height} already computed: {cached.short()}"
        )
        return state, cached

    winner = select_leader(
        collect_candidates(state, ctx.height),
        rand,
        hash_max,
    )
    leader = winner.address

    new_state = state.copy()
    new_state.set_stakes(
        leader,
        [Stake(new_state.staked_tokens(leader), ctx.height)]
    )
    new_state.election = ElectionResult(leader=leader, height=ctx.height)

    logger.info(
        f"Elected leader {leader.short()} at height {ctx.height} "
        f"(power {winner.power})"
    )
    return new_state, leader


def apply_punish(state: LedgerState, participant: Address) -> LedgerState:
    """Forfeit all stake and pending withdrawals of a participant."""
    new_state = state.copy()
    forfeited = new_state.staked_tokens(participant)
    new_state.set_stakes(participant, [])
    new_state.set_requests(participant, [])

    logger.info(f"Slashed {participant.short()}: forfeited {forfeited}")
    return new_state


def _no_transfer(address: Address, amount: int) -> None:
    raise RuntimeError("No transfer primitive configured")


@dataclass
class StakeLedger:
    """
    Ledger facade committing state transitions atomically.

    Each operation computes a new state from the current one and swaps
    it in only after the whole call succeeded.
    """
    guard: SystemCallerGuard
    state: LedgerState = field(default_factory=LedgerState)
    transfer: TransferFn = _no_transfer
    hash_max: int = HASH_MAX

    # =========================================================================
    # Operations
    # =========================================================================

    def deposit(self, ctx: CallContext) -> None:
        self.state = apply_deposit(self.state, ctx)

    def request_withdraw(self, ctx: CallContext, amount: int) -> None:
        self.state = apply_request_withdraw(self.state, ctx, amount)

    def withdraw(self, ctx: CallContext) -> int:
        new_state, paid = apply_withdraw(self.state, ctx, self.transfer)
        self.state = new_state
        return paid

    def elect_leader(self, ctx: CallContext, rand: int) -> Address:
        self.guard.require(ctx, "elect_leader")
        new_state, leader = apply_election(self.state, ctx, rand, self.hash_max)
        self.state = new_state
        return leader

    def punish(self, ctx: CallContext, participant: Address) -> None:
        self.guard.require(ctx, "punish")
        self.state = apply_punish(self.state, participant)

    # =========================================================================
    # Queries
    # =========================================================================

    def query_computed_leader(self, height: int) -> Optional[Address]:
        return query_computed_leader(self.state, height)

    def staked_tokens(self, address: Address) -> int:
        return self.state.staked_tokens(address)

    def requested_withdrawals(self, address: Address) -> int:
        return self.state.requested_withdrawals(address)

    def voting_power(self, address: Address, height: int) -> int:
        return voting_power(self.state, address, height)

    def candidates(self, height: int) -> List[Candidate]:
        return collect_candidates(self.state, height)

    def stakes_of(self, address: Address) -> List[Stake]:
        return [s.copy() for s in self.state.get_stakes(address)]

    def withdraw_requests_of(self, address: Address) -> List[WithdrawRequest]:
        return [r.copy() for r in self.state.get_requests(address)]

    def summary(self, height: int) -> dict:
        """Aggregate ledger figures at a height."""
        leader = self.query_computed_leader(height)
        return {
            "height": height,
            "stakers": len(self.state.stakes),
            "total_staked": self.state.total_staked(),
            "pending_withdrawals": sum(
                r.value
                for entries in self.state.withdraw_requests.values()
                for r in entries
            ),
            "leader": leader.hex() if leader else None,
            "config": self.state.config.to_dict(),
        }
