"""
Stake Ledger State Structures

Stake entries, withdrawal requests and the ledger state that owns them.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from stakeledger.constants import (
    DEFAULT_DEPOSIT_DELAY,
    DEFAULT_WITHDRAW_DELAY,
)
from stakeledger.core.types import Address


@dataclass
class Stake:
    """
    One stake entry.

    Created per deposit, or as the remainder of a reduction or an
    election reset.
    """
    value: int                          # Token amount
    created: int                        # Block height

    def copy(self) -> "Stake":
        return Stake(value=self.value, created=self.created)

    def to_dict(self) -> dict:
        return {"value": self.value, "created": self.created}

    @classmethod
    def from_dict(cls, data: dict) -> "Stake":
        return cls(value=int(data["value"]), created=int(data["created"]))


@dataclass
class WithdrawRequest:
    """Pending withdrawal request, payable once matured."""
    value: int                          # Token amount
    created: int                        # Block height

    def copy(self) -> "WithdrawRequest":
        return WithdrawRequest(value=self.value, created=self.created)

    def to_dict(self) -> dict:
        return {"value": self.value, "created": self.created}

    @classmethod
    def from_dict(cls, data: dict) -> "WithdrawRequest":
        return cls(value=int(data["value"]), created=int(data["created"]))


@dataclass(frozen=True)
class ElectionResult:
    """Most recent election; authoritative only at its own height."""
    leader: Address
    height: int

    def is_valid_at(self, height: int) -> bool:
        return self.height == height

    def to_dict(self) -> dict:
        return {"leader": self.leader.hex(), "height": self.height}

    @classmethod
    def from_dict(cls, data: dict) -> "ElectionResult":
        return cls(
            leader=Address.from_hex(data["leader"]),
            height=int(data["height"]),
        )


@dataclass(frozen=True)
class LedgerConfig:
    """
    Ledger delays, in blocks. Immutable after initialization.

    - deposit_delay: age a stake must reach before it carries voting power
    - withdraw_delay: age a request must exceed before it is payable
    """
    deposit_delay: int = DEFAULT_DEPOSIT_DELAY
    withdraw_delay: int = DEFAULT_WITHDRAW_DELAY

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []
        if self.deposit_delay < 0:
            errors.append(f"deposit_delay must be non-negative: {self.deposit_delay}")
        if self.withdraw_delay < 0:
            errors.append(f"withdraw_delay must be non-negative: {self.withdraw_delay}")
        return errors

    def to_dict(self) -> dict:
        return {
            "deposit_delay": self.deposit_delay,
            "withdraw_delay": self.withdraw_delay,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LedgerConfig":
        return cls(
            deposit_delay=int(data.get("deposit_delay", DEFAULT_DEPOSIT_DELAY)),
            withdraw_delay=int(data.get("withdraw_delay", DEFAULT_WITHDRAW_DELAY)),
        )


@dataclass
class LedgerState:
    """
    Complete ledger state.

    The only mutable resource of the ledger:
    - participant -> ordered stake entries
    - participant -> ordered withdrawal requests
    - cached result of the most recent election
    """
    config: LedgerConfig = field(default_factory=LedgerConfig)
    stakes: Dict[Address, List[Stake]] = field(default_factory=dict)
    withdraw_requests: Dict[Address, List[WithdrawRequest]] = field(default_factory=dict)
    election: Optional[ElectionResult] = None

    def get_stakes(self, address: Address) -> List[Stake]:
        """Stake entries of a participant (empty if none)."""
        return self.stakes.get(address, [])

    def set_stakes(self, address: Address, entries: List[Stake]) -> None:
        """Replace a participant's stake entries; empty drops the participant."""
        if entries:
            self.stakes[address] = entries
        else:
            self.stakes.pop(address, None)

    def get_requests(self, address: Address) -> List[WithdrawRequest]:
        """Withdrawal requests of a participant (empty if none)."""
        return self.withdraw_requests.get(address, [])

    def set_requests(self, address: Address, entries: List[WithdrawRequest]) -> None:
        """Replace a participant's requests; empty drops the participant."""
        if entries:
            self.withdraw_requests[address] = entries
        else:
            self.withdraw_requests.pop(address, None)

    def staked_tokens(self, address: Address) -> int:
        """Total tokens staked by a participant."""
        return sum(s.value for s in self.get_stakes(address))

    def requested_withdrawals(self, address: Address) -> int:
        """Total tokens in pending withdrawal requests."""
        return sum(r.value for r in self.get_requests(address))

    def get_all_stakers(self) -> List[Address]:
        """Participants holding at least one stake entry."""
        return list(self.stakes.keys())

    def total_staked(self) -> int:
        """Total tokens staked across all participants."""
        return sum(
            s.value for entries in self.stakes.values() for s in entries
        )

    def latest_height(self) -> int:
        """Highest block height any entry or the election is dated to."""
        heights = [
            e.created
            for collection in (self.stakes, self.withdraw_requests)
            for entries in collection.values()
            for e in entries
        ]
        if self.election is not None:
            heights.append(self.election.height)
        return max(heights, default=0)

    def copy(self) -> "LedgerState":
        """Create a deep copy of the ledger state."""
        return LedgerState(
            config=self.config,
            stakes={
                addr: [s.copy() for s in entries]
                for addr, entries in self.stakes.items()
            },
            withdraw_requests={
                addr: [r.copy() for r in entries]
                for addr, entries in self.withdraw_requests.items()
            },
            election=self.election,
        )

    def to_dict(self) -> dict:
        """Export state as dictionary."""
        return {
            "config": self.config.to_dict(),
            "stakes": {
                addr.hex(): [s.to_dict() for s in entries]
                for addr, entries in self.stakes.items()
            },
            "withdraw_requests": {
                addr.hex(): [r.to_dict() for r in entries]
                for addr, entries in self.withdraw_requests.items()
            },
            "election": self.election.to_dict() if self.election else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LedgerState":
        """Import state from dictionary."""
        state = cls(config=LedgerConfig.from_dict(data.get("config", {})))
        for addr_hex, entries in data.get("stakes", {}).items():
            state.set_stakes(
                Address.from_hex(addr_hex),
                [Stake.from_dict(e) for e in entries],
            )
        for addr_hex, entries in data.get("withdraw_requests", {}).items():
            state.set_requests(
                Address.from_hex(addr_hex),
                [WithdrawRequest.from_dict(e) for e in entries],
            )
        if data.get("election"):
            state.election = ElectionResult.from_dict(data["election"])
        return state
