"""
Stake Ledger In-Memory Host

Minimal host ledger for development nodes and tests: block height,
token balances and the transfer primitive used during payout.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Dict, Tuple

from stakeledger.core.context import CallContext
from stakeledger.core.types import Address
from stakeledger.errors import InvalidAmountError, InvalidParameterError

logger = logging.getLogger(__name__)


class HostError(Exception):
    """Host ledger refused an operation."""
    pass


@dataclass
class HostLedger:
    """
    In-memory host environment.

    Tokens attached to calls move from the caller's balance into the
    ledger escrow; payouts move them back.
    """
    height: int = 0
    balances: Dict[Address, int] = field(default_factory=dict)
    escrow: int = 0

    def advance(self, blocks: int = 1) -> int:
        """Advance block height; returns the new height."""
        if blocks < 0:
            raise InvalidParameterError("blocks", "height never decreases")
        self.height += blocks
        return self.height

    def balance_of(self, address: Address) -> int:
        return self.balances.get(address, 0)

    def credit(self, address: Address, amount: int) -> None:
        """Credit tokens to an address (faucet)."""
        if amount <= 0:
            raise InvalidAmountError(amount)
        self.balances[address] = self.balance_of(address) + amount

    def context(self, caller: Address, value: int = 0) -> CallContext:
        """
        Build the context of a call at the current height.

        Raises:
            HostError: If the caller cannot cover the attached value
        """
        if value > 0 and self.balance_of(caller) < value:
            raise HostError(
                f"Insufficient balance for attached value: "
                f"{self.balance_of(caller)} < {value}"
            )
        return CallContext(height=self.height, caller=caller, value=value)

    def collect(self, caller: Address, value: int) -> None:
        """Move attached value from the caller into escrow."""
        if value <= 0:
            return
        balance = self.balance_of(caller)
        if balance < value:
            raise HostError(f"Insufficient balance: {balance} < {value}")
        self.balances[caller] = balance - value
        self.escrow += value

    def transfer(self, to: Address, amount: int) -> None:
        """Pay tokens out of escrow."""
        if amount > self.escrow:
            raise HostError(f"Escrow cannot cover transfer: {self.escrow} < {amount}")
        self.escrow -= amount
        self.balances[to] = self.balance_of(to) + amount
        logger.debug(f"Transferred {amount} to {to.short()}")

    def burn(self, amount: int) -> None:
        """Drop forfeited tokens from escrow."""
        self.escrow -= min(amount, self.escrow)

    def snapshot(self) -> Tuple[int, Dict[Address, int], int]:
        """Capture height, balances and escrow."""
        return self.height, dict(self.balances), self.escrow

    def restore(self, snapshot: Tuple[int, Dict[Address, int], int]) -> None:
        """Roll back to a captured snapshot in place."""
        self.height, balances, self.escrow = snapshot
        self.balances = dict(balances)
