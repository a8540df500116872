"""
Stake Ledger Authorization Guard

Distinguishes calls induced by the host ledger itself (the system
caller) from ordinary external callers.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass

from stakeledger.core.context import CallContext
from stakeledger.core.types import Address
from stakeledger.errors import UnauthorizedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SystemCallerGuard:
    """Allows a call only when it originates from the system address."""
    system_address: Address

    def allows(self, ctx: CallContext) -> bool:
        return ctx.caller == self.system_address

    def require(self, ctx: CallContext, operation: str) -> None:
        """
        Raises:
            UnauthorizedError: If the caller is not the system caller
        """
        if not self.allows(ctx):
            logger.warning(
                f"Rejected {operation} from non-system caller {ctx.caller.short()}"
            )
            raise UnauthorizedError(operation, ctx.caller.hex())
