"""
Stake Ledger Error Handling

All error codes and exception classes.
"""

from enum import IntEnum
from typing import Optional, Any


class ErrorCode(IntEnum):
    """Ledger error codes."""

    # 1xxx - General errors
    UNKNOWN_ERROR = 1000
    INVALID_PARAMETER = 1001
    INTERNAL_ERROR = 1002

    # 2xxx - Staking errors
    INVALID_AMOUNT = 2001
    INSUFFICIENT_STAKE = 2002

    # 3xxx - Election errors
    NO_ELIGIBLE_CANDIDATE = 3001

    # 4xxx - Authorization errors
    UNAUTHORIZED = 4001

    # 5xxx - Invariant violations (fatal)
    INVARIANT_VIOLATION = 5001

    # 6xxx - Storage errors
    STORAGE_ERROR = 6001


class StakeLedgerError(Exception):
    """Base exception for all stake ledger errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[Any] = None
    ):
        self.code = code
        self.message = message
        self.details = details
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict for API responses."""
        result = {
            "code": self.code.value,
            "name": self.code.name,
            "message": self.message,
        }
        if self.details is not None:
            result["details"] = self.details
        return result


# ==============================================================================
# General Errors (1xxx)
# ==============================================================================

class InvalidParameterError(StakeLedgerError):
    def __init__(self, param: str, message: str = ""):
        msg = f"Invalid parameter: {param}"
        if message:
            msg += f" - {message}"
        super().__init__(ErrorCode.INVALID_PARAMETER, msg, {"parameter": param})


# ==============================================================================
# Staking Errors (2xxx)
# ==============================================================================

class InvalidAmountError(StakeLedgerError):
    def __init__(self, amount: int):
        super().__init__(
            ErrorCode.INVALID_AMOUNT,
            f"Amount must be positive, got {amount}",
            {"amount": amount}
        )


class InsufficientStakeError(StakeLedgerError):
    def __init__(self, requested: int, available: int):
        super().__init__(
            ErrorCode.INSUFFICIENT_STAKE,
            f"Insufficient unrequested stake: {available} < {requested}",
            {"requested": requested, "available": available}
        )


# ==============================================================================
# Election Errors (3xxx)
# ==============================================================================

class NoEligibleCandidateError(StakeLedgerError):
    def __init__(self, candidates: int = 0):
        super().__init__(
            ErrorCode.NO_ELIGIBLE_CANDIDATE,
            "No candidate with positive voting power",
            {"candidates": candidates}
        )


# ==============================================================================
# Authorization Errors (4xxx)
# ==============================================================================

class UnauthorizedError(StakeLedgerError):
    def __init__(self, operation: str, caller: str = ""):
        super().__init__(
            ErrorCode.UNAUTHORIZED,
            f"Operation {operation} requires the system caller",
            {"operation": operation, "caller": caller}
        )


# ==============================================================================
# Invariant Violations (5xxx)
# ==============================================================================

class InvariantViolationError(StakeLedgerError):
    def __init__(self, message: str, details: Any = None):
        super().__init__(ErrorCode.INVARIANT_VIOLATION, message, details)


# ==============================================================================
# Storage Errors (6xxx)
# ==============================================================================

class StorageError(StakeLedgerError):
    def __init__(self, message: str, details: Any = None):
        super().__init__(ErrorCode.STORAGE_ERROR, message, details)
