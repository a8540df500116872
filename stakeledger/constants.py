"""
Stake Ledger Constants

All protocol constants defined here for single source of truth.
"""

from typing import Final

PROTOCOL_VERSION: Final[int] = 1

# ==============================================================================
# IDENTITY
# ==============================================================================

ADDRESS_SIZE: Final[int] = 32                   # Participant identity bytes
HASH_SIZE: Final[int] = 32                      # SHA3-256 output

# ==============================================================================
# VALUATION
# ==============================================================================

# Age is capped before squaring so the bonus fits in 64 bits
MAX_VALUATION_AGE: Final[int] = 2**32 - 1
MAX_POWER: Final[int] = 2**128 - 1              # Saturation point for power

# ==============================================================================
# ELECTION
# ==============================================================================

# Random input range for leader election: [0, HASH_MAX]
HASH_MAX: Final[int] = 2**(8 * HASH_SIZE) - 1

# ==============================================================================
# DELAYS (blocks)
# ==============================================================================

DEFAULT_DEPOSIT_DELAY: Final[int] = 10          # Grace period before stake counts
DEFAULT_WITHDRAW_DELAY: Final[int] = 10         # Maturation before payout

# ==============================================================================
# NODE
# ==============================================================================

DEFAULT_API_PORT: Final[int] = 8645
DEFAULT_DB_NAME: Final[str] = "stake_ledger.db"

# System caller used by devnet configurations (all 0xff)
DEVNET_SYSTEM_ADDRESS: Final[str] = "ff" * ADDRESS_SIZE
