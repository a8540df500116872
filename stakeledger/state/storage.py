"""
Stake Ledger State Storage

SQLite persistence for ledger snapshots.
"""

from __future__ import annotations
import logging
import sqlite3
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from stakeledger.core.state import (
    ElectionResult,
    LedgerConfig,
    LedgerState,
    Stake,
    WithdrawRequest,
)
from stakeledger.core.types import Address
from stakeledger.errors import StorageError

logger = logging.getLogger(__name__)


# Schema version for migrations
SCHEMA_VERSION = 1


CREATE_TABLES_SQL = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_info (
    key TEXT PRIMARY KEY,
    value TEXT
);

-- Ledger configuration (single row)
CREATE TABLE IF NOT EXISTS ledger_config (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    deposit_delay INTEGER NOT NULL,
    withdraw_delay INTEGER NOT NULL,
    host_height INTEGER NOT NULL DEFAULT 0,
    updated_at INTEGER NOT NULL
);

-- Stake entries, idx preserves per-participant order
CREATE TABLE IF NOT EXISTS stakes (
    address BLOB NOT NULL,
    idx INTEGER NOT NULL,
    value TEXT NOT NULL,
    created INTEGER NOT NULL,
    PRIMARY KEY (address, idx)
);

-- Pending withdrawal requests
CREATE TABLE IF NOT EXISTS withdraw_requests (
    address BLOB NOT NULL,
    idx INTEGER NOT NULL,
    value TEXT NOT NULL,
    created INTEGER NOT NULL,
    PRIMARY KEY (address, idx)
);

-- Cached election result (single row)
CREATE TABLE IF NOT EXISTS election (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    leader BLOB NOT NULL,
    height INTEGER NOT NULL
);
"""


@dataclass
class LedgerStorage:
    """
    SQLite-based ledger storage.

    Stores a full snapshot of the ledger state; every save replaces the
    previous snapshot in one transaction. Token values are stored as
    text since they may exceed SQLite's 64-bit integers.
    """
    db_path: str
    _conn: Optional[sqlite3.Connection] = None

    def __post_init__(self):
        self._conn = None

    def connect(self) -> None:
        """Open database connection and initialize schema."""
        if self._conn is not None:
            return

        path = Path(self.db_path)
        if self.db_path != ":memory:":
            path.parent.mkdir(parents=True, exist_ok=True)

        try:
            self._conn = sqlite3.connect(
                self.db_path,
                isolation_level=None,  # Autocommit by default
                check_same_thread=False
            )
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA synchronous=NORMAL")
            self._init_schema()
        except sqlite3.Error as e:
            self.close()
            raise StorageError(f"Cannot open ledger storage: {e}", {"path": self.db_path})
        except StorageError:
            self.close()
            raise

        logger.info(f"Connected to ledger storage: {self.db_path}")

    def _init_schema(self) -> None:
        """Initialize database schema."""
        self._conn.executescript(CREATE_TABLES_SQL)

        cursor = self._conn.execute(
            "SELECT value FROM schema_info WHERE key = 'version'"
        )
        row = cursor.fetchone()

        if row is None:
            self._conn.execute(
                "INSERT INTO schema_info (key, value) VALUES ('version', ?)",
                (str(SCHEMA_VERSION),)
            )
        elif int(row[0]) != SCHEMA_VERSION:
            raise StorageError(
                f"Unsupported schema version {row[0]}",
                {"expected": SCHEMA_VERSION, "found": row[0]},
            )

    def close(self) -> None:
        """Close database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.info("Closed ledger storage")

    def __enter__(self) -> "LedgerStorage":
        self.connect()
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _ensure_connected(self) -> None:
        if self._conn is None:
            self.connect()

    # =========================================================================
    # Snapshot Operations
    # =========================================================================

    def save_state(self, state: LedgerState, height: int = 0) -> None:
        """Replace the stored snapshot with the given state and host height."""
        self._ensure_connected()
        conn = self._conn

        try:
            conn.execute("BEGIN")
            conn.execute("DELETE FROM stakes")
            conn.execute("DELETE FROM withdraw_requests")
            conn.execute("DELETE FROM election")

            conn.execute(
                """INSERT OR REPLACE INTO ledger_config
                   (id, deposit_delay, withdraw_delay, host_height, updated_at)
                   VALUES (1, ?, ?, ?, ?)""",
                (
                    state.config.deposit_delay,
                    state.config.withdraw_delay,
                    height,
                    int(time.time() * 1000),
                )
            )

            conn.executemany(
                "INSERT INTO stakes (address, idx, value, created) VALUES (?, ?, ?, ?)",
                [
                    (addr.data, idx, str(s.value), s.created)
                    for addr, entries in state.stakes.items()
                    for idx, s in enumerate(entries)
                ]
            )
            conn.executemany(
                "INSERT INTO withdraw_requests (address, idx, value, created) VALUES (?, ?, ?, ?)",
                [
                    (addr.data, idx, str(r.value), r.created)
                    for addr, entries in state.withdraw_requests.items()
                    for idx, r in enumerate(entries)
                ]
            )

            if state.election is not None:
                conn.execute(
                    "INSERT INTO election (id, leader, height) VALUES (1, ?, ?)",
                    (state.election.leader.data, state.election.height)
                )

            conn.execute("COMMIT")
        except sqlite3.Error as e:
            conn.execute("ROLLBACK")
            raise StorageError(f"Failed to save ledger state: {e}")

        logger.debug(
            f"Saved ledger snapshot: {len(state.stakes)} stakers, "
            f"{len(state.withdraw_requests)} with pending requests"
        )

    def load_state(self) -> Optional[LedgerState]:
        """
        Load the stored snapshot.

        Returns:
            LedgerState, or None if nothing was saved yet
        """
        self._ensure_connected()
        conn = self._conn

        row = conn.execute(
            "SELECT deposit_delay, withdraw_delay FROM ledger_config WHERE id = 1"
        ).fetchone()
        if row is None:
            return None

        state = LedgerState(
            config=LedgerConfig(deposit_delay=row[0], withdraw_delay=row[1])
        )

        for address, value, created in conn.execute(
            "SELECT address, value, created FROM stakes ORDER BY address, idx"
        ):
            addr = Address(bytes(address))
            state.stakes.setdefault(addr, []).append(Stake(int(value), created))

        for address, value, created in conn.execute(
            "SELECT address, value, created FROM withdraw_requests ORDER BY address, idx"
        ):
            addr = Address(bytes(address))
            state.withdraw_requests.setdefault(addr, []).append(
                WithdrawRequest(int(value), created)
            )

        row = conn.execute("SELECT leader, height FROM election WHERE id = 1").fetchone()
        if row is not None:
            state.election = ElectionResult(leader=Address(bytes(row[0])), height=row[1])

        logger.debug(f"Loaded ledger snapshot: {len(state.stakes)} stakers")
        return state

    def get_schema_version(self) -> int:
        """Get stored schema version."""
        self._ensure_connected()
        row = self._conn.execute(
            "SELECT value FROM schema_info WHERE key = 'version'"
        ).fetchone()
        return int(row[0]) if row else 0

    def load_height(self) -> int:
        """Get host block height stored with the last snapshot (0 if none)."""
        self._ensure_connected()
        row = self._conn.execute(
            "SELECT host_height FROM ledger_config WHERE id = 1"
        ).fetchone()
        return row[0] if row else 0
