"""
Stake Ledger Storage Tests
"""

import sqlite3

import pytest

from stakeledger.core.state import (
    ElectionResult,
    LedgerConfig,
    LedgerState,
    Stake,
    WithdrawRequest,
)
from stakeledger.errors import StorageError
from stakeledger.state.storage import SCHEMA_VERSION, LedgerStorage


@pytest.fixture
def populated_state(addr_a, addr_b) -> LedgerState:
    state = LedgerState(config=LedgerConfig(deposit_delay=3, withdraw_delay=7))
    state.set_stakes(addr_a, [Stake(2**80, 0), Stake(5, 4), Stake(1, 2)])
    state.set_stakes(addr_b, [Stake(9, 1)])
    state.set_requests(addr_a, [WithdrawRequest(3, 5), WithdrawRequest(1, 6)])
    state.election = ElectionResult(leader=addr_b, height=8)
    return state


class TestLedgerStorage:
    """Tests for SQLite snapshots."""

    def test_empty_database(self):
        with LedgerStorage(":memory:") as storage:
            assert storage.load_state() is None
            assert storage.get_schema_version() == SCHEMA_VERSION

    def test_save_and_load(self, populated_state):
        """Entry order, large values and the election survive a snapshot."""
        with LedgerStorage(":memory:") as storage:
            storage.save_state(populated_state)
            assert storage.load_state() == populated_state

    def test_save_replaces_previous(self, populated_state, addr_a):
        with LedgerStorage(":memory:") as storage:
            storage.save_state(populated_state)

            smaller = LedgerState(config=populated_state.config)
            smaller.set_stakes(addr_a, [Stake(1, 1)])
            storage.save_state(smaller)

            assert storage.load_state() == smaller

    def test_persists_across_connections(self, tmp_path, populated_state):
        db_path = str(tmp_path / "nested" / "ledger.db")

        storage = LedgerStorage(db_path)
        storage.save_state(populated_state)
        storage.close()

        with LedgerStorage(db_path) as reopened:
            assert reopened.load_state() == populated_state

    def test_unsupported_schema_version(self, tmp_path):
        db_path = str(tmp_path / "ledger.db")
        with LedgerStorage(db_path):
            pass

        conn = sqlite3.connect(db_path)
        conn.execute("UPDATE schema_info SET value = '99' WHERE key = 'version'")
        conn.commit()
        conn.close()

        with pytest.raises(StorageError):
            LedgerStorage(db_path).connect()

    def test_host_height(self, populated_state):
        """The host height is stored with the snapshot."""
        with LedgerStorage(":memory:") as storage:
            assert storage.load_height() == 0
            storage.save_state(populated_state, height=42)
            assert storage.load_height() == 42
