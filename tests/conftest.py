"""
Stake Ledger Test Fixtures
"""

import asyncio
from typing import List, Tuple

import pytest

from stakeledger.core.context import CallContext
from stakeledger.core.state import LedgerConfig, LedgerState
from stakeledger.core.types import Address
from stakeledger.node.config import NodeConfig
from stakeledger.state.guard import SystemCallerGuard
from stakeledger.state.machine import StakeLedger


@pytest.fixture
def addr_a() -> Address:
    """First participant."""
    return Address(bytes([0x0a] * 32))


@pytest.fixture
def addr_b() -> Address:
    """Second participant (orders after addr_a)."""
    return Address(bytes([0x0b] * 32))


@pytest.fixture
def addr_c() -> Address:
    """Third participant (orders after addr_b)."""
    return Address(bytes([0x0c] * 32))


@pytest.fixture
def system_address() -> Address:
    """Privileged system caller."""
    return Address(bytes([0xff] * 32))


@pytest.fixture
def ledger_config() -> LedgerConfig:
    """Delays used throughout the scenarios: 10 blocks each."""
    return LedgerConfig(deposit_delay=10, withdraw_delay=10)


@pytest.fixture
def empty_state(ledger_config) -> LedgerState:
    """Create an empty ledger state for testing."""
    return LedgerState(config=ledger_config)


@pytest.fixture
def payouts() -> List[Tuple[Address, int]]:
    """Records transfers executed by the ledger."""
    return []


@pytest.fixture
def ledger(ledger_config, system_address, payouts) -> StakeLedger:
    """Ledger with a recording transfer primitive."""
    return StakeLedger(
        guard=SystemCallerGuard(system_address),
        state=LedgerState(config=ledger_config),
        transfer=lambda to, amount: payouts.append((to, amount)),
    )


@pytest.fixture
def ctx():
    """Factory for call contexts."""
    def make(caller: Address, height: int, value: int = 0) -> CallContext:
        return CallContext(height=height, caller=caller, value=value)
    return make


@pytest.fixture
def devnet_config(system_address) -> NodeConfig:
    """In-memory node configuration without API server."""
    config = NodeConfig.default_devnet()
    config.system_address = system_address.hex()
    config.ledger = LedgerConfig(deposit_delay=10, withdraw_delay=10)
    config.api.enabled = False
    return config


# Async fixtures helper
@pytest.fixture
def async_runner():
    """Helper for running async functions in tests."""
    def runner(coro):
        loop = asyncio.new_event_loop()
        try:
            return loop.run_until_complete(coro)
        finally:
            loop.close()
    return runner
