"""
Stake Ledger Full Cycle Integration Tests

Tests the complete node flow: faucet → deposit → election → withdrawal →
slashing → restart from storage.
"""

from unittest.mock import patch

import pytest

from stakeledger.core.state import LedgerConfig, Stake, WithdrawRequest
from stakeledger.core.types import Address
from stakeledger.errors import NoEligibleCandidateError, StorageError
from stakeledger.node.node import Node, parse_args


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def persistent_config(devnet_config, tmp_path):
    """Node configuration persisting into a temporary directory."""
    devnet_config.storage.enabled = True
    devnet_config.storage.data_dir = str(tmp_path / "data")
    return devnet_config


@pytest.fixture
def participants():
    """Five participants with distinct addresses."""
    return [Address(bytes([i + 1] * 32)) for i in range(5)]


# =============================================================================
# Full Cycle
# =============================================================================

class TestFullCycle:
    """End-to-end ledger flow through the node."""

    def test_epoch_of_elections(self, devnet_config, participants, system_address, async_runner):
        """Leaders rotate as winners' stake is reset and re-ages."""
        devnet_config.ledger = LedgerConfig(deposit_delay=2, withdraw_delay=2)
        node = Node(devnet_config)

        async def scenario():
            for i, addr in enumerate(participants):
                await node.faucet(addr, 1000)
                await node.deposit(addr, 100 * (i + 1))
            await node.advance(10)

            leaders = []
            for height in range(10, 30):
                rand = (height * 7919) % 1000
                leader = await node.elect_leader(system_address, rand * 2**246)
                leaders.append(leader)
                await node.advance(1)
            return leaders

        leaders = async_runner(scenario())

        assert len(leaders) == 20
        assert set(leaders) <= set(participants)
        # No leader can win twice within the grace period after a reset
        for i in range(len(leaders) - 1):
            assert leaders[i] != leaders[i + 1]
        assert node.ledger.state.total_staked() == sum(100 * (i + 1) for i in range(5))

    def test_all_in_grace_period(self, devnet_config, participants, system_address, async_runner):
        node = Node(devnet_config)

        async def scenario():
            await node.faucet(participants[0], 10)
            await node.deposit(participants[0], 10)
            await node.elect_leader(system_address, 0)

        with pytest.raises(NoEligibleCandidateError):
            async_runner(scenario())

    def test_tokens_conserved(self, devnet_config, participants, system_address, async_runner):
        """Balances plus escrow only shrink by slashed stake."""
        node = Node(devnet_config)
        a, b = participants[:2]

        async def scenario():
            await node.faucet(a, 500)
            await node.faucet(b, 500)
            await node.deposit(a, 300)
            await node.deposit(b, 200)
            await node.request_withdraw(a, 120)
            await node.advance(11)
            paid = await node.withdraw(a)
            forfeited = await node.punish(system_address, b)
            return paid, forfeited

        paid, forfeited = async_runner(scenario())

        assert paid == 120
        assert forfeited == 200
        assert node.host.balance_of(a) == 200 + 120
        assert node.host.escrow == node.ledger.state.total_staked() == 180
        assert node.host.balance_of(a) + node.host.balance_of(b) + node.host.escrow == 1000 - 200


class TestPersistence:
    """Node restart restores the ledger from storage."""

    def test_restart_restores_state(self, persistent_config, participants, system_address, async_runner):
        a, b = participants[:2]

        async def first_run():
            node = Node(persistent_config)
            await node.start()
            await node.faucet(a, 100)
            await node.faucet(b, 100)
            await node.deposit(a, 60)
            await node.deposit(b, 40)
            await node.advance(10)
            await node.request_withdraw(b, 15)
            leader = await node.elect_leader(system_address, 0)
            await node.stop()
            return leader

        leader = async_runner(first_run())

        async def second_run():
            node = Node(persistent_config)
            await node.start()
            try:
                return node
            finally:
                await node.stop()

        node = async_runner(second_run())

        assert node.host.height == 10
        assert node.ledger.query_computed_leader(10) == leader
        assert node.ledger.staked_tokens(a) == 60
        assert node.ledger.withdraw_requests_of(b) == [WithdrawRequest(15, 10)]
        assert node.host.escrow == 100
        assert node.ledger.stakes_of(leader) == [
            Stake(node.ledger.staked_tokens(leader), 10)
        ]

    def test_restart_keeps_height_monotonic(self, persistent_config, participants, async_runner):
        """Entries are never dated after the restored height."""
        a = participants[0]

        async def first_run():
            node = Node(persistent_config)
            await node.start()
            await node.advance(50)
            await node.faucet(a, 100)
            await node.deposit(a, 30)
            await node.stop()

        async def second_run():
            node = Node(persistent_config)
            await node.start()
            try:
                await node.faucet(a, 10)
                await node.deposit(a, 10)
                return node
            finally:
                await node.stop()

        async_runner(first_run())
        node = async_runner(second_run())

        assert node.host.height == 50
        assert node.ledger.stakes_of(a) == [Stake(30, 50), Stake(10, 50)]

    def test_height_restored_from_entries(self, persistent_config, participants, async_runner):
        """Without autosave the height still covers every stored entry."""
        a = participants[0]
        persistent_config.storage.autosave = False

        async def run():
            node = Node(persistent_config)
            node.storage.connect()
            node.ledger.state.set_stakes(a, [Stake(5, 70)])
            node.storage.save_state(node.ledger.state)
            node.storage.close()

            restarted = Node(persistent_config)
            await restarted.start()
            await restarted.stop()
            return restarted

        assert async_runner(run()).host.height == 70

    def test_failed_save_rolls_back(self, persistent_config, participants, async_runner):
        """A call whose snapshot cannot be written leaves ledger and host untouched."""
        a = participants[0]

        async def run():
            node = Node(persistent_config)
            await node.start()
            await node.faucet(a, 100)
            try:
                with patch.object(
                    node.storage, "save_state",
                    side_effect=StorageError("disk full"),
                ):
                    with pytest.raises(StorageError):
                        await node.deposit(a, 40)
                    with pytest.raises(StorageError):
                        await node.advance(5)
                return node
            finally:
                await node.stop()

        node = async_runner(run())

        assert node.ledger.staked_tokens(a) == 0
        assert node.host.balance_of(a) == 100
        assert node.host.escrow == 0
        assert node.host.height == 0

    def test_status(self, persistent_config, async_runner):
        async def run():
            node = Node(persistent_config)
            await node.start()
            try:
                return node.get_status()
            finally:
                await node.stop()

        status = async_runner(run())

        assert status["started"] is True
        assert status["stakers"] == 0
        assert status["leader"] is None


class TestCommandLine:
    """Tests for node argument parsing."""

    def test_parse_args(self):
        args = parse_args(["--devnet", "--port", "9000", "--log-level", "WARNING"])

        assert args.devnet
        assert args.port == 9000
        assert args.log_level == "WARNING"
        assert args.config is None
