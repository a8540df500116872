"""
Stake Ledger Development Node
Main node orchestrator.
"""

from __future__ import annotations
import argparse
import asyncio
from contextlib import contextmanager
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Optional

from stakeledger import __version__
from stakeledger.constants import PROTOCOL_VERSION
from stakeledger.core.state import LedgerState
from stakeledger.core.types import Address
from stakeledger.crypto.hash import rand_from_seed
from stakeledger.node.config import NodeConfig, setup_logging
from stakeledger.node.host import HostLedger
from stakeledger.state.guard import SystemCallerGuard
from stakeledger.state.machine import StakeLedger
from stakeledger.state.storage import LedgerStorage

logger = logging.getLogger(__name__)


@dataclass
class NodeStatus:
    """Node status information."""
    started: bool = False
    height: int = 0
    stakers: int = 0
    total_staked: int = 0
    leader: Optional[str] = None
    uptime_seconds: int = 0
    start_time: float = 0.0


@dataclass
class Node:
    """
    Stake Ledger Node.

    Coordinates the ledger with its host environment:
    - In-memory host (height, balances, transfers)
    - Atomic ledger operations, one at a time
    - Snapshot persistence
    - JSON-RPC API
    """
    config: NodeConfig
    host: HostLedger = field(default_factory=HostLedger)

    ledger: StakeLedger = field(init=False)
    storage: Optional[LedgerStorage] = field(init=False, default=None)
    api_server: Any = field(init=False, default=None)
    status: NodeStatus = field(init=False, default_factory=NodeStatus)
    _lock: asyncio.Lock = field(init=False, default_factory=asyncio.Lock)

    def __post_init__(self):
        errors = self.config.validate()
        if errors:
            raise ValueError(f"Invalid configuration: {'; '.join(errors)}")

        self.ledger = StakeLedger(
            guard=SystemCallerGuard(self.config.system),
            state=LedgerState(config=self.config.ledger),
            transfer=self.host.transfer,
        )

        if self.config.storage.enabled:
            self.storage = LedgerStorage(str(self.config.db_path))

    @property
    def system_address(self) -> Address:
        return self.config.system

    async def start(self) -> None:
        """Load persisted state and start the API server."""
        if self.status.started:
            return

        logger.info(f"Starting {self.config.name} (protocol v{PROTOCOL_VERSION})")

        if self.storage is not None:
            self.storage.connect()
            state = self.storage.load_state()
            if state is not None:
                if state.config != self.config.ledger:
                    logger.warning(
                        f"Stored ledger config {state.config} differs from "
                        f"configured {self.config.ledger}; keeping configured"
                    )
                    state.config = self.config.ledger
                self.ledger.state = state
                self.host.escrow = state.total_staked()
                self.host.height = max(
                    self.host.height,
                    self.storage.load_height(),
                    state.latest_height(),
                )
                logger.info(
                    f"Restored ledger with {len(state.stakes)} stakers "
                    f"at height {self.host.height}"
                )

        if self.config.api.enabled:
            from stakeledger.api.server import APIServer
            self.api_server = APIServer(
                self,
                host=self.config.api.host,
                port=self.config.api.port,
                max_batch_size=self.config.api.max_batch_size,
            )
            await self.api_server.start()

        self.status.started = True
        self.status.start_time = time.time()

    async def stop(self) -> None:
        """Stop the API server and flush state to storage."""
        if not self.status.started:
            return

        logger.info("Stopping node")

        if self.api_server is not None:
            await self.api_server.stop()

        if self.storage is not None:
            self.storage.save_state(self.ledger.state, self.host.height)
            self.storage.close()

        self.status.started = False

    def _persist(self) -> None:
        if self.storage is not None and self.config.storage.autosave:
            self.storage.save_state(self.ledger.state, self.host.height)

    @contextmanager
    def _atomic(self):
        """
        Commit ledger and host changes together with their snapshot.

        If the body or the save fails, both are rolled back.
        """
        state = self.ledger.state
        host = self.host.snapshot()
        try:
            yield
            self._persist()
        except Exception:
            self.ledger.state = state
            self.host.restore(host)
            raise

    # =========================================================================
    # Ledger Operations
    # =========================================================================

    async def deposit(self, caller: Address, value: int) -> None:
        async with self._lock:
            with self._atomic():
                ctx = self.host.context(caller, value)
                self.ledger.deposit(ctx)
                self.host.collect(caller, value)

    async def request_withdraw(self, caller: Address, amount: int) -> None:
        async with self._lock:
            with self._atomic():
                self.ledger.request_withdraw(self.host.context(caller), amount)

    async def withdraw(self, caller: Address) -> int:
        async with self._lock:
            with self._atomic():
                return self.ledger.withdraw(self.host.context(caller))

    async def elect_leader(self, caller: Address, rand: int) -> Address:
        async with self._lock:
            with self._atomic():
                return self.ledger.elect_leader(self.host.context(caller), rand)

    async def elect_leader_from_seed(self, caller: Address, seed: bytes) -> Address:
        """Elect with the random value derived from an external seed."""
        return await self.elect_leader(caller, rand_from_seed(seed))

    async def punish(self, caller: Address, participant: Address) -> int:
        """Slash a participant; returns the forfeited stake."""
        async with self._lock:
            with self._atomic():
                forfeited = self.ledger.staked_tokens(participant)
                self.ledger.punish(self.host.context(caller), participant)
                self.host.burn(forfeited)
                return forfeited

    # =========================================================================
    # Host Operations
    # =========================================================================

    async def advance(self, blocks: int = 1) -> int:
        async with self._lock:
            with self._atomic():
                return self.host.advance(blocks)

    async def faucet(self, address: Address, amount: int) -> int:
        async with self._lock:
            self.host.credit(address, amount)
            return self.host.balance_of(address)

    # =========================================================================
    # Status
    # =========================================================================

    def _update_status(self) -> None:
        height = self.host.height
        leader = self.ledger.query_computed_leader(height)
        self.status.height = height
        self.status.stakers = len(self.ledger.state.stakes)
        self.status.total_staked = self.ledger.state.total_staked()
        self.status.leader = leader.hex() if leader else None
        if self.status.started:
            self.status.uptime_seconds = int(time.time() - self.status.start_time)

    def get_status(self) -> dict:
        """Get node status."""
        self._update_status()
        return {
            "name": self.config.name,
            "version": __version__,
            "started": self.status.started,
            "height": self.status.height,
            "stakers": self.status.stakers,
            "total_staked": self.status.total_staked,
            "leader": self.status.leader,
            "uptime_seconds": self.status.uptime_seconds,
        }


async def run_node(config: NodeConfig) -> None:
    """Run a node until cancelled."""
    node = Node(config)
    await node.start()
    try:
        while True:
            await asyncio.sleep(3600)
    finally:
        await node.stop()


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="stake-ledger-node",
        description="Run a stake ledger development node",
    )
    parser.add_argument("--config", help="Path to JSON configuration file")
    parser.add_argument("--devnet", action="store_true", help="Use devnet defaults")
    parser.add_argument("--port", type=int, help="API port")
    parser.add_argument("--data-dir", help="Data directory")
    parser.add_argument("--log-level", help="Logging level")
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)

    if args.config:
        config = NodeConfig.load(args.config)
    elif args.devnet:
        config = NodeConfig.default_devnet()
    else:
        config = NodeConfig()

    if args.port:
        config.api.port = args.port
    if args.data_dir:
        config.storage.data_dir = args.data_dir
    if args.log_level:
        config.log.level = args.log_level

    setup_logging(config.log)

    try:
        asyncio.run(run_node(config))
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main()
