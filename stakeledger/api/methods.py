"""
Stake Ledger JSON-RPC Methods

All RPC methods for the API server.
"""

from __future__ import annotations
import logging
from typing import Any, List, Optional, Union, TYPE_CHECKING

from stakeledger.constants import PROTOCOL_VERSION
from stakeledger.consensus.election import win_probabilities
from stakeledger.core.types import Address
from stakeledger.errors import StakeLedgerError
from stakeledger.node.host import HostError

if TYPE_CHECKING:
    from stakeledger.node.node import Node

logger = logging.getLogger(__name__)


class RPCError(Exception):
    """RPC error with code and message."""
    def __init__(self, code: int, message: str, data: Any = None):
        self.code = code
        self.message = message
        self.data = data
        super().__init__(message)


# Error codes
ERROR_PARSE = -32700
ERROR_INVALID_REQUEST = -32600
ERROR_METHOD_NOT_FOUND = -32601
ERROR_INVALID_PARAMS = -32602
ERROR_INTERNAL = -32603
ERROR_LEDGER = -32000
ERROR_HOST = -32001


def _parse_address(address: str) -> Address:
    if not isinstance(address, str):
        raise RPCError(ERROR_INVALID_PARAMS, "Invalid address format")
    try:
        return Address.from_hex(address)
    except (ValueError, TypeError):
        raise RPCError(ERROR_INVALID_PARAMS, "Invalid address format")


def _parse_int(value: Union[int, str], name: str) -> int:
    """Accept JSON integers or 0x-prefixed hex strings."""
    if isinstance(value, bool):
        raise RPCError(ERROR_INVALID_PARAMS, f"Invalid {name}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value, 16) if value.startswith("0x") else int(value)
        except ValueError:
            pass
    raise RPCError(ERROR_INVALID_PARAMS, f"Invalid {name}")


async def _run(coro):
    """Await a node operation, mapping ledger failures to RPC errors."""
    try:
        return await coro
    except StakeLedgerError as e:
        raise RPCError(ERROR_LEDGER, e.message, e.to_dict())
    except HostError as e:
        raise RPCError(ERROR_HOST, str(e))


# ==============================================================================
# Status Methods
# ==============================================================================

async def get_status(node: "Node") -> dict:
    """Get node status."""
    return node.get_status()


async def get_version(node: "Node") -> dict:
    """Get protocol version information."""
    from stakeledger import __version__
    return {
        "protocol_version": PROTOCOL_VERSION,
        "node_version": __version__,
        "name": node.config.name,
    }


async def get_config(node: "Node") -> dict:
    """Get ledger delays."""
    return node.ledger.state.config.to_dict()


# ==============================================================================
# Staking Methods
# ==============================================================================

async def deposit(node: "Node", address: str, value: Union[int, str]) -> dict:
    """
    Stake tokens attached to the call.

    Args:
        address: Caller (hex)
        value: Tokens to lock

    Returns:
        Caller's staked total after the deposit
    """
    caller = _parse_address(address)
    await _run(node.deposit(caller, _parse_int(value, "value")))
    return {"address": address, "staked": node.ledger.staked_tokens(caller)}


async def request_withdraw(node: "Node", address: str, amount: Union[int, str]) -> dict:
    """Record a withdrawal request."""
    caller = _parse_address(address)
    await _run(node.request_withdraw(caller, _parse_int(amount, "amount")))
    return {
        "address": address,
        "requested": node.ledger.requested_withdrawals(caller),
        "height": node.host.height,
    }


async def withdraw(node: "Node", address: str) -> dict:
    """Pay out matured withdrawal requests."""
    caller = _parse_address(address)
    paid = await _run(node.withdraw(caller))
    return {
        "address": address,
        "paid": paid,
        "staked": node.ledger.staked_tokens(caller),
        "balance": node.host.balance_of(caller),
    }


async def get_stake(node: "Node", address: str) -> dict:
    """Get stake entries and voting power of an address."""
    addr = _parse_address(address)
    return {
        "address": address,
        "staked": node.ledger.staked_tokens(addr),
        "requested": node.ledger.requested_withdrawals(addr),
        "power": node.ledger.voting_power(addr, node.host.height),
        "entries": [s.to_dict() for s in node.ledger.stakes_of(addr)],
    }


async def get_withdraw_requests(node: "Node", address: str) -> List[dict]:
    """Get pending withdrawal requests of an address."""
    addr = _parse_address(address)
    return [r.to_dict() for r in node.ledger.withdraw_requests_of(addr)]


# ==============================================================================
# Election Methods
# ==============================================================================

async def get_candidates(node: "Node") -> List[dict]:
    """Get candidates with power and expected win probability."""
    candidates = node.ledger.candidates(node.host.height)
    probabilities = win_probabilities(candidates)
    return [
        {**c.to_dict(), "probability": probabilities[c.address.hex()]}
        for c in sorted(candidates, key=lambda c: c.sort_key())
    ]


async def get_voting_power(node: "Node", address: str) -> int:
    """Get current voting power of an address."""
    return node.ledger.voting_power(_parse_address(address), node.host.height)


async def get_computed_leader(node: "Node") -> dict:
    """Get leader computed for the current height, if any."""
    leader = node.ledger.query_computed_leader(node.host.height)
    return {
        "height": node.host.height,
        "leader": leader.hex() if leader else None,
    }


async def elect_leader(
    node: "Node",
    address: str,
    rand: Union[int, str, None] = None,
    seed: Optional[str] = None
) -> dict:
    """
    Elect the leader for the current height (system caller only).

    Args:
        address: Caller (hex)
        rand: Random value in [0, HASH_MAX] (int or 0x-hex)
        seed: Hex seed hashed into the random value, instead of rand
    """
    caller = _parse_address(address)
    if rand is not None:
        leader = await _run(node.elect_leader(caller, _parse_int(rand, "rand")))
    elif seed is not None:
        try:
            seed_bytes = bytes.fromhex(seed)
        except ValueError:
            raise RPCError(ERROR_INVALID_PARAMS, "Invalid seed format")
        leader = await _run(node.elect_leader_from_seed(caller, seed_bytes))
    else:
        raise RPCError(ERROR_INVALID_PARAMS, "Either rand or seed is required")

    return {"height": node.host.height, "leader": leader.hex()}


async def punish(node: "Node", address: str, participant: str) -> dict:
    """Slash a participant (system caller only)."""
    caller = _parse_address(address)
    target = _parse_address(participant)
    forfeited = await _run(node.punish(caller, target))
    return {"participant": participant, "forfeited": forfeited}


# ==============================================================================
# Host Methods
# ==============================================================================

async def advance(node: "Node", blocks: int = 1) -> int:
    """Advance block height; returns the new height."""
    return await _run(node.advance(_parse_int(blocks, "blocks")))


async def faucet(node: "Node", address: str, amount: Union[int, str]) -> int:
    """Credit tokens to an address; returns its balance."""
    return await _run(node.faucet(_parse_address(address), _parse_int(amount, "amount")))


async def get_balance(node: "Node", address: str) -> int:
    """Get unstaked host balance of an address."""
    return node.host.balance_of(_parse_address(address))


# ==============================================================================
# Method Registry
# ==============================================================================

METHOD_REGISTRY = {
    # Status
    "stake_status": get_status,
    "stake_version": get_version,
    "stake_config": get_config,

    # Staking
    "stake_deposit": deposit,
    "stake_requestWithdraw": request_withdraw,
    "stake_withdraw": withdraw,
    "stake_getStake": get_stake,
    "stake_getWithdrawRequests": get_withdraw_requests,

    # Election
    "stake_candidates": get_candidates,
    "stake_votingPower": get_voting_power,
    "stake_computedLeader": get_computed_leader,
    "stake_electLeader": elect_leader,
    "stake_punish": punish,

    # Host
    "stake_advance": advance,
    "stake_faucet": faucet,
    "stake_balance": get_balance,
}


def get_method(name: str):
    """Get method by name."""
    return METHOD_REGISTRY.get(name)


def list_methods() -> List[str]:
    """List all available methods."""
    return list(METHOD_REGISTRY.keys())
