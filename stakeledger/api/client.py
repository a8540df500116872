"""
Stake Ledger JSON-RPC Client

Async client for a running node's API.
"""

from __future__ import annotations
import itertools
import logging
from typing import Any, List, Optional, Union

import httpx

from stakeledger.api.methods import RPCError, ERROR_INTERNAL
from stakeledger.constants import DEFAULT_API_PORT

logger = logging.getLogger(__name__)


class LedgerClient:
    """
    JSON-RPC client over httpx.

    Usage:
        async with LedgerClient() as client:
            await client.deposit(address, 100)
    """

    def __init__(
        self,
        url: str = f"http://127.0.0.1:{DEFAULT_API_PORT}",
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self._ids = itertools.count(1)
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def __aenter__(self) -> "LedgerClient":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def call(self, method: str, params: Union[list, dict, None] = None) -> Any:
        """
        Invoke an RPC method.

        Raises:
            RPCError: If the node answered with an error object
            httpx.HTTPError: On transport failures
        """
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params if params is not None else [],
            "id": next(self._ids),
        }
        resp = await self._client.post(self.url, json=payload)
        resp.raise_for_status()
        data = resp.json()

        error = data.get("error")
        if error:
            logger.debug(f"{method} failed: {error}")
            raise RPCError(
                error.get("code", ERROR_INTERNAL),
                error.get("message", ""),
                error.get("data"),
            )
        return data.get("result")

    # =========================================================================
    # Convenience wrappers
    # =========================================================================

    async def status(self) -> dict:
        return await self.call("stake_status")

    async def deposit(self, address: str, value: int) -> dict:
        return await self.call("stake_deposit", {"address": address, "value": value})

    async def request_withdraw(self, address: str, amount: int) -> dict:
        return await self.call(
            "stake_requestWithdraw", {"address": address, "amount": amount}
        )

    async def withdraw(self, address: str) -> dict:
        return await self.call("stake_withdraw", {"address": address})

    async def get_stake(self, address: str) -> dict:
        return await self.call("stake_getStake", {"address": address})

    async def candidates(self) -> List[dict]:
        return await self.call("stake_candidates")

    async def computed_leader(self) -> Optional[str]:
        result = await self.call("stake_computedLeader")
        return result["leader"]

    async def elect_leader(self, address: str, rand: int) -> str:
        # Hex keeps 256-bit values intact for non-Python peers
        result = await self.call(
            "stake_electLeader", {"address": address, "rand": hex(rand)}
        )
        return result["leader"]

    async def punish(self, address: str, participant: str) -> dict:
        return await self.call(
            "stake_punish", {"address": address, "participant": participant}
        )

    async def advance(self, blocks: int = 1) -> int:
        return await self.call("stake_advance", {"blocks": blocks})

    async def faucet(self, address: str, amount: int) -> int:
        return await self.call("stake_faucet", {"address": address, "amount": amount})
