"""
Stake Ledger JSON-RPC API
"""

from stakeledger.api.server import APIServer
from stakeledger.api.client import LedgerClient
from stakeledger.api.methods import (
    METHOD_REGISTRY,
    RPCError,
    get_method,
    list_methods,
)

__all__ = [
    "APIServer",
    "LedgerClient",
    "METHOD_REGISTRY",
    "RPCError",
    "get_method",
    "list_methods",
]
