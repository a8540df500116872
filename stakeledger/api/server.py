"""
Stake Ledger JSON-RPC Server

HTTP JSON-RPC server for node interaction.
"""

from __future__ import annotations
import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, TYPE_CHECKING

from aiohttp import web

from stakeledger.api.methods import (
    METHOD_REGISTRY,
    RPCError,
    ERROR_PARSE,
    ERROR_INVALID_REQUEST,
    ERROR_METHOD_NOT_FOUND,
    ERROR_INVALID_PARAMS,
    ERROR_INTERNAL,
)
from stakeledger.constants import DEFAULT_API_PORT

if TYPE_CHECKING:
    from stakeledger.node.node import Node

logger = logging.getLogger(__name__)


@dataclass
class RPCResponse:
    """JSON-RPC response."""
    jsonrpc: str = "2.0"
    result: Any = None
    error: Optional[dict] = None
    id: Any = None

    def to_dict(self) -> dict:
        d = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error:
            d["error"] = self.error
        else:
            d["result"] = self.result
        return d


@web.middleware
async def cors_middleware(request: web.Request, handler) -> web.StreamResponse:
    """CORS middleware."""
    if request.method == "OPTIONS":
        return web.Response(
            status=200,
            headers={
                "Access-Control-Allow-Origin": "*",
                "Access-Control-Allow-Methods": "POST, GET, OPTIONS",
                "Access-Control-Allow-Headers": "Content-Type",
            }
        )

    response = await handler(request)
    response.headers["Access-Control-Allow-Origin"] = "*"
    return response


@dataclass
class APIServer:
    """
    JSON-RPC API Server.

    Provides HTTP interface for interacting with the stake ledger node.
    """
    node: "Node"
    host: str = "127.0.0.1"
    port: int = DEFAULT_API_PORT
    max_batch_size: int = 100

    _runner: Optional[web.AppRunner] = field(default=None, repr=False)
    _site: Optional[web.TCPSite] = field(default=None, repr=False)
    _running: bool = False

    def create_app(self) -> web.Application:
        """Build the aiohttp application."""
        app = web.Application(middlewares=[cors_middleware])

        app.router.add_post("/", self._handle_rpc)
        app.router.add_get("/health", self._handle_health)
        app.router.add_get("/methods", self._handle_methods)

        return app

    async def start(self) -> None:
        """Start the API server."""
        self._runner = web.AppRunner(self.create_app())
        await self._runner.setup()

        self._site = web.TCPSite(self._runner, self.host, self.port)
        await self._site.start()

        self._running = True
        logger.info(f"API server started on http://{self.host}:{self.port}")

    async def stop(self) -> None:
        """Stop the API server."""
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
            self._running = False
            logger.info("API server stopped")

    async def _handle_health(self, request: web.Request) -> web.Response:
        """Handle health check."""
        status = self.node.get_status()
        return web.json_response({
            "status": "ok",
            "height": status.get("height", 0),
            "leader": status.get("leader"),
        })

    async def _handle_methods(self, request: web.Request) -> web.Response:
        """Handle methods listing."""
        return web.json_response({"methods": list(METHOD_REGISTRY.keys())})

    async def _handle_rpc(self, request: web.Request) -> web.Response:
        """Handle JSON-RPC request."""
        try:
            body = await request.text()
            data = json.loads(body)
        except json.JSONDecodeError as e:
            return web.json_response(
                RPCResponse(
                    error={"code": ERROR_PARSE, "message": f"Parse error: {e}"}
                ).to_dict(),
                status=400
            )

        # Handle batch request
        if isinstance(data, list):
            if len(data) > self.max_batch_size:
                return web.json_response(
                    RPCResponse(
                        error={
                            "code": ERROR_INVALID_REQUEST,
                            "message": f"Batch size exceeds maximum ({self.max_batch_size})"
                        }
                    ).to_dict(),
                    status=400
                )

            responses = await asyncio.gather(
                *[self.process_request(req) for req in data]
            )
            return web.json_response([r.to_dict() for r in responses])

        response = await self.process_request(data)
        return web.json_response(response.to_dict())

    async def process_request(self, data: Any) -> RPCResponse:
        """Process a single JSON-RPC request."""
        if not isinstance(data, dict):
            return RPCResponse(
                error={"code": ERROR_INVALID_REQUEST, "message": "Invalid request"}
            )

        if data.get("jsonrpc") != "2.0":
            return RPCResponse(
                error={"code": ERROR_INVALID_REQUEST, "message": "Invalid JSON-RPC version"},
                id=data.get("id")
            )

        method = data.get("method")
        if not method or not isinstance(method, str):
            return RPCResponse(
                error={"code": ERROR_INVALID_REQUEST, "message": "Missing method"},
                id=data.get("id")
            )

        params = data.get("params", [])
        req_id = data.get("id")

        try:
            result = await self._execute_method(method, params)
            return RPCResponse(result=result, id=req_id)

        except RPCError as e:
            return RPCResponse(
                error={"code": e.code, "message": e.message, "data": e.data},
                id=req_id
            )

        except Exception as e:
            logger.error(f"RPC error in {method}: {e}", exc_info=True)
            return RPCResponse(
                error={"code": ERROR_INTERNAL, "message": str(e)},
                id=req_id
            )

    async def _execute_method(self, method: str, params: Any) -> Any:
        """Execute an RPC method."""
        handler = METHOD_REGISTRY.get(method)

        if handler is None:
            raise RPCError(ERROR_METHOD_NOT_FOUND, f"Method not found: {method}")

        try:
            if isinstance(params, list):
                return await handler(self.node, *params)
            elif isinstance(params, dict):
                return await handler(self.node, **params)
            elif params is None:
                return await handler(self.node)
        except TypeError as e:
            # Wrong arity or unknown keyword
            raise RPCError(ERROR_INVALID_PARAMS, str(e))

        raise RPCError(ERROR_INVALID_PARAMS, "Invalid params format")


def get_api_info() -> dict:
    """Get information about API server."""
    return {
        "protocol": "JSON-RPC 2.0",
        "default_port": DEFAULT_API_PORT,
        "methods_count": len(METHOD_REGISTRY),
        "batch_support": True,
    }
