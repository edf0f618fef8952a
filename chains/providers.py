"""
chains/providers.py - JSON-RPC access with endpoint failover.

Used to read live chain state (native and token balances) that seeds
simulations. Provides:
- Multiple endpoint failover
- Request timeout handling
- Per-endpoint latency and error statistics
"""

import os
import time
from dataclasses import dataclass
from typing import Any

import httpx
from dotenv import load_dotenv

from core.constants import BALANCE_OF_SELECTOR, ErrorCode
from core.exceptions import InfraError
from core.logging import get_logger
from core.validators import normalize_address

logger = get_logger(__name__)

load_dotenv()


@dataclass
class RPCStats:
    """Statistics for an RPC endpoint."""
    url: str
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    total_latency_ms: int = 0
    last_error: str | None = None

    @property
    def avg_latency_ms(self) -> int:
        if self.successful_requests == 0:
            return 0
        return self.total_latency_ms // self.successful_requests


@dataclass
class RPCResponse:
    """Response from an RPC call."""
    result: Any
    latency_ms: int
    endpoint_used: str


def encode_balance_of(owner: str) -> str:
    """Calldata for ERC20 balanceOf(owner)."""
    return BALANCE_OF_SELECTOR + normalize_address(owner, "owner")[2:].rjust(64, "0")


def decode_uint(result: str) -> int:
    if not result or result == "0x":
        return 0
    return int(result, 16)


class RPCProvider:
    """
    RPC provider with failover support.

    Tries endpoints in order until one succeeds. ``${ALCHEMY_API_KEY}``
    placeholders are resolved from the environment (.env supported);
    endpoints needing a missing key are skipped.
    """

    def __init__(
        self,
        chain_id: int,
        rpc_urls: list[str],
        timeout_seconds: int = 10,
    ):
        self.chain_id = chain_id
        self.timeout_seconds = timeout_seconds
        self._client: httpx.AsyncClient | None = None
        self._request_id = 0
        self.rpc_urls = self._resolve_urls(rpc_urls)
        self.stats: dict[str, RPCStats] = {url: RPCStats(url=url) for url in self.rpc_urls}

    def _resolve_urls(self, urls: list[str]) -> list[str]:
        api_key = os.getenv("ALCHEMY_API_KEY", "")
        resolved = []
        for url in urls:
            if "${ALCHEMY_API_KEY}" in url and not api_key:
                continue
            resolved.append(url.replace("${ALCHEMY_API_KEY}", api_key))
        return resolved

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout_seconds),
                limits=httpx.Limits(max_connections=10),
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def call(self, method: str, params: list | None = None) -> RPCResponse:
        """
        Make an RPC call with failover.

        Raises:
            InfraError: If all endpoints fail
        """
        if not self.rpc_urls:
            raise InfraError(
                "No RPC endpoints configured",
                code=ErrorCode.INFRA_RPC_ERROR,
                details={"chain_id": self.chain_id},
            )

        client = await self._get_client()
        last_error: str | None = None
        timed_out = False

        for url in self.rpc_urls:
            stats = self.stats[url]
            stats.total_requests += 1
            self._request_id += 1
            payload = {
                "jsonrpc": "2.0",
                "method": method,
                "params": params or [],
                "id": self._request_id,
            }
            start_ms = int(time.time() * 1000)

            try:
                resp = await client.post(url, json=payload)
                body = resp.json()
            except httpx.TimeoutException:
                last_error = f"Timeout after {int(time.time() * 1000) - start_ms}ms"
                timed_out = True
            except (httpx.HTTPError, ValueError) as e:
                last_error = str(e)
                timed_out = False
            else:
                if "error" not in body:
                    latency_ms = int(time.time() * 1000) - start_ms
                    stats.successful_requests += 1
                    stats.total_latency_ms += latency_ms
                    return RPCResponse(
                        result=body.get("result"),
                        latency_ms=latency_ms,
                        endpoint_used=url,
                    )
                error = body["error"]
                last_error = error.get("message", str(error)) if isinstance(error, dict) else str(error)
                timed_out = False

            stats.failed_requests += 1
            stats.last_error = last_error
            logger.debug(
                "RPC endpoint failed",
                extra={"context": {"url": url, "method": method, "error": last_error}},
            )

        raise InfraError(
            f"All RPC endpoints failed for chain {self.chain_id}",
            code=ErrorCode.INFRA_TIMEOUT if timed_out else ErrorCode.INFRA_RPC_ERROR,
            details={
                "chain_id": self.chain_id,
                "method": method,
                "endpoints_tried": len(self.rpc_urls),
                "last_error": last_error,
            },
        )

    async def get_block_number(self) -> int:
        response = await self.call("eth_blockNumber")
        return decode_uint(response.result)

    async def get_balance(self, address: str, block: str = "latest") -> int:
        """Native balance in wei."""
        response = await self.call("eth_getBalance", [normalize_address(address), block])
        return decode_uint(response.result)

    async def eth_call(self, to: str, data: str, block: str = "latest") -> RPCResponse:
        return await self.call("eth_call", [{"to": to, "data": data}, block])

    async def get_token_balance(self, token: str, owner: str, block: str = "latest") -> int:
        response = await self.eth_call(normalize_address(token, "token"), encode_balance_of(owner), block)
        return decode_uint(response.result)

    def get_stats_summary(self) -> dict:
        return {
            url: {
                "total_requests": s.total_requests,
                "failed_requests": s.failed_requests,
                "avg_latency_ms": s.avg_latency_ms,
                "last_error": s.last_error,
            }
            for url, s in self.stats.items()
        }
