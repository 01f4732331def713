"""Ethereum JSON-RPC client with retries and error classification."""

from __future__ import annotations

import itertools
import json
import logging
import time
from typing import Any, Optional, Sequence

import requests

from core.base_types import CallRequest

from .errors import ChainError, ExecutionReverted, RPCError

logger = logging.getLogger(__name__)


class ChainClient:
    """
    Ethereum RPC transport with reliability features.

    Features:
    - Automatic retry with exponential backoff
    - Multiple RPC endpoint fallback
    - Request timing/logging
    - Proper error classification

    Calls are blocking; the async layers run them through ``asyncio.to_thread``
    behind a ``RequestScheduler``.
    """

    def __init__(
        self,
        rpc_urls: list[str],
        timeout: int = 30,
        max_retries: int = 3,
    ):
        if not rpc_urls:
            raise ValueError("rpc_urls must not be empty")
        if max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        self._rpc_urls = rpc_urls
        self._timeout = timeout
        self._max_retries = max_retries
        self._session = requests.Session()
        self._ids = itertools.count(1)

    @property
    def rpc_urls(self) -> list[str]:
        return list(self._rpc_urls)

    def call(self, request: CallRequest, block: str = "latest") -> bytes:
        """Contract read: returns the raw return bytes of eth_call."""
        result = self._rpc_call("eth_call", [request.to_dict(), block])
        return _hex_to_bytes(result)

    def request(self, method: str, params: Sequence[Any] = ()) -> Any:
        """Raw JSON-RPC request."""
        return self._rpc_call(method, list(params))

    def get_block_number(self) -> int:
        return _hex_to_int(self._rpc_call("eth_blockNumber", []))

    def get_chain_id(self) -> int:
        return _hex_to_int(self._rpc_call("eth_chainId", []))

    def _rpc_call(self, method: str, params: list[Any]) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        last_error: Optional[Exception] = None
        for url in self._rpc_urls:
            for attempt in range(self._max_retries):
                start = time.perf_counter()
                try:
                    response = self._session.post(
                        url,
                        json=payload,
                        timeout=self._timeout,
                    )
                    elapsed = time.perf_counter() - start
                    logger.info("rpc %s %s in %.3fs", method, url, elapsed)
                    if response.status_code == 429 or response.status_code >= 500:
                        last_error = RPCError(
                            f"HTTP {response.status_code} from {url}",
                            code=response.status_code,
                        )
                        self._sleep_backoff(attempt)
                        continue
                    if response.status_code >= 400:
                        raise RPCError(
                            f"HTTP {response.status_code} from {url}",
                            code=response.status_code,
                        )
                    data = response.json()
                    if not isinstance(data, dict):
                        raise RPCError("Invalid RPC response")
                    if "error" in data:
                        self._raise_rpc_error(data["error"])
                    return data.get("result")
                except (requests.Timeout, requests.ConnectionError) as exc:
                    last_error = exc
                    self._sleep_backoff(attempt)
                except RPCError:
                    raise
                except json.JSONDecodeError as exc:
                    last_error = exc
                    self._sleep_backoff(attempt)
        raise ChainError(f"RPC request {method} failed") from last_error

    def _sleep_backoff(self, attempt: int) -> None:
        delay = 0.5 * (2**attempt)
        time.sleep(delay)

    def _raise_rpc_error(self, error: Any) -> None:
        if not isinstance(error, dict):
            raise RPCError(str(error))
        message = str(error.get("message", "RPC error"))
        code = error.get("code")
        data = error.get("data")
        if code == 3 or "execution reverted" in message.lower():
            raise ExecutionReverted(message, code=code, data=data)
        raise RPCError(message, code=code, data=data)


def _hex_to_int(value: str) -> int:
    if not isinstance(value, str):
        raise RPCError("Expected hex string result")
    return int(value, 16)


def _hex_to_bytes(value: str) -> bytes:
    if not isinstance(value, str):
        raise RPCError("Expected hex string result")
    normalized = value[2:] if value.startswith("0x") else value
    if normalized == "":
        return b""
    return bytes.fromhex(normalized)
