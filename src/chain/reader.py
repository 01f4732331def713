"""Rate-limited read access to a node: single calls, raw requests and multicall."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Optional, Sequence, Union

from core.base_types import Address, CallRequest

from .abi import Contract
from .client import ChainClient
from .multicall import MULTICALL3_ADDRESS, BatchCall, MulticallAggregator
from .scheduler import RequestScheduler

if TYPE_CHECKING:
    from config import Settings

logger = logging.getLogger(__name__)


class ChainReader:
    """
    Single point of contact with the transport.

    Every read, raw request and multicall batch is a task on the same
    ``RequestScheduler``, so the configured request rate holds across all
    callers sharing this instance.
    """

    def __init__(
        self,
        client: ChainClient,
        scheduler: Optional[RequestScheduler] = None,
        multicall_address: Union[str, Address] = MULTICALL3_ADDRESS,
    ):
        self.client = client
        self.scheduler = scheduler or RequestScheduler()
        self.multicall_aggregator = MulticallAggregator(
            self.scheduler, client, multicall_address
        )

    @classmethod
    def from_settings(cls, settings: "Settings") -> "ChainReader":
        client = ChainClient(
            settings.rpc_urls,
            timeout=settings.rpc_timeout,
            max_retries=settings.rpc_max_retries,
        )
        scheduler = RequestScheduler.from_rate(settings.requests_per_second)
        logger.info(
            "ChainReader using %d endpoint(s) at %.1f req/s",
            len(settings.rpc_urls),
            settings.requests_per_second,
        )
        return cls(client, scheduler, settings.multicall_address)

    async def call(self, to: Union[str, Address], data: bytes) -> bytes:
        """Contract read returning raw bytes."""
        if not isinstance(to, Address):
            to = Address.from_string(to)
        request = CallRequest(to=to, data=data)
        return await self.scheduler.enqueue(
            lambda: asyncio.to_thread(self.client.call, request)
        )

    async def request(self, method: str, params: Sequence[Any] = ()) -> Any:
        """Raw JSON-RPC request."""
        params = list(params)
        return await self.scheduler.enqueue(
            lambda: asyncio.to_thread(self.client.request, method, params)
        )

    async def call_function(
        self, contract: Contract, method: str, args: Sequence[Any] = ()
    ) -> Any:
        """Encode, read and decode one contract function call."""
        args = list(args)
        data = contract.encode(method, args)
        raw = await self.call(contract.address, data)
        return contract.decode(method, raw, len(args))

    async def multicall(self, calls: Sequence[BatchCall]) -> list[Any]:
        return await self.multicall_aggregator.execute_batch(calls)

    async def block_number(self) -> int:
        return await self.scheduler.enqueue(
            lambda: asyncio.to_thread(self.client.get_block_number)
        )
